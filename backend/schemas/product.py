from datetime import datetime
from typing import Optional

from schemas.base import APIModel


# Product as returned by the API; currentStock is derived from the ledger
class ProductOut(APIModel):
    id: str
    name: str
    description: Optional[str] = None
    sku: str
    price: float
    min_stock: int
    category_id: str
    category_name: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    current_stock: int = 0


# Response for product creation. warning is set when the product was saved
# but its initial stock movement could not be recorded.
class ProductCreated(ProductOut):
    warning: Optional[str] = None
