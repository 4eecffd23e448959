# backend/schemas/stock.py
from pydantic import Field
from datetime import datetime
from typing import List, Optional, Literal

from schemas.base import APIModel

# Define allowed types for stock movements
StockMovementType = Literal["IN", "OUT"]

# Schema for creating a new stock movement
class StockMovementCreate(APIModel):
    product_id: str = Field(pattern=r"^[0-9a-fA-F-]{36}$")
    type: StockMovementType
    quantity: int = Field(strict=True, gt=0)
    notes: Optional[str] = None

# Schema for returning stock movement details
class StockMovementResponse(APIModel):
    id: str
    product_id: str
    type: StockMovementType
    quantity: int
    notes: Optional[str] = None
    created_by: str
    created_at: datetime

# Listing entry enriched with product and user names
class StockMovementListItem(StockMovementResponse):
    product_name: Optional[str] = None
    user_name: Optional[str] = None

# Paginated response for stock movement history
class StockMovementPage(APIModel):
    items: List[StockMovementListItem]
    total: int
    page: int
    page_size: int

class CurrentStock(APIModel):
    current_stock: int
