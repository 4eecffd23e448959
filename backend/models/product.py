# backend/models/product.py
import uuid
from sqlalchemy import (
    Column, Integer, Float, String, ForeignKey, DateTime, CheckConstraint,
    UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from database import Base

# Model Product
# Catalog entry owned by a single user. Stock on hand is not stored here:
# it is always derived from the product's stock movements.
class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("owner_id", "sku", name="uq_products_owner_sku"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    sku = Column(String, nullable=False, index=True)

    price = Column(Float, CheckConstraint("price >= 0"), nullable=False, default=0)
    # Restock threshold compared against the derived stock level
    min_stock = Column(Integer, CheckConstraint("min_stock >= 0"), nullable=False, default=0)

    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Optional URL of the product image
    image_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("Category", back_populates="products")
