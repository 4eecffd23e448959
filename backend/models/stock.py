# backend/models/stock.py
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, CheckConstraint, Index, func,
)
from sqlalchemy.orm import relationship
from database import Base

class StockMovement(Base):
    __tablename__ = "stock_movements"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
        CheckConstraint("type IN ('IN', 'OUT')", name="ck_stock_movements_type"),
        Index("ix_stock_movements_product_owner", "product_id", "created_by"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)

    # IN adds to stock, OUT takes from it; quantity is always positive
    type = Column(String(3), nullable=False)
    quantity = Column(Integer, nullable=False)

    notes = Column(String, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)

    # Microsecond precision keeps listing order stable for back-to-back inserts
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
        server_default=func.now(), nullable=False, index=True,
    )

    product = relationship("Product")
    user = relationship("User")
