"""Inventory model for tracking on-hand stock per product."""
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from sqlalchemy.sql import func
import uuid

from bizpulse.database import Base


class InventoryItem(Base):
    """Stock level of a product at a location."""

    __tablename__ = "inventory"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)

    quantity = Column(Integer, default=0)
    location = Column(String(100), nullable=True)  # Warehouse, shelf, vehicle

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<InventoryItem {self.product_id} qty={self.quantity}>"
