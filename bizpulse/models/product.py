"""Product catalog model."""
from sqlalchemy import Column, String, DateTime, Text, Integer, Float, Boolean
from sqlalchemy.sql import func
import uuid

from bizpulse.database import Base


class Product(Base):
    """Sellable product with its minimum stock threshold."""

    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    sku = Column(String(50), unique=True, nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)

    price = Column(Float, nullable=True)
    cost = Column(Float, nullable=True)

    # Alert when inventory quantity falls to this level
    min_stock = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Product {self.name}>"
