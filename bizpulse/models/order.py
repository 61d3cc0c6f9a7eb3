"""Order and order line item models."""
from sqlalchemy import Column, String, DateTime, Text, Integer, Float, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid

from bizpulse.database import Base


class Order(Base):
    """Customer order."""

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    order_number = Column(String(50), unique=True, nullable=True, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=True, index=True)

    # pending, confirmed, in_progress, completed, cancelled, delivered
    status = Column(String(20), default="pending", nullable=False, index=True)
    total = Column(Float, default=0)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order")

    def __repr__(self):
        return f"<Order {self.order_number or self.id}>"


class OrderItem(Base):
    """Line item of an order."""

    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=True, index=True)

    quantity = Column(Integer, default=0)
    price = Column(Float, default=0)  # Unit price at time of sale

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.product_id} x{self.quantity}>"
