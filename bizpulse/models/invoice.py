from sqlalchemy import Column, String, DateTime, Text, Float, ForeignKey
from sqlalchemy.sql import func
import uuid

from bizpulse.database import Base


class Invoice(Base):
    """Invoice model for client billing."""

    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    invoice_number = Column(String(50), unique=True, index=True, nullable=False)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=True, index=True)
    order_id = Column(String(36), nullable=True, index=True)

    status = Column(String(20), default="pending", nullable=False)  # pending, paid, cancelled
    total = Column(Float, default=0)

    # Dates
    due_date = Column(String(20))  # ISO date string
    paid_date = Column(String(20))  # ISO date string

    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Invoice {self.invoice_number}>"
