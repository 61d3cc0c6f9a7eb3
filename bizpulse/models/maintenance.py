"""Recurring maintenance contracts for client equipment."""
from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey
from sqlalchemy.sql import func
import uuid

from bizpulse.database import Base


class Maintenance(Base):
    """Scheduled maintenance service for a client."""

    __tablename__ = "maintenances"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=True, index=True)

    service_type = Column(String(100), nullable=True)
    status = Column(String(20), default="active", nullable=False)  # active, paused, finished
    frequency_days = Column(Integer, nullable=True)

    last_service_date = Column(String(20), nullable=True)  # ISO date string
    next_service_date = Column(String(20), nullable=True)  # ISO date string

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Maintenance {self.service_type} next={self.next_service_date}>"
