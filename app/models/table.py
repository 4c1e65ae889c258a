"""
Seating table model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base

TABLE_TYPES = ("VVIP", "VIP", "Regular", "Staff")

class EventTable(Base):
    __tablename__ = "event_tables"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    table_number = Column(Integer, nullable=False)
    table_type = Column(String(20), nullable=False, default="Regular")  # VVIP, VIP, Regular, Staff
    capacity = Column(Integer, nullable=False, default=8)
    position_x = Column(Float, nullable=True, default=0)
    position_y = Column(Float, nullable=True, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="tables")
    attendees = relationship("Attendee", back_populates="table")
