"""
Attendee model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base

class Attendee(Base):
    __tablename__ = "attendees"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    identification_number = Column(String(100), nullable=True)
    staff_id = Column(String(100), nullable=True)
    qr_code = Column(Text, nullable=True)  # data:image/png;base64,...
    checked_in = Column(Boolean, default=False, nullable=False)
    check_in_time = Column(DateTime, nullable=True)
    table_assignment = Column(String(36), ForeignKey("event_tables.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="attendees")
    table = relationship("EventTable", back_populates="attendees")
    votes = relationship("Vote", back_populates="attendee", cascade="all, delete-orphan")
    lucky_draw_wins = relationship("LuckyDrawWinner", back_populates="attendee", cascade="all, delete-orphan")
