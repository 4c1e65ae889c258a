"""
Event model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base

class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    created_by = Column(String(128), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(DateTime, nullable=False)
    location = Column(String(255), nullable=True)
    max_attendees = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    registration_qr = Column(Text, nullable=True)  # data:image/png;base64,...
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    company = relationship("Company", back_populates="events")
    attendees = relationship("Attendee", back_populates="event", cascade="all, delete-orphan")
    tables = relationship("EventTable", back_populates="event", cascade="all, delete-orphan")
    gallery_photos = relationship("GalleryPhoto", back_populates="event", cascade="all, delete-orphan")
    voting_sessions = relationship("VotingSession", back_populates="event", cascade="all, delete-orphan")
    lucky_draw_winners = relationship("LuckyDrawWinner", back_populates="event", cascade="all, delete-orphan")
