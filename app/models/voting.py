"""
Voting session, voting photo and vote models
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base

class VotingSession(Base):
    __tablename__ = "voting_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="voting_sessions")
    photos = relationship("VotingPhoto", back_populates="session", cascade="all, delete-orphan")


class VotingPhoto(Base):
    __tablename__ = "voting_photos"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    voting_session_id = Column(String(36), ForeignKey("voting_sessions.id"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    photo_url = Column(String(500), nullable=False)
    vote_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    session = relationship("VotingSession", back_populates="photos")
    votes = relationship("Vote", back_populates="photo", cascade="all, delete-orphan")


class Vote(Base):
    __tablename__ = "votes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    voting_photo_id = Column(String(36), ForeignKey("voting_photos.id"), nullable=False, index=True)
    attendee_id = Column(String(36), ForeignKey("attendees.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    photo = relationship("VotingPhoto", back_populates="votes")
    attendee = relationship("Attendee", back_populates="votes")
