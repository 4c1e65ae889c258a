"""
Lucky draw winner model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base

class LuckyDrawWinner(Base):
    __tablename__ = "lucky_draw_winners"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    attendee_id = Column(String(36), ForeignKey("attendees.id"), nullable=False)
    round_number = Column(Integer, nullable=False)
    prize_name = Column(String(255), nullable=True)
    drawn_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="lucky_draw_winners")
    attendee = relationship("Attendee", back_populates="lucky_draw_wins")
