"""
Gallery, voting and lucky draw Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .common import reject_null

class GalleryPhotoResponse(BaseModel):
    id: str
    event_id: str
    attendee_name: Optional[str] = None
    photo_url: str
    is_approved: bool
    created_at: datetime

    class Config:
        from_attributes = True

class VotingSessionCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None

class VotingSessionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _required_columns(cls, value, info):
        return reject_null(value, info.field_name)

class VotingSessionResponse(BaseModel):
    id: str
    event_id: str
    title: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class VotingPhotoResponse(BaseModel):
    id: str
    voting_session_id: str
    title: Optional[str] = None
    photo_url: str
    vote_count: int
    created_at: datetime

    class Config:
        from_attributes = True

class VoteCreate(BaseModel):
    attendee_id: str

class LuckyDrawRequest(BaseModel):
    prize_name: Optional[str] = None

class LuckyDrawWinnerResponse(BaseModel):
    id: str
    event_id: str
    attendee_id: str
    round_number: int
    prize_name: Optional[str] = None
    drawn_at: datetime

    class Config:
        from_attributes = True
