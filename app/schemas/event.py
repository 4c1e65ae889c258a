"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .common import reject_null

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    event_date: datetime
    location: Optional[str] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    is_active: bool = True

class EventUpdate(BaseModel):
    """Schema for updating an event"""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    @field_validator("name", "event_date", "is_active")
    @classmethod
    def _required_columns(cls, value, info):
        return reject_null(value, info.field_name)

class EventResponse(BaseModel):
    """Event response"""
    id: str
    company_id: str
    name: str
    description: Optional[str] = None
    event_date: datetime
    location: Optional[str] = None
    max_attendees: Optional[int] = None
    is_active: bool
    registration_qr: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class PublicEventResponse(BaseModel):
    """Event fields visible on the public registration page"""
    id: str
    name: str
    description: Optional[str] = None
    event_date: datetime
    location: Optional[str] = None

    class Config:
        from_attributes = True
