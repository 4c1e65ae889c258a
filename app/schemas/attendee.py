"""
Attendee-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import reject_null

class AttendeeCreate(BaseModel):
    """Schema for creating an attendee"""
    event_id: str
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    identification_number: Optional[str] = None
    staff_id: Optional[str] = None

class AttendeeUpdate(BaseModel):
    """Schema for updating an attendee"""
    event_id: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    identification_number: Optional[str] = None
    staff_id: Optional[str] = None

    @field_validator("event_id", "name")
    @classmethod
    def _required_columns(cls, value, info):
        return reject_null(value, info.field_name)

class PublicRegistration(BaseModel):
    """Self-registration from the public form"""
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    identification_number: Optional[str] = None
    staff_id: Optional[str] = None

class AttendeeResponse(BaseModel):
    """Attendee response schema"""
    id: str
    event_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    identification_number: Optional[str] = None
    staff_id: Optional[str] = None
    qr_code: Optional[str] = None
    checked_in: bool
    check_in_time: Optional[datetime] = None
    table_assignment: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class ScanRequest(BaseModel):
    """Decoded QR payload from the scanner"""
    code: str

class ManualCheckInRequest(BaseModel):
    """Free-text check-in search"""
    search: str = Field(..., min_length=1)
    event_id: Optional[str] = None
