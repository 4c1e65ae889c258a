"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .attendee import *
from .seating import *
from .gallery import *
from .company import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "PublicEventResponse",
    "AttendeeCreate",
    "AttendeeUpdate",
    "AttendeeResponse",
    "PublicRegistration",
    "ScanRequest",
    "ManualCheckInRequest",
    "TableCreate",
    "TableUpdate",
    "TableMove",
    "TableResponse",
    "SeatAssignment",
    "GalleryPhotoResponse",
    "VotingSessionCreate",
    "VotingSessionUpdate",
    "VotingSessionResponse",
    "VotingPhotoResponse",
    "VoteCreate",
    "LuckyDrawRequest",
    "LuckyDrawWinnerResponse",
    "CompanyCreate",
    "CompanyUpdate",
    "CompanyResponse",
    "UserCreate",
    "UserUpdate",
    "RoleUpdate",
    "UserResponse",
    "SignUpRequest",
    "SignInRequest",
]
