"""
Database models package
"""

from .company import Company
from .profile import Profile, USER_ROLES
from .event import Event
from .table import EventTable, TABLE_TYPES
from .attendee import Attendee
from .gallery import GalleryPhoto
from .voting import VotingSession, VotingPhoto, Vote
from .lucky_draw import LuckyDrawWinner

__all__ = [
    "Company",
    "Profile",
    "USER_ROLES",
    "Event",
    "EventTable",
    "TABLE_TYPES",
    "Attendee",
    "GalleryPhoto",
    "VotingSession",
    "VotingPhoto",
    "Vote",
    "LuckyDrawWinner",
]
