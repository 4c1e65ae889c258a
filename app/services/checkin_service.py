"""
Attendee check-in service with real-time broadcasting
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, List

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from app.models import Attendee, Event
from app.services.change_feed import ChangeFeed

logger = logging.getLogger(__name__)

CHECKIN_PAYLOAD = re.compile(r"/checkin/(.+)$")

CHECKED_IN = "checked_in"
ALREADY_CHECKED_IN = "already_checked_in"
NOT_FOUND = "not_found"
MULTIPLE_MATCHES = "multiple_matches"
INVALID_CODE = "invalid_code"


@dataclass
class CheckInResult:
    status: str
    message: str
    attendee: Optional[Attendee] = None
    match_count: int = 0

    @property
    def ok(self) -> bool:
        return self.status == CHECKED_IN


def parse_checkin_payload(payload: str) -> Optional[str]:
    """Extract the attendee id from a scanned check-in link"""
    match = CHECKIN_PAYLOAD.search(payload.strip())
    return match.group(1) if match else None


class CheckInService:
    """Service for handling attendee check-ins"""

    def __init__(self, feed: ChangeFeed):
        self.feed = feed

    @staticmethod
    def get_stats(db: Session, event_id: Optional[str] = None, company_id: Optional[str] = None) -> Dict:
        """Totals plus the ten most recent check-ins"""
        query = CheckInService._scoped(db, company_id)
        if event_id:
            query = query.filter(Attendee.event_id == event_id)

        total = query.count()
        checked_in = query.filter(Attendee.checked_in.is_(True)).count()

        recent = query.options(joinedload(Attendee.event)).filter(
            Attendee.checked_in.is_(True),
            Attendee.check_in_time.isnot(None)
        ).order_by(Attendee.check_in_time.desc()).limit(10).all()

        return {
            "total_attendees": total,
            "checked_in": checked_in,
            "percentage": round(checked_in / total * 100) if total else 0,
            "recent_check_ins": [
                {
                    "id": attendee.id,
                    "name": attendee.name,
                    "check_in_time": attendee.check_in_time.isoformat(),
                    "event_name": attendee.event.name if attendee.event else "Unknown Event",
                }
                for attendee in recent
            ],
        }

    @staticmethod
    def _scoped(db: Session, company_id: Optional[str]):
        query = db.query(Attendee)
        if company_id:
            query = query.join(Event, Attendee.event_id == Event.id).filter(Event.company_id == company_id)
        return query

    @staticmethod
    def find_matches(
        search: str,
        db: Session,
        event_id: Optional[str] = None,
        company_id: Optional[str] = None
    ) -> List[Attendee]:
        """Case-insensitive substring match on name, ID number and staff ID"""
        pattern = f"%{search.strip().lower()}%"
        query = CheckInService._scoped(db, company_id).filter(or_(
            func.lower(Attendee.name).like(pattern),
            func.lower(Attendee.identification_number).like(pattern),
            func.lower(Attendee.staff_id).like(pattern),
        ))
        if event_id:
            query = query.filter(Attendee.event_id == event_id)
        return query.all()

    async def check_in(self, attendee_id: str, db: Session, company_id: Optional[str] = None) -> CheckInResult:
        """Check in one attendee by id and broadcast the update"""
        attendee = CheckInService._scoped(db, company_id).filter(Attendee.id == attendee_id).first()
        if not attendee:
            return CheckInResult(NOT_FOUND, "No attendee found for this code.")

        if attendee.checked_in:
            return CheckInResult(ALREADY_CHECKED_IN, f"{attendee.name} is already checked in.", attendee)

        attendee.checked_in = True
        attendee.check_in_time = datetime.utcnow()
        db.commit()
        db.refresh(attendee)
        logger.info(f"Checked in attendee {attendee.id} ({attendee.name})")

        await self.feed.publish_row("attendees", "UPDATE", attendee)

        return CheckInResult(CHECKED_IN, f"{attendee.name} has been checked in.", attendee, 1)

    async def check_in_scanned(self, payload: str, db: Session, company_id: Optional[str] = None) -> CheckInResult:
        """Check in from a decoded QR payload"""
        attendee_id = parse_checkin_payload(payload)
        if not attendee_id:
            return CheckInResult(INVALID_CODE, "This QR code is not valid for check-in.")
        return await self.check_in(attendee_id, db, company_id)

    async def check_in_by_search(
        self,
        search: str,
        db: Session,
        event_id: Optional[str] = None,
        company_id: Optional[str] = None
    ) -> CheckInResult:
        """Check in the single attendee matching a free-text search"""
        matches = CheckInService.find_matches(search, db, event_id, company_id)

        if not matches:
            return CheckInResult(NOT_FOUND, "No attendee found matching your search.")
        if len(matches) > 1:
            return CheckInResult(
                MULTIPLE_MATCHES,
                "Multiple matches. Please be more specific in your search.",
                match_count=len(matches),
            )

        return await self.check_in(matches[0].id, db, company_id)
