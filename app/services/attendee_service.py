"""
Attendee management, registration and export service
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from app.models import Attendee, Event
from app.services.qr_service import QRService
from app.services.repositories import RowRepo

logger = logging.getLogger(__name__)

CSV_HEADERS = ['Name', 'Email', 'Phone', 'ID Number', 'Staff ID', 'Event', 'Checked In']


class RegistrationClosed(Exception):
    """Raised when an event cannot take more attendees"""


class AttendeeService:
    """Service for attendee operations"""

    @staticmethod
    def list_attendees(
        db: Session,
        company_id: str,
        event_id: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[Attendee]:
        """Company attendees, newest first, optionally filtered by event and name/email"""
        query = db.query(Attendee).join(Event).options(joinedload(Attendee.event)).filter(
            Event.company_id == company_id
        )

        if event_id and event_id != "all":
            query = query.filter(Attendee.event_id == event_id)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(
                func.lower(Attendee.name).like(pattern),
                func.lower(Attendee.email).like(pattern),
            ))

        return query.order_by(Attendee.created_at.desc(), Attendee.id).all()

    @staticmethod
    def get_company_attendee(db: Session, company_id: str, attendee_id: str) -> Optional[Attendee]:
        return db.query(Attendee).join(Event).filter(
            Attendee.id == attendee_id,
            Event.company_id == company_id
        ).first()

    @staticmethod
    def create_attendee(db: Session, values: Dict[str, Any]) -> Attendee:
        """Insert the attendee, then store its check-in QR code"""
        attendee = RowRepo.insert(db, Attendee, values)
        return RowRepo.update(db, attendee, {"qr_code": QRService.generate_checkin_qr(attendee.id)})

    @staticmethod
    def register(db: Session, event: Event, values: Dict[str, Any]) -> Attendee:
        """Public self-registration for an active event"""
        if event.max_attendees:
            registered = db.query(func.count(Attendee.id)).filter(Attendee.event_id == event.id).scalar()
            if registered >= event.max_attendees:
                raise RegistrationClosed("This event is full.")

        attendee = AttendeeService.create_attendee(db, {**values, "event_id": event.id})
        logger.info(f"Registered {attendee.name} for event {event.id}")
        return attendee

    @staticmethod
    def update_attendee(db: Session, attendee: Attendee, values: Dict[str, Any]) -> Attendee:
        if "event_id" in values and values["event_id"] != attendee.event_id:
            # Seats belong to the old event's tables
            values = {**values, "table_assignment": None}
        return RowRepo.update(db, attendee, values)

    @staticmethod
    def delete_attendee(db: Session, attendee: Attendee) -> None:
        RowRepo.delete(db, attendee)

    @staticmethod
    def export_csv(attendees: List[Attendee]) -> str:
        """Comma-joined rows in the given order; values are not quoted or escaped"""
        lines = [','.join(CSV_HEADERS)]
        for attendee in attendees:
            lines.append(','.join([
                attendee.name,
                attendee.email or '',
                attendee.phone or '',
                attendee.identification_number or '',
                attendee.staff_id or '',
                attendee.event.name if attendee.event else '',
                'Yes' if attendee.checked_in else 'No',
            ]))
        return '\n'.join(lines)
