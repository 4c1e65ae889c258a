"""
Event management service
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import Event
from app.services.qr_service import QRService
from app.services.repositories import RowRepo

logger = logging.getLogger(__name__)


class EventService:
    """Service for company events"""

    @staticmethod
    def list_events(db: Session, company_id: str, active_only: bool = False) -> List[Event]:
        query = db.query(Event).filter(Event.company_id == company_id)
        if active_only:
            query = query.filter(Event.is_active.is_(True))
        return query.order_by(Event.event_date.desc()).all()

    @staticmethod
    def get_company_event(db: Session, company_id: str, event_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id, Event.company_id == company_id).first()

    @staticmethod
    def get_public_event(db: Session, event_id: str) -> Optional[Event]:
        """An event open for public registration"""
        return db.query(Event).filter(Event.id == event_id, Event.is_active.is_(True)).first()

    @staticmethod
    def create_event(db: Session, company_id: str, created_by: str, values: Dict[str, Any]) -> Event:
        """Insert the event, then store its registration QR code"""
        event = RowRepo.insert(db, Event, {**values, "company_id": company_id, "created_by": created_by})
        event = RowRepo.update(db, event, {"registration_qr": QRService.generate_registration_qr(event.id)})
        logger.info(f"Created event {event.name} ({event.id})")
        return event

    @staticmethod
    def update_event(db: Session, event: Event, values: Dict[str, Any]) -> Event:
        return RowRepo.update(db, event, values)

    @staticmethod
    def delete_event(db: Session, event: Event) -> None:
        RowRepo.delete(db, event)
