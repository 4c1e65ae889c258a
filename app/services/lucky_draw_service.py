"""
Lucky draw among checked-in attendees
"""

import logging
import random
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import Attendee, LuckyDrawWinner

logger = logging.getLogger(__name__)


class LuckyDrawService:

    @staticmethod
    def list_winners(db: Session, event_id: str) -> List[LuckyDrawWinner]:
        return db.query(LuckyDrawWinner).filter(
            LuckyDrawWinner.event_id == event_id
        ).order_by(LuckyDrawWinner.round_number).all()

    @staticmethod
    def eligible_attendees(db: Session, event_id: str) -> List[Attendee]:
        """Checked-in attendees of the event who have not won yet"""
        winners = select(LuckyDrawWinner.attendee_id).where(LuckyDrawWinner.event_id == event_id)
        return db.query(Attendee).filter(
            Attendee.event_id == event_id,
            Attendee.checked_in.is_(True),
            Attendee.id.notin_(winners)
        ).order_by(Attendee.id).all()

    @staticmethod
    def draw(
        db: Session,
        event_id: str,
        prize_name: Optional[str] = None,
        rng: Optional[random.Random] = None
    ) -> Optional[LuckyDrawWinner]:
        """Pick the next winner, or None when nobody is eligible"""
        candidates = LuckyDrawService.eligible_attendees(db, event_id)
        if not candidates:
            return None

        attendee = (rng or random).choice(candidates)
        last_round = db.query(func.max(LuckyDrawWinner.round_number)).filter(
            LuckyDrawWinner.event_id == event_id
        ).scalar()

        winner = LuckyDrawWinner(
            event_id=event_id,
            attendee_id=attendee.id,
            round_number=(last_round or 0) + 1,
            prize_name=prize_name,
        )
        db.add(winner)
        db.commit()
        db.refresh(winner)
        logger.info(f"Round {winner.round_number} of event {event_id} won by {attendee.name}")
        return winner
