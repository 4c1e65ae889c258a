"""
Dashboard statistics
"""

from datetime import datetime, time
from typing import Dict

from sqlalchemy.orm import Session

from app.models import Attendee, Event, GalleryPhoto, LuckyDrawWinner, VotingSession


class DashboardService:

    @staticmethod
    def get_stats(db: Session, company_id: str) -> Dict[str, int]:
        """Headline counts for one company's events"""
        today_start = datetime.combine(datetime.utcnow().date(), time.min)

        def scoped(model):
            return db.query(model).join(Event).filter(Event.company_id == company_id)

        return {
            "active_events": db.query(Event).filter(
                Event.company_id == company_id,
                Event.is_active.is_(True)
            ).count(),
            "total_attendees": scoped(Attendee).count(),
            "check_ins_today": scoped(Attendee).filter(
                Attendee.checked_in.is_(True),
                Attendee.check_in_time >= today_start
            ).count(),
            "gallery_photos": scoped(GalleryPhoto).count(),
            "voting_sessions": scoped(VotingSession).count(),
            "lucky_draw_winners": scoped(LuckyDrawWinner).count(),
        }
