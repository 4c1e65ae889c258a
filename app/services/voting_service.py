"""
Photo voting sessions and live tallies
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import Attendee, Vote, VotingPhoto, VotingSession
from app.services.repositories import RowRepo
from app.services.storage_service import StorageService

logger = logging.getLogger(__name__)


class VotingError(Exception):
    """Raised when a vote cannot be accepted"""

    def __init__(self, message: str, error_code: str = "voting_error"):
        super().__init__(message)
        self.error_code = error_code


class VotingService:
    """Service for voting sessions, their photos and votes"""

    @staticmethod
    def list_sessions(db: Session, event_id: str) -> List[Dict[str, Any]]:
        """Sessions of an event, newest first, each with its photo count"""
        rows = db.query(VotingSession, func.count(VotingPhoto.id)).outerjoin(
            VotingPhoto, VotingPhoto.voting_session_id == VotingSession.id
        ).filter(
            VotingSession.event_id == event_id
        ).group_by(VotingSession.id).order_by(VotingSession.created_at.desc()).all()
        return [{"session": session, "photo_count": count} for session, count in rows]

    @staticmethod
    def create_session(db: Session, event_id: str, title: str, description: Optional[str] = None) -> VotingSession:
        return RowRepo.insert(db, VotingSession, {"event_id": event_id, "title": title, "description": description})

    @staticmethod
    def update_session(db: Session, session: VotingSession, values: Dict[str, Any]) -> VotingSession:
        return RowRepo.update(db, session, values)

    @staticmethod
    def toggle_session(db: Session, session: VotingSession) -> List[VotingSession]:
        """Flip a session's active flag; activating deactivates the event's other sessions.

        Returns every session whose flag changed.
        """
        changed = []
        if not session.is_active:
            others = db.query(VotingSession).filter(
                VotingSession.event_id == session.event_id,
                VotingSession.id != session.id,
                VotingSession.is_active.is_(True)
            ).all()
            for other in others:
                other.is_active = False
                changed.append(other)
            session.is_active = True
        else:
            session.is_active = False
        changed.append(session)

        # both updates land in one transaction
        db.commit()
        for row in changed:
            db.refresh(row)
        logger.info(f"Voting session {session.id} is now {'active' if session.is_active else 'inactive'}")
        return changed

    @staticmethod
    def delete_session(db: Session, session: VotingSession) -> None:
        photo_urls = [photo.photo_url for photo in session.photos]
        RowRepo.delete(db, session)
        for url in photo_urls:
            StorageService.delete_image(url)

    @staticmethod
    def list_photos(db: Session, session_id: str) -> List[VotingPhoto]:
        return db.query(VotingPhoto).filter(
            VotingPhoto.voting_session_id == session_id
        ).order_by(VotingPhoto.vote_count.desc(), VotingPhoto.created_at).all()

    @staticmethod
    def add_photo(db: Session, session: VotingSession, file_content: bytes, title: Optional[str] = None) -> VotingPhoto:
        photo_url = StorageService.save_image(file_content, f"voting/{session.id}")
        return RowRepo.insert(db, VotingPhoto, {
            "voting_session_id": session.id,
            "title": title,
            "photo_url": photo_url,
            "vote_count": 0,
        })

    @staticmethod
    def delete_photo(db: Session, photo: VotingPhoto) -> None:
        photo_url = photo.photo_url
        RowRepo.delete(db, photo)
        StorageService.delete_image(photo_url)

    @staticmethod
    def cast_vote(db: Session, photo: VotingPhoto, attendee_id: str) -> Vote:
        """Record one attendee's vote; one vote per attendee per session"""
        session = photo.session
        if not session.is_active:
            raise VotingError("This voting session is not active.", "session_inactive")

        attendee = db.query(Attendee).filter(Attendee.id == attendee_id).first()
        if not attendee or attendee.event_id != session.event_id:
            raise VotingError("Attendee is not registered for this event.", "attendee_not_registered")

        already_voted = db.query(Vote).join(VotingPhoto).filter(
            Vote.attendee_id == attendee_id,
            VotingPhoto.voting_session_id == session.id
        ).first()
        if already_voted:
            raise VotingError("You have already voted in this session.", "already_voted")

        vote = Vote(voting_photo_id=photo.id, attendee_id=attendee_id)
        db.add(vote)
        photo.vote_count = VotingPhoto.vote_count + 1
        db.commit()
        db.refresh(vote)
        db.refresh(photo)
        logger.info(f"Vote for photo {photo.id} from attendee {attendee_id}, tally {photo.vote_count}")
        return vote

    @staticmethod
    def results(db: Session, session_id: str) -> Dict[str, Any]:
        photos = VotingService.list_photos(db, session_id)
        return {
            "photos": photos,
            "total_votes": sum(photo.vote_count for photo in photos),
            "leading_photo": photos[0] if photos and photos[0].vote_count > 0 else None,
        }
