"""
Photo gallery and slideshow service
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import GalleryPhoto
from app.services.repositories import RowRepo
from app.services.storage_service import StorageService

logger = logging.getLogger(__name__)


def navigate_slide(current_index: int, photo_count: int, direction: str = "next") -> int:
    """Next/previous slide index, wrapping around at both ends"""
    if photo_count <= 0:
        return 0
    step = -1 if direction == "prev" else 1
    return (current_index + step) % photo_count


class GalleryService:
    """Service for event photo galleries"""

    @staticmethod
    def list_photos(db: Session, event_id: str, approved_only: bool = False) -> List[GalleryPhoto]:
        query = db.query(GalleryPhoto).filter(GalleryPhoto.event_id == event_id)
        if approved_only:
            query = query.filter(GalleryPhoto.is_approved.is_(True))
        return query.order_by(GalleryPhoto.created_at.desc()).all()

    @staticmethod
    def upload_photo(db: Session, event_id: str, file_content: bytes, attendee_name: Optional[str] = None) -> GalleryPhoto:
        photo_url = StorageService.save_image(file_content, f"gallery/{event_id}")
        # New uploads go straight into the public gallery
        return RowRepo.insert(db, GalleryPhoto, {
            "event_id": event_id,
            "attendee_name": attendee_name,
            "photo_url": photo_url,
            "is_approved": True,
        })

    @staticmethod
    def toggle_approval(db: Session, photo: GalleryPhoto) -> GalleryPhoto:
        return RowRepo.update(db, photo, {"is_approved": not photo.is_approved})

    @staticmethod
    def delete_photo(db: Session, photo: GalleryPhoto) -> None:
        photo_url = photo.photo_url
        RowRepo.delete(db, photo)
        StorageService.delete_image(photo_url)

    @staticmethod
    def slideshow(db: Session, event_id: str, current_index: int = 0) -> dict:
        """Approved photos plus the slide to show and its neighbours"""
        photos = GalleryService.list_photos(db, event_id, approved_only=True)
        count = len(photos)
        index = current_index % count if count else 0
        return {
            "photos": photos,
            "current_index": index,
            "current_photo": photos[index] if count else None,
            "next_index": navigate_slide(index, count, "next"),
            "prev_index": navigate_slide(index, count, "prev"),
            "interval_seconds": settings.SLIDESHOW_INTERVAL_SECONDS,
        }
