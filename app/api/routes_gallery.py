"""
Photo gallery API routes
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import GalleryPhoto, Profile
from app.schemas.gallery import GalleryPhotoResponse
from app.services.change_feed import change_feed, row_to_dict
from app.services.event_service import EventService
from app.services.gallery_service import GalleryService
from app.services.repositories import RowRepo
from app.services.storage_service import InvalidUpload
from app.utils.responses import success_response, error_response, not_found_error
from app.utils.security import require_company

router = APIRouter()

def _photo_data(photo) -> dict:
    return GalleryPhotoResponse.model_validate(photo).model_dump()

def _company_photo(db: Session, user: Profile, photo_id: str) -> GalleryPhoto:
    photo = RowRepo.get(db, GalleryPhoto, photo_id)
    if not photo or not EventService.get_company_event(db, user.company_id, photo.event_id):
        raise not_found_error("Photo")
    return photo

@router.get("/events/{event_id}/photos")
async def list_photos(
    event_id: str,
    approved_only: bool = Query(False),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    if not EventService.get_company_event(db, user.company_id, event_id):
        raise not_found_error("Event")
    photos = GalleryService.list_photos(db, event_id, approved_only=approved_only)
    return success_response(message="Photos retrieved", data=[_photo_data(p) for p in photos])

@router.post("/events/{event_id}/photos")
async def upload_photo(
    event_id: str,
    file: UploadFile = File(...),
    attendee_name: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    if not EventService.get_company_event(db, user.company_id, event_id):
        raise not_found_error("Event")

    try:
        photo = GalleryService.upload_photo(db, event_id, await file.read(), attendee_name=attendee_name)
    except InvalidUpload as e:
        return error_response(message=str(e), error_code="invalid_upload", status_code=400)

    await change_feed.publish_row("gallery_photos", "INSERT", photo)
    return success_response(message="Photo has been added to the gallery.", data=_photo_data(photo), status_code=201)

@router.patch("/photos/{photo_id}/approval")
async def toggle_approval(
    photo_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Show or hide a photo in the public gallery"""
    photo = _company_photo(db, user, photo_id)
    photo = GalleryService.toggle_approval(db, photo)
    await change_feed.publish_row("gallery_photos", "UPDATE", photo)

    action = "added to" if photo.is_approved else "hidden from"
    return success_response(message=f"Photo has been {action} the public gallery.", data=_photo_data(photo))

@router.delete("/photos/{photo_id}")
async def delete_photo(
    photo_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    photo = _company_photo(db, user, photo_id)
    record = row_to_dict(photo)
    GalleryService.delete_photo(db, photo)
    await change_feed.publish_row("gallery_photos", "DELETE", None, record=record, company_id=user.company_id)
    return success_response(message="Photo has been removed from the gallery.", data={"deleted_photo_id": photo_id})

@router.get("/events/{event_id}/slideshow")
async def slideshow(
    event_id: str,
    index: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Approved photos for the slideshow with next/previous positions"""
    if not EventService.get_company_event(db, user.company_id, event_id):
        raise not_found_error("Event")

    show = GalleryService.slideshow(db, event_id, index)
    return success_response(
        message="Slideshow",
        data={
            **show,
            "photos": [_photo_data(p) for p in show["photos"]],
            "current_photo": _photo_data(show["current_photo"]) if show["current_photo"] else None,
        }
    )
