"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends, Request, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import Attendee, VotingPhoto, VotingSession
from app.schemas.attendee import PublicRegistration
from app.schemas.event import PublicEventResponse
from app.schemas.gallery import GalleryPhotoResponse, VoteCreate, VotingPhotoResponse, VotingSessionResponse
from app.services.attendee_service import AttendeeService, RegistrationClosed
from app.services.change_feed import change_feed
from app.services.event_service import EventService
from app.services.gallery_service import GalleryService
from app.services.qr_service import QRService
from app.services.repositories import RowRepo
from app.services.voting_service import VotingError, VotingService
from app.utils.security import rate_limit_check, get_client_ip
from app.utils.responses import success_response, conflict_response, rate_limit_error

router = APIRouter()

def _public_event(db: Session, event_id: str):
    event = EventService.get_public_event(db, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/events/{event_id}")
async def get_event(event_id: str, db: Session = Depends(get_db)):
    """Event details for the registration page"""
    event = _public_event(db, event_id)
    return success_response(
        message="Event retrieved",
        data=PublicEventResponse.model_validate(event).model_dump()
    )

@router.post("/events/{event_id}/register")
async def register(
    event_id: str,
    payload: PublicRegistration,
    request: Request,
    db: Session = Depends(get_db)
):
    """Self-register for an active event and receive a check-in QR code"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        raise rate_limit_error()

    event = _public_event(db, event_id)
    try:
        attendee = AttendeeService.register(db, event, payload.model_dump())
    except RegistrationClosed as e:
        return conflict_response(e, "registration_closed")

    await change_feed.publish_row("attendees", "INSERT", attendee)
    return success_response(
        message="Registration successful! Please save your QR code for check-in.",
        data={"attendee_id": attendee.id, "name": attendee.name, "qr_code": attendee.qr_code},
        status_code=201
    )

@router.get("/events/{event_id}/qr.png")
async def get_registration_qr(event_id: str, db: Session = Depends(get_db)):
    """Get the registration QR code image for an event"""
    event = _public_event(db, event_id)
    qr_bytes = QRService.generate_png(QRService.registration_url(event.id))

    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=register_{event.id}.png"}
    )

@router.get("/attendees/{attendee_id}/qr.png")
async def get_checkin_qr(attendee_id: str, db: Session = Depends(get_db)):
    """Get an attendee's check-in QR code image"""
    attendee = RowRepo.get(db, Attendee, attendee_id)
    if not attendee:
        raise HTTPException(status_code=404, detail="Attendee not found")

    return Response(
        content=QRService.generate_png(QRService.checkin_url(attendee.id)),
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=checkin_{attendee.id}.png"}
    )

@router.get("/events/{event_id}/gallery")
async def public_gallery(event_id: str, index: int = 0, db: Session = Depends(get_db)):
    """Approved photos for the big-screen slideshow"""
    event = _public_event(db, event_id)
    show = GalleryService.slideshow(db, event.id, max(index, 0))
    return success_response(
        message="Slideshow",
        data={
            **show,
            "photos": [GalleryPhotoResponse.model_validate(p).model_dump() for p in show["photos"]],
            "current_photo": (
                GalleryPhotoResponse.model_validate(show["current_photo"]).model_dump()
                if show["current_photo"] else None
            ),
        }
    )

@router.get("/events/{event_id}/voting")
async def active_voting(event_id: str, db: Session = Depends(get_db)):
    """The event's active voting session with its live tallies"""
    event = _public_event(db, event_id)
    session = db.query(VotingSession).filter(
        VotingSession.event_id == event.id,
        VotingSession.is_active.is_(True)
    ).first()
    if not session:
        return success_response(message="No active voting session", data=None)

    results = VotingService.results(db, session.id)
    return success_response(
        message="Active voting session",
        data={
            "session": VotingSessionResponse.model_validate(session).model_dump(),
            "photos": [VotingPhotoResponse.model_validate(p).model_dump() for p in results["photos"]],
            "total_votes": results["total_votes"],
        }
    )

@router.post("/voting/photos/{photo_id}/vote")
async def cast_vote(
    photo_id: str,
    payload: VoteCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    """Vote for a photo as a registered attendee"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        raise rate_limit_error()

    photo = RowRepo.get(db, VotingPhoto, photo_id)
    if not photo:
        raise HTTPException(status_code=404, detail="Photo not found")

    try:
        vote = VotingService.cast_vote(db, photo, payload.attendee_id)
    except VotingError as e:
        return conflict_response(e)

    await change_feed.publish_row("votes", "INSERT", vote)
    await change_feed.publish_row("voting_photos", "UPDATE", photo)
    return success_response(
        message="Your vote has been counted.",
        data={"vote_id": vote.id, "photo_id": photo.id, "vote_count": photo.vote_count},
        status_code=201
    )
