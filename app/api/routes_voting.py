"""
Photo voting API routes
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import Profile, VotingPhoto, VotingSession
from app.schemas.gallery import (
    VotingPhotoResponse, VotingSessionCreate, VotingSessionResponse, VotingSessionUpdate,
)
from app.services.change_feed import change_feed, row_to_dict
from app.services.event_service import EventService
from app.services.repositories import RowRepo
from app.services.storage_service import InvalidUpload
from app.services.voting_service import VotingService
from app.utils.responses import success_response, error_response, not_found_error
from app.utils.security import require_company

router = APIRouter()

def _session_data(session) -> dict:
    return VotingSessionResponse.model_validate(session).model_dump()

def _photo_data(photo) -> dict:
    return VotingPhotoResponse.model_validate(photo).model_dump()

def _company_session(db: Session, user: Profile, session_id: str) -> VotingSession:
    session = RowRepo.get(db, VotingSession, session_id)
    if not session or not EventService.get_company_event(db, user.company_id, session.event_id):
        raise not_found_error("Voting session")
    return session

@router.get("/events/{event_id}/sessions")
async def list_sessions(
    event_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    if not EventService.get_company_event(db, user.company_id, event_id):
        raise not_found_error("Event")

    sessions = VotingService.list_sessions(db, event_id)
    return success_response(
        message="Voting sessions retrieved",
        data=[{**_session_data(s["session"]), "photo_count": s["photo_count"]} for s in sessions]
    )

@router.post("/events/{event_id}/sessions")
async def create_session(
    event_id: str,
    payload: VotingSessionCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    if not EventService.get_company_event(db, user.company_id, event_id):
        raise not_found_error("Event")

    session = VotingService.create_session(db, event_id, payload.title, payload.description)
    await change_feed.publish_row("voting_sessions", "INSERT", session)
    return success_response(
        message="Voting session has been created successfully.",
        data=_session_data(session),
        status_code=201
    )

@router.put("/sessions/{session_id}")
async def update_session(
    session_id: str,
    payload: VotingSessionUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    session = _company_session(db, user, session_id)
    session = VotingService.update_session(db, session, payload.model_dump(exclude_unset=True))
    await change_feed.publish_row("voting_sessions", "UPDATE", session)
    return success_response(message="Voting session has been updated successfully.", data=_session_data(session))

@router.post("/sessions/{session_id}/toggle")
async def toggle_session(
    session_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Activate (deactivating the event's other sessions) or deactivate a session"""
    session = _company_session(db, user, session_id)
    changed = VotingService.toggle_session(db, session)
    for row in changed:
        await change_feed.publish_row("voting_sessions", "UPDATE", row)

    state = "active" if session.is_active else "inactive"
    return success_response(message=f"Voting session is now {state}.", data=_session_data(session))

@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Delete a session with all its photos and votes"""
    session = _company_session(db, user, session_id)
    record = row_to_dict(session)
    VotingService.delete_session(db, session)
    await change_feed.publish_row("voting_sessions", "DELETE", None, record=record, company_id=user.company_id)
    return success_response(message="Voting session has been deleted successfully.", data={"deleted_session_id": session_id})

@router.get("/sessions/{session_id}/photos")
async def list_photos(
    session_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Photos by vote count with the running totals"""
    session = _company_session(db, user, session_id)
    results = VotingService.results(db, session.id)
    return success_response(
        message="Voting photos retrieved",
        data={
            "photos": [_photo_data(p) for p in results["photos"]],
            "total_votes": results["total_votes"],
            "leading_photo": _photo_data(results["leading_photo"]) if results["leading_photo"] else None,
        }
    )

@router.post("/sessions/{session_id}/photos")
async def add_photo(
    session_id: str,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    session = _company_session(db, user, session_id)
    try:
        photo = VotingService.add_photo(db, session, await file.read(), title=title)
    except InvalidUpload as e:
        return error_response(message=str(e), error_code="invalid_upload", status_code=400)

    await change_feed.publish_row("voting_photos", "INSERT", photo)
    return success_response(message="Photo has been added to the voting session.", data=_photo_data(photo), status_code=201)

@router.delete("/photos/{photo_id}")
async def delete_photo(
    photo_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Delete a photo and all its votes"""
    photo = RowRepo.get(db, VotingPhoto, photo_id)
    if not photo:
        raise not_found_error("Photo")
    _company_session(db, user, photo.voting_session_id)

    record = row_to_dict(photo)
    VotingService.delete_photo(db, photo)
    await change_feed.publish_row("voting_photos", "DELETE", None, record=record, company_id=user.company_id)
    return success_response(message="Photo has been removed from the voting session.", data={"deleted_photo_id": photo_id})
