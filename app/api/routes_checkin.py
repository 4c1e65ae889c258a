"""
Check-in API routes
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import Profile
from app.schemas.attendee import AttendeeResponse, ManualCheckInRequest, ScanRequest
from app.services.change_feed import change_feed
from app.services.checkin_service import (
    CheckInResult, CheckInService,
    ALREADY_CHECKED_IN, INVALID_CODE, MULTIPLE_MATCHES, NOT_FOUND,
)
from app.services.event_service import EventService
from app.utils.responses import success_response, error_response, not_found_error
from app.utils.security import require_company

router = APIRouter()

# Initialize check-in service with the change feed
checkin_service = CheckInService(change_feed)

STATUS_CODES = {
    NOT_FOUND: 404,
    ALREADY_CHECKED_IN: 409,
    MULTIPLE_MATCHES: 409,
    INVALID_CODE: 400,
}

def checkin_response(result: CheckInResult):
    """Translate a check-in outcome into the standard envelope"""
    if not result.ok:
        details = {"match_count": result.match_count} if result.status == MULTIPLE_MATCHES else None
        return error_response(
            message=result.message,
            error_code=result.status,
            details=details,
            status_code=STATUS_CODES.get(result.status, 400)
        )

    return success_response(
        message=result.message,
        data=AttendeeResponse.model_validate(result.attendee).model_dump(exclude={"qr_code"})
    )

@router.get("/stats")
async def checkin_stats(
    event_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Check-in counters and recent check-ins"""
    if event_id and not EventService.get_company_event(db, user.company_id, event_id):
        raise not_found_error("Event")
    return success_response(message="Check-in statistics", data=CheckInService.get_stats(db, event_id, user.company_id))

@router.post("/scan")
async def check_in_scanned(
    payload: ScanRequest,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Check in from a scanned QR payload"""
    result = await checkin_service.check_in_scanned(payload.code, db, user.company_id)
    return checkin_response(result)

@router.post("/manual")
async def check_in_manual(
    payload: ManualCheckInRequest,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Check in by name, ID number or staff ID"""
    result = await checkin_service.check_in_by_search(payload.search, db, payload.event_id, user.company_id)
    return checkin_response(result)

@router.post("/{attendee_id}")
async def check_in_attendee(
    attendee_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    result = await checkin_service.check_in(attendee_id, db, user.company_id)
    return checkin_response(result)
