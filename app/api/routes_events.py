"""
Event API routes, including the lucky draw
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import Profile
from app.schemas.event import EventCreate, EventUpdate, EventResponse
from app.schemas.gallery import LuckyDrawRequest, LuckyDrawWinnerResponse
from app.services.change_feed import change_feed, row_to_dict
from app.services.event_service import EventService
from app.services.lucky_draw_service import LuckyDrawService
from app.services.qr_service import QRService
from app.utils.responses import success_response, error_response, not_found_error
from app.utils.security import require_company

router = APIRouter()

def _event_data(event) -> dict:
    return EventResponse.model_validate(event).model_dump()

@router.get("")
async def list_events(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """List the company's events, newest date first"""
    events = EventService.list_events(db, user.company_id, active_only=active_only)
    return success_response(
        message="Events retrieved successfully",
        data=[_event_data(event) for event in events]
    )

@router.post("")
async def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Create an event with its registration QR code"""
    event = EventService.create_event(db, user.company_id, user.id, payload.model_dump())
    await change_feed.publish_row("events", "INSERT", event)

    return success_response(
        message="Event has been created successfully with QR code.",
        data=_event_data(event),
        status_code=201
    )

@router.get("/{event_id}")
async def get_event(
    event_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    event = EventService.get_company_event(db, user.company_id, event_id)
    if not event:
        raise not_found_error("Event")
    return success_response(message="Event retrieved", data=_event_data(event))

@router.put("/{event_id}")
async def update_event(
    event_id: str,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    event = EventService.get_company_event(db, user.company_id, event_id)
    if not event:
        raise not_found_error("Event")

    event = EventService.update_event(db, event, payload.model_dump(exclude_unset=True))
    await change_feed.publish_row("events", "UPDATE", event)
    return success_response(message="Event has been updated successfully.", data=_event_data(event))

@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Delete an event and everything that belongs to it"""
    event = EventService.get_company_event(db, user.company_id, event_id)
    if not event:
        raise not_found_error("Event")

    record = row_to_dict(event)
    EventService.delete_event(db, event)
    await change_feed.publish_row("events", "DELETE", None, record=record, company_id=user.company_id)

    return success_response(
        message="Event has been deleted successfully.",
        data={"deleted_event_id": event_id}
    )

@router.get("/{event_id}/qr.png")
async def get_registration_qr(
    event_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Registration QR code image for an event"""
    event = EventService.get_company_event(db, user.company_id, event_id)
    if not event:
        raise not_found_error("Event")

    qr_bytes = QRService.generate_png(QRService.registration_url(event.id))
    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=registration_{event.id}.png"}
    )

@router.get("/{event_id}/lucky-draw")
async def list_winners(
    event_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    event = EventService.get_company_event(db, user.company_id, event_id)
    if not event:
        raise not_found_error("Event")

    winners = LuckyDrawService.list_winners(db, event.id)
    return success_response(
        message="Winners retrieved",
        data=[
            {**LuckyDrawWinnerResponse.model_validate(w).model_dump(), "attendee_name": w.attendee.name}
            for w in winners
        ]
    )

@router.post("/{event_id}/lucky-draw")
async def draw_winner(
    event_id: str,
    payload: LuckyDrawRequest,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Draw the next winner among checked-in attendees"""
    event = EventService.get_company_event(db, user.company_id, event_id)
    if not event:
        raise not_found_error("Event")

    winner = LuckyDrawService.draw(db, event.id, prize_name=payload.prize_name)
    if winner is None:
        return error_response(
            message="No eligible attendees left. Only checked-in attendees who have not won can be drawn.",
            error_code="no_eligible_attendees",
            status_code=409
        )

    await change_feed.publish_row("lucky_draw_winners", "INSERT", winner)
    return success_response(
        message=f"Round {winner.round_number}: {winner.attendee.name} wins!",
        data={**LuckyDrawWinnerResponse.model_validate(winner).model_dump(), "attendee_name": winner.attendee.name},
        status_code=201
    )
