"""
Seating chart API routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import Profile
from app.schemas.seating import SeatAssignment, TableCreate, TableMove, TableResponse, TableUpdate
from app.services.attendee_service import AttendeeService
from app.services.change_feed import change_feed, row_to_dict
from app.services.event_service import EventService
from app.services.seating_service import SeatingError, SeatingService
from app.utils.responses import success_response, error_response, conflict_response, not_found_error
from app.utils.security import require_company

router = APIRouter()

def _company_table(db: Session, user: Profile, table_id: str):
    table = SeatingService.get_table(table_id, db)
    if not table or not EventService.get_company_event(db, user.company_id, table.event_id):
        raise not_found_error("Table")
    return table

def _company_event(db: Session, user: Profile, event_id: str):
    event = EventService.get_company_event(db, user.company_id, event_id)
    if not event:
        raise not_found_error("Event")
    return event

@router.get("/events/{event_id}")
async def get_layout(
    event_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Tables with their seated attendees"""
    event = _company_event(db, user, event_id)
    return success_response(message="Seating layout retrieved", data=SeatingService.get_layout(event.id, db))

@router.post("/events/{event_id}/tables")
async def create_table(
    event_id: str,
    payload: TableCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    event = _company_event(db, user, event_id)
    table = SeatingService.create_table(
        event.id, db,
        table_number=payload.table_number,
        table_type=payload.table_type,
        capacity=payload.capacity,
    )
    await change_feed.publish_row("event_tables", "INSERT", table)
    return success_response(
        message="Table has been created successfully.",
        data=TableResponse.model_validate(table).model_dump(),
        status_code=201
    )

@router.put("/tables/{table_id}")
async def update_table(
    table_id: str,
    payload: TableUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    table = _company_table(db, user, table_id)
    try:
        table = SeatingService.update_table(table, db, **payload.model_dump(exclude_unset=True))
    except SeatingError as e:
        return conflict_response(e)
    await change_feed.publish_row("event_tables", "UPDATE", table)
    return success_response(message="Table has been updated successfully.", data=TableResponse.model_validate(table).model_dump())

@router.patch("/tables/{table_id}/position")
async def move_table(
    table_id: str,
    payload: TableMove,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Persist a drag on the seating layout"""
    table = _company_table(db, user, table_id)
    table = SeatingService.move_table(table, payload.delta_x, payload.delta_y, db)
    await change_feed.publish_row("event_tables", "UPDATE", table)
    return success_response(message="Table moved", data=TableResponse.model_validate(table).model_dump())

@router.delete("/tables/{table_id}")
async def delete_table(
    table_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Delete a table; its attendees lose their seats"""
    table = _company_table(db, user, table_id)
    record = row_to_dict(table)
    unseated = SeatingService.delete_table(table, db)

    for attendee_id in unseated:
        await change_feed.publish_row("attendees", "UPDATE", None, record={"id": attendee_id, "table_assignment": None}, company_id=user.company_id)
    await change_feed.publish_row("event_tables", "DELETE", None, record=record, company_id=user.company_id)

    return success_response(
        message="Table has been deleted successfully.",
        data={"deleted_table_id": table_id, "unseated_attendees": unseated}
    )

@router.put("/attendees/{attendee_id}/seat")
async def assign_seat(
    attendee_id: str,
    payload: SeatAssignment,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Seat one attendee at a table, or clear the seat"""
    attendee = AttendeeService.get_company_attendee(db, user.company_id, attendee_id)
    if not attendee:
        raise not_found_error("Attendee")

    try:
        attendee = SeatingService.assign_seat(attendee, payload.table_id, db)
    except SeatingError as e:
        return conflict_response(e)

    await change_feed.publish_row("attendees", "UPDATE", attendee)
    return success_response(
        message="Seat updated",
        data={"id": attendee.id, "name": attendee.name, "table_assignment": attendee.table_assignment}
    )

@router.post("/events/{event_id}/auto-assign")
async def auto_assign(
    event_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Randomly seat every unassigned attendee where capacity allows"""
    event = _company_event(db, user, event_id)

    if not SeatingService.list_tables(event.id, db):
        return error_response(message="Add tables before assigning seats.", error_code="no_tables", status_code=409)

    result = SeatingService.auto_assign(event.id, db)

    if not result.assigned and not result.failed and not result.unassigned:
        return success_response(
            message="All attendees are already assigned to tables.",
            data={"assigned": [], "failed": [], "unassigned": []}
        )

    for attendee_id, table_id in result.assigned:
        await change_feed.publish_row("attendees", "UPDATE", None, record={"id": attendee_id, "table_assignment": table_id}, company_id=user.company_id)

    message = f"{result.assigned_count} attendees have been randomly assigned to tables."
    if result.unassigned:
        message += f" {len(result.unassigned)} could not be seated: no seats left."
    if result.failed:
        message += f" {len(result.failed)} assignments failed."

    return success_response(
        message=message,
        data={
            "assigned": [{"attendee_id": a, "table_id": t} for a, t in result.assigned],
            "failed": [{"attendee_id": a, "error": err} for a, err in result.failed],
            "unassigned": result.unassigned,
        }
    )
