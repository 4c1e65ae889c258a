"""
Attendee API routes
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import Profile
from app.schemas.attendee import AttendeeCreate, AttendeeUpdate, AttendeeResponse
from app.services.attendee_service import AttendeeService
from app.services.change_feed import change_feed, row_to_dict
from app.services.event_service import EventService
from app.services.excel_service import ExcelService
from app.services.qr_service import QRService
from app.utils.responses import success_response, error_response, not_found_error
from app.utils.security import require_company

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

def _attendee_data(attendee) -> dict:
    data = AttendeeResponse.model_validate(attendee).model_dump()
    data["event_name"] = attendee.event.name if attendee.event else None
    return data

@router.get("")
async def list_attendees(
    event_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """List attendees, filtered by event and name/email search"""
    attendees = AttendeeService.list_attendees(db, user.company_id, event_id=event_id, search=search)
    return success_response(
        message="Attendees retrieved successfully",
        data=[_attendee_data(a) for a in attendees]
    )

@router.get("/export.csv")
async def export_csv(
    event_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Export the filtered attendee list as CSV"""
    attendees = AttendeeService.list_attendees(db, user.company_id, event_id=event_id, search=search)
    return Response(
        content=AttendeeService.export_csv(attendees),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=attendees.csv"}
    )

@router.get("/export.xlsx")
async def export_xlsx(
    event_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Export the filtered attendee list with seats as a spreadsheet"""
    attendees = AttendeeService.list_attendees(db, user.company_id, event_id=event_id, search=search)
    return Response(
        content=ExcelService.export_attendees(attendees),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=attendees.xlsx"}
    )

@router.get("/template.xlsx")
async def download_template(user: Profile = Depends(require_company)):
    """Download the attendee import template"""
    return Response(
        content=ExcelService.create_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=attendee_template.xlsx"}
    )

@router.post("/import/{event_id}")
async def import_attendees(
    event_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Bulk-import attendees from an Excel sheet"""
    event = EventService.get_company_event(db, user.company_id, event_id)
    if not event:
        raise not_found_error("Event")

    if not file.filename.endswith(('.xlsx', '.xls')):
        return error_response(
            message="Invalid file format. Please upload an Excel file (.xlsx or .xls)",
            status_code=400
        )

    file_content = await file.read()
    success, errors, created = ExcelService.process_excel_upload(file_content, event, db)

    if not success:
        return error_response(
            message="Excel file validation failed",
            details=errors,
            status_code=422
        )

    for attendee in created:
        await change_feed.publish_row("attendees", "INSERT", attendee)

    return success_response(
        message=f"Excel file processed successfully. {len(created)} attendees imported.",
        data={"processed_count": len(created), "filename": file.filename}
    )

@router.post("")
async def create_attendee(
    payload: AttendeeCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Create an attendee with a check-in QR code"""
    if not EventService.get_company_event(db, user.company_id, payload.event_id):
        raise not_found_error("Event")

    attendee = AttendeeService.create_attendee(db, payload.model_dump())
    await change_feed.publish_row("attendees", "INSERT", attendee)

    return success_response(
        message="Attendee has been created successfully with QR code.",
        data=_attendee_data(attendee),
        status_code=201
    )

@router.get("/{attendee_id}")
async def get_attendee(
    attendee_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    attendee = AttendeeService.get_company_attendee(db, user.company_id, attendee_id)
    if not attendee:
        raise not_found_error("Attendee")
    return success_response(message="Attendee retrieved", data=_attendee_data(attendee))

@router.put("/{attendee_id}")
async def update_attendee(
    attendee_id: str,
    payload: AttendeeUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    attendee = AttendeeService.get_company_attendee(db, user.company_id, attendee_id)
    if not attendee:
        raise not_found_error("Attendee")

    values = payload.model_dump(exclude_unset=True)
    if "event_id" in values and not EventService.get_company_event(db, user.company_id, values["event_id"]):
        raise not_found_error("Event")

    attendee = AttendeeService.update_attendee(db, attendee, values)
    await change_feed.publish_row("attendees", "UPDATE", attendee)
    return success_response(message="Attendee has been updated successfully.", data=_attendee_data(attendee))

@router.delete("/{attendee_id}")
async def delete_attendee(
    attendee_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    attendee = AttendeeService.get_company_attendee(db, user.company_id, attendee_id)
    if not attendee:
        raise not_found_error("Attendee")

    record = row_to_dict(attendee)
    AttendeeService.delete_attendee(db, attendee)
    await change_feed.publish_row("attendees", "DELETE", None, record=record, company_id=user.company_id)
    return success_response(message="Attendee has been deleted successfully.", data={"deleted_attendee_id": attendee_id})

@router.get("/{attendee_id}/qr.png")
async def get_checkin_qr(
    attendee_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    """Check-in QR code image for an attendee"""
    attendee = AttendeeService.get_company_attendee(db, user.company_id, attendee_id)
    if not attendee:
        raise not_found_error("Attendee")

    return Response(
        content=QRService.generate_png(QRService.checkin_url(attendee.id)),
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=checkin_{attendee.id}.png"}
    )
