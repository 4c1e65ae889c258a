"""
Browser pages rendered with Jinja2

Pages behind the auth gate redirect to /auth when nobody is signed in.
Interactive actions on the pages call the JSON API with the session cookie.
"""

import os
from typing import Optional
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from app.api.routes_checkin import checkin_service
from app.core.config import settings
from app.core.db import get_db
from app.models import Profile
from app.services.attendee_service import AttendeeService, RegistrationClosed
from app.services.auth_service import AuthError, AuthService
from app.services.change_feed import change_feed
from app.services.checkin_service import CheckInService
from app.services.company_service import CompanyService
from app.services.dashboard_service import DashboardService
from app.services.event_service import EventService
from app.services.gallery_service import GalleryService
from app.services.lucky_draw_service import LuckyDrawService
from app.services.seating_service import SeatingService
from app.services.voting_service import VotingService
from app.utils.security import get_optional_user

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "templates")

router = APIRouter()
templates = Jinja2Templates(directory=TEMPLATES_DIR)

def _to_auth():
    return RedirectResponse("/auth", status_code=303)

def _render(request: Request, name: str, user: Optional[Profile] = None, status_code: int = 200, **context):
    return templates.TemplateResponse(
        request, name, {"user": user, "title": "Event Dashboard", **context}, status_code=status_code
    )

def _selected_event(db: Session, user: Profile, event_id: Optional[str]):
    """The company's events plus the chosen one (first event by default)"""
    events = EventService.list_events(db, user.company_id)
    selected = next((event for event in events if event.id == event_id), None)
    if selected is None and events:
        selected = events[0]
    return events, selected

@router.get("/")
async def index(request: Request, user: Optional[Profile] = Depends(get_optional_user)):
    if user:
        return RedirectResponse("/dashboard", status_code=303)
    return _render(request, "index.html")

@router.get("/auth")
async def auth_page(request: Request, user: Optional[Profile] = Depends(get_optional_user)):
    if user:
        return RedirectResponse("/dashboard", status_code=303)
    return _render(request, "auth.html", use_firebase=settings.USE_FIREBASE)

@router.post("/auth")
async def auth_submit(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    full_name: Optional[str] = Form(None),
    mode: str = Form("signin"),
    db: Session = Depends(get_db)
):
    """Sign in (or sign up) from the HTML form and start a cookie session"""
    try:
        if mode == "signup":
            profile = AuthService.sign_up(db, email, password, full_name)
            token = AuthService.issue_token(profile)
        else:
            token = AuthService.sign_in(db, email, password)
    except AuthError as e:
        return _render(request, "auth.html", error=str(e), email=email, mode=mode, use_firebase=settings.USE_FIREBASE)

    response = RedirectResponse("/dashboard", status_code=303)
    response.set_cookie(settings.SESSION_COOKIE_NAME, token, max_age=settings.SESSION_MAX_AGE, httponly=True, samesite="lax")
    return response

@router.get("/signout")
async def sign_out():
    response = _to_auth()
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response

@router.get("/register/{event_id}")
async def register_page(request: Request, event_id: str, db: Session = Depends(get_db)):
    event = EventService.get_public_event(db, event_id)
    if not event:
        return _render(request, "not_found.html", status_code=404, message="Event not found or registration is closed.")
    return _render(request, "register.html", event=event)

@router.post("/register/{event_id}")
async def register_submit(
    request: Request,
    event_id: str,
    name: str = Form(...),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    identification_number: Optional[str] = Form(None),
    staff_id: Optional[str] = Form(None),
    db: Session = Depends(get_db)
):
    event = EventService.get_public_event(db, event_id)
    if not event:
        return _render(request, "not_found.html", status_code=404, message="Event not found or registration is closed.")
    if not name.strip():
        return _render(request, "register.html", event=event, error="Please enter your name.")

    values = {
        "name": name.strip(),
        "email": email or None,
        "phone": phone or None,
        "identification_number": identification_number or None,
        "staff_id": staff_id or None,
    }
    try:
        attendee = AttendeeService.register(db, event, values)
    except RegistrationClosed as e:
        return _render(request, "register.html", event=event, error=str(e))

    await change_feed.publish_row("attendees", "INSERT", attendee)
    return _render(request, "register.html", event=event, attendee=attendee)

@router.get("/dashboard")
async def dashboard(
    request: Request,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    if not user.company_id:
        return RedirectResponse("/company", status_code=303)
    stats = DashboardService.get_stats(db, user.company_id)
    return _render(request, "dashboard.html", user, stats=stats)

@router.get("/company")
async def company_page(
    request: Request,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    company = CompanyService.get_company(db, user)
    users = CompanyService.list_users(db, company.id) if company else []
    return _render(request, "company.html", user, company=company, users=users)

@router.get("/events")
async def events_page(
    request: Request,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    if not user.company_id:
        return RedirectResponse("/company", status_code=303)
    events = EventService.list_events(db, user.company_id)
    return _render(request, "events.html", user, events=events)

@router.get("/attendees")
async def attendees_page(
    request: Request,
    event_id: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    if not user.company_id:
        return RedirectResponse("/company", status_code=303)
    events = EventService.list_events(db, user.company_id)
    attendees = AttendeeService.list_attendees(db, user.company_id, event_id=event_id, search=search)
    return _render(
        request, "attendees.html", user,
        events=events, attendees=attendees, event_id=event_id or "all", search=search or ""
    )

@router.get("/checkin")
async def checkin_page(
    request: Request,
    event_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    if not user.company_id:
        return RedirectResponse("/company", status_code=303)
    events = EventService.list_events(db, user.company_id)
    stats = CheckInService.get_stats(db, event_id=event_id, company_id=user.company_id)
    return _render(request, "checkin.html", user, events=events, event_id=event_id, stats=stats)

@router.post("/checkin")
async def checkin_manual(
    request: Request,
    search: str = Form(...),
    event_id: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    """Manual check-in form"""
    if not user:
        return _to_auth()
    if not user.company_id:
        return RedirectResponse("/company", status_code=303)
    result = await checkin_service.check_in_by_search(search, db, event_id=event_id or None, company_id=user.company_id)
    events = EventService.list_events(db, user.company_id)
    stats = CheckInService.get_stats(db, event_id=event_id or None, company_id=user.company_id)
    return _render(request, "checkin.html", user, events=events, event_id=event_id, stats=stats, result=result)

@router.get("/checkin/{attendee_id}")
async def checkin_link(
    request: Request,
    attendee_id: str,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    """Landing page for a scanned check-in QR code"""
    if not user:
        return _to_auth()
    attendee = AttendeeService.get_company_attendee(db, user.company_id, attendee_id) if user.company_id else None
    if not attendee:
        return _render(request, "not_found.html", user, status_code=404, message="No attendee found for this code.")
    return _render(request, "checkin_confirm.html", user, attendee=attendee)

@router.post("/checkin/{attendee_id}")
async def checkin_link_submit(
    request: Request,
    attendee_id: str,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    result = await checkin_service.check_in(attendee_id, db, company_id=user.company_id)
    if result.attendee is None:
        return _render(request, "not_found.html", user, status_code=404, message=result.message)
    return _render(request, "checkin_confirm.html", user, attendee=result.attendee, result=result)

@router.get("/seating")
async def seating_page(
    request: Request,
    event_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    if not user.company_id:
        return RedirectResponse("/company", status_code=303)
    events, event = _selected_event(db, user, event_id)
    layout = SeatingService.get_layout(event.id, db) if event else None
    return _render(request, "seating.html", user, events=events, event=event, layout=layout)

@router.get("/gallery")
async def gallery_page(
    request: Request,
    event_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    if not user.company_id:
        return RedirectResponse("/company", status_code=303)
    events, event = _selected_event(db, user, event_id)
    photos = GalleryService.list_photos(db, event.id) if event else []
    return _render(
        request, "gallery.html", user,
        events=events, event=event, photos=photos, interval=settings.SLIDESHOW_INTERVAL_SECONDS
    )

@router.get("/voting")
async def voting_page(
    request: Request,
    event_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: Optional[Profile] = Depends(get_optional_user)
):
    if not user:
        return _to_auth()
    if not user.company_id:
        return RedirectResponse("/company", status_code=303)
    events, event = _selected_event(db, user, event_id)
    sessions = VotingService.list_sessions(db, event.id) if event else []
    winners = LuckyDrawService.list_winners(db, event.id) if event else []
    return _render(request, "voting.html", user, events=events, event=event, sessions=sessions, winners=winners)

@router.get("/{path:path}")
async def not_found(request: Request, path: str, user: Optional[Profile] = Depends(get_optional_user)):
    return _render(request, "not_found.html", user, status_code=404, message=f"Page /{path} does not exist.")
