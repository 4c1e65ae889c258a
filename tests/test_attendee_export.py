"""
Tests for attendee listing and CSV export
"""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.models import Attendee, Company, Event
from app.services.attendee_service import AttendeeService, RegistrationClosed

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_attendees.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def company_events(db_session):
    company = Company(name="Acme Events")
    other_company = Company(name="Rival Events")
    db_session.add_all([company, other_company])
    db_session.flush()

    gala = Event(company_id=company.id, name="Gala Night", event_date=datetime(2024, 5, 1), max_attendees=3)
    summit = Event(company_id=company.id, name="Summit", event_date=datetime(2024, 6, 1))
    rival = Event(company_id=other_company.id, name="Rival Gala", event_date=datetime(2024, 5, 2))
    db_session.add_all([gala, summit, rival])
    db_session.flush()

    db_session.add_all([
        Attendee(event_id=gala.id, name="Alice Tan", email="alice@example.com", phone="0123", checked_in=True,
                 created_at=datetime(2024, 4, 1, 10, 0)),
        Attendee(event_id=gala.id, name="Bob Lee", identification_number="ID-2", created_at=datetime(2024, 4, 1, 11, 0)),
        Attendee(event_id=summit.id, name="Carol Ng", staff_id="STF-9", created_at=datetime(2024, 4, 1, 12, 0)),
        Attendee(event_id=rival.id, name="Dan Rival", created_at=datetime(2024, 4, 1, 13, 0)),
    ])
    db_session.commit()
    return company, gala, summit

def test_list_is_company_scoped_newest_first(db_session, company_events):
    company, _, _ = company_events

    attendees = AttendeeService.list_attendees(db_session, company.id)

    assert [a.name for a in attendees] == ["Carol Ng", "Bob Lee", "Alice Tan"]

def test_list_filters_by_event_and_search(db_session, company_events):
    company, gala, _ = company_events

    assert [a.name for a in AttendeeService.list_attendees(db_session, company.id, event_id=gala.id)] == [
        "Bob Lee", "Alice Tan"
    ]
    assert [a.name for a in AttendeeService.list_attendees(db_session, company.id, event_id="all", search="ALICE@")] == [
        "Alice Tan"
    ]

def test_csv_export_has_header_and_one_line_per_attendee(db_session, company_events):
    company, _, _ = company_events
    attendees = AttendeeService.list_attendees(db_session, company.id)

    lines = AttendeeService.export_csv(attendees).split("\n")

    assert len(lines) == len(attendees) + 1
    assert lines[0] == "Name,Email,Phone,ID Number,Staff ID,Event,Checked In"
    assert lines[1] == "Carol Ng,,,,STF-9,Summit,No"
    assert lines[2] == "Bob Lee,,,ID-2,,Gala Night,No"
    assert lines[3] == "Alice Tan,alice@example.com,0123,,,Gala Night,Yes"

def test_csv_export_of_empty_list_is_header_only():
    assert AttendeeService.export_csv([]) == "Name,Email,Phone,ID Number,Staff ID,Event,Checked In"

def test_created_attendee_gets_checkin_qr(db_session, company_events):
    _, _, summit = company_events

    attendee = AttendeeService.create_attendee(db_session, {"event_id": summit.id, "name": "Eve"})

    assert attendee.qr_code.startswith("data:image/png;base64,")

def test_registration_respects_max_attendees(db_session, company_events):
    _, gala, _ = company_events

    AttendeeService.register(db_session, gala, {"name": "Third Guest"})

    with pytest.raises(RegistrationClosed):
        AttendeeService.register(db_session, gala, {"name": "Fourth Guest"})

def test_moving_attendee_to_another_event_clears_seat(db_session, company_events):
    _, gala, summit = company_events
    attendee = db_session.query(Attendee).filter(Attendee.name == "Bob Lee").first()
    attendee.table_assignment = None
    db_session.commit()

    updated = AttendeeService.update_attendee(db_session, attendee, {"event_id": summit.id})

    assert updated.event_id == summit.id
    assert updated.table_assignment is None
