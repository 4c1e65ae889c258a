"""
Tests for spreadsheet import and export
"""

import io
import pytest
import pandas as pd
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.models import Attendee, Company, Event
from app.services.excel_service import ExcelService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_excel.db"
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
def sample_event(db_session):
    """Create a sample event for testing"""
    company = Company(name="Acme Events")
    db_session.add(company)
    db_session.flush()

    event = Event(company_id=company.id, name="Town Hall", event_date=datetime(2024, 6, 15), max_attendees=5)
    db_session.add(event)
    db_session.commit()
    db_session.refresh(event)
    return event

def create_test_excel(data):
    """Helper function to create Excel bytes from data"""
    df = pd.DataFrame(data)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        df.to_excel(writer, index=False)
    return buffer.getvalue()

def test_template_has_attendee_columns():
    df = pd.read_excel(io.BytesIO(ExcelService.create_template()))

    assert list(df.columns) == ['Name', 'Email', 'Phone', 'ID Number', 'Staff ID']
    assert len(df) == 3

def test_validate_excel_structure_valid():
    df = pd.DataFrame({'Full Name': ['Jane'], 'Email': ['jane@example.com']})

    is_valid, errors = ExcelService.validate_excel_structure(df)

    assert is_valid
    assert errors == []

def test_validate_excel_structure_missing_name():
    df = pd.DataFrame({'Email': ['jane@example.com'], 'Phone': ['123']})

    is_valid, errors = ExcelService.validate_excel_structure(df)

    assert not is_valid
    assert "Missing required columns: name" in errors[0]

def test_import_creates_attendees_with_qr(db_session, sample_event):
    content = create_test_excel({
        'Name': ['Alice', 'Bob', None],
        'Email': ['alice@example.com', None, 'orphan@example.com'],
        'ID Number': ['ID-1', 'ID-2', None],
        'Staff ID': [None, 'STF-2', None],
    })

    success, errors, created = ExcelService.process_excel_upload(content, sample_event, db_session)

    assert success
    assert errors == []
    # The row with a blank name is skipped
    assert sorted(a.name for a in created) == ['Alice', 'Bob']

    bob = db_session.query(Attendee).filter(Attendee.name == 'Bob').first()
    assert bob.staff_id == 'STF-2'
    assert bob.email is None
    assert bob.qr_code.startswith("data:image/png;base64,")
    assert not bob.checked_in

def test_import_rejects_duplicate_id_numbers(db_session, sample_event):
    content = create_test_excel({'Name': ['Alice', 'Bob'], 'ID Number': ['ID-1', 'ID-1']})

    success, errors, created = ExcelService.process_excel_upload(content, sample_event, db_session)

    assert not success
    assert any("Duplicate ID number 'ID-1'" in e for e in errors)
    assert db_session.query(Attendee).count() == 0

def test_import_respects_max_attendees(db_session, sample_event):
    content = create_test_excel({'Name': [f'Guest {i}' for i in range(6)]})

    success, errors, _ = ExcelService.process_excel_upload(content, sample_event, db_session)

    assert not success
    assert "max 5" in errors[0]

def test_blank_names_do_not_count_toward_max_attendees(db_session, sample_event):
    names = [f'Guest {i}' for i in range(5)] + ['   ', ' ']
    content = create_test_excel({'Name': names})

    success, errors, created = ExcelService.process_excel_upload(content, sample_event, db_session)

    assert success, errors
    assert len(created) == 5

def test_import_of_invalid_file(db_session, sample_event):
    success, errors, _ = ExcelService.process_excel_upload(b"not a spreadsheet", sample_event, db_session)

    assert not success
    assert errors[0].startswith("Error processing Excel file")

def test_export_attendees(db_session, sample_event):
    db_session.add(Attendee(event_id=sample_event.id, name="Alice", checked_in=True))
    db_session.commit()
    attendees = db_session.query(Attendee).all()

    df = pd.read_excel(io.BytesIO(ExcelService.export_attendees(attendees)))

    assert list(df.columns) == ['Name', 'Email', 'Phone', 'ID Number', 'Staff ID', 'Event', 'Table', 'Checked In']
    assert df.iloc[0]['Name'] == 'Alice'
    assert df.iloc[0]['Event'] == 'Town Hall'
    assert df.iloc[0]['Checked In'] == 'Yes'
