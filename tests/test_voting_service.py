"""
Tests for voting sessions and vote casting
"""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.models import Attendee, Company, Event, VotingPhoto, VotingSession
from app.services.voting_service import VotingError, VotingService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_voting.db"
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
def voting_event(db_session):
    company = Company(name="Acme Events")
    db_session.add(company)
    db_session.flush()

    event = Event(company_id=company.id, name="Company Retreat", event_date=datetime(2024, 7, 1))
    db_session.add(event)
    db_session.flush()

    sessions = [
        VotingSession(event_id=event.id, title="Best Costume", is_active=True),
        VotingSession(event_id=event.id, title="Best Photo"),
        VotingSession(event_id=event.id, title="Best Team"),
    ]
    db_session.add_all(sessions)
    db_session.flush()

    db_session.add_all([
        VotingPhoto(voting_session_id=sessions[0].id, title="Pirate", photo_url="/uploads/voting/pirate.png"),
        VotingPhoto(voting_session_id=sessions[0].id, title="Astronaut", photo_url="/uploads/voting/astronaut.png"),
        Attendee(event_id=event.id, name="Alice"),
        Attendee(event_id=event.id, name="Bob"),
    ])
    db_session.commit()
    db_session.refresh(event)
    return event

def session_by_title(db_session, title):
    return db_session.query(VotingSession).filter(VotingSession.title == title).first()

def attendee(db_session, name):
    return db_session.query(Attendee).filter(Attendee.name == name).first()

def photo(db_session, title):
    return db_session.query(VotingPhoto).filter(VotingPhoto.title == title).first()

def active_titles(db_session, event):
    return [
        s.title for s in db_session.query(VotingSession).filter(
            VotingSession.event_id == event.id,
            VotingSession.is_active.is_(True)
        ).all()
    ]

def test_activating_deactivates_other_sessions(db_session, voting_event):
    changed = VotingService.toggle_session(db_session, session_by_title(db_session, "Best Photo"))

    assert active_titles(db_session, voting_event) == ["Best Photo"]
    assert sorted(s.title for s in changed) == ["Best Costume", "Best Photo"]

def test_deactivating_leaves_no_active_session(db_session, voting_event):
    changed = VotingService.toggle_session(db_session, session_by_title(db_session, "Best Costume"))

    assert active_titles(db_session, voting_event) == []
    assert [s.title for s in changed] == ["Best Costume"]

def test_other_events_are_untouched(db_session, voting_event):
    other = Event(company_id=voting_event.company_id, name="Other", event_date=datetime(2024, 8, 1))
    db_session.add(other)
    db_session.flush()
    db_session.add(VotingSession(event_id=other.id, title="Elsewhere", is_active=True))
    db_session.commit()

    VotingService.toggle_session(db_session, session_by_title(db_session, "Best Team"))

    assert session_by_title(db_session, "Elsewhere").is_active

def test_cast_vote_updates_tally(db_session, voting_event):
    pirate = photo(db_session, "Pirate")

    VotingService.cast_vote(db_session, pirate, attendee(db_session, "Alice").id)
    VotingService.cast_vote(db_session, pirate, attendee(db_session, "Bob").id)

    results = VotingService.results(db_session, pirate.voting_session_id)
    assert pirate.vote_count == 2
    assert results["total_votes"] == 2
    assert results["leading_photo"].title == "Pirate"
    assert [p.title for p in results["photos"]] == ["Pirate", "Astronaut"]

def test_one_vote_per_attendee_per_session(db_session, voting_event):
    alice = attendee(db_session, "Alice")
    VotingService.cast_vote(db_session, photo(db_session, "Pirate"), alice.id)

    with pytest.raises(VotingError) as exc:
        VotingService.cast_vote(db_session, photo(db_session, "Astronaut"), alice.id)

    assert exc.value.error_code == "already_voted"
    assert photo(db_session, "Astronaut").vote_count == 0

def test_vote_rejected_when_session_inactive(db_session, voting_event):
    VotingService.toggle_session(db_session, session_by_title(db_session, "Best Costume"))

    with pytest.raises(VotingError) as exc:
        VotingService.cast_vote(db_session, photo(db_session, "Pirate"), attendee(db_session, "Alice").id)

    assert exc.value.error_code == "session_inactive"

def test_vote_rejected_for_unknown_attendee(db_session, voting_event):
    with pytest.raises(VotingError) as exc:
        VotingService.cast_vote(db_session, photo(db_session, "Pirate"), "not-an-attendee")

    assert exc.value.error_code == "attendee_not_registered"

def test_results_without_votes_have_no_leader(db_session, voting_event):
    results = VotingService.results(db_session, session_by_title(db_session, "Best Costume").id)

    assert results["total_votes"] == 0
    assert results["leading_photo"] is None

def test_list_sessions_counts_photos(db_session, voting_event):
    sessions = {s["session"].title: s["photo_count"] for s in VotingService.list_sessions(db_session, voting_event.id)}

    assert sessions == {"Best Costume": 2, "Best Photo": 0, "Best Team": 0}
