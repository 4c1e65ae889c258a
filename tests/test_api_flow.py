"""
End-to-end API flow: sign up, company, event, registration, check-in, seating and export
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base, get_db
from app.models import Profile
from app.services.auth_service import AuthService
from app.utils.security import rate_limiter
from main import app

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_api.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client():
    """Test client backed by a fresh database"""
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.clear()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def auth_headers(client):
    """A signed-up user that owns a company"""
    response = client.post("/api/auth/signup", json={
        "email": "owner@example.com",
        "password": "secret123",
        "full_name": "Olivia Owner",
    })
    assert response.status_code == 201
    headers = {"Authorization": f"Bearer {response.json()['data']['access_token']}"}

    response = client.post("/api/company", json={"name": "Acme Events"}, headers=headers)
    assert response.status_code == 201
    return headers

@pytest.fixture
def event_id(client, auth_headers):
    response = client.post("/api/events", json={
        "name": "Launch Party",
        "event_date": "2024-09-01T19:00:00",
        "location": "Main Hall",
    }, headers=auth_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["data"]["registration_qr"].startswith("data:image/png;base64,")
    return body["data"]["id"]

def token_of(headers):
    return headers["Authorization"].split(" ", 1)[1]

def rival_headers(client):
    """A second user that owns a different company"""
    response = client.post("/api/auth/signup", json={"email": "rival@example.com", "password": "secret123"})
    headers = {"Authorization": f"Bearer {response.json()['data']['access_token']}"}
    client.post("/api/company", json={"name": "Rival Events"}, headers=headers)
    return headers

def register(client, event_id, name, **fields):
    response = client.post(f"/api/public/events/{event_id}/register", json={"name": name, **fields})
    assert response.status_code == 201
    return response.json()["data"]

def test_health(client):
    assert client.get("/api/public/health").json() == {"status": "ok"}

def test_protected_api_requires_auth(client):
    assert client.get("/api/events").status_code == 401

def test_signin_with_wrong_password(client, auth_headers):
    response = client.post("/api/auth/signin", json={"email": "owner@example.com", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["success"] is False

def test_signin_returns_token(client, auth_headers):
    response = client.post("/api/auth/signin", json={"email": "owner@example.com", "password": "secret123"})

    assert response.status_code == 200
    token = response.json()["data"]["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["role"] == "admin"

def test_user_without_company_is_asked_to_set_one_up(client):
    response = client.post("/api/auth/signup", json={"email": "solo@example.com", "password": "secret123"})
    headers = {"Authorization": f"Bearer {response.json()['data']['access_token']}"}

    response = client.get("/api/events", headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Please set up your company first."

def test_public_event_page(client, event_id):
    response = client.get(f"/api/public/events/{event_id}")

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Launch Party"
    assert client.get("/api/public/events/missing").status_code == 404

def test_registration_and_manual_checkin(client, auth_headers, event_id):
    attendee = register(client, event_id, "Alice Tan", staff_id="STF-1")
    assert attendee["qr_code"].startswith("data:image/png;base64,")

    response = client.post("/api/checkin/manual", json={"search": "stf-1"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["checked_in"] is True

    response = client.post("/api/checkin/manual", json={"search": "Alice"}, headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "already_checked_in"

    stats = client.get("/api/checkin/stats", headers=auth_headers).json()["data"]
    assert stats["checked_in"] == 1
    assert stats["percentage"] == 100

def test_scan_checkin(client, auth_headers, event_id):
    attendee = register(client, event_id, "Bob Lee")

    response = client.post(
        "/api/checkin/scan",
        json={"code": f"http://localhost:8000/checkin/{attendee['attendee_id']}"},
        headers=auth_headers
    )
    assert response.status_code == 200

    response = client.post("/api/checkin/scan", json={"code": "hello"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "invalid_code"

def test_ambiguous_manual_checkin(client, auth_headers, event_id):
    register(client, event_id, "Sam One")
    register(client, event_id, "Sam Two")

    response = client.post("/api/checkin/manual", json={"search": "sam"}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["details"] == {"match_count": 2}

def test_csv_export(client, auth_headers, event_id):
    register(client, event_id, "Alice Tan", email="alice@example.com")
    register(client, event_id, "Bob Lee")

    response = client.get(f"/api/attendees/export.csv?event_id={event_id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.split("\n")
    assert len(lines) == 3
    assert lines[0] == "Name,Email,Phone,ID Number,Staff ID,Event,Checked In"

def test_seating_auto_assign(client, auth_headers, event_id):
    for i in range(5):
        register(client, event_id, f"Guest {i}")

    response = client.post(f"/api/seating/events/{event_id}/auto-assign", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "no_tables"

    for capacity in (2, 2):
        response = client.post(
            f"/api/seating/events/{event_id}/tables",
            json={"table_type": "Regular", "capacity": capacity},
            headers=auth_headers
        )
        assert response.status_code == 201

    response = client.post(f"/api/seating/events/{event_id}/auto-assign", headers=auth_headers)
    assert response.status_code == 200

    layout = client.get(f"/api/seating/events/{event_id}", headers=auth_headers).json()["data"]
    assert layout["total_assigned"] == 4
    assert len(layout["unassigned"]) == 1
    assert all(t["assigned_count"] <= t["capacity"] for t in layout["tables"])

def test_registration_closed_when_full(client, auth_headers):
    response = client.post("/api/events", json={
        "name": "Small Workshop",
        "event_date": "2024-09-02T10:00:00",
        "max_attendees": 1,
    }, headers=auth_headers)
    small_event = response.json()["data"]["id"]

    register(client, small_event, "First")
    response = client.post(f"/api/public/events/{small_event}/register", json={"name": "Second"})

    assert response.status_code == 409
    assert response.json()["error_code"] == "registration_closed"

def test_other_company_cannot_see_event(client, event_id):
    headers = rival_headers(client)

    assert client.get(f"/api/events/{event_id}", headers=headers).status_code == 404

def test_pages_redirect_to_auth(client):
    response = client.get("/dashboard", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/auth"

def test_unknown_page_is_not_found(client):
    response = client.get("/no-such-page")

    assert response.status_code == 404
    assert "does not exist" in response.text

def test_anonymous_socket_is_refused(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/attendees") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == 4401

def test_socket_with_bad_token_is_refused(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/attendees?token=forged") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == 4401

def test_changes_only_reach_the_owning_company(client, auth_headers, event_id):
    rival = rival_headers(client)

    with client.websocket_connect(f"/ws/attendees?token={token_of(auth_headers)}") as owner_socket, \
            client.websocket_connect(f"/ws/attendees?token={token_of(rival)}") as rival_socket:
        assert owner_socket.receive_json()["type"] == "connection"
        assert rival_socket.receive_json()["type"] == "connection"

        register(client, event_id, "Private Person", email="private@example.com", identification_number="SECRET-ID")

        change = owner_socket.receive_json()
        assert change["type"] == "change"
        assert change["record"]["name"] == "Private Person"

        # Anything leaked would be queued ahead of the pong
        rival_socket.send_json({"type": "ping", "timestamp": 1})
        assert rival_socket.receive_json() == {"type": "pong", "timestamp": 1}

def test_attendee_cannot_be_detached_from_its_event(client, auth_headers, event_id):
    attendee = register(client, event_id, "Alice Tan")
    url = f"/api/attendees/{attendee['attendee_id']}"

    assert client.put(url, json={"event_id": ""}, headers=auth_headers).status_code == 422
    assert client.put(url, json={"event_id": None}, headers=auth_headers).status_code == 422
    assert client.put(url, json={"event_id": "missing"}, headers=auth_headers).status_code == 404

    response = client.put(url, json={"phone": "+60 12"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["event_id"] == event_id

def test_null_for_required_fields_is_rejected(client, auth_headers, event_id):
    attendee = register(client, event_id, "Alice Tan")

    response = client.put(f"/api/attendees/{attendee['attendee_id']}", json={"name": None}, headers=auth_headers)
    assert response.status_code == 422

    response = client.put(f"/api/events/{event_id}", json={"event_date": None}, headers=auth_headers)
    assert response.status_code == 422

    response = client.get(f"/api/events/{event_id}", headers=auth_headers)
    assert response.json()["data"]["event_date"].startswith("2024-09-01")

def test_registrant_markup_is_escaped_on_checkin_page(client, auth_headers, event_id):
    hostile = "<img src=x onerror=alert(1)>"
    attendee = register(client, event_id, hostile)
    response = client.post(f"/api/checkin/{attendee['attendee_id']}", headers=auth_headers)
    assert response.status_code == 200

    response = client.get("/checkin")

    assert response.status_code == 200
    assert hostile not in response.text
    assert "&lt;img src=x onerror=alert(1)&gt;" in response.text
    assert "innerHTML" not in response.text

def add_user(client, auth_headers, email, role="staff"):
    return client.post("/api/company/users", json={
        "email": email,
        "full_name": "Sam Staff",
        "role": role,
    }, headers=auth_headers)

def headers_for(email):
    db = TestingSessionLocal()
    try:
        profile = db.query(Profile).filter(Profile.email == email).first()
        return {"Authorization": f"Bearer {AuthService.issue_token(profile)}"}
    finally:
        db.close()

def test_admin_adds_user_to_company(client, auth_headers):
    response = add_user(client, auth_headers, "staff@example.com")

    assert response.status_code == 201
    assert response.json()["data"]["role"] == "staff"

    users = client.get("/api/company", headers=auth_headers).json()["data"]["users"]
    assert {u["email"] for u in users} == {"owner@example.com", "staff@example.com"}

def test_duplicate_user_email_is_rejected(client, auth_headers):
    add_user(client, auth_headers, "staff@example.com")

    response = add_user(client, auth_headers, "staff@example.com")

    assert response.status_code == 409
    assert response.json()["error_code"] == "create_user_failed"

def test_staff_cannot_manage_users(client, auth_headers):
    add_user(client, auth_headers, "staff@example.com")
    staff_headers = headers_for("staff@example.com")

    response = add_user(client, staff_headers, "another@example.com")

    assert response.status_code == 403
    assert client.get("/api/events", headers=staff_headers).status_code == 200

def test_admin_cannot_delete_own_account(client, auth_headers):
    me = client.get("/api/auth/me", headers=auth_headers).json()["data"]

    response = client.delete(f"/api/company/users/{me['id']}", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error_code"] == "self_delete"

def test_admin_deletes_staff_user(client, auth_headers):
    staff = add_user(client, auth_headers, "staff@example.com").json()["data"]

    response = client.delete(f"/api/company/users/{staff['id']}", headers=auth_headers)

    assert response.status_code == 200
    users = client.get("/api/company", headers=auth_headers).json()["data"]["users"]
    assert [u["email"] for u in users] == ["owner@example.com"]
