"""
Tests for the row change feed
"""

import asyncio
from datetime import datetime
from types import SimpleNamespace

from app.api.ws import WebSocketManager
from app.services.change_feed import ALL_TABLES, ChangeFeed, RowChange, owner_company_id

class FakeSocket:
    def __init__(self):
        self.sent = []

    async def send_text(self, text):
        self.sent.append(text)

def test_subscribers_receive_their_table_and_wildcard():
    feed = ChangeFeed()
    attendees, everything = [], []
    feed.subscribe("attendees", attendees.append)
    feed.subscribe(ALL_TABLES, everything.append)

    asyncio.run(feed.publish(RowChange("attendees", "UPDATE", {"id": "a1"})))
    asyncio.run(feed.publish(RowChange("votes", "INSERT", {"id": "v1"})))

    assert [c.record["id"] for c in attendees] == ["a1"]
    assert [c.table for c in everything] == ["attendees", "votes"]

def test_async_subscriber_is_awaited():
    feed = ChangeFeed()
    received = []

    async def on_change(change):
        received.append(change.event)

    feed.subscribe("events", on_change)
    asyncio.run(feed.publish(RowChange("events", "DELETE", {"id": "e1"})))

    assert received == ["DELETE"]

def test_unsubscribe_stops_delivery():
    feed = ChangeFeed()
    received = []
    unsubscribe = feed.subscribe("events", received.append)

    unsubscribe()
    asyncio.run(feed.publish(RowChange("events", "INSERT", {"id": "e1"})))

    assert received == []
    assert feed.subscribers == {}

def test_failing_subscriber_does_not_block_others():
    feed = ChangeFeed()
    received = []

    def broken(change):
        raise RuntimeError("boom")

    feed.subscribe("votes", broken)
    feed.subscribe("votes", received.append)
    asyncio.run(feed.publish(RowChange("votes", "INSERT", {"id": "v1"})))

    assert len(received) == 1

def test_change_message_shape():
    change = RowChange("attendees", "UPDATE", {"id": "a1"}, timestamp=datetime(2024, 1, 1, 12, 0))

    assert change.to_message() == {
        "type": "change",
        "table": "attendees",
        "event": "UPDATE",
        "record": {"id": "a1"},
        "timestamp": "2024-01-01T12:00:00",
    }

def test_owner_company_follows_parent_rows():
    event = SimpleNamespace(company_id="c1")
    attendee = SimpleNamespace(event=event)
    vote = SimpleNamespace(photo=SimpleNamespace(session=SimpleNamespace(event=event)))

    assert owner_company_id(event) == "c1"
    assert owner_company_id(attendee) == "c1"
    assert owner_company_id(vote) == "c1"
    assert owner_company_id(None) is None

def test_publish_row_tags_change_with_owner():
    feed = ChangeFeed()
    received = []
    feed.subscribe("attendees", received.append)

    asyncio.run(feed.publish_row("attendees", "DELETE", None, record={"id": "a1"}, company_id="c1"))

    assert received[0].company_id == "c1"

def test_changes_reach_only_the_owning_company():
    manager = WebSocketManager()
    own, other = FakeSocket(), FakeSocket()
    manager.active_connections[("c1", "attendees")] = [own]
    manager.active_connections[("c2", "attendees")] = [other]

    asyncio.run(manager.handle_change(RowChange("attendees", "INSERT", {"id": "a1"}, company_id="c1")))
    asyncio.run(manager.handle_change(RowChange("attendees", "INSERT", {"id": "a2"})))

    assert len(own.sent) == 1
    assert '"a1"' in own.sent[0]
    assert other.sent == []
    assert manager.get_all_connection_counts() == {"attendees": 2}
