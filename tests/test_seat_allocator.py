"""
Tests for the random seat allocator
"""

import random
from collections import Counter

from app.services.seat_allocator import SeatAllocator, TableSlot

def allocate(tables, attendee_ids, seed=7, persist=None):
    store = {}

    def default_persist(attendee_id, table_id):
        store[attendee_id] = table_id

    result = SeatAllocator(random.Random(seed)).allocate(tables, attendee_ids, persist or default_persist)
    return result, store

def test_everyone_seated_when_capacity_suffices():
    tables = [TableSlot("t1", 4), TableSlot("t2", 4, occupied=1)]
    attendees = [f"a{i}" for i in range(7)]

    result, store = allocate(tables, attendees)

    assert result.assigned_count == 7
    assert result.unassigned == []
    assert result.failed == []
    assert set(store) == set(attendees)

def test_capacity_never_exceeded():
    tables = [TableSlot("t1", 3, occupied=2), TableSlot("t2", 2), TableSlot("t3", 1, occupied=1)]
    attendees = [f"a{i}" for i in range(10)]

    for seed in range(20):
        result, store = allocate(tables, attendees, seed=seed)
        counts = Counter(store.values())
        assert counts["t1"] + 2 <= 3
        assert counts["t2"] <= 2
        assert counts["t3"] == 0

def test_exactly_remaining_capacity_assigned_when_short():
    tables = [TableSlot("t1", 5, occupied=3), TableSlot("t2", 2)]
    attendees = [f"a{i}" for i in range(10)]

    result, store = allocate(tables, attendees)

    assert result.assigned_count == 4
    assert len(result.unassigned) == 6
    assert set(result.unassigned).isdisjoint(store)

def test_no_tables_with_room_leaves_everyone_unassigned():
    tables = [TableSlot("t1", 2, occupied=2)]

    result, store = allocate(tables, ["a1", "a2"])

    assert result.assigned_count == 0
    assert sorted(result.unassigned) == ["a1", "a2"]
    assert store == {}

def test_failed_persist_is_reported_and_loop_continues():
    tables = [TableSlot("t1", 10)]
    store = {}

    def flaky_persist(attendee_id, table_id):
        if attendee_id == "bad":
            raise RuntimeError("write rejected")
        store[attendee_id] = table_id

    result, _ = allocate(tables, ["a1", "bad", "a2", "a3"], persist=flaky_persist)

    assert result.failed == [("bad", "write rejected")]
    assert result.assigned_count == 3
    assert set(store) == {"a1", "a2", "a3"}

def test_failed_persist_releases_the_seat():
    tables = [TableSlot("t1", 2)]
    store = {}

    def flaky_persist(attendee_id, table_id):
        if attendee_id == "bad":
            raise RuntimeError("write rejected")
        store[attendee_id] = table_id

    result, _ = allocate(tables, ["bad", "a1", "a2"], persist=flaky_persist)

    assert result.assigned_count == 2
    assert result.unassigned == []

def test_input_tables_are_not_mutated():
    tables = [TableSlot("t1", 3, occupied=1)]

    allocate(tables, ["a1", "a2"])

    assert tables[0].occupied == 1

def test_same_seed_same_plan():
    tables = [TableSlot("t1", 3), TableSlot("t2", 3), TableSlot("t3", 3)]
    attendees = [f"a{i}" for i in range(8)]

    first, _ = allocate(tables, attendees, seed=42)
    second, _ = allocate(tables, attendees, seed=42)

    assert first.assigned == second.assigned
