"""
Seating layout and assignment service
"""

import logging
import random
from typing import List, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import Attendee, EventTable
from app.services.seat_allocator import AllocationResult, SeatAllocator, TableSlot

logger = logging.getLogger(__name__)


class SeatingError(Exception):
    """Raised when a seating change would break a seating rule"""

    def __init__(self, message: str, error_code: str = "seating_error"):
        super().__init__(message)
        self.error_code = error_code


class SeatingService:
    """Service for seating layout operations"""

    @staticmethod
    def list_tables(event_id: str, db: Session) -> List[EventTable]:
        return db.query(EventTable).filter(
            EventTable.event_id == event_id
        ).order_by(EventTable.table_number).all()

    @staticmethod
    def get_table(table_id: str, db: Session) -> Optional[EventTable]:
        return db.query(EventTable).filter(EventTable.id == table_id).first()

    @staticmethod
    def occupancy(event_id: str, db: Session) -> Dict[str, int]:
        """Assigned-attendee count per table of an event"""
        rows = db.query(
            Attendee.table_assignment,
            func.count(Attendee.id)
        ).filter(
            Attendee.event_id == event_id,
            Attendee.table_assignment.isnot(None)
        ).group_by(Attendee.table_assignment).all()
        return {table_id: count for table_id, count in rows}

    @staticmethod
    def get_layout(event_id: str, db: Session) -> Dict:
        """Tables with their seated attendees plus the unseated attendees"""
        tables = SeatingService.list_tables(event_id, db)
        attendees = db.query(Attendee).filter(Attendee.event_id == event_id).order_by(Attendee.name).all()

        seated: Dict[str, List[Dict]] = {table.id: [] for table in tables}
        unassigned = []
        for attendee in attendees:
            info = {"id": attendee.id, "name": attendee.name, "table_assignment": attendee.table_assignment}
            if attendee.table_assignment in seated:
                seated[attendee.table_assignment].append(info)
            else:
                unassigned.append(info)

        return {
            "tables": [
                {
                    "id": table.id,
                    "table_number": table.table_number,
                    "table_type": table.table_type,
                    "capacity": table.capacity,
                    "position_x": table.position_x,
                    "position_y": table.position_y,
                    "assigned_count": len(seated[table.id]),
                    "attendees": seated[table.id],
                }
                for table in tables
            ],
            "unassigned": unassigned,
            "total_capacity": sum(table.capacity for table in tables),
            "total_assigned": sum(len(v) for v in seated.values()),
        }

    @staticmethod
    def next_table_number(event_id: str, db: Session) -> int:
        current = db.query(func.max(EventTable.table_number)).filter(EventTable.event_id == event_id).scalar()
        return (current or 0) + 1

    @staticmethod
    def create_table(
        event_id: str,
        db: Session,
        table_number: Optional[int] = None,
        table_type: str = "Regular",
        capacity: int = settings.DEFAULT_TABLE_CAPACITY,
        rng: Optional[random.Random] = None,
    ) -> EventTable:
        rng = rng or random
        table = EventTable(
            event_id=event_id,
            table_number=table_number or SeatingService.next_table_number(event_id, db),
            table_type=table_type,
            capacity=capacity,
            position_x=rng.random() * 400,
            position_y=rng.random() * 300,
        )
        db.add(table)
        db.commit()
        db.refresh(table)
        logger.info(f"Created table {table.table_number} ({table.table_type}, {table.capacity} seats) for event {event_id}")
        return table

    @staticmethod
    def update_table(table: EventTable, db: Session, **changes) -> EventTable:
        capacity = changes.get("capacity")
        if capacity is not None:
            seated = db.query(func.count(Attendee.id)).filter(Attendee.table_assignment == table.id).scalar()
            if capacity < seated:
                raise SeatingError(
                    f"Table {table.table_number} already seats {seated} attendees; capacity cannot drop to {capacity}",
                    "table_full"
                )

        for key in ("table_number", "table_type", "capacity"):
            value = changes.get(key)
            if value is not None:
                setattr(table, key, value)
        db.commit()
        db.refresh(table)
        return table

    @staticmethod
    def move_table(table: EventTable, delta_x: float, delta_y: float, db: Session) -> EventTable:
        """Apply a drag delta; positions never go below zero"""
        table.position_x = max(0.0, (table.position_x or 0) + delta_x)
        table.position_y = max(0.0, (table.position_y or 0) + delta_y)
        db.commit()
        db.refresh(table)
        return table

    @staticmethod
    def delete_table(table: EventTable, db: Session) -> List[str]:
        """Delete a table after clearing its seat assignments; returns the unseated attendee ids"""
        seated = db.query(Attendee).filter(Attendee.table_assignment == table.id).all()
        for attendee in seated:
            attendee.table_assignment = None
        db.flush()
        db.delete(table)
        db.commit()
        logger.info(f"Deleted table {table.id}, unseated {len(seated)} attendees")
        return [attendee.id for attendee in seated]

    @staticmethod
    def validate_table_capacity(
        table: EventTable,
        exclude_attendee_id: Optional[str],
        db: Session
    ) -> bool:
        """Validate that a table has a free seat"""
        query = db.query(func.count(Attendee.id)).filter(Attendee.table_assignment == table.id)
        if exclude_attendee_id:
            query = query.filter(Attendee.id != exclude_attendee_id)
        return query.scalar() < table.capacity

    @staticmethod
    def assign_seat(attendee: Attendee, table_id: Optional[str], db: Session) -> Attendee:
        """Seat an attendee at a table of the same event, or clear the seat"""
        if table_id is not None:
            table = SeatingService.get_table(table_id, db)
            if not table or table.event_id != attendee.event_id:
                raise SeatingError("Table does not belong to the attendee's event", "table_event_mismatch")
            if attendee.table_assignment != table.id and not SeatingService.validate_table_capacity(table, attendee.id, db):
                raise SeatingError(f"Table {table.table_number} is full ({table.capacity} seats)", "table_full")

        attendee.table_assignment = table_id
        db.commit()
        db.refresh(attendee)
        return attendee

    @staticmethod
    def auto_assign(event_id: str, db: Session, rng: Optional[random.Random] = None) -> AllocationResult:
        """Randomly seat every unassigned attendee of an event where room allows"""
        tables = SeatingService.list_tables(event_id, db)
        unassigned = db.query(Attendee).filter(
            Attendee.event_id == event_id,
            Attendee.table_assignment.is_(None)
        ).all()

        if not tables or not unassigned:
            return AllocationResult(unassigned=[a.id for a in unassigned])

        occupancy = SeatingService.occupancy(event_id, db)
        slots = [TableSlot(t.id, t.capacity, occupancy.get(t.id, 0)) for t in tables]
        by_id = {a.id: a for a in unassigned}

        def persist(attendee_id: str, table_id: str) -> None:
            attendee = by_id[attendee_id]
            attendee.table_assignment = table_id
            try:
                db.commit()
            except Exception:
                db.rollback()
                raise

        result = SeatAllocator(rng).allocate(slots, list(by_id), persist)
        logger.info(
            f"Auto-assigned {result.assigned_count} attendees for event {event_id}; "
            f"{len(result.unassigned)} left without a seat, {len(result.failed)} failed"
        )
        return result
