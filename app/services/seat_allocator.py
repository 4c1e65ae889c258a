"""
Random seat allocation
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TableSlot:
    """A table as seen by the allocator: capacity and occupants so far"""
    table_id: str
    capacity: int
    occupied: int = 0

    @property
    def has_room(self) -> bool:
        return self.occupied < self.capacity


@dataclass
class AllocationResult:
    assigned: List[Tuple[str, str]] = field(default_factory=list)  # (attendee_id, table_id)
    failed: List[Tuple[str, str]] = field(default_factory=list)  # (attendee_id, error message)
    unassigned: List[str] = field(default_factory=list)

    @property
    def assigned_count(self) -> int:
        return len(self.assigned)


class SeatAllocator:
    """Distributes unseated attendees over tables with spare capacity.

    The attendee order is shuffled, then each attendee goes to a table picked
    uniformly among those whose running tally is still below capacity. The
    tally is kept locally and never re-read, so it can drift from the store
    if someone else seats people at the same time.

    ``persist`` is called once per assignment, right away. If it raises, the
    failure is recorded, the seat is released again and the loop goes on;
    earlier assignments stay in place.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def allocate(
        self,
        tables: Sequence[TableSlot],
        attendee_ids: Sequence[str],
        persist: Callable[[str, str], None],
    ) -> AllocationResult:
        result = AllocationResult()
        tally: Dict[str, TableSlot] = {
            t.table_id: TableSlot(t.table_id, t.capacity, t.occupied) for t in tables
        }

        queue = list(attendee_ids)
        self.rng.shuffle(queue)

        for index, attendee_id in enumerate(queue):
            available = [slot for slot in tally.values() if slot.has_room]
            if not available:
                result.unassigned.extend(queue[index:])
                break

            slot = self.rng.choice(available)
            slot.occupied += 1
            try:
                persist(attendee_id, slot.table_id)
            except Exception as e:
                slot.occupied -= 1
                logger.warning(f"Could not seat attendee {attendee_id} at table {slot.table_id}: {e}")
                result.failed.append((attendee_id, str(e)))
                continue

            result.assigned.append((attendee_id, slot.table_id))

        return result
