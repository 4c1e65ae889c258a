"""
In-process row change feed.

Callers publish INSERT/UPDATE/DELETE notifications carrying the changed row;
subscribers register per table (or "*" for every table) and receive the
change itself, so they can merge it instead of reloading everything.
"""

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

ALL_TABLES = "*"


@dataclass
class RowChange:
    table: str
    event: str  # INSERT, UPDATE, DELETE
    record: Dict[str, Any]
    company_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_message(self) -> Dict[str, Any]:
        return {
            "type": "change",
            "table": self.table,
            "event": self.event,
            "record": self.record,
            "timestamp": self.timestamp.isoformat(),
        }


Subscriber = Callable[[RowChange], Union[None, Awaitable[None]]]


def row_to_dict(row: Any, exclude: tuple = ("qr_code", "registration_qr", "password_hash")) -> Dict[str, Any]:
    """Column values of an ORM row, JSON friendly, without bulky/secret columns"""
    data = {}
    for column in row.__table__.columns:
        if column.name in exclude:
            continue
        value = getattr(row, column.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        data[column.name] = value
    return data


def owner_company_id(row: Any) -> Optional[str]:
    """Company that owns a row, following its parents up to the event"""
    if row is None:
        return None
    if hasattr(row, "company_id"):
        return row.company_id
    for parent in ("event", "session", "photo"):
        if hasattr(row, parent):
            return owner_company_id(getattr(row, parent))
    return None


class ChangeFeed:
    """Subscribe/callback registry for row changes"""

    def __init__(self):
        self.subscribers: Dict[str, List[Subscriber]] = {}

    def subscribe(self, table: str, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it"""
        self.subscribers.setdefault(table, []).append(callback)

        def unsubscribe():
            callbacks = self.subscribers.get(table, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self.subscribers.pop(table, None)

        return unsubscribe

    async def publish(self, change: RowChange) -> None:
        """Deliver a change to the table's subscribers and the wildcard ones"""
        callbacks = list(self.subscribers.get(change.table, [])) + list(self.subscribers.get(ALL_TABLES, []))
        for callback in callbacks:
            try:
                result = callback(change)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Change subscriber failed for {change.table}/{change.event}: {e}")

    async def publish_row(
        self,
        table: str,
        event: str,
        row: Any,
        record: Optional[Dict[str, Any]] = None,
        company_id: Optional[str] = None,
    ) -> None:
        await self.publish(RowChange(
            table=table,
            event=event,
            record=record if record is not None else row_to_dict(row),
            company_id=company_id or owner_company_id(row),
        ))


# Global change feed instance
change_feed = ChangeFeed()
