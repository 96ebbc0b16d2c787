"""
Realtime change feed: row-level change events delivered through queues.

The hosted backend pushes insert/update/delete events per table. A
transport (the platform's realtime client, or the in-memory store) calls
``ChangeFeed.publish``; each ``Subscription`` buffers the events that match
its table and filter. Consumers drain their subscription and run each
event through ``decide`` before touching local state, so the "don't
clobber unsaved edits" rule lives in one pure function.

Usage:
    feed = ChangeFeed()
    sub = feed.subscribe("trainer_bookings", "trainer_id=eq.abc")
    ...
    for event in sub.drain():
        if decide(event, editor.has_unsaved_changes) == RealtimeDecision.REFETCH:
            board.refresh()
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class RealtimeDecision(str, Enum):
    REFETCH = "refetch"
    IGNORE = "ignore"


@dataclass(frozen=True)
class ChangeEvent:
    """Immutable record of one row change."""

    table: str
    event_type: ChangeType
    new: Mapping[str, Any] = field(default_factory=dict)
    old: Mapping[str, Any] = field(default_factory=dict)
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "new", MappingProxyType(dict(self.new)))
        object.__setattr__(self, "old", MappingProxyType(dict(self.old)))

    @property
    def row(self) -> Mapping[str, Any]:
        """The row the event is about: ``old`` for deletes, ``new`` otherwise."""
        return self.old if self.event_type == ChangeType.DELETE else self.new


def parse_filter(expression: Optional[str]) -> Optional[tuple[str, str]]:
    """Parse a ``column=eq.value`` realtime filter into ``(column, value)``."""
    if not expression:
        return None
    column, sep, rest = expression.partition("=")
    if not sep or not rest.startswith("eq."):
        raise ValueError(f"Unsupported realtime filter: {expression!r}")
    return column.strip(), rest[len("eq."):]


class Subscription:
    """Buffered view of the feed restricted to one table and filter."""

    def __init__(self, table: str, filter_expression: Optional[str] = None) -> None:
        self.table = table
        self.filter_expression = filter_expression
        self._filter = parse_filter(filter_expression)
        self._queue: "queue.Queue[ChangeEvent]" = queue.Queue()
        self.active = True

    def matches(self, event: ChangeEvent) -> bool:
        if not self.active or event.table != self.table:
            return False
        if self._filter is None:
            return True
        column, value = self._filter
        return str(event.row.get(column)) == value

    def put(self, event: ChangeEvent) -> None:
        self._queue.put(event)

    def drain(self) -> list[ChangeEvent]:
        """Return every queued event without blocking."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def pending(self) -> int:
        return self._queue.qsize()


class ChangeFeed:
    """Fan-out of change events to matching subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, table: str, filter_expression: Optional[str] = None) -> Subscription:
        subscription = Subscription(table, filter_expression)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s (%s)", table, filter_expression or "all rows")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event; returns how many subscriptions received it."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]
        for subscription in targets:
            subscription.put(event)
        return len(targets)


def should_apply_remote(has_unsaved_changes: bool) -> bool:
    """Remote state may replace local state only when nothing is unsaved."""
    return not has_unsaved_changes


def decide(event: ChangeEvent, has_unsaved_changes: bool) -> RealtimeDecision:
    """Decide whether a change event should trigger a re-fetch."""
    if should_apply_remote(has_unsaved_changes):
        return RealtimeDecision.REFETCH
    logger.debug(
        "Ignoring %s on %s: local changes not yet saved", event.event_type.value, event.table
    )
    return RealtimeDecision.IGNORE
