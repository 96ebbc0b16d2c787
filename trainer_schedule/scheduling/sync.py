"""
Optimistic update tracking and reconciliation against remote state.

Each locally held entity is in one of three states: an optimistic change
not yet confirmed (PENDING_LOCAL), a copy matching the last remote read or
write (CONFIRMED_REMOTE), or a change the backend rejected (FAILED).
``reconcile`` merges a fresh remote read into the local map: remote wins
unless the local entry is PENDING_LOCAL.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncState(str, Enum):
    PENDING_LOCAL = "pending_local"
    CONFIRMED_REMOTE = "confirmed_remote"
    FAILED = "failed"


@dataclass
class Tracked(Generic[T]):
    """An entity plus where it stands relative to the backend."""

    entity: T
    state: SyncState = SyncState.CONFIRMED_REMOTE
    confirmed: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def from_remote(cls, entity: T) -> "Tracked[T]":
        return cls(entity=entity, state=SyncState.CONFIRMED_REMOTE, confirmed=entity)

    def mark_pending(self, entity: T) -> None:
        """Show an optimistic change while the remote write is in flight."""
        self.entity = entity
        self.state = SyncState.PENDING_LOCAL
        self.error = None

    def confirm(self, entity: T) -> None:
        self.entity = entity
        self.confirmed = entity
        self.state = SyncState.CONFIRMED_REMOTE
        self.error = None

    def fail(self, error: str) -> None:
        """Record a rejected write and roll back to the last confirmed copy."""
        if self.confirmed is not None:
            self.entity = self.confirmed
        self.state = SyncState.FAILED
        self.error = error


def _default_key(entity: Any) -> str:
    return str(entity.id)


def reconcile(
    local: Mapping[str, Tracked[T]],
    remote: Iterable[T],
    key: Callable[[T], str] = _default_key,
) -> dict[str, Tracked[T]]:
    """Merge a remote read into local tracked entities.

    Remote order is kept; local-only PENDING_LOCAL entries are appended.
    Local-only confirmed or failed entries were removed remotely and are
    dropped.
    """
    merged: dict[str, Tracked[T]] = {}
    for entity in remote:
        entity_key = key(entity)
        existing = local.get(entity_key)
        if existing is not None and existing.state == SyncState.PENDING_LOCAL:
            existing.confirmed = entity
            merged[entity_key] = existing
        else:
            merged[entity_key] = Tracked.from_remote(entity)

    for entity_key, tracked in local.items():
        if entity_key not in merged and tracked.state == SyncState.PENDING_LOCAL:
            merged[entity_key] = tracked

    dropped = [k for k in local if k not in merged]
    if dropped:
        logger.debug("Reconcile dropped %d entities removed remotely", len(dropped))
    return merged
