"""
In-memory remote store.

Mirrors the hosted backend's table and RPC surface closely enough to run
the console demo and the test suite without network access. Every write
is published on the attached ChangeFeed, the way the hosted realtime
channel would report it.
"""

import copy
import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from trainer_schedule.backend.base import Filters, Ordering, Row
from trainer_schedule.backend.errors import BackendError, NotFoundError
from trainer_schedule.backend.realtime import ChangeEvent, ChangeFeed, ChangeType

logger = logging.getLogger(__name__)


def _matches(row: Row, filters: Optional[Filters]) -> bool:
    if not filters:
        return True
    return all(row.get(column) == value for column, value in filters.items())


def _project(row: Row, columns: str) -> Row:
    if columns.strip() == "*":
        return copy.deepcopy(row)
    wanted = [c.strip() for c in columns.split(",") if c.strip()]
    return {c: copy.deepcopy(row.get(c)) for c in wanted}


def _sort(rows: list[Row], order: Optional[Ordering]) -> list[Row]:
    if not order:
        return rows
    ordered = list(rows)
    # Stable sorts applied from the least significant key
    for column, ascending in reversed(list(order)):
        ordered.sort(
            key=lambda r: (
                r.get(column) is None,
                "" if r.get(column) is None else r.get(column),
            ),
            reverse=not ascending,
        )
    return ordered


class InMemoryStore:
    """Dict-of-tables store implementing the RemoteStore operations."""

    def __init__(self, feed: Optional[ChangeFeed] = None) -> None:
        self.feed = feed or ChangeFeed()
        self._tables: dict[str, list[Row]] = defaultdict(list)
        self._rpcs: dict[str, Callable[..., Any]] = {}
        self._failures: list[tuple[str, Optional[str], BackendError]] = []

    def register_rpc(self, name: str, func: Callable[..., Any]) -> None:
        """Register a callable to answer ``rpc(name, params)``."""
        self._rpcs[name] = func

    def fail_next(
        self, operation: str, table: Optional[str] = None, error: Optional[BackendError] = None
    ) -> None:
        """Make the next matching operation raise, as an unreachable backend would."""
        self._failures.append(
            (operation, table, error or BackendError("Network request failed", status=503))
        )

    def _check_failure(self, operation: str, table: Optional[str]) -> None:
        for index, (op, tbl, error) in enumerate(self._failures):
            if op == operation and (tbl is None or tbl == table):
                del self._failures[index]
                raise error

    def rows(self, table: str) -> list[Row]:
        """Snapshot of a table, for assertions and debugging."""
        return copy.deepcopy(self._tables[table])

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Filters] = None,
        order: Optional[Ordering] = None,
        single: bool = False,
    ) -> Union[Row, list[Row]]:
        self._check_failure("select", table)
        matched = [r for r in self._tables[table] if _matches(r, filters)]
        matched = _sort(matched, order)
        if single:
            if len(matched) != 1:
                raise NotFoundError(
                    f"Expected one row from {table}, found {len(matched)}", status=406
                )
            return _project(matched[0], columns)
        return [_project(r, columns) for r in matched]

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        self._check_failure("insert", table)
        stored = copy.deepcopy(dict(row))
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        if any(r.get("id") == stored["id"] for r in self._tables[table]):
            raise BackendError(
                f"duplicate key value violates unique constraint on {table}",
                code="23505",
                status=409,
            )
        self._tables[table].append(stored)
        logger.debug("Inserted into %s: %s", table, stored["id"])
        self.feed.publish(ChangeEvent(table, ChangeType.INSERT, new=copy.deepcopy(stored)))
        return copy.deepcopy(stored)

    def update(self, table: str, values: Mapping[str, Any], filters: Filters) -> list[Row]:
        self._check_failure("update", table)
        if not filters:
            raise BackendError("UPDATE requires a WHERE clause", code="21000", status=400)
        updated = []
        for row in self._tables[table]:
            if _matches(row, filters):
                old = copy.deepcopy(row)
                row.update(copy.deepcopy(dict(values)))
                updated.append(copy.deepcopy(row))
                self.feed.publish(
                    ChangeEvent(table, ChangeType.UPDATE, new=copy.deepcopy(row), old=old)
                )
        return updated

    def delete(self, table: str, filters: Filters) -> list[Row]:
        self._check_failure("delete", table)
        if not filters:
            raise BackendError("DELETE requires a WHERE clause", code="21000", status=400)
        kept, removed = [], []
        for row in self._tables[table]:
            (removed if _matches(row, filters) else kept).append(row)
        self._tables[table] = kept
        for row in removed:
            self.feed.publish(ChangeEvent(table, ChangeType.DELETE, old=copy.deepcopy(row)))
        return copy.deepcopy(removed)

    def rpc(self, function: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        self._check_failure("rpc", function)
        if function not in self._rpcs:
            raise BackendError(
                f"Could not find the function public.{function}", code="PGRST202", status=404
            )
        return self._rpcs[function](**dict(params or {}))

    def reset(self) -> None:
        """Clear all tables and pending failures. Used by test fixtures for isolation."""
        self._tables.clear()
        self._failures.clear()
