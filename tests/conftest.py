"""Shared test fixtures and helpers."""

from datetime import datetime, timezone
from typing import Optional

import pytest

from trainer_schedule.backend.memory import InMemoryStore
from trainer_schedule.scheduling.availability_editor import AvailabilityEditor
from trainer_schedule.scheduling.booking_state_machine import BookingStateMachine
from trainer_schedule.schemas.booking_schema import BookingStatus
from trainer_schedule.services.backup import LocalBackup
from trainer_schedule.services.bookings import BOOKINGS_TABLE, BookingService
from trainer_schedule.services.notifications import NotificationService
from trainer_schedule.utils import build_time_grid

TRAINER_ID = "trainer-1"
MEMBER_ID = "member-1"
FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock for TTL and id tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store():
    store = InMemoryStore()
    store.insert(
        "trainer_profiles",
        {"id": TRAINER_ID, "availability": [], "is_available": True},
    )
    return store


@pytest.fixture
def backup(tmp_path):
    return LocalBackup(directory=str(tmp_path / "backups"))


@pytest.fixture
def hourly_grid():
    return build_time_grid(7, 23, 60)


@pytest.fixture
def editor(store, backup, hourly_grid):
    return AvailabilityEditor(store, backup=backup, grid=hourly_grid)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def notifications(store):
    return NotificationService(store)


@pytest.fixture
def booking_service(store, notifications):
    return BookingService(store, notifications, clock=lambda: FIXED_NOW)


@pytest.fixture
def booking_machine():
    return BookingStateMachine()


def make_booking_row(
    booking_id: str,
    status: BookingStatus = BookingStatus.PENDING,
    session_date: str = "2025-03-20",
    start_time: str = "10:00",
    end_time: str = "11:00",
    user_id: str = MEMBER_ID,
    trainer_id: str = TRAINER_ID,
    notes: Optional[str] = None,
) -> dict:
    """Helper to build a trainer_bookings row."""
    return {
        "id": booking_id,
        "user_id": user_id,
        "trainer_id": trainer_id,
        "session_date": session_date,
        "start_time": start_time,
        "end_time": end_time,
        "duration_minutes": 60,
        "status": status.value,
        "notes": notes,
    }


def seed_bookings(store: InMemoryStore, *rows: dict) -> None:
    for row in rows:
        store.insert(BOOKINGS_TABLE, row)
