"""
Schedule builder: typed slots (sessions, breaks, consultations, group
classes) arranged per weekday and saved as one JSON blob on the trainer's
profile.

Slots live only in memory until ``save`` writes the whole day map.
Loading accepts both stored shapes: the array form
``[{"day": "Mon", "slots": [...]}, ...]`` and the object form
``{"Mon": [...], ...}``.
"""

import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional

from pydantic import ValidationError

from trainer_schedule.backend.base import RemoteStore
from trainer_schedule.backend.errors import BackendError, NotFoundError
from trainer_schedule.config import settings
from trainer_schedule.scheduling.results import ActionResult, failed, succeeded
from trainer_schedule.schemas.availability_schema import (
    RecurringRule,
    ScheduleSlot,
    ScheduleSlotDraft,
    SlotType,
)
from trainer_schedule.utils import add_minutes, parse_wall_clock

logger = logging.getLogger(__name__)

PROFILE_TABLE = "trainer_profiles"
DAY_KEYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

DEFAULT_LABELS: dict[SlotType, str] = {
    SlotType.SESSION: "Training Session",
    SlotType.BREAK: "Break",
    SlotType.CONSULTATION: "Consultation",
    SlotType.GROUP: "Group Session",
    SlotType.AVAILABLE: "Available",
}

DEFAULT_TRAINER_PROFILE: dict[str, Any] = {
    "specialty": "Personal Training",
    "bio": None,
    "hourly_rate": 50,
    "rating": 5,
    "availability": {},
    "experience_years": 1,
    "certifications": [],
    "is_available": True,
}


def default_label(slot_type: SlotType) -> str:
    return DEFAULT_LABELS.get(slot_type, "Available")


def end_time_for(start: str, duration_minutes: Optional[int] = None) -> str:
    """End of a slot starting at ``start`` and lasting ``duration_minutes``."""
    return add_minutes(start, duration_minutes or settings.schedule.default_session_minutes)


def week_dates(reference: date) -> list[date]:
    """Monday-to-Sunday dates of the week containing ``reference``."""
    monday = reference - timedelta(days=reference.weekday())
    return [monday + timedelta(days=offset) for offset in range(len(DAY_KEYS))]


def _start_minutes(slot: ScheduleSlot) -> int:
    try:
        return parse_wall_clock(slot.start)
    except ValueError:
        return 0


class ScheduleBuilder:
    """In-memory day map of ScheduleSlots for one trainer."""

    def __init__(
        self, store: RemoteStore, clock: Callable[[], float] = time.time
    ) -> None:
        self.store = store
        self._clock = clock
        self.schedule: dict[str, list[ScheduleSlot]] = {day: [] for day in DAY_KEYS}
        self.has_unsaved_changes = False
        self.last_saved: Optional[datetime] = None
        self.saving = False

    def _check_day(self, day: str) -> None:
        if day not in self.schedule:
            raise ValueError(f"Unknown day: {day!r}. Expected one of {DAY_KEYS}")

    def _new_id(self, day: str, start: str) -> str:
        base = f"{day}-{start}-{int(self._clock() * 1000)}"
        existing = {s.id for slots in self.schedule.values() for s in slots}
        slot_id, suffix = base, 1
        while slot_id in existing:
            slot_id = f"{base}-{suffix}"
            suffix += 1
        return slot_id

    # --- Local edits ---

    def add_slot(
        self,
        day: str,
        start: str,
        end: str,
        slot_type: SlotType = SlotType.AVAILABLE,
        duration_minutes: int = 60,
    ) -> ScheduleSlot:
        self._check_day(day)
        slot = ScheduleSlot(
            id=self._new_id(day, start),
            start=start,
            end=end,
            duration_minutes=duration_minutes,
            type=slot_type,
            label=default_label(slot_type),
        )
        self.schedule[day].append(slot)
        self.has_unsaved_changes = True
        logger.debug("Added %s slot %s on %s", slot_type.value, slot.id, day)
        return slot

    def add_advanced_slot(self, day: str, draft: ScheduleSlotDraft) -> ScheduleSlot:
        """Add a slot from the advanced form, including recurrence and notes."""
        self._check_day(day)
        recurring = None
        if draft.is_recurring:
            recurring = RecurringRule(
                pattern=draft.recurring_pattern,
                days=list(draft.recurring_days),
                end_date=draft.recurring_end_date or None,
            )
        slot = ScheduleSlot(
            id=self._new_id(day, draft.start),
            start=draft.start,
            end=draft.end or end_time_for(draft.start, draft.duration_minutes),
            duration_minutes=draft.duration_minutes,
            type=draft.type,
            label=draft.label or default_label(draft.type),
            notes=draft.notes or None,
            max_clients=draft.max_clients,
            recurring=recurring,
            is_blocked=draft.type != SlotType.AVAILABLE,
        )
        self.schedule[day].append(slot)
        self.has_unsaved_changes = True
        return slot

    def remove_slot(self, day: str, slot_id: str) -> bool:
        self._check_day(day)
        before = len(self.schedule[day])
        self.schedule[day] = [s for s in self.schedule[day] if s.id != slot_id]
        removed = len(self.schedule[day]) != before
        if removed:
            self.has_unsaved_changes = True
        return removed

    def clear_day(self, day: str) -> None:
        self._check_day(day)
        self.schedule[day] = []
        self.has_unsaved_changes = True

    def reset(self) -> None:
        """Empty every day. Nothing is persisted until ``save``."""
        self.schedule = {day: [] for day in DAY_KEYS}
        self.has_unsaved_changes = True

    def sorted_schedule(self) -> dict[str, list[ScheduleSlot]]:
        """Each day's slots ordered by start time."""
        return {
            day: sorted(self.schedule.get(day, []), key=_start_minutes) for day in DAY_KEYS
        }

    # --- Remote load / save ---

    def ensure_trainer_profile(self, trainer_id: str) -> None:
        """Create a default trainer profile row if the trainer has none yet."""
        try:
            self.store.select(PROFILE_TABLE, "id", filters={"id": trainer_id}, single=True)
        except NotFoundError:
            try:
                self.store.insert(PROFILE_TABLE, {"id": trainer_id, **DEFAULT_TRAINER_PROFILE})
                logger.info("Created trainer profile for %s", trainer_id)
            except BackendError as exc:
                logger.error("Error creating trainer profile for %s: %s", trainer_id, exc)

    def _parse_slot(self, day: str, raw: Any) -> Optional[ScheduleSlot]:
        if not isinstance(raw, dict) or not raw.get("start"):
            return None
        duration = raw.get("duration") or raw.get("duration_minutes") or 60
        slot_type = raw.get("type") or SlotType.AVAILABLE.value
        data = dict(raw)
        data.pop("duration_minutes", None)
        data.update(
            id=raw.get("id") or f"{day}-{raw['start']}-{int(self._clock() * 1000)}",
            duration=duration,
            type=slot_type,
        )
        try:
            if not raw.get("end"):
                data["end"] = end_time_for(raw["start"], duration)
            slot = ScheduleSlot.model_validate(data)
        except (ValidationError, ValueError) as exc:
            logger.warning("Skipping malformed slot on %s: %s", day, exc)
            return None
        if not slot.label:
            slot = slot.model_copy(update={"label": default_label(slot.type)})
        return slot

    def _parse_availability(self, availability: Any) -> dict[str, list[ScheduleSlot]]:
        schedule: dict[str, list[ScheduleSlot]] = {day: [] for day in DAY_KEYS}
        if isinstance(availability, list):
            for item in availability:
                if isinstance(item, dict) and item.get("day") in schedule:
                    for raw in item.get("slots") or []:
                        slot = self._parse_slot(item["day"], raw)
                        if slot is not None:
                            schedule[item["day"]].append(slot)
        elif isinstance(availability, dict):
            for day in DAY_KEYS:
                for raw in availability.get(day) or []:
                    slot = self._parse_slot(day, raw)
                    if slot is not None:
                        schedule[day].append(slot)
        return schedule

    def load(self, trainer_id: str) -> ActionResult:
        try:
            self.ensure_trainer_profile(trainer_id)
            row = self.store.select(
                PROFILE_TABLE, "availability", filters={"id": trainer_id}, single=True
            )
        except BackendError as exc:
            logger.error("Error fetching schedule for %s: %s", trainer_id, exc)
            self.schedule = {day: [] for day in DAY_KEYS}
            return failed("Could not load your schedule. Please try again.")

        self.schedule = self._parse_availability(row.get("availability"))
        self.last_saved = datetime.now(timezone.utc)
        self.has_unsaved_changes = False
        return succeeded("Schedule loaded.")

    def to_payload(self) -> dict[str, list[dict[str, Any]]]:
        """The day-keyed blob stored in ``trainer_profiles.availability``."""
        return {
            day: [
                slot.model_dump(by_alias=True, exclude_none=True, mode="json")
                for slot in self.schedule[day]
            ]
            for day in DAY_KEYS
        }

    def save(self, trainer_id: str) -> ActionResult:
        if self.saving:
            return failed("A save is already in progress.")
        self.saving = True
        try:
            updated = self.store.update(
                PROFILE_TABLE, {"availability": self.to_payload()}, filters={"id": trainer_id}
            )
        except BackendError as exc:
            logger.error("Error saving schedule for %s: %s", trainer_id, exc)
            return failed("Failed to save schedule. Please try again.")
        finally:
            self.saving = False

        if not updated:
            logger.error("No trainer profile %s to save the schedule to", trainer_id)
            return failed("Failed to save schedule. Trainer profile not found.")

        self.last_saved = datetime.now(timezone.utc)
        self.has_unsaved_changes = False
        logger.info("Schedule saved for %s", trainer_id)
        return succeeded("Schedule saved successfully!")
