"""
Weekly availability editor for trainers.

Holds seven day-buckets of TimeSlot windows, edited locally and saved back
to the trainer's profile row as one flat ``availability`` array.

The flat array carries no day tag, so loading spreads the slots evenly
over the week, ``ceil(n / 7)`` per day in order. That placement is a
placeholder until availability is stored per day: a week whose days hold
different slot counts does not come back the way it was saved. Blobs that
are already keyed by day (the schedule builder's format) keep their days.

Usage:
    editor = AvailabilityEditor(store)
    editor.load_availability(trainer_id)
    editor.add_day_slot(1)                  # Tuesday, 09:00-10:00
    editor.select_time(1, "10am")
    editor.select_time(1, "11am")           # Tuesday, 10am-11am
    result = editor.save_availability(trainer_id)
"""

import math
from typing import Any, Optional

from trainer_schedule.backend.base import RemoteStore
from trainer_schedule.backend.errors import BackendError
from trainer_schedule.backend.realtime import (
    ChangeEvent,
    ChangeFeed,
    RealtimeDecision,
    Subscription,
    decide,
)
from trainer_schedule.config import settings
from trainer_schedule.logging_context import get_user_logger, set_user_id
from trainer_schedule.scheduling.results import ActionResult, failed, succeeded
from trainer_schedule.scheduling.time_range import (
    SelectionOutcome,
    SelectionResult,
    TimeRangeSelector,
)
from trainer_schedule.schemas.availability_schema import TimeSlot, TrainerAvailability
from trainer_schedule.services.backup import LocalBackup
from trainer_schedule.utils import parse_wall_clock

logger = get_user_logger(__name__)

PROFILE_TABLE = "trainer_profiles"
DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
EDITABLE_FIELDS = ("start_time", "end_time")


def empty_week() -> list[list[TimeSlot]]:
    return [[] for _ in DAYS_OF_WEEK]


def day_index_for(name: str) -> Optional[int]:
    """Map ``Mon``, ``monday`` or ``Monday`` to its bucket index."""
    prefix = str(name).strip()[:3].lower()
    for index, day in enumerate(DAYS_OF_WEEK):
        if day[:3].lower() == prefix:
            return index
    return None


def distribute_evenly(slots: list[TimeSlot]) -> list[list[TimeSlot]]:
    """Spread a flat slot list over the week, ``ceil(n / 7)`` per day."""
    days = empty_week()
    if not slots:
        return days
    per_day = math.ceil(len(slots) / len(DAYS_OF_WEEK))
    for index in range(len(DAYS_OF_WEEK)):
        days[index] = list(slots[index * per_day:(index + 1) * per_day])
    return days


def flatten(days: list[list[TimeSlot]]) -> list[TimeSlot]:
    """Concatenate the day-buckets in day order."""
    return [slot for day in days for slot in day]


def find_overlaps(slots: list[TimeSlot]) -> list[tuple[int, int]]:
    """Index pairs of slots within one day whose windows overlap."""
    windows = []
    for index, slot in enumerate(slots):
        try:
            windows.append(
                (index, parse_wall_clock(slot.start_time), parse_wall_clock(slot.end_time))
            )
        except ValueError:
            continue
    overlaps = []
    for i, (a, a_start, a_end) in enumerate(windows):
        for b, b_start, b_end in windows[i + 1:]:
            if a_start < b_end and b_start < a_end:
                overlaps.append((a, b))
    return overlaps


def find_inverted(slots: list[TimeSlot]) -> list[int]:
    """Indices of slots whose end is not after their start."""
    inverted = []
    for index, slot in enumerate(slots):
        try:
            if parse_wall_clock(slot.end_time) <= parse_wall_clock(slot.start_time):
                inverted.append(index)
        except ValueError:
            continue
    return inverted


def _slot_from_raw(raw: Any) -> Optional[TimeSlot]:
    if not isinstance(raw, dict):
        return None
    start = raw.get("start_time") or raw.get("start")
    end = raw.get("end_time") or raw.get("end")
    if not start or not end:
        return None
    return TimeSlot(start_time=str(start), end_time=str(end))


def _parse_slots(raw_slots: Any) -> list[TimeSlot]:
    if not isinstance(raw_slots, list):
        return []
    slots = [_slot_from_raw(raw) for raw in raw_slots]
    skipped = sum(1 for s in slots if s is None)
    if skipped:
        logger.warning("Skipped %d malformed availability entries", skipped)
    return [s for s in slots if s is not None]


def days_from_payload(availability: Any) -> list[list[TimeSlot]]:
    """Build day-buckets from any stored availability shape."""
    days = empty_week()
    if isinstance(availability, dict):
        for key, raw_slots in availability.items():
            index = day_index_for(key)
            if index is None:
                logger.warning("Ignoring availability for unknown day %r", key)
                continue
            days[index].extend(_parse_slots(raw_slots))
        return days

    if isinstance(availability, list):
        day_tagged = availability and all(
            isinstance(item, dict) and "day" in item and "slots" in item
            for item in availability
        )
        if day_tagged:
            for item in availability:
                index = day_index_for(item["day"])
                if index is not None:
                    days[index].extend(_parse_slots(item["slots"]))
            return days
        return distribute_evenly(_parse_slots(availability))

    return days


class AvailabilityEditor:
    """
    Local editing state for one trainer's weekly availability.

    Remote failures never raise out of ``load_availability`` or
    ``save_availability``: they come back as a failed ActionResult, the
    message the app shows in its alert. Nothing is retried.
    """

    def __init__(
        self,
        store: RemoteStore,
        backup: Optional[LocalBackup] = None,
        grid: Optional[list[str]] = None,
    ) -> None:
        self.store = store
        self.backup = backup
        self.grid = grid
        self.days: list[list[TimeSlot]] = empty_week()
        self.is_available = True
        self.has_unsaved_changes = False
        self.loading = False
        self.saving = False
        self._selectors: dict[int, TimeRangeSelector] = {}

    def _check_day(self, day_index: int) -> None:
        if not 0 <= day_index < len(DAYS_OF_WEEK):
            raise ValueError(f"Unknown day index: {day_index}")

    def _touch(self) -> None:
        self.has_unsaved_changes = True

    def day_map(self) -> dict[str, list[dict[str, str]]]:
        """Day name -> serialised slots, the shape written to the backup."""
        return {
            DAYS_OF_WEEK[i]: [slot.model_dump() for slot in day]
            for i, day in enumerate(self.days)
        }

    def slot_count(self, day_index: int) -> int:
        self._check_day(day_index)
        return len(self.days[day_index])

    def all_slots(self) -> list[TimeSlot]:
        return flatten(self.days)

    # --- Remote load / save ---

    def load_availability(self, trainer_id: str) -> ActionResult:
        """Fetch the trainer's availability and replace local state."""
        set_user_id(trainer_id)
        self.loading = True
        try:
            row = self.store.select(
                PROFILE_TABLE,
                "availability, is_available",
                filters={"id": trainer_id},
                single=True,
            )
        except BackendError as exc:
            logger.error("Failed to load availability for %s: %s", trainer_id, exc)
            return self._restore_after_failure(trainer_id)
        finally:
            self.loading = False

        self.days = days_from_payload(row.get("availability"))
        self.is_available = bool(row.get("is_available", True))
        self.has_unsaved_changes = False
        self._selectors.clear()
        if self.backup is not None:
            self.backup.save(trainer_id, self.day_map())
        logger.info(
            "Loaded %d availability slots for %s", len(self.all_slots()), trainer_id
        )
        return succeeded("Availability loaded.")

    def _restore_after_failure(self, trainer_id: str) -> ActionResult:
        restored = self.backup.load(trainer_id) if self.backup is not None else None
        self._selectors.clear()
        if restored is not None:
            self.days = days_from_payload(restored)
            self.has_unsaved_changes = True
            logger.warning("Showing backed-up availability for %s", trainer_id)
            return failed(
                "Could not load your availability. Showing your last saved copy; "
                "save again to keep it."
            )
        self.days = empty_week()
        self.has_unsaved_changes = False
        return failed("Could not load your availability. Please try again.")

    def save_availability(self, trainer_id: str) -> ActionResult:
        """Write the flattened week back to the trainer's profile."""
        set_user_id(trainer_id)
        if self.saving:
            return failed("A save is already in progress.")

        for index, day in enumerate(self.days):
            for position in find_inverted(day):
                logger.warning(
                    "%s slot %d ends before it starts", DAYS_OF_WEEK[index], position
                )
            for a, b in find_overlaps(day):
                logger.warning(
                    "%s slots %d and %d overlap", DAYS_OF_WEEK[index], a, b
                )

        payload = TrainerAvailability(
            availability=self.all_slots(), is_available=self.is_available
        ).model_dump()

        self.saving = True
        try:
            updated = self.store.update(PROFILE_TABLE, payload, filters={"id": trainer_id})
        except BackendError as exc:
            logger.error("Failed to save availability for %s: %s", trainer_id, exc)
            return failed("Failed to save availability. Please try again.")
        finally:
            self.saving = False

        if not updated:
            logger.error("No trainer profile to update for %s", trainer_id)
            return failed("Failed to save availability. Trainer profile not found.")

        self.has_unsaved_changes = False
        logger.info(
            "Saved %d availability slots for %s", len(payload["availability"]), trainer_id
        )
        return succeeded("Availability saved successfully!")

    # --- Local edits ---

    def add_day_slot(self, day_index: int) -> TimeSlot:
        """Append the default 09:00-10:00 slot to a day."""
        self._check_day(day_index)
        slot = TimeSlot(
            start_time=settings.schedule.default_slot_start,
            end_time=settings.schedule.default_slot_end,
        )
        self.days[day_index].append(slot)
        self._touch()
        logger.debug("Added default slot to %s", DAYS_OF_WEEK[day_index])
        return slot

    def update_day_slot(self, day_index: int, slot_index: int, field: str, value: str) -> bool:
        """Change one field of one slot. Returns False if nothing changed."""
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown slot field: {field}")
        if not 0 <= day_index < len(DAYS_OF_WEEK):
            return False
        day = self.days[day_index]
        if not 0 <= slot_index < len(day):
            return False
        try:
            parse_wall_clock(value)
        except ValueError:
            logger.debug("Rejected %s=%r on %s", field, value, DAYS_OF_WEEK[day_index])
            return False
        day[slot_index] = day[slot_index].model_copy(update={field: value})
        self._touch()
        return True

    def remove_day_slot(self, day_index: int, slot_index: int) -> bool:
        """Remove one slot. Out-of-range indices leave state unchanged."""
        if not 0 <= day_index < len(DAYS_OF_WEEK):
            return False
        day = self.days[day_index]
        if not 0 <= slot_index < len(day):
            return False
        del day[slot_index]
        self._touch()
        logger.debug("Removed slot %d from %s", slot_index, DAYS_OF_WEEK[day_index])
        return True

    def select_time(self, day_index: int, time: str) -> SelectionResult:
        """Feed one tap of the start/end picker for a day."""
        self._check_day(day_index)
        selector = self._selectors.get(day_index)
        if selector is None:
            selector = TimeRangeSelector(self.grid)
            self._selectors[day_index] = selector
        result = selector.tap(time)
        if result.outcome == SelectionOutcome.SLOT_CREATED and result.slot is not None:
            self.days[day_index].append(result.slot)
            self._touch()
        return result

    def selector_for(self, day_index: int) -> Optional[TimeRangeSelector]:
        return self._selectors.get(day_index)

    def set_available(self, is_available: bool) -> None:
        if is_available != self.is_available:
            self.is_available = is_available
            self._touch()

    # --- Realtime ---

    def subscribe(self, feed: ChangeFeed, trainer_id: str) -> Subscription:
        return feed.subscribe(PROFILE_TABLE, f"id=eq.{trainer_id}")

    def handle_change_event(self, event: ChangeEvent, trainer_id: str) -> RealtimeDecision:
        """Re-fetch on a profile change unless local edits are unsaved."""
        if event.table != PROFILE_TABLE or str(event.row.get("id")) != trainer_id:
            return RealtimeDecision.IGNORE
        decision = decide(event, self.has_unsaved_changes)
        if decision == RealtimeDecision.REFETCH:
            self.load_availability(trainer_id)
        return decision

    def process_events(self, subscription: Subscription, trainer_id: str) -> list[RealtimeDecision]:
        return [self.handle_change_event(e, trainer_id) for e in subscription.drain()]
