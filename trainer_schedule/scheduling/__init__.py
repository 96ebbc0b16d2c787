from trainer_schedule.scheduling.availability_editor import AvailabilityEditor
from trainer_schedule.scheduling.booking_state_machine import (
    BookingStateMachine,
    BookingTrigger,
    InvalidTransitionError,
)
from trainer_schedule.scheduling.cache import TTLCache
from trainer_schedule.scheduling.schedule_builder import ScheduleBuilder
from trainer_schedule.scheduling.sync import SyncState, Tracked, reconcile
from trainer_schedule.scheduling.time_range import SelectionOutcome, TimeRangeSelector

__all__ = [
    "AvailabilityEditor",
    "ScheduleBuilder",
    "TimeRangeSelector",
    "SelectionOutcome",
    "BookingStateMachine",
    "BookingTrigger",
    "InvalidTransitionError",
    "TTLCache",
    "SyncState",
    "Tracked",
    "reconcile",
]
