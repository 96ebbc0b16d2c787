"""
Two-tap time range selection over a fixed time grid.

The first tap picks a start time, the second an end time. An end that is
not strictly after the start is rejected and both picks are cleared, so
the next tap is a start again.

Usage:
    selector = TimeRangeSelector()
    selector.tap("9am")             # START_SET
    result = selector.tap("11am")   # SLOT_CREATED, result.slot == 9am-11am
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from trainer_schedule.config import settings
from trainer_schedule.schemas.availability_schema import TimeSlot
from trainer_schedule.utils import build_time_grid, parse_wall_clock

logger = logging.getLogger(__name__)


class SelectionPhase(str, Enum):
    AWAITING_START = "awaiting_start"
    AWAITING_END = "awaiting_end"


class SelectionOutcome(str, Enum):
    START_SET = "start_set"
    SLOT_CREATED = "slot_created"
    REJECTED = "rejected"
    OFF_GRID = "off_grid"


@dataclass
class SelectionResult:
    """What happened on one tap."""

    outcome: SelectionOutcome
    message: str
    slot: Optional[TimeSlot] = None


def default_grid() -> list[str]:
    schedule = settings.schedule
    return build_time_grid(
        schedule.grid_start_hour, schedule.grid_end_hour, schedule.grid_step_minutes
    )


class TimeRangeSelector:
    """Selection state for one day's time range picker."""

    def __init__(self, grid: Optional[list[str]] = None) -> None:
        self.grid = list(grid) if grid is not None else default_grid()
        self._grid_minutes = [parse_wall_clock(t) for t in self.grid]
        self.start: Optional[str] = None
        self.end: Optional[str] = None

    @property
    def phase(self) -> SelectionPhase:
        if self.start is None:
            return SelectionPhase.AWAITING_START
        return SelectionPhase.AWAITING_END

    def index_of(self, time: str) -> Optional[int]:
        """Grid position of a time, in any accepted wall-clock spelling."""
        try:
            minutes = parse_wall_clock(time)
        except ValueError:
            return None
        try:
            return self._grid_minutes.index(minutes)
        except ValueError:
            return None

    def reset(self) -> None:
        self.start = None
        self.end = None

    def tap(self, time: str) -> SelectionResult:
        index = self.index_of(time)
        if index is None:
            return SelectionResult(
                SelectionOutcome.OFF_GRID, f"{time} is not one of the selectable times."
            )

        if self.start is None:
            self.start = self.grid[index]
            logger.debug("Range start selected: %s", self.start)
            return SelectionResult(
                SelectionOutcome.START_SET, f"Start {self.start}. Now pick an end time."
            )

        start_index = self.grid.index(self.start)
        if index <= start_index:
            rejected_start = self.start
            self.reset()
            logger.debug("Range rejected: %s -> %s", rejected_start, self.grid[index])
            return SelectionResult(
                SelectionOutcome.REJECTED,
                f"End time must be after start time ({rejected_start}). Please select again.",
            )

        self.end = self.grid[index]
        slot = TimeSlot(start_time=self.start, end_time=self.end)
        self.reset()
        return SelectionResult(
            SelectionOutcome.SLOT_CREATED,
            f"Added {slot.start_time} - {slot.end_time}.",
            slot=slot,
        )
