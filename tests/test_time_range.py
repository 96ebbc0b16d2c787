"""Tests for two-tap time range selection."""

from trainer_schedule.scheduling.time_range import (
    SelectionOutcome,
    SelectionPhase,
    TimeRangeSelector,
    default_grid,
)


class TestSelection:
    def setup_method(self):
        self.selector = TimeRangeSelector(["7am", "8am", "9am", "10am", "11am"])

    def test_starts_awaiting_start(self):
        assert self.selector.phase == SelectionPhase.AWAITING_START

    def test_first_tap_sets_start(self):
        result = self.selector.tap("9am")
        assert result.outcome == SelectionOutcome.START_SET
        assert self.selector.start == "9am"
        assert self.selector.phase == SelectionPhase.AWAITING_END

    def test_later_end_creates_slot(self):
        self.selector.tap("9am")
        result = self.selector.tap("11am")
        assert result.outcome == SelectionOutcome.SLOT_CREATED
        assert result.slot.start_time == "9am"
        assert result.slot.end_time == "11am"

    def test_created_slot_resets_state(self):
        self.selector.tap("9am")
        self.selector.tap("11am")
        assert self.selector.start is None
        assert self.selector.end is None

    def test_earlier_end_rejected_and_reset(self):
        self.selector.tap("9am")
        result = self.selector.tap("8am")
        assert result.outcome == SelectionOutcome.REJECTED
        assert result.slot is None
        assert "End time must be after start time" in result.message
        assert self.selector.start is None
        assert self.selector.phase == SelectionPhase.AWAITING_START

    def test_same_time_rejected_and_reset(self):
        self.selector.tap("9am")
        result = self.selector.tap("9am")
        assert result.outcome == SelectionOutcome.REJECTED
        assert result.slot is None
        assert self.selector.start is None

    def test_tap_after_rejection_is_a_new_start(self):
        self.selector.tap("9am")
        self.selector.tap("8am")
        result = self.selector.tap("8am")
        assert result.outcome == SelectionOutcome.START_SET
        assert self.selector.start == "8am"

    def test_off_grid_time_leaves_state(self):
        self.selector.tap("9am")
        result = self.selector.tap("9:15am")
        assert result.outcome == SelectionOutcome.OFF_GRID
        assert self.selector.start == "9am"

    def test_24h_spelling_matches_grid(self):
        assert self.selector.index_of("10:00") == 3
        self.selector.tap("09:00")
        assert self.selector.start == "9am"


class TestDefaultGrid:
    def test_runs_seven_am_to_eleven_pm(self):
        grid = default_grid()
        assert grid[0] == "7am"
        assert grid[-1] == "11pm"
