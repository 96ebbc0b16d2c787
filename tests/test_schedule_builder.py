"""Tests for the typed-slot schedule builder."""

from datetime import date

import pytest

from trainer_schedule.scheduling.schedule_builder import (
    DAY_KEYS,
    ScheduleBuilder,
    default_label,
    end_time_for,
    week_dates,
)
from trainer_schedule.schemas.availability_schema import (
    RecurringPattern,
    ScheduleSlotDraft,
    SlotType,
)

from tests.conftest import TRAINER_ID


@pytest.fixture
def builder(store, fake_clock):
    return ScheduleBuilder(store, clock=fake_clock)


class TestHelpers:
    def test_default_labels(self):
        assert default_label(SlotType.SESSION) == "Training Session"
        assert default_label(SlotType.GROUP) == "Group Session"

    def test_end_time_for(self):
        assert end_time_for("9am", 90) == "10:30am"
        assert end_time_for("09:00") == "10:00"

    def test_week_dates_start_monday(self):
        dates = week_dates(date(2025, 3, 13))  # Thursday
        assert dates[0] == date(2025, 3, 10)
        assert dates[-1] == date(2025, 3, 16)
        assert len(dates) == 7


class TestLocalEdits:
    def test_add_slot(self, builder):
        slot = builder.add_slot("Mon", "9am", "10am", SlotType.SESSION)
        assert slot.id == "Mon-9am-1000000"
        assert slot.label == "Training Session"
        assert builder.schedule["Mon"] == [slot]
        assert builder.has_unsaved_changes

    def test_ids_unique_within_same_millisecond(self, builder):
        first = builder.add_slot("Mon", "9am", "10am")
        second = builder.add_slot("Mon", "9am", "10am")
        assert first.id != second.id
        assert second.id == "Mon-9am-1000000-1"

    def test_add_slot_unknown_day(self, builder):
        with pytest.raises(ValueError, match="Unknown day"):
            builder.add_slot("Monday", "9am", "10am")

    def test_add_advanced_slot(self, builder):
        draft = ScheduleSlotDraft(
            start="6pm",
            end="",
            duration_minutes=45,
            type=SlotType.SESSION,
            notes="Bring bands",
            max_clients=2,
            is_recurring=True,
            recurring_pattern=RecurringPattern.WEEKLY,
            recurring_days=["Mon", "Wed"],
            recurring_end_date="2025-06-30",
        )
        slot = builder.add_advanced_slot("Wed", draft)
        assert slot.end == "6:45pm"
        assert slot.is_blocked is True
        assert slot.label == "Training Session"
        assert slot.recurring.days == ["Mon", "Wed"]
        assert slot.recurring.end_date == "2025-06-30"

    def test_available_slot_not_blocked(self, builder):
        slot = builder.add_advanced_slot("Fri", ScheduleSlotDraft(start="7am", end="8am"))
        assert slot.is_blocked is False
        assert slot.recurring is None

    def test_remove_slot(self, builder):
        slot = builder.add_slot("Tue", "9am", "10am")
        assert builder.remove_slot("Tue", slot.id)
        assert builder.remove_slot("Tue", slot.id) is False

    def test_clear_day_and_reset(self, builder):
        builder.add_slot("Tue", "9am", "10am")
        builder.add_slot("Thu", "9am", "10am")
        builder.clear_day("Tue")
        assert builder.schedule["Tue"] == []
        assert len(builder.schedule["Thu"]) == 1
        builder.reset()
        assert all(not slots for slots in builder.schedule.values())

    def test_sorted_schedule(self, builder):
        builder.add_slot("Mon", "2pm", "3pm")
        builder.add_slot("Mon", "9am", "10am")
        assert [s.start for s in builder.sorted_schedule()["Mon"]] == ["9am", "2pm"]


class TestLoadAndSave:
    def test_save_and_reload_keeps_days(self, builder, store, fake_clock):
        builder.add_slot("Tue", "10am", "11am", SlotType.CONSULTATION)
        builder.add_advanced_slot(
            "Sat", ScheduleSlotDraft(start="8am", end="9am", type=SlotType.GROUP, max_clients=6)
        )
        assert builder.save(TRAINER_ID)["success"]
        assert not builder.has_unsaved_changes

        stored = store.rows("trainer_profiles")[0]["availability"]
        assert set(stored) == set(DAY_KEYS)
        assert stored["Sat"][0]["maxClients"] == 6
        assert stored["Sat"][0]["isBlocked"] is True
        assert stored["Tue"][0]["duration"] == 60

        reloaded = ScheduleBuilder(store, clock=fake_clock)
        assert reloaded.load(TRAINER_ID)["success"]
        assert reloaded.schedule["Tue"][0].type == SlotType.CONSULTATION
        assert reloaded.schedule["Sat"][0].max_clients == 6
        assert reloaded.schedule["Tue"][0].id == builder.schedule["Tue"][0].id

    def test_load_array_format(self, builder, store):
        store.update(
            "trainer_profiles",
            {"availability": [
                {"day": "Wed", "slots": [{"start": "7am", "duration": 30, "type": "break"}]},
            ]},
            filters={"id": TRAINER_ID},
        )
        builder.load(TRAINER_ID)
        slot = builder.schedule["Wed"][0]
        assert slot.end == "7:30am"
        assert slot.label == "Break"

    def test_load_skips_malformed_slots(self, builder, store):
        store.update(
            "trainer_profiles",
            {"availability": {"Mon": [{"end": "9am"}, {"start": "9am", "type": "nap"}]}},
            filters={"id": TRAINER_ID},
        )
        assert builder.load(TRAINER_ID)["success"]
        assert builder.schedule["Mon"] == []

    def test_load_creates_missing_profile(self, builder, store):
        builder.load("new-trainer")
        rows = [r for r in store.rows("trainer_profiles") if r["id"] == "new-trainer"]
        assert len(rows) == 1
        assert rows[0]["specialty"] == "Personal Training"

    def test_load_failure(self, builder, store):
        builder.add_slot("Mon", "9am", "10am")
        store.fail_next("select", "trainer_profiles")
        result = builder.load(TRAINER_ID)
        assert result["success"] is False
        assert builder.schedule["Mon"] == []

    def test_save_failure(self, builder, store):
        builder.add_slot("Mon", "9am", "10am")
        store.fail_next("update", "trainer_profiles")
        result = builder.save(TRAINER_ID)
        assert result["success"] is False
        assert builder.has_unsaved_changes
        assert builder.saving is False

    def test_save_without_profile_fails(self, builder, store):
        builder.add_slot("Mon", "9am", "10am")
        result = builder.save("ghost-trainer")
        assert result["success"] is False
        assert "profile not found" in result["message"]
        assert builder.has_unsaved_changes
        assert builder.last_saved is None
        assert store.select("trainer_profiles", filters={"id": "ghost-trainer"}) == []
