"""Tests for optimistic tracking and reconciliation."""

from dataclasses import dataclass

from trainer_schedule.scheduling.sync import SyncState, Tracked, reconcile


@dataclass(frozen=True)
class Item:
    id: str
    value: int


class TestTracked:
    def test_from_remote_is_confirmed(self):
        tracked = Tracked.from_remote(Item("a", 1))
        assert tracked.state == SyncState.CONFIRMED_REMOTE
        assert tracked.confirmed == Item("a", 1)

    def test_pending_then_confirm(self):
        tracked = Tracked.from_remote(Item("a", 1))
        tracked.mark_pending(Item("a", 2))
        assert tracked.state == SyncState.PENDING_LOCAL
        tracked.confirm(Item("a", 3))
        assert tracked.entity == Item("a", 3)
        assert tracked.confirmed == Item("a", 3)
        assert tracked.state == SyncState.CONFIRMED_REMOTE

    def test_fail_rolls_back(self):
        tracked = Tracked.from_remote(Item("a", 1))
        tracked.mark_pending(Item("a", 2))
        tracked.fail("timeout")
        assert tracked.entity == Item("a", 1)
        assert tracked.state == SyncState.FAILED
        assert tracked.error == "timeout"

    def test_fail_without_confirmed_keeps_entity(self):
        tracked = Tracked(entity=Item("a", 2), state=SyncState.PENDING_LOCAL)
        tracked.fail("nope")
        assert tracked.entity == Item("a", 2)


class TestReconcile:
    def test_remote_wins_for_confirmed(self):
        local = {"a": Tracked.from_remote(Item("a", 1))}
        merged = reconcile(local, [Item("a", 5)])
        assert merged["a"].entity == Item("a", 5)

    def test_remote_replaces_failed(self):
        local = {"a": Tracked.from_remote(Item("a", 1))}
        local["a"].mark_pending(Item("a", 2))
        local["a"].fail("x")
        merged = reconcile(local, [Item("a", 7)])
        assert merged["a"].state == SyncState.CONFIRMED_REMOTE
        assert merged["a"].entity == Item("a", 7)

    def test_pending_local_survives_refresh(self):
        local = {"a": Tracked.from_remote(Item("a", 1))}
        local["a"].mark_pending(Item("a", 2))
        merged = reconcile(local, [Item("a", 1)])
        assert merged["a"].entity == Item("a", 2)
        assert merged["a"].state == SyncState.PENDING_LOCAL
        assert merged["a"].confirmed == Item("a", 1)

    def test_remote_order_kept_and_new_rows_added(self):
        merged = reconcile({}, [Item("b", 1), Item("a", 1)])
        assert list(merged) == ["b", "a"]

    def test_local_only_confirmed_dropped(self):
        local = {"gone": Tracked.from_remote(Item("gone", 1))}
        assert reconcile(local, []) == {}

    def test_local_only_pending_kept(self):
        local = {"new": Tracked(entity=Item("new", 1), state=SyncState.PENDING_LOCAL)}
        merged = reconcile(local, [Item("a", 1)])
        assert list(merged) == ["a", "new"]

    def test_custom_key(self):
        merged = reconcile({}, [Item("a", 9)], key=lambda item: f"k{item.value}")
        assert list(merged) == ["k9"]
