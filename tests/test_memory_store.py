"""Tests for the in-memory remote store."""

import pytest

from trainer_schedule.backend.errors import BackendError, NotFoundError
from trainer_schedule.backend.memory import InMemoryStore
from trainer_schedule.backend.realtime import ChangeType


class TestInMemoryStore:
    def setup_method(self):
        self.store = InMemoryStore()
        self.store.insert("items", {"id": "a", "n": 2, "tag": "x"})
        self.store.insert("items", {"id": "b", "n": 0, "tag": "y"})
        self.store.insert("items", {"id": "c", "n": 1, "tag": "x"})

    def test_select_filters_and_orders(self):
        rows = self.store.select("items", filters={"tag": "x"}, order=[("n", True)])
        assert [r["id"] for r in rows] == ["c", "a"]

    def test_order_handles_zero(self):
        rows = self.store.select("items", order=[("n", True)])
        assert [r["id"] for r in rows] == ["b", "c", "a"]

    def test_select_projection(self):
        row = self.store.select("items", "id, n", filters={"id": "a"}, single=True)
        assert row == {"id": "a", "n": 2}

    def test_single_without_match(self):
        with pytest.raises(NotFoundError) as exc:
            self.store.select("items", filters={"id": "zzz"}, single=True)
        assert exc.value.code == "PGRST116"

    def test_returned_rows_are_copies(self):
        row = self.store.select("items", filters={"id": "a"}, single=True)
        row["n"] = 99
        assert self.store.select("items", filters={"id": "a"}, single=True)["n"] == 2

    def test_insert_assigns_id_and_created_at(self):
        row = self.store.insert("items", {"n": 5})
        assert row["id"]
        assert row["created_at"]

    def test_duplicate_id(self):
        with pytest.raises(BackendError) as exc:
            self.store.insert("items", {"id": "a"})
        assert exc.value.code == "23505"

    def test_update_requires_filters(self):
        with pytest.raises(BackendError):
            self.store.update("items", {"n": 1}, filters={})

    def test_update_and_delete(self):
        assert len(self.store.update("items", {"tag": "z"}, filters={"tag": "x"})) == 2
        removed = self.store.delete("items", filters={"tag": "z"})
        assert {r["id"] for r in removed} == {"a", "c"}
        assert [r["id"] for r in self.store.rows("items")] == ["b"]

    def test_writes_publish_events(self):
        sub = self.store.feed.subscribe("items")
        self.store.update("items", {"n": 3}, filters={"id": "b"})
        self.store.delete("items", filters={"id": "b"})
        events = sub.drain()
        assert [e.event_type for e in events] == [ChangeType.UPDATE, ChangeType.DELETE]
        assert events[0].old["n"] == 0
        assert events[0].new["n"] == 3

    def test_fail_next_is_one_shot(self):
        self.store.fail_next("select", "items")
        with pytest.raises(BackendError):
            self.store.select("items")
        assert len(self.store.select("items")) == 3

    def test_fail_next_scoped_to_table(self):
        self.store.fail_next("select", "other")
        assert len(self.store.select("items")) == 3

    def test_rpc(self):
        self.store.register_rpc("double", lambda x: x * 2)
        assert self.store.rpc("double", {"x": 4}) == 8
        with pytest.raises(BackendError):
            self.store.rpc("missing")

    def test_reset(self):
        self.store.fail_next("select")
        self.store.reset()
        assert self.store.select("items") == []
