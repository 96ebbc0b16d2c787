"""Tests for the TTL cache and role lookup."""

import pytest

from trainer_schedule.scheduling.cache import TTLCache
from trainer_schedule.services.roles import RoleResolver

from tests.conftest import MEMBER_ID, TRAINER_ID


class TestTTLCache:
    def setup_method(self):
        self.now = 0.0
        self.cache = TTLCache(clock=lambda: self.now)

    def test_get_before_expiry(self):
        self.cache.set("k", "v", ttl=10)
        self.now = 9.9
        assert self.cache.get("k") == "v"

    def test_expires_at_ttl(self):
        self.cache.set("k", "v", ttl=10)
        self.now = 10.0
        assert self.cache.get("k") is None
        assert len(self.cache) == 0

    def test_missing_key(self):
        assert self.cache.get("nope") is None

    def test_invalidate_and_clear(self):
        self.cache.set("a", 1, ttl=5)
        self.cache.set("b", 2, ttl=5)
        self.cache.invalidate("a")
        assert self.cache.get("a") is None
        self.cache.clear()
        assert len(self.cache) == 0

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            self.cache.set("k", "v", ttl=0)


@pytest.fixture
def resolver(store, fake_clock):
    return RoleResolver(store, cache=TTLCache(clock=fake_clock), ttl=600)


class TestRoleResolver:
    def test_trainer(self, resolver):
        assert resolver.get_roles(TRAINER_ID) == ["trainer"]
        assert resolver.is_trainer(TRAINER_ID)

    def test_admin_takes_priority(self, resolver, store):
        store.insert("admin_profiles", {"id": TRAINER_ID, "role": "super_admin"})
        assert resolver.get_roles(TRAINER_ID) == ["admin", "super_admin"]
        assert resolver.is_admin(TRAINER_ID)

    def test_user_type_from_profile(self, resolver, store):
        store.insert("user_profiles", {"id": MEMBER_ID, "user_type": "premium"})
        assert resolver.get_roles(MEMBER_ID) == ["premium"]

    def test_default_user(self, resolver):
        assert resolver.get_roles("stranger") == ["user"]

    def test_cached_until_ttl(self, resolver, store, fake_clock):
        assert resolver.get_roles(MEMBER_ID) == ["user"]
        store.insert("trainer_profiles", {"id": MEMBER_ID})
        fake_clock.advance(599)
        assert resolver.get_roles(MEMBER_ID) == ["user"]
        fake_clock.advance(1)
        assert resolver.get_roles(MEMBER_ID) == ["trainer"]

    def test_invalidate(self, resolver, store):
        resolver.get_roles(MEMBER_ID)
        store.insert("trainer_profiles", {"id": MEMBER_ID})
        resolver.invalidate(MEMBER_ID)
        assert resolver.is_trainer(MEMBER_ID)

    def test_backend_error_defaults_and_is_not_cached(self, resolver, store):
        store.fail_next("select", "admin_profiles")
        assert resolver.get_roles(TRAINER_ID) == ["user"]
        assert resolver.get_roles(TRAINER_ID) == ["trainer"]

    def test_returned_list_is_a_copy(self, resolver):
        roles = resolver.get_roles(TRAINER_ID)
        roles.append("admin")
        assert resolver.get_roles(TRAINER_ID) == ["trainer"]
