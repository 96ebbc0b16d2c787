"""
Role lookup with a TTL cache.

A user is an admin if they have an ``admin_profiles`` row, otherwise a
trainer if they have a ``trainer_profiles`` row, otherwise whatever
``user_profiles.user_type`` says, defaulting to ``user``.
"""

from typing import Optional

from trainer_schedule.backend.base import RemoteStore
from trainer_schedule.backend.errors import BackendError, NotFoundError
from trainer_schedule.config import settings
from trainer_schedule.logging_context import get_user_logger
from trainer_schedule.scheduling.cache import TTLCache

logger = get_user_logger(__name__)

DEFAULT_ROLES = ["user"]


class RoleResolver:
    def __init__(
        self,
        store: RemoteStore,
        cache: Optional[TTLCache[list[str]]] = None,
        ttl: Optional[float] = None,
    ) -> None:
        self.store = store
        self.cache: TTLCache[list[str]] = cache if cache is not None else TTLCache()
        self.ttl = ttl or settings.cache.role_cache_ttl_sec

    def _lookup(self, table: str, columns: str, user_id: str) -> Optional[dict]:
        try:
            return self.store.select(table, columns, filters={"id": user_id}, single=True)
        except NotFoundError:
            return None

    def _fetch_roles(self, user_id: str) -> list[str]:
        admin = self._lookup("admin_profiles", "id, role", user_id)
        if admin:
            return ["admin", admin["role"]] if admin.get("role") else ["admin"]
        if self._lookup("trainer_profiles", "id", user_id):
            return ["trainer"]
        profile = self._lookup("user_profiles", "user_type", user_id)
        if profile and profile.get("user_type"):
            return [profile["user_type"]]
        return list(DEFAULT_ROLES)

    def get_roles(self, user_id: str) -> list[str]:
        cached = self.cache.get(user_id)
        if cached is not None:
            return list(cached)
        try:
            roles = self._fetch_roles(user_id)
        except BackendError as exc:
            logger.error("Error fetching user roles for %s: %s", user_id, exc)
            return list(DEFAULT_ROLES)
        self.cache.set(user_id, roles, self.ttl)
        logger.debug("Roles for %s: %s", user_id, roles)
        return list(roles)

    def has_role(self, user_id: str, role: str) -> bool:
        return role in self.get_roles(user_id)

    def is_trainer(self, user_id: str) -> bool:
        return self.has_role(user_id, "trainer")

    def is_admin(self, user_id: str) -> bool:
        return self.has_role(user_id, "admin")

    def invalidate(self, user_id: str) -> None:
        self.cache.invalidate(user_id)
