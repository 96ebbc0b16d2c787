"""
In-app notifications stored in the backend's ``notifications`` table.

Creating a notification is fire-and-forget: a failed insert is logged and
reported as False, never raised, so the action that triggered it stands.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from trainer_schedule.backend.base import RemoteStore
from trainer_schedule.backend.errors import BackendError
from trainer_schedule.logging_context import acting_as, get_user_logger
from trainer_schedule.schemas.notification_schema import Notification, NotificationType

logger = get_user_logger(__name__)

NOTIFICATIONS_TABLE = "notifications"


class NotificationService:
    def __init__(self, store: RemoteStore) -> None:
        self.store = store

    def create(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> bool:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            data=data or {},
        )
        row = notification.model_dump(mode="json", exclude_none=True)
        try:
            self.store.insert(NOTIFICATIONS_TABLE, row)
        except BackendError as exc:
            logger.error("Error sending %s notification to %s: %s",
                         notification_type.value, user_id, exc)
            return False
        logger.info("Notification %s sent to %s", notification_type.value, user_id)
        return True

    def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        """Newest first."""
        filters: dict[str, Any] = {"user_id": user_id}
        if unread_only:
            filters["is_read"] = False
        rows = self.store.select(
            NOTIFICATIONS_TABLE, filters=filters, order=[("created_at", False)]
        )
        return [Notification.model_validate(row) for row in rows]

    def mark_read(self, notification_id: str) -> bool:
        updated = self.store.update(
            NOTIFICATIONS_TABLE,
            {"is_read": True, "read_at": datetime.now(timezone.utc).isoformat()},
            filters={"id": notification_id},
        )
        return bool(updated)

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification for ``user_id`` read. Returns how many changed."""
        with acting_as(user_id):
            updated = self.store.update(
                NOTIFICATIONS_TABLE,
                {"is_read": True, "read_at": datetime.now(timezone.utc).isoformat()},
                filters={"user_id": user_id, "is_read": False},
            )
            logger.info("Marked %d notifications read", len(updated))
        return len(updated)

    def unread_count(self, user_id: str) -> int:
        return len(self.list_for_user(user_id, unread_only=True))
