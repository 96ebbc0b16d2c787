"""Tests for in-app notifications."""

from trainer_schedule.schemas.notification_schema import NotificationType

from tests.conftest import MEMBER_ID, TRAINER_ID


class TestNotificationService:
    def test_create_and_list(self, notifications, store):
        assert notifications.create(
            MEMBER_ID, NotificationType.SESSION_REMINDER, "Reminder", "Session at 10", {"x": 1}
        )
        inbox = notifications.list_for_user(MEMBER_ID)
        assert len(inbox) == 1
        assert inbox[0].data == {"x": 1}
        assert inbox[0].is_read is False
        assert store.rows("notifications")[0]["type"] == "session_reminder"

    def test_newest_first(self, notifications, store):
        store.insert("notifications", {
            "user_id": MEMBER_ID, "type": "new_message", "title": "old", "message": "",
            "created_at": "2025-03-01T10:00:00+00:00",
        })
        store.insert("notifications", {
            "user_id": MEMBER_ID, "type": "new_message", "title": "new", "message": "",
            "created_at": "2025-03-02T10:00:00+00:00",
        })
        assert [n.title for n in notifications.list_for_user(MEMBER_ID)] == ["new", "old"]

    def test_create_failure_returns_false(self, notifications, store):
        store.fail_next("insert", "notifications")
        assert notifications.create(
            MEMBER_ID, NotificationType.NEW_MESSAGE, "Hi", "Hello"
        ) is False
        assert store.rows("notifications") == []

    def test_mark_read(self, notifications):
        notifications.create(MEMBER_ID, NotificationType.NEW_MESSAGE, "Hi", "Hello")
        note = notifications.list_for_user(MEMBER_ID)[0]
        assert notifications.unread_count(MEMBER_ID) == 1
        assert notifications.mark_read(note.id)
        assert notifications.unread_count(MEMBER_ID) == 0
        assert notifications.list_for_user(MEMBER_ID)[0].read_at is not None

    def test_mark_read_unknown(self, notifications):
        assert notifications.mark_read("missing") is False

    def test_mark_all_read_only_touches_own_unread(self, notifications):
        for title in ("one", "two", "three"):
            notifications.create(MEMBER_ID, NotificationType.NEW_MESSAGE, title, "")
        notifications.create(TRAINER_ID, NotificationType.NEW_MESSAGE, "other", "")
        first = notifications.list_for_user(MEMBER_ID)[0]
        notifications.mark_read(first.id)

        assert notifications.mark_all_read(MEMBER_ID) == 2
        assert notifications.unread_count(MEMBER_ID) == 0
        assert notifications.unread_count(TRAINER_ID) == 1

    def test_mark_all_read_nothing_unread(self, notifications):
        assert notifications.mark_all_read(MEMBER_ID) == 0
