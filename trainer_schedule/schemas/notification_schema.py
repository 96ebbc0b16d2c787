"""In-app notification data models."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    CONNECTION_REQUEST = "connection_request"
    CONNECTION_ACCEPTED = "connection_accepted"
    CONNECTION_REJECTED = "connection_rejected"
    CLIENT_REMOVED = "client_removed"
    WORKOUT_ASSIGNED = "workout_assigned"
    NEW_MESSAGE = "new_message"
    SESSION_REMINDER = "session_reminder"
    BOOKING_REQUESTED = "booking_requested"
    BOOKING_ACCEPTED = "booking_accepted"
    BOOKING_DECLINED = "booking_declined"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_RESCHEDULE_REQUESTED = "booking_reschedule_requested"


class Notification(BaseModel):
    """Row in the notifications table."""

    id: Optional[str] = None
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
