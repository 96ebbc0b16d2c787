"""Trainer booking data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Booking(BaseModel):
    """A member's session booking with a trainer."""

    id: str
    user_id: str
    trainer_id: str
    session_date: str
    start_time: str
    end_time: str
    duration_minutes: int = 60
    session_type: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class BookingRequest(BaseModel):
    """Validated booking request from a member."""

    trainer_id: str
    session_date: str
    start_time: str
    duration_minutes: int = 60
    notes: Optional[str] = None


class AvailableSlot(BaseModel):
    """Bookable window returned by the availability RPC."""

    start_time: str
    end_time: str
    duration_minutes: int = 60
