"""Trainer availability data models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TimeSlot(BaseModel):
    """One availability window inside a day-bucket."""

    start_time: str
    end_time: str


class TrainerAvailability(BaseModel):
    """Availability columns of a trainer profile row."""

    availability: list[TimeSlot] = Field(default_factory=list)
    is_available: bool = True


class SlotType(str, Enum):
    SESSION = "session"
    BREAK = "break"
    AVAILABLE = "available"
    CONSULTATION = "consultation"
    GROUP = "group"


class RecurringPattern(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class RecurringRule(BaseModel):
    """Repeat rule attached to a schedule slot."""

    model_config = ConfigDict(populate_by_name=True)

    pattern: RecurringPattern
    days: list[str] = Field(default_factory=list)
    end_date: Optional[str] = Field(default=None, alias="endDate")


class ScheduleSlot(BaseModel):
    """Schedule-builder slot, stored inside the trainer's availability blob.

    Field aliases match the keys already present in stored blobs, so
    dump with ``by_alias=True`` when writing back.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    start: str
    end: str
    duration_minutes: int = Field(default=60, alias="duration")
    type: SlotType = SlotType.AVAILABLE
    label: Optional[str] = None
    notes: Optional[str] = None
    max_clients: Optional[int] = Field(default=None, alias="maxClients")
    recurring: Optional[RecurringRule] = None
    is_blocked: Optional[bool] = Field(default=None, alias="isBlocked")


class ScheduleSlotDraft(BaseModel):
    """Form values collected before an advanced slot is added."""

    start: str
    end: str
    duration_minutes: int = 60
    type: SlotType = SlotType.AVAILABLE
    label: str = ""
    notes: str = ""
    max_clients: int = 1
    is_recurring: bool = False
    recurring_pattern: RecurringPattern = RecurringPattern.WEEKLY
    recurring_days: list[str] = Field(default_factory=list)
    recurring_end_date: str = ""
