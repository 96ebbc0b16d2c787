"""
Finite state machine for booking status changes.

Every status change a trainer or member can make is listed in the
transition table. Anything else is rejected with the triggers that are
valid from the booking's current status.

Usage:
    machine = BookingStateMachine()
    machine.next_status(BookingStatus.PENDING, BookingTrigger.ACCEPT)
    # -> BookingStatus.ACCEPTED
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from trainer_schedule.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class BookingTrigger(str, Enum):
    """Actions that change a booking's status."""
    ACCEPT = "accept"
    DECLINE = "decline"
    CANCEL = "cancel"
    COMPLETE = "complete"


@dataclass(frozen=True)
class BookingTransition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    trigger: BookingTrigger


class InvalidTransitionError(Exception):
    """Raised when a trigger is not valid from the booking's current status."""


TIMESTAMP_FIELDS: dict[BookingStatus, str] = {
    BookingStatus.ACCEPTED: "accepted_at",
    BookingStatus.DECLINED: "declined_at",
    BookingStatus.CANCELLED: "cancelled_at",
    BookingStatus.COMPLETED: "completed_at",
}


class BookingStateMachine:
    """
    Stateless transition table for bookings.

    The booking row carries its own status; the machine only answers which
    status a trigger leads to.
    """

    TRANSITIONS: list[BookingTransition] = [
        # --- Trainer response ---
        BookingTransition(BookingStatus.PENDING, BookingStatus.ACCEPTED,
                          BookingTrigger.ACCEPT),
        BookingTransition(BookingStatus.PENDING, BookingStatus.DECLINED,
                          BookingTrigger.DECLINE),

        # --- Cancellation ---
        BookingTransition(BookingStatus.PENDING, BookingStatus.CANCELLED,
                          BookingTrigger.CANCEL),
        BookingTransition(BookingStatus.ACCEPTED, BookingStatus.CANCELLED,
                          BookingTrigger.CANCEL),

        # --- Session held ---
        BookingTransition(BookingStatus.ACCEPTED, BookingStatus.COMPLETED,
                          BookingTrigger.COMPLETE),
    ]

    def next_status(self, current: BookingStatus, trigger: BookingTrigger) -> BookingStatus:
        """
        Resolve the status a trigger leads to.

        Raises:
            InvalidTransitionError: If no transition exists for the pair.
        """
        for t in self.TRANSITIONS:
            if t.from_status == current and t.trigger == trigger:
                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    current.value, t.to_status.value, trigger.value,
                )
                return t.to_status

        valid = [t.value for t in self.valid_triggers(current)]
        raise InvalidTransitionError(
            f"Cannot {trigger.value} a booking that is '{current.value}'. "
            f"Valid actions: {valid}"
        )

    def valid_triggers(self, current: BookingStatus) -> list[BookingTrigger]:
        """Return all triggers valid from a status."""
        return [t.trigger for t in self.TRANSITIONS if t.from_status == current]

    def is_terminal(self, status: BookingStatus) -> bool:
        return not self.valid_triggers(status)

    @staticmethod
    def timestamp_field(status: BookingStatus) -> Optional[str]:
        """Column stamped when a booking enters ``status``."""
        return TIMESTAMP_FIELDS.get(status)
