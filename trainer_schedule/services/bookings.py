"""
Trainer booking operations against the ``trainer_bookings`` table.

Status changes go through the BookingStateMachine before anything is
written, and each change stamps the matching ``*_at`` column. Accept,
decline and cancel also notify the other party.

Reschedule requests are notification-only: the counter-party is told
about the proposed new time, and the booking row itself is left as it is
until they act on it.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from trainer_schedule.backend.base import RemoteStore
from trainer_schedule.backend.errors import NotFoundError
from trainer_schedule.logging_context import acting_as, get_user_logger
from trainer_schedule.scheduling.booking_state_machine import (
    BookingStateMachine,
    BookingTrigger,
    InvalidTransitionError,
)
from trainer_schedule.schemas.booking_schema import (
    AvailableSlot,
    Booking,
    BookingRequest,
    BookingStatus,
)
from trainer_schedule.schemas.notification_schema import NotificationType
from trainer_schedule.services.notifications import NotificationService
from trainer_schedule.utils import MINUTES_PER_DAY, format_24h, parse_wall_clock

logger = get_user_logger(__name__)

BOOKINGS_TABLE = "trainer_bookings"
ACTIVE_STATUSES = {BookingStatus.PENDING, BookingStatus.ACCEPTED}


class BookingConflictError(Exception):
    """Raised when a requested session overlaps an active booking."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def find_conflicts(
    bookings: Iterable[Booking],
    session_date: str,
    start_time: str,
    end_time: str,
    exclude_id: Optional[str] = None,
) -> list[Booking]:
    """Active bookings on ``session_date`` overlapping ``start_time``-``end_time``."""
    start = parse_wall_clock(start_time)
    end = parse_wall_clock(end_time)
    conflicts = []
    for booking in bookings:
        if booking.id == exclude_id or booking.session_date != session_date:
            continue
        if booking.status not in ACTIVE_STATUSES:
            continue
        booked_start = parse_wall_clock(booking.start_time)
        if start < parse_wall_clock(booking.end_time) and booked_start < end:
            conflicts.append(booking)
    return conflicts


class BookingService:
    def __init__(
        self,
        store: RemoteStore,
        notifications: Optional[NotificationService] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.notifications = notifications or NotificationService(store)
        self.machine = BookingStateMachine()
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def _list(self, filters: dict[str, Any]) -> list[Booking]:
        rows = self.store.select(
            BOOKINGS_TABLE,
            filters=filters,
            order=[("session_date", True), ("start_time", True)],
        )
        return [Booking.model_validate(row) for row in rows]

    def list_for_trainer(self, trainer_id: str) -> list[Booking]:
        return self._list({"trainer_id": trainer_id})

    def list_for_user(self, user_id: str) -> list[Booking]:
        return self._list({"user_id": user_id})

    def get(self, booking_id: str) -> Booking:
        row = self.store.select(BOOKINGS_TABLE, filters={"id": booking_id}, single=True)
        return Booking.model_validate(row)

    def create(self, user_id: str, request: BookingRequest) -> Booking:
        """Insert a pending booking after checking the trainer's active bookings."""
        start = parse_wall_clock(request.start_time)
        if request.duration_minutes <= 0:
            raise ValueError(f"Duration must be positive, got {request.duration_minutes}")
        end = start + request.duration_minutes
        if end > MINUTES_PER_DAY:
            raise ValueError("Session must end by midnight")
        start_time, end_time = format_24h(start), format_24h(end)

        existing = self.list_for_trainer(request.trainer_id)
        conflicts = find_conflicts(existing, request.session_date, start_time, end_time)
        if conflicts:
            raise BookingConflictError(
                f"Trainer already has a session at {conflicts[0].start_time}"
                f"-{conflicts[0].end_time} on {request.session_date}"
            )

        with acting_as(user_id):
            row = self.store.insert(
                BOOKINGS_TABLE,
                {
                    "user_id": user_id,
                    "trainer_id": request.trainer_id,
                    "session_date": request.session_date,
                    "start_time": start_time,
                    "end_time": end_time,
                    "duration_minutes": request.duration_minutes,
                    "notes": request.notes,
                    "status": BookingStatus.PENDING.value,
                },
            )
            booking = Booking.model_validate(row)
            logger.info(
                "Booking created: %s with trainer %s on %s at %s",
                booking.id, booking.trainer_id, booking.session_date, booking.start_time,
            )
            self.notifications.create(
                booking.trainer_id,
                NotificationType.BOOKING_REQUESTED,
                "New Session Request",
                f"A member requested a session on {booking.session_date} "
                f"at {booking.start_time}.",
                {"booking_id": booking.id, "user_id": user_id},
            )
        return booking

    def transition(self, booking_id: str, trigger: BookingTrigger) -> Booking:
        """Apply a status change and stamp its timestamp column."""
        current = self.get(booking_id)
        new_status = self.machine.next_status(current.status, trigger)
        values = {"status": new_status.value}
        stamp = self.machine.timestamp_field(new_status)
        if stamp:
            values[stamp] = self.now().isoformat()

        rows = self.store.update(BOOKINGS_TABLE, values, filters={"id": booking_id})
        if not rows:
            raise NotFoundError(f"Booking {booking_id} not found")
        logger.info("Booking %s: %s -> %s", booking_id, current.status.value, new_status.value)
        return Booking.model_validate(rows[0])

    def accept(self, booking_id: str) -> Booking:
        booking = self.transition(booking_id, BookingTrigger.ACCEPT)
        self.notifications.create(
            booking.user_id,
            NotificationType.BOOKING_ACCEPTED,
            "Session Confirmed",
            f"Your session on {booking.session_date} at {booking.start_time} was accepted.",
            {"booking_id": booking.id, "trainer_id": booking.trainer_id},
        )
        return booking

    def decline(self, booking_id: str) -> Booking:
        booking = self.transition(booking_id, BookingTrigger.DECLINE)
        self.notifications.create(
            booking.user_id,
            NotificationType.BOOKING_DECLINED,
            "Session Declined",
            f"Your session request for {booking.session_date} was declined.",
            {"booking_id": booking.id, "trainer_id": booking.trainer_id},
        )
        return booking

    def complete(self, booking_id: str) -> Booking:
        return self.transition(booking_id, BookingTrigger.COMPLETE)

    @staticmethod
    def _counterparty(booking: Booking, actor_id: str) -> str:
        return booking.trainer_id if actor_id == booking.user_id else booking.user_id

    def cancel(self, booking_id: str, actor_id: str, reason: str = "") -> Booking:
        with acting_as(actor_id):
            booking = self.transition(booking_id, BookingTrigger.CANCEL)
            message = (
                f"The session on {booking.session_date} at {booking.start_time} was cancelled."
            )
            if reason.strip():
                message += f" Reason: {reason.strip()}"
            self.notifications.create(
                self._counterparty(booking, actor_id),
                NotificationType.BOOKING_CANCELLED,
                "Session Cancelled",
                message,
                {"booking_id": booking.id, "action": "cancelled", "reason": reason.strip()},
            )
        return booking

    def request_reschedule(
        self,
        booking_id: str,
        actor_id: str,
        new_date: str,
        new_start_time: str,
        reason: str = "",
    ) -> bool:
        """Notify the counter-party of a proposed new time. The booking is not changed."""
        booking = self.get(booking_id)
        if self.machine.is_terminal(booking.status):
            raise InvalidTransitionError(
                f"Cannot reschedule a booking that is '{booking.status.value}'"
            )
        start = parse_wall_clock(new_start_time)
        end = start + booking.duration_minutes
        if end > MINUTES_PER_DAY:
            raise ValueError("Session must end by midnight")
        new_end_time = format_24h(end)
        message = (
            f"A reschedule was requested for your {booking.session_date} session: "
            f"{new_date} at {format_24h(start)}."
        )
        if reason.strip():
            message += f" Reason: {reason.strip()}"
        with acting_as(actor_id):
            return self.notifications.create(
                self._counterparty(booking, actor_id),
                NotificationType.BOOKING_RESCHEDULE_REQUESTED,
                "Reschedule Requested",
                message,
                {
                    "booking_id": booking.id,
                    "action": "reschedule_requested",
                    "new_date": new_date,
                    "new_start_time": format_24h(start),
                    "new_end_time": new_end_time,
                    "reason": reason.strip(),
                },
            )

    def available_slots(
        self, trainer_id: str, session_date: str, duration_minutes: int = 60
    ) -> list[AvailableSlot]:
        data = self.store.rpc(
            "get_trainer_available_slots",
            {
                "p_trainer_id": trainer_id,
                "p_session_date": session_date,
                "p_duration_minutes": duration_minutes,
            },
        )
        return [AvailableSlot.model_validate(item) for item in data or []]

    def is_slot_available(
        self, trainer_id: str, session_date: str, start_time: str, duration_minutes: int = 60
    ) -> bool:
        data = self.store.rpc(
            "check_trainer_availability",
            {
                "p_trainer_id": trainer_id,
                "p_session_date": session_date,
                "p_start_time": start_time,
                "p_duration_minutes": duration_minutes,
            },
        )
        return bool(data)
