"""
Booking list for one viewer (a trainer's incoming requests or a member's
sessions) with optimistic status changes.

A status change is shown locally first (PENDING_LOCAL), then written. The
backend's answer either confirms it or marks the booking FAILED and rolls
it back to the last confirmed copy. Other bookings are never touched.
Realtime events and manual refreshes are merged with ``reconcile``.
"""

from datetime import date
from typing import Callable, Optional

from trainer_schedule.backend.errors import BackendError
from trainer_schedule.backend.realtime import (
    ChangeEvent,
    ChangeFeed,
    RealtimeDecision,
    Subscription,
    decide,
)
from trainer_schedule.logging_context import acting_as, get_user_logger
from trainer_schedule.scheduling.booking_state_machine import (
    BookingStateMachine,
    BookingTrigger,
    InvalidTransitionError,
)
from trainer_schedule.scheduling.results import ActionResult, failed, succeeded
from trainer_schedule.scheduling.sync import SyncState, Tracked, reconcile
from trainer_schedule.schemas.booking_schema import Booking, BookingStatus
from trainer_schedule.services.bookings import BOOKINGS_TABLE, BookingService

logger = get_user_logger(__name__)

TRAINER = "trainer"
MEMBER = "member"


class BookingBoard:
    """Tracked bookings for one trainer or member."""

    def __init__(self, service: BookingService, viewer_id: str, role: str = TRAINER) -> None:
        if role not in (TRAINER, MEMBER):
            raise ValueError(f"Unknown viewer role: {role}")
        self.service = service
        self.viewer_id = viewer_id
        self.role = role
        self.machine = BookingStateMachine()
        self.bookings: dict[str, Tracked[Booking]] = {}
        self.loading = False

    @property
    def _viewer_column(self) -> str:
        return "trainer_id" if self.role == TRAINER else "user_id"

    def refresh(self) -> ActionResult:
        """Fetch the viewer's bookings and merge them into local state."""
        self.loading = True
        try:
            if self.role == TRAINER:
                remote = self.service.list_for_trainer(self.viewer_id)
            else:
                remote = self.service.list_for_user(self.viewer_id)
        except BackendError as exc:
            logger.error("Error loading bookings for %s: %s", self.viewer_id, exc)
            return failed("Could not load bookings. Please try again.")
        finally:
            self.loading = False

        self.bookings = reconcile(self.bookings, remote)
        return succeeded(f"{len(self.bookings)} bookings loaded.")

    def list_bookings(self) -> list[Booking]:
        return [t.entity for t in self.bookings.values()]

    def pending(self) -> list[Booking]:
        return [b for b in self.list_bookings() if b.status == BookingStatus.PENDING]

    def upcoming(self, today: Optional[date] = None) -> list[Booking]:
        """Pending or accepted bookings from ``today`` on."""
        cutoff = (today or date.today()).isoformat()
        return [
            b for b in self.list_bookings()
            if b.session_date >= cutoff
            and b.status in (BookingStatus.PENDING, BookingStatus.ACCEPTED)
        ]

    def state_of(self, booking_id: str) -> Optional[SyncState]:
        tracked = self.bookings.get(booking_id)
        return tracked.state if tracked else None

    def _apply(
        self,
        booking_id: str,
        trigger: BookingTrigger,
        call: Callable[[], Booking],
        done_message: str,
    ) -> ActionResult:
        tracked = self.bookings.get(booking_id)
        if tracked is None:
            return failed("Booking not found.")

        try:
            new_status = self.machine.next_status(tracked.entity.status, trigger)
        except InvalidTransitionError as exc:
            return failed(str(exc))

        optimistic_values = {"status": new_status}
        stamp = self.machine.timestamp_field(new_status)
        if stamp:
            optimistic_values[stamp] = self.service.now()
        tracked.mark_pending(tracked.entity.model_copy(update=optimistic_values))

        try:
            with acting_as(self.viewer_id):
                updated = call()
        except (BackendError, InvalidTransitionError) as exc:
            tracked.fail(str(exc))
            logger.error("Booking %s %s failed: %s", booking_id, trigger.value, exc)
            return failed(f"Failed to {trigger.value} booking. Please try again.")

        tracked.confirm(updated)
        return succeeded(done_message)

    def accept(self, booking_id: str) -> ActionResult:
        return self._apply(
            booking_id, BookingTrigger.ACCEPT,
            lambda: self.service.accept(booking_id), "Booking accepted.",
        )

    def decline(self, booking_id: str) -> ActionResult:
        return self._apply(
            booking_id, BookingTrigger.DECLINE,
            lambda: self.service.decline(booking_id), "Booking declined.",
        )

    def cancel(self, booking_id: str, reason: str = "") -> ActionResult:
        return self._apply(
            booking_id, BookingTrigger.CANCEL,
            lambda: self.service.cancel(booking_id, self.viewer_id, reason),
            "Booking cancelled.",
        )

    def complete(self, booking_id: str) -> ActionResult:
        return self._apply(
            booking_id, BookingTrigger.COMPLETE,
            lambda: self.service.complete(booking_id), "Session marked complete.",
        )

    def request_reschedule(
        self, booking_id: str, new_date: str, new_start_time: str, reason: str = ""
    ) -> ActionResult:
        if booking_id not in self.bookings:
            return failed("Booking not found.")
        try:
            sent = self.service.request_reschedule(
                booking_id, self.viewer_id, new_date, new_start_time, reason
            )
        except (BackendError, InvalidTransitionError, ValueError) as exc:
            logger.error("Reschedule request for %s failed: %s", booking_id, exc)
            return failed(f"Could not request reschedule: {exc}")
        if not sent:
            return failed("Could not send the reschedule request. Please try again.")
        return succeeded("Reschedule request sent.")

    # --- Realtime ---

    def subscribe(self, feed: ChangeFeed) -> Subscription:
        return feed.subscribe(BOOKINGS_TABLE, f"{self._viewer_column}=eq.{self.viewer_id}")

    def has_pending_changes(self) -> bool:
        return any(t.state == SyncState.PENDING_LOCAL for t in self.bookings.values())

    def handle_change_event(self, event: ChangeEvent) -> RealtimeDecision:
        if event.table != BOOKINGS_TABLE:
            return RealtimeDecision.IGNORE
        if str(event.row.get(self._viewer_column)) != self.viewer_id:
            return RealtimeDecision.IGNORE
        decision = decide(event, self.has_pending_changes())
        if decision == RealtimeDecision.REFETCH:
            self.refresh()
        return decision

    def process_events(self, subscription: Subscription) -> list[RealtimeDecision]:
        return [self.handle_change_event(e) for e in subscription.drain()]
