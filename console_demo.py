"""
Offline console demo: edits a trainer's week and runs bookings without a
backend project.

Uses the real availability editor, booking service, booking board and
change feed against an in-memory store seeded with one trainer and one
member. No network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario availability
    python console_demo.py --scenario bookings
"""

import argparse
import shlex
import tempfile
from datetime import date, timedelta

from trainer_schedule.backend.memory import InMemoryStore
from trainer_schedule.scheduling.availability_editor import (
    DAYS_OF_WEEK,
    AvailabilityEditor,
    day_index_for,
)
from trainer_schedule.scheduling.booking_board import MEMBER, TRAINER, BookingBoard
from trainer_schedule.scheduling.results import ActionResult
from trainer_schedule.schemas.booking_schema import BookingRequest, BookingStatus
from trainer_schedule.services.backup import LocalBackup
from trainer_schedule.services.bookings import (
    ACTIVE_STATUSES,
    BOOKINGS_TABLE,
    BookingConflictError,
    BookingService,
)
from trainer_schedule.services.notifications import NotificationService
from trainer_schedule.utils import format_24h, parse_wall_clock

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

TRAINER_ID = "trainer-demo"
MEMBER_ID = "member-demo"


def seed_store(store: InMemoryStore) -> None:
    """One trainer profile plus the two booking RPCs the app calls."""
    store.insert(
        "trainer_profiles",
        {
            "id": TRAINER_ID,
            "specialty": "Strength & Conditioning",
            "availability": [],
            "is_available": True,
        },
    )
    store.insert("user_profiles", {"id": MEMBER_ID, "user_type": "user"})

    def _busy(trainer_id: str, session_date: str) -> list[tuple[int, int]]:
        return [
            (parse_wall_clock(row["start_time"]), parse_wall_clock(row["end_time"]))
            for row in store.rows(BOOKINGS_TABLE)
            if row["trainer_id"] == trainer_id
            and row["session_date"] == session_date
            and row["status"] in {s.value for s in ACTIVE_STATUSES}
        ]

    def check_trainer_availability(
        p_trainer_id, p_session_date, p_start_time, p_duration_minutes=60
    ):
        start = parse_wall_clock(p_start_time)
        end = start + p_duration_minutes
        return all(end <= b_start or b_end <= start for b_start, b_end in _busy(
            p_trainer_id, p_session_date
        ))

    def get_trainer_available_slots(p_trainer_id, p_session_date, p_duration_minutes=60):
        busy = _busy(p_trainer_id, p_session_date)
        slots = []
        for start in range(9 * 60, 17 * 60, p_duration_minutes):
            end = start + p_duration_minutes
            if all(end <= b_start or b_end <= start for b_start, b_end in busy):
                slots.append({
                    "start_time": format_24h(start),
                    "end_time": format_24h(end),
                    "duration_minutes": p_duration_minutes,
                })
        return slots

    store.register_rpc("check_trainer_availability", check_trainer_availability)
    store.register_rpc("get_trainer_available_slots", get_trainer_available_slots)


class ConsoleSession:
    """Drives the editor and booking board from typed commands."""

    HELP = (
        "Commands:\n"
        "  show                         print the week\n"
        "  add DAY                      add the default slot to DAY\n"
        "  pick DAY TIME                tap a start or end time for DAY\n"
        "  set DAY N start|end TIME     edit slot N of DAY\n"
        "  rm DAY N                     remove slot N of DAY\n"
        "  save | load                  write or re-read the trainer profile\n"
        "  slots DATE                   bookable times for DATE (YYYY-MM-DD)\n"
        "  book DATE TIME               request a session as the member\n"
        "  bookings                     list the trainer's bookings\n"
        "  accept|decline|complete ID   trainer actions\n"
        "  cancel ID [REASON]           trainer cancels\n"
        "  reschedule ID DATE TIME      member asks to move a session\n"
        "  inbox                        notifications for both users\n"
        "  quit"
    )

    def __init__(self) -> None:
        self.store = InMemoryStore()
        seed_store(self.store)
        self.backup = LocalBackup(directory=tempfile.mkdtemp(prefix="schedule_demo_"))
        self.editor = AvailabilityEditor(self.store, backup=self.backup)
        self.notifications = NotificationService(self.store)
        self.bookings = BookingService(self.store, self.notifications)
        self.trainer_board = BookingBoard(self.bookings, TRAINER_ID, role=TRAINER)
        self.member_board = BookingBoard(self.bookings, MEMBER_ID, role=MEMBER)
        self.profile_sub = self.editor.subscribe(self.store.feed, TRAINER_ID)
        self.trainer_sub = self.trainer_board.subscribe(self.store.feed)
        self.member_sub = self.member_board.subscribe(self.store.feed)

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def report(self, result: ActionResult) -> None:
        colour = GREEN if result["success"] else RED
        print(f"{colour}{result['message']}{RESET}")

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "availability": [
            "load",
            "add Tuesday",
            "set Tuesday 0 start 10am",
            "set Tuesday 0 end 11am",
            "pick Thursday 6pm",
            "pick Thursday 5pm",
            "pick Thursday 6pm",
            "pick Thursday 8pm",
            "save",
            "load",
            "show",
        ],
        "bookings": [
            "slots {day}",
            "book {day} 10:00",
            "book {day} 10:30",
            "book {day} 14:00",
            "bookings",
            "accept 1",
            "decline 2",
            "reschedule 1 {next_day} 11:00",
            "cancel 1 Trainer unwell",
            "bookings",
            "inbox",
        ],
    }

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        tomorrow = date.today() + timedelta(days=1)
        values = {
            "day": tomorrow.isoformat(),
            "next_day": (tomorrow + timedelta(days=1)).isoformat(),
        }

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  TRAINER SCHEDULE - Scenario: {scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        for step in steps:
            command = step.format(**values)
            print(f"\n{BLUE}> {RESET}{command}")
            self.handle(command)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  TRAINER SCHEDULE - Console Demo{RESET}")
        print(f"{BOLD}  Type 'help' for commands, 'quit' to exit{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        self.handle("load")
        while True:
            line = input(f"\n{BLUE}> {RESET}").strip()
            if not line:
                continue
            if line.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            self.handle(line)

    def handle(self, line: str) -> None:
        try:
            parts = shlex.split(line)
        except ValueError as exc:
            print(f"{RED}{exc}{RESET}")
            return
        command, args = parts[0].lower(), parts[1:]
        handler = getattr(self, f"_cmd_{command}", None)
        if handler is None:
            print(self.HELP)
            return
        try:
            handler(*args)
        except TypeError:
            print(f"{YELLOW}Wrong arguments for '{command}'.{RESET}\n{self.HELP}")
        except ValueError as exc:
            print(f"{RED}{exc}{RESET}")
        self._drain_events()

    def _drain_events(self) -> None:
        for decision in self.editor.process_events(self.profile_sub, TRAINER_ID):
            self.system_log(f"profile change -> {decision.value}")
        self.trainer_board.process_events(self.trainer_sub)
        self.member_board.process_events(self.member_sub)

    def _day(self, name: str) -> int:
        index = day_index_for(name)
        if index is None:
            raise ValueError(f"Unknown day: {name}")
        return index

    def _booking_id(self, ref: str) -> str:
        """Accept either a full booking id or its 1-based position in the list."""
        bookings = self.trainer_board.list_bookings()
        if ref.isdigit() and 1 <= int(ref) <= len(bookings):
            return bookings[int(ref) - 1].id
        return ref

    # ------------------------------------------------------------------ #
    # Availability
    # ------------------------------------------------------------------ #

    def _cmd_help(self) -> None:
        print(self.HELP)

    def _cmd_show(self) -> None:
        for index, day in enumerate(self.editor.days):
            slots = ", ".join(
                f"[{n}] {s.start_time}-{s.end_time}" for n, s in enumerate(day)
            ) or f"{DIM}none{RESET}"
            print(f"  {DAYS_OF_WEEK[index]:<10} {slots}")
        flag = f"{YELLOW}unsaved changes{RESET}" if self.editor.has_unsaved_changes else "saved"
        self.system_log(flag)

    def _cmd_load(self) -> None:
        self.report(self.editor.load_availability(TRAINER_ID))

    def _cmd_save(self) -> None:
        self.report(self.editor.save_availability(TRAINER_ID))

    def _cmd_add(self, day: str) -> None:
        slot = self.editor.add_day_slot(self._day(day))
        self.say(f"Added {slot.start_time}-{slot.end_time} on {DAYS_OF_WEEK[self._day(day)]}.")

    def _cmd_pick(self, day: str, time: str) -> None:
        result = self.editor.select_time(self._day(day), time)
        self.system_log(result.outcome.value)
        self.say(result.message)

    def _cmd_set(self, day: str, index: str, field: str, value: str) -> None:
        name = {"start": "start_time", "end": "end_time"}.get(field, field)
        if self.editor.update_day_slot(self._day(day), int(index), name, value):
            self.say("Slot updated.")
        else:
            print(f"{YELLOW}Nothing changed.{RESET}")

    def _cmd_rm(self, day: str, index: str) -> None:
        if self.editor.remove_day_slot(self._day(day), int(index)):
            self.say("Slot removed.")
        else:
            print(f"{YELLOW}No such slot.{RESET}")

    # ------------------------------------------------------------------ #
    # Bookings
    # ------------------------------------------------------------------ #

    def _cmd_slots(self, session_date: str) -> None:
        slots = self.bookings.available_slots(TRAINER_ID, session_date)
        self.say(", ".join(f"{s.start_time}-{s.end_time}" for s in slots) or "Fully booked.")

    def _cmd_book(self, session_date: str, start_time: str) -> None:
        request = BookingRequest(
            trainer_id=TRAINER_ID, session_date=session_date, start_time=start_time
        )
        try:
            booking = self.bookings.create(MEMBER_ID, request)
        except BookingConflictError as exc:
            print(f"{RED}{exc}{RESET}")
            return
        self.say(f"Requested {booking.session_date} {booking.start_time}-{booking.end_time}.")

    def _cmd_bookings(self) -> None:
        self.trainer_board.refresh()
        bookings = self.trainer_board.list_bookings()
        if not bookings:
            self.say("No bookings.")
        colours = {
            BookingStatus.PENDING: YELLOW,
            BookingStatus.ACCEPTED: GREEN,
            BookingStatus.DECLINED: RED,
            BookingStatus.CANCELLED: RED,
            BookingStatus.COMPLETED: BLUE,
        }
        for n, b in enumerate(bookings, start=1):
            print(
                f"  [{n}] {b.session_date} {b.start_time}-{b.end_time} "
                f"{colours[b.status]}{b.status.value}{RESET} {DIM}{b.id}{RESET}"
            )

    def _trainer_action(self, action: str, ref: str, *args: str) -> None:
        if not self.trainer_board.bookings:
            self.trainer_board.refresh()
        self.report(getattr(self.trainer_board, action)(self._booking_id(ref), *args))

    def _cmd_accept(self, ref: str) -> None:
        self._trainer_action("accept", ref)

    def _cmd_decline(self, ref: str) -> None:
        self._trainer_action("decline", ref)

    def _cmd_complete(self, ref: str) -> None:
        self._trainer_action("complete", ref)

    def _cmd_cancel(self, ref: str, *reason: str) -> None:
        self._trainer_action("cancel", ref, " ".join(reason))

    def _cmd_reschedule(self, ref: str, new_date: str, new_time: str) -> None:
        booking_id = self._booking_id(ref)
        self.member_board.refresh()
        self.report(self.member_board.request_reschedule(booking_id, new_date, new_time))

    def _cmd_inbox(self) -> None:
        for user_id in (TRAINER_ID, MEMBER_ID):
            print(f"  {BOLD}{user_id}{RESET}")
            for note in self.notifications.list_for_user(user_id):
                print(f"    {note.title}: {note.message}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
