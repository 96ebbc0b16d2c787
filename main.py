"""
Trainer schedule entry point.

Runs the offline console demo, or prints one trainer's availability and
bookings from the configured Supabase project.

Usage:
    Console mode: python main.py console [--scenario availability|bookings]
    Live data:    python main.py show TRAINER_ID
"""

import argparse
import logging
import sys

from trainer_schedule.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode(scenario=None) -> None:
    """Start the offline console demo (no backend project required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    if scenario:
        session.run_scenario(scenario)
    else:
        session.run()


def _run_show_mode(trainer_id: str) -> int:
    """Print a trainer's week and bookings from the hosted backend."""
    from trainer_schedule.backend.errors import BackendError
    from trainer_schedule.backend.rest_client import SupabaseRestClient
    from trainer_schedule.scheduling.availability_editor import DAYS_OF_WEEK, AvailabilityEditor
    from trainer_schedule.services.bookings import BookingService

    logger.info("Fetching schedule for %s from %s", trainer_id, settings.backend.url)
    with SupabaseRestClient.from_settings() as client:
        editor = AvailabilityEditor(client)
        result = editor.load_availability(trainer_id)
        print(result["message"])
        if not result["success"]:
            return 1

        for name, day in zip(DAYS_OF_WEEK, editor.days):
            slots = ", ".join(f"{s.start_time}-{s.end_time}" for s in day) or "-"
            print(f"  {name:<10} {slots}")
        print(f"  Accepting bookings: {'yes' if editor.is_available else 'no'}")

        try:
            bookings = BookingService(client).list_for_trainer(trainer_id)
        except BackendError as exc:
            logger.error("Could not load bookings: %s", exc)
            return 1

    print(f"\n{len(bookings)} bookings")
    for b in bookings:
        print(f"  {b.session_date} {b.start_time}-{b.end_time} {b.status.value}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=settings.app_name)
    commands = parser.add_subparsers(dest="mode", required=True)

    console = commands.add_parser("console", help="Offline demo against an in-memory store")
    console.add_argument("--scenario", choices=["availability", "bookings"], default=None)

    show = commands.add_parser("show", help="Print a trainer's schedule from the backend")
    show.add_argument("trainer_id")

    args = parser.parse_args(argv)
    if args.mode == "console":
        _run_console_mode(args.scenario)
        return 0
    return _run_show_mode(args.trainer_id)


if __name__ == "__main__":
    sys.exit(main())
