"""Shared wall-clock helpers used across the scheduling modules."""

import re

MINUTES_PER_DAY = 24 * 60

_WALL_CLOCK = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<period>[ap])\.?\s*m\.?$|"
    r"^(?P<hour24>\d{1,2}):(?P<minute24>\d{2})(?::\d{2})?$",
    re.IGNORECASE,
)


def _is_twelve_hour(value: str) -> bool:
    return bool(re.search(r"[ap]\.?\s*m\.?$", value.strip(), re.IGNORECASE))


def parse_wall_clock(value: str) -> int:
    """Convert a wall-clock string to minutes since midnight.

    Accepts the compact grid form and the 24-hour form stored by the
    backend's ``time`` columns.

    Examples:
        >>> parse_wall_clock("9am")
        540
        >>> parse_wall_clock("9:30 PM")
        1290
        >>> parse_wall_clock("21:30")
        1290
        >>> parse_wall_clock("12am")
        0
    """
    match = _WALL_CLOCK.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Unrecognised time: {value!r}")

    if match.group("period"):
        hour = int(match.group("hour"))
        minute = int(match.group("minute") or 0)
        if not 1 <= hour <= 12 or minute > 59:
            raise ValueError(f"Time out of range: {value!r}")
        hour %= 12
        if match.group("period").lower() == "p":
            hour += 12
        return hour * 60 + minute

    hour = int(match.group("hour24"))
    minute = int(match.group("minute24"))
    total = hour * 60 + minute
    if minute > 59 or total > MINUTES_PER_DAY:
        raise ValueError(f"Time out of range: {value!r}")
    return total


def format_wall_clock(minutes: int) -> str:
    """Format minutes since midnight in the compact grid form.

    Examples:
        >>> format_wall_clock(420)
        '7am'
        >>> format_wall_clock(450)
        '7:30am'
        >>> format_wall_clock(720)
        '12pm'
    """
    hour, minute = divmod(minutes % MINUTES_PER_DAY, 60)
    suffix = "pm" if hour >= 12 else "am"
    hour12 = (hour + 11) % 12 + 1
    if minute:
        return f"{hour12}:{minute:02d}{suffix}"
    return f"{hour12}{suffix}"


def format_24h(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    hour, minute = divmod(minutes % MINUTES_PER_DAY, 60)
    return f"{hour:02d}:{minute:02d}"


def add_minutes(value: str, minutes: int) -> str:
    """Return the wall-clock time ``minutes`` after ``value``, in the same style."""
    total = parse_wall_clock(value) + minutes
    if _is_twelve_hour(value):
        return format_wall_clock(total)
    return format_24h(total)


def minutes_between(start: str, end: str) -> int:
    """Signed length in minutes from ``start`` to ``end``."""
    return parse_wall_clock(end) - parse_wall_clock(start)


def build_time_grid(start_hour: int, end_hour: int, step_minutes: int) -> list[str]:
    """Selectable times from ``start_hour`` to ``end_hour`` inclusive."""
    return [
        format_wall_clock(m)
        for m in range(start_hour * 60, end_hour * 60 + 1, step_minutes)
    ]
