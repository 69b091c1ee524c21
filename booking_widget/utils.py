"""Shared utilities for time strings and contact details."""

import re

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")


def parse_time_to_minutes(value: str) -> int:
    """Convert an "HH:MM" 24-hour string to minutes since midnight.

    "24:00" is accepted as the end of the day.

    Examples:
        >>> parse_time_to_minutes("08:30")
        510
        >>> parse_time_to_minutes("24:00")
        1440
    """
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    total = hours * 60 + minutes
    if minutes > 59 or total > MINUTES_PER_DAY:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return total


def minutes_to_time_string(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time_display(value: str) -> str:
    """Format "HH:MM" for display, e.g. "13:30" -> "1:30 PM"."""
    total = parse_time_to_minutes(value)
    hours, minutes = (total // 60) % 24, total % 60
    suffix = "PM" if hours >= 12 else "AM"
    return f"{hours % 12 or 12}:{minutes:02d} {suffix}"


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(555) 123-4567")
        '5551234567'
        >>> normalize_phone("+1 555 123 4567")
        '+15551234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def format_phone_e164(value: str) -> str:
    """Format a North American number to E.164, passing other lengths through."""
    digits = re.sub(r"[^\d]", "", value)
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"
