"""Canonical trip date and time parsing.

Trips are stored with an ISO 8601 date and a 24-hour ``HH:MM`` time.
Older clients wrote French locale strings such as ``"05 janvier 2025"`` and
``"14:30"`` or ``"14 h 30"``; those are still accepted on input.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time

FRENCH_MONTHS = {
    "janvier": 1,
    "février": 2,
    "fevrier": 2,
    "mars": 3,
    "avril": 4,
    "mai": 5,
    "juin": 6,
    "juillet": 7,
    "août": 8,
    "aout": 8,
    "septembre": 9,
    "octobre": 10,
    "novembre": 11,
    "décembre": 12,
    "decembre": 12,
}

MONTH_NAMES = [
    "janvier",
    "février",
    "mars",
    "avril",
    "mai",
    "juin",
    "juillet",
    "août",
    "septembre",
    "octobre",
    "novembre",
    "décembre",
]

_FRENCH_DATE = re.compile(r"^(\d{1,2})\s+([^\s\d]+)\s+(\d{4})$")
_TIME = re.compile(r"^(\d{1,2})\s*(?::|h)\s*(\d{2})$", re.IGNORECASE)


def parse_trip_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date must be a non-empty string")

    raw = value.strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass

    match = _FRENCH_DATE.match(raw.lower())
    if not match:
        raise ValueError(f"unrecognized date: {value!r}")
    day, month_name, year = match.groups()
    month = FRENCH_MONTHS.get(month_name)
    if month is None:
        raise ValueError(f"unrecognized month: {month_name!r}")
    return date(int(year), month, int(day))


def parse_trip_time(value) -> str:
    """Return ``value`` as a zero-padded 24-hour ``HH:MM`` string."""
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if not isinstance(value, str):
        raise ValueError("time must be a string")

    match = _TIME.match(value.strip())
    if not match:
        raise ValueError(f"unrecognized time: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"time out of range: {value!r}")
    return f"{hours:02d}:{minutes:02d}"


def format_french_date(value: date) -> str:
    return f"{value.day:02d} {MONTH_NAMES[value.month - 1]} {value.year}"
