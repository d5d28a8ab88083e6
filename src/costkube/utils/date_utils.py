import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_iso_date(date_str: str) -> Optional[datetime]:
    """
    Parses an ISO 8601 date string into a datetime object.
    Handles the 'Z' suffix by replacing it with '+00:00' for compatibility
    with datetime.fromisoformat() in older Python versions (pre-3.11).

    Args:
        date_str: The ISO date string to parse.

    Returns:
        A datetime object or None if parsing fails.
    """
    if not date_str:
        return None

    try:
        if date_str.endswith("Z"):
            date_str = date_str.replace("Z", "+00:00")

        return datetime.fromisoformat(date_str)
    except ValueError:
        return None


def ensure_utc(dt: Union[datetime, str]) -> datetime:
    """
    Ensures a datetime object is timezone-aware and in UTC.
    If input is a string, it parses it first.
    If input is naive, it assumes UTC.
    """
    if isinstance(dt, str):
        parsed = parse_iso_date(dt)
        if not parsed:
            raise ValueError(f"Invalid date string: {dt}")
        dt = parsed

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt


def to_iso_z(dt: datetime) -> str:
    """
    Converts a datetime to an ISO 8601 string with 'Z' suffix for UTC.
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def normalize_time_param(param: str) -> str:
    """Convert a day-based duration like '2d' into hours ('48h').

    Prometheus range selectors accept 'd', but hour arithmetic downstream
    (window hours, cache keys) expects hours.

    Raises:
        ValueError: If the day count is not an integer.
    """
    if param and param.endswith("d"):
        count = param[:-1]
        if not count.isdigit():
            raise ValueError(f"Invalid day duration: '{param}'")
        return f"{int(count) * 24}h"
    return param


def parse_duration(value: str) -> timedelta:
    """Parse a Go-style duration string ('90s', '1h30m', '2d') into a timedelta.

    Raises:
        ValueError: If the string is empty or contains unknown units.
    """
    text = (value or "").strip().lower()
    if not text:
        raise ValueError("Empty duration")

    pos = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos != len(text):
        raise ValueError(f"Invalid duration: '{value}'")
    return timedelta(seconds=seconds)
