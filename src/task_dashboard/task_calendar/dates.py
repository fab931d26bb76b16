"""Date utilities for spreadsheet-sourced task data.

Every date representation the backend produces (ISO strings, DD/MM/YYYY
strings, epoch milliseconds, ``Date(y,m,d)`` literals) is resolved here
into a plain :class:`datetime.date`. The rest of the package only ever
sees that canonical type.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Any

from .models import Frequency

# Google Visualization literal; month is zero-based
_SHEET_DATE_PATTERN = re.compile(
    r"^Date\((\d{1,4}),\s*(\d{1,2}),\s*(\d{1,2})"
    r"(?:,\s*(\d{1,2}),\s*(\d{1,2})(?:,\s*(\d{1,2}))?)?\)$"
)
_DMY_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:[ T].*)?$")
_TIME_24H_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_TIME_12H_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?\s*(AM|PM)$", re.IGNORECASE)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_sheet_literal(text: str) -> datetime | None:
    """
    Parse a ``Date(y,m,d[,h,mi[,s]])`` spreadsheet literal.

    Args:
        text: Literal as emitted by the spreadsheet endpoint

    Returns:
        Parsed datetime, or None if the text is not a valid literal
    """
    match = _SHEET_DATE_PATTERN.match(text.strip())
    if not match:
        return None

    year, month, day, hour, minute, second = (
        int(group) if group is not None else 0 for group in match.groups()
    )
    try:
        return datetime(year, month + 1, day, hour, minute, second)
    except ValueError:
        return None


def to_date(value: Any) -> date | None:
    """
    Convert a loosely typed value into a date.

    Args:
        value: date, datetime, epoch milliseconds, or a date string

    Returns:
        Parsed date, or None when the value cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    literal = parse_sheet_literal(text)
    if literal is not None:
        return literal.date()

    match = _DMY_PATTERN.match(text)
    if match:
        day, month, year = (int(group) for group in match.groups())
        return _safe_date(year, month, day)

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def format_date(value: Any) -> str:
    """Render a value as DD/MM/YYYY, or an empty string if unparseable."""
    parsed = to_date(value)
    if parsed is None:
        return ""
    return parsed.strftime("%d/%m/%Y")


def to_iso_key(value: Any) -> str:
    """Render a value as a YYYY-MM-DD aggregation key."""
    parsed = to_date(value)
    return parsed.isoformat() if parsed else ""


def is_same_day(first: Any, second: Any) -> bool:
    """Compare two values by calendar day, ignoring time of day."""
    first_date = to_date(first)
    second_date = to_date(second)
    if first_date is None or second_date is None:
        return False
    return first_date == second_date


def classify_frequency(text: Any) -> Frequency:
    """
    Map free-text frequency to a Frequency by prefix.

    Args:
        text: Source frequency text (e.g. "Daily", "W", "monthly")

    Returns:
        Matching Frequency; ONE_TIME for empty or unrecognized text
    """
    if text is None:
        return Frequency.ONE_TIME

    normalized = str(text).strip().lower()
    if normalized.startswith("d"):
        return Frequency.DAILY
    if normalized.startswith("w"):
        return Frequency.WEEKLY
    if normalized.startswith("m"):
        return Frequency.MONTHLY
    return Frequency.ONE_TIME


def parse_time_slot(text: str | None) -> time | None:
    """
    Parse a time-slot key into a clock time.

    Accepts 12-hour ``H:MM AM|PM`` and 24-hour ``H:MM`` text.

    Args:
        text: Slot text taken from a task's time column

    Returns:
        Clock time, or None for all-day (absent or unparseable) slots
    """
    if not text:
        return None
    text = text.strip()

    match = _TIME_12H_PATTERN.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if not 1 <= hour <= 12 or minute > 59:
            return None
        is_pm = match.group(3).upper() == "PM"
        if is_pm and hour != 12:
            hour += 12
        elif not is_pm and hour == 12:
            hour = 0
        return time(hour, minute)

    match = _TIME_24H_PATTERN.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            return None
        return time(hour, minute)

    return None
