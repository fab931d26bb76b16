"""Recurrence expansion over the working-day calendar.

Recurrence is defined relative to the working-date sequence, not the
raw calendar: a task whose start date is not a working date never
occurs, and weekly tasks stride over positions in the sequence.
"""

from collections.abc import Sequence
from datetime import date

from .config import WEEKLY_STRIDE
from .models import Frequency


def _add_months(anchor: date, months: int) -> date | None:
    """Return the anchor's day-of-month ``months`` later, if that day exists."""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    try:
        return anchor.replace(year=year, month=month)
    except ValueError:
        return None


def find_working_index(start_date: date, working_dates: Sequence[date]) -> int | None:
    """Return the first position of ``start_date`` in the working dates."""
    for index, working_date in enumerate(working_dates):
        if working_date == start_date:
            return index
    return None


def expand_occurrences(
    start_date: date,
    working_dates: Sequence[date],
    frequency: Frequency,
) -> list[date]:
    """
    Produce the dates on which a task occurs.

    Args:
        start_date: Anchor date of the task
        working_dates: Ordered working-day calendar
        frequency: Recurrence class of the task

    Returns:
        Occurrence dates drawn from ``working_dates``; empty if the start
        date is not a working date
    """
    start_index = find_working_index(start_date, working_dates)
    if start_index is None:
        return []

    if frequency == Frequency.DAILY:
        return list(working_dates[start_index:])

    if frequency == Frequency.WEEKLY:
        return list(working_dates[start_index::WEEKLY_STRIDE])

    if frequency == Frequency.MONTHLY:
        last_working_date = working_dates[-1]
        working_set = set(working_dates)
        occurrences: list[date] = []
        months = 0
        # Stepping from the anchor keeps the day-of-month stable
        while True:
            candidate = _add_months(start_date, months)
            months += 1
            if candidate is None:
                continue
            if candidate > last_working_date:
                break
            if candidate in working_set:
                occurrences.append(candidate)
        return occurrences

    return [working_dates[start_index]]
