"""Aggregation of task collections into the date-keyed calendar map."""

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from .config import ALL_NAMES, CHECKLIST_DONE_MARKER, DELEGATION_DONE_MARKER, NO_TIME_SLOT
from .models import (
    DateAggregationMap,
    DayBucket,
    Occurrence,
    SessionContext,
    SheetKind,
    SheetStats,
    TaskGroup,
    TaskRecord,
)
from .recurrence import expand_occurrences

logger = logging.getLogger(__name__)


def normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def filter_by_role(tasks: Iterable[TaskRecord], session: SessionContext) -> list[TaskRecord]:
    """
    Keep the tasks visible to the acting user.

    Admins see everything; other users see tasks assigned to their
    username or display name.
    """
    if session.is_admin:
        return list(tasks)

    identities = {
        normalize(identity)
        for identity in (session.username, session.display_name)
        if normalize(identity)
    }
    return [task for task in tasks if normalize(task.name) in identities]


def is_pending(task: TaskRecord) -> bool:
    """Return True unless the sheet's completion marker says the task is done."""
    marker = normalize(task.completion_marker)
    if task.sheet_kind == SheetKind.CHECKLIST:
        return marker != CHECKLIST_DONE_MARKER
    return marker != DELEGATION_DONE_MARKER


def filter_pending(tasks: Iterable[TaskRecord]) -> list[TaskRecord]:
    return [task for task in tasks if is_pending(task)]


def resolve_name_filter(name_filter: str | None) -> str:
    """Trim a requested name filter; blank means "all"."""
    trimmed = (name_filter or "").strip()
    return trimmed or ALL_NAMES


def filter_by_name(tasks: Iterable[TaskRecord], name_filter: str = ALL_NAMES) -> list[TaskRecord]:
    """Keep tasks assigned to ``name_filter``; "all" or a blank filter keeps everything."""
    wanted = normalize(name_filter)
    if not wanted or name_filter == ALL_NAMES:
        return list(tasks)
    return [task for task in tasks if normalize(task.name) == wanted]


def _place(date_map: DateAggregationMap, task: TaskRecord, occurrence_date: date) -> None:
    date_key = occurrence_date.isoformat()
    bucket = date_map.setdefault(date_key, DayBucket())
    occurrence = Occurrence(task=task, display_date=occurrence_date)
    bucket.add(occurrence)

    time_key = task.time or NO_TIME_SLOT
    bucket.tasks_by_time.setdefault(time_key, TaskGroup()).add(occurrence)


def build_date_map(
    delegation_tasks: Sequence[TaskRecord],
    checklist_tasks: Sequence[TaskRecord],
    working_dates: Sequence[date],
    session: SessionContext,
    name_filter: str = ALL_NAMES,
) -> DateAggregationMap:
    """
    Build the date-aggregation map for the calendar.

    Each collection passes through the role, pending and name filters in
    that order before its tasks are expanded over the working dates and
    placed under their ISO date and time-slot keys. The map is always
    built from scratch.

    Args:
        delegation_tasks: Tasks read from the delegation sheet
        checklist_tasks: Tasks read from the checklist sheet
        working_dates: Ordered working-day calendar
        session: Acting user identity
        name_filter: Assignee name to show, or "all"

    Returns:
        Mapping of ISO date to the occurrences scheduled that day
    """
    date_map: DateAggregationMap = {}

    for tasks in (delegation_tasks, checklist_tasks):
        visible = filter_by_name(filter_pending(filter_by_role(tasks, session)), name_filter)
        for task in visible:
            for occurrence_date in expand_occurrences(
                task.start_date, working_dates, task.frequency
            ):
                _place(date_map, task, occurrence_date)

    logger.debug(
        f"Built date map with {len(date_map)} dates "
        f"(role={session.role}, name_filter={name_filter})"
    )
    return date_map


def calculate_stats(
    delegation_tasks: Sequence[TaskRecord],
    checklist_tasks: Sequence[TaskRecord],
) -> dict[SheetKind, SheetStats]:
    """Count total and pending tasks per sheet."""
    return {
        SheetKind.DELEGATION: SheetStats(
            total=len(delegation_tasks),
            pending=sum(1 for task in delegation_tasks if is_pending(task)),
        ),
        SheetKind.CHECKLIST: SheetStats(
            total=len(checklist_tasks),
            pending=sum(1 for task in checklist_tasks if is_pending(task)),
        ),
    }


def extract_unique_names(
    delegation_tasks: Sequence[TaskRecord],
    checklist_tasks: Sequence[TaskRecord],
) -> list[str]:
    """Return the sorted assignee names found in both collections."""
    names = {task.name.strip() for task in [*delegation_tasks, *checklist_tasks] if task.name.strip()}
    return sorted(names)
