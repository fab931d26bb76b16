"""Day, week and month drill-down views over the date-aggregation map."""

from datetime import date, timedelta
from enum import Enum

from .models import DateAggregationMap, Occurrence, TaskGroup


class DrillDownScope(str, Enum):
    """Period covered by a drill-down view."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class SheetFilter(str, Enum):
    """Which sheet's tasks a view shows."""

    ALL = "all"
    DELEGATION = "delegation"
    CHECKLIST = "checklist"


class SearchField(str, Enum):
    """Task field matched by the drill-down search box."""

    NAME = "name"
    TASK_ID = "task_id"


def week_bounds(anchor: date) -> tuple[date, date]:
    """Return the Sunday-to-Saturday week containing ``anchor``."""
    # weekday() is Monday=0; weeks here start on Sunday
    start = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def _merge_unique(target: list[Occurrence], occurrences: list[Occurrence]) -> None:
    seen = {occurrence.task.task_id for occurrence in target}
    for occurrence in occurrences:
        if occurrence.task.task_id not in seen:
            seen.add(occurrence.task.task_id)
            target.append(occurrence)


def tasks_for_scope(
    date_map: DateAggregationMap,
    anchor: date,
    scope: DrillDownScope = DrillDownScope.DAY,
) -> TaskGroup:
    """
    Collect the tasks shown when drilling into a date.

    Week and month views list each task once per sheet, however many
    times it recurs in the period.

    Args:
        date_map: Current date-aggregation map
        anchor: Date the user selected
        scope: Period to collect

    Returns:
        Occurrences split by sheet kind
    """
    if scope == DrillDownScope.DAY:
        bucket = date_map.get(anchor.isoformat())
        if bucket is None:
            return TaskGroup()
        return TaskGroup(delegation=list(bucket.delegation), checklist=list(bucket.checklist))

    if scope == DrillDownScope.WEEK:
        first, last = week_bounds(anchor)

        def in_period(day: date) -> bool:
            return first <= day <= last

    else:

        def in_period(day: date) -> bool:
            return (day.year, day.month) == (anchor.year, anchor.month)

    group = TaskGroup()
    for date_key in sorted(date_map):
        if not in_period(date.fromisoformat(date_key)):
            continue
        bucket = date_map[date_key]
        _merge_unique(group.delegation, bucket.delegation)
        _merge_unique(group.checklist, bucket.checklist)
    return group


def filter_tasks(
    group: TaskGroup,
    sheet_filter: SheetFilter = SheetFilter.ALL,
    query: str = "",
    search_field: SearchField = SearchField.NAME,
) -> TaskGroup:
    """
    Narrow a drill-down view by sheet and search text.

    Args:
        group: View to filter
        sheet_filter: Sheet whose tasks to keep
        query: Case-insensitive substring to look for
        search_field: Field the query is matched against

    Returns:
        New TaskGroup with the matching occurrences
    """
    delegation = group.delegation if sheet_filter != SheetFilter.CHECKLIST else []
    checklist = group.checklist if sheet_filter != SheetFilter.DELEGATION else []

    needle = query.strip().lower()
    if needle:

        def matches(occurrence: Occurrence) -> bool:
            if search_field == SearchField.NAME:
                haystack = occurrence.task.name
            else:
                haystack = occurrence.task.task_id
            return needle in haystack.lower()

        delegation = [occurrence for occurrence in delegation if matches(occurrence)]
        checklist = [occurrence for occurrence in checklist if matches(occurrence)]

    return TaskGroup(delegation=list(delegation), checklist=list(checklist))
