"""Flat task-list views: filtering, search, sorting and filter options."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from .aggregator import normalize
from .dates import format_date, parse_sheet_literal, to_date
from .models import SessionContext, TaskRecord

logger = logging.getLogger(__name__)


class TaskListField(str, Enum):
    """Task column a list can be sorted by."""

    TIMESTAMP = "timestamp"
    TASK_ID = "task_id"
    DEPARTMENT = "department"
    GIVEN_BY = "given_by"
    NAME = "name"
    DESCRIPTION = "description"
    START_DATE = "start_date"
    FREQUENCY = "frequency_text"
    TIME = "time"
    STATUS = "status"
    REMARKS = "remarks"
    PRIORITY = "priority"


@dataclass
class ListFilterOptions:
    """Distinct values offered by the list's name and frequency filters."""

    names: list[str] = field(default_factory=list)
    frequencies: list[str] = field(default_factory=list)


def filter_list_by_role(
    tasks: Iterable[TaskRecord], session: SessionContext
) -> list[TaskRecord]:
    """
    Keep the tasks a user may see in the task list.

    Admins see everything. Other users see tasks assigned to them or
    given by them, matched on username or display name.
    """
    if session.is_admin:
        return list(tasks)

    identities = {
        normalize(identity)
        for identity in (session.username, session.display_name)
        if normalize(identity)
    }
    return [
        task
        for task in tasks
        if normalize(task.name) in identities or normalize(task.given_by) in identities
    ]


def _search_text(task: TaskRecord) -> list[str]:
    return [
        task.timestamp,
        task.task_id,
        task.department,
        task.given_by,
        task.name,
        task.description,
        format_date(task.start_date),
        task.start_date.isoformat(),
        task.frequency_text,
        task.time,
        task.status,
        task.remarks,
        task.priority,
    ]


def filter_task_list(
    tasks: Iterable[TaskRecord],
    name: str = "",
    frequency_text: str = "",
    query: str = "",
) -> list[TaskRecord]:
    """
    Filter a task list.

    Args:
        tasks: Tasks to filter
        name: Exact assignee name; blank keeps every name
        frequency_text: Exact frequency text as written in the sheet;
            blank keeps every frequency
        query: Case-insensitive substring looked up in every field

    Returns:
        Matching tasks in their original order
    """
    wanted_name = name.strip()
    wanted_frequency = frequency_text.strip()
    needle = query.strip().lower()

    result: list[TaskRecord] = []
    for task in tasks:
        if wanted_name and task.name.strip() != wanted_name:
            continue
        if wanted_frequency and task.frequency_text.strip() != wanted_frequency:
            continue
        if needle and not any(needle in value.lower() for value in _search_text(task)):
            continue
        result.append(task)
    return result


def _timestamp_key(text: str) -> datetime | None:
    literal = parse_sheet_literal(text) if text else None
    if literal is not None:
        return literal
    parsed = to_date(text)
    return datetime.combine(parsed, time.min) if parsed else None


def _sort_key(task: TaskRecord, sort_field: TaskListField) -> tuple[Any, ...]:
    # Blank values sort last in ascending order
    if sort_field == TaskListField.START_DATE:
        return (False, task.start_date, "")
    text = str(getattr(task, sort_field.value)).strip()
    if sort_field == TaskListField.TIMESTAMP:
        stamp = _timestamp_key(text)
        if stamp is not None:
            return (False, stamp, text)
        return (not text, datetime.min, text.casefold())
    return (not text, date.min, text.casefold())


def sort_task_list(
    tasks: Sequence[TaskRecord],
    sort_field: TaskListField | None = None,
    descending: bool = False,
) -> list[TaskRecord]:
    """
    Sort a task list by one column.

    Text columns compare case-insensitively, the start date compares as
    a date and the timestamp compares as a point in time when it parses.

    Args:
        tasks: Tasks to sort
        sort_field: Column to sort by; None keeps sheet order
        descending: Reverse the order

    Returns:
        New sorted list
    """
    if sort_field is None:
        return list(tasks)
    return sorted(tasks, key=lambda task: _sort_key(task, sort_field), reverse=descending)


def list_filter_options(tasks: Iterable[TaskRecord]) -> ListFilterOptions:
    """Collect the distinct non-blank names and frequency texts, in first-seen order."""
    options = ListFilterOptions()
    for task in tasks:
        name = task.name.strip()
        if name and name not in options.names:
            options.names.append(name)
        frequency = task.frequency_text.strip()
        if frequency and frequency not in options.frequencies:
            options.frequencies.append(frequency)
    logger.debug(
        f"List filter options: {len(options.names)} names, "
        f"{len(options.frequencies)} frequencies"
    )
    return options
