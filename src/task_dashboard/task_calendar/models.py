"""Data models for the task calendar."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .config import (
    ADMIN_ROLE,
    DEFAULT_BACKEND_URL,
    DEFAULT_PRIORITY,
    DEFAULT_ROLE,
    DEFAULT_STATUS,
    NO_TIME_SLOT,
)


class Frequency(str, Enum):
    """Recurrence class of a task."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ONE_TIME = "oneTime"


class SheetKind(str, Enum):
    """Origin sheet of a task record."""

    DELEGATION = "delegation"
    CHECKLIST = "checklist"


@dataclass(frozen=True)
class SessionContext:
    """Acting user identity, supplied once at the boundary of the core."""

    username: str = ""
    display_name: str = ""
    role: str = DEFAULT_ROLE
    backend_url: str = DEFAULT_BACKEND_URL

    @property
    def is_admin(self) -> bool:
        return self.role.strip().lower() == ADMIN_ROLE


@dataclass
class TaskRecord:
    """A task read from the delegation or checklist sheet."""

    task_id: str
    start_date: date
    sheet_kind: SheetKind
    row_index: int
    department: str = ""
    given_by: str = ""
    name: str = ""
    description: str = ""
    frequency: Frequency = Frequency.ONE_TIME
    frequency_text: str = ""
    time: str = NO_TIME_SLOT
    status: str = DEFAULT_STATUS
    remarks: str = ""
    priority: str = DEFAULT_PRIORITY
    completion_marker: str = ""
    timestamp: str = ""


@dataclass
class Occurrence:
    """One concrete calendar placement of a task."""

    task: TaskRecord
    display_date: date


@dataclass
class TaskGroup:
    """Occurrences split by sheet kind."""

    delegation: list[Occurrence] = field(default_factory=list)
    checklist: list[Occurrence] = field(default_factory=list)

    def add(self, occurrence: Occurrence) -> None:
        if occurrence.task.sheet_kind == SheetKind.DELEGATION:
            self.delegation.append(occurrence)
        else:
            self.checklist.append(occurrence)

    @property
    def total(self) -> int:
        return len(self.delegation) + len(self.checklist)


@dataclass
class DayBucket(TaskGroup):
    """All occurrences on one date, with a per-time-slot breakdown."""

    tasks_by_time: dict[str, TaskGroup] = field(default_factory=dict)


# ISO date key (YYYY-MM-DD) -> bucket
DateAggregationMap = dict[str, DayBucket]


@dataclass
class SheetStats:
    """Task counts for one sheet."""

    total: int = 0
    pending: int = 0


@dataclass
class CalendarEvent:
    """A calendar entry summarising the tasks in one date/time slot."""

    id: str
    title: str
    date_key: str
    time_key: str
    all_day: bool
    start: date | datetime
    end: datetime | None
    delegation_count: int
    checklist_count: int
    tasks: TaskGroup
