"""Calendar Service coordinating backend refreshes and derived views."""

import logging
from datetime import date, datetime
from typing import Any

from .aggregator import (
    build_date_map,
    calculate_stats,
    extract_unique_names,
    resolve_name_filter,
)
from .config import (
    ALL_NAMES,
    CHECKLIST_SHEET,
    DELEGATION_SHEET,
    REFRESH_ERROR_PREFIX,
    WORKING_DAY_SHEET,
)
from .drilldown import DrillDownScope, SearchField, SheetFilter, filter_tasks, tasks_for_scope
from .events import build_calendar_events
from .exceptions import BackendError
from .interfaces import SheetSource
from .models import (
    CalendarEvent,
    DateAggregationMap,
    Occurrence,
    SessionContext,
    SheetKind,
    SheetStats,
    TaskGroup,
    TaskRecord,
)
from .row_transformer import transform_rows, transform_working_dates
from .task_list import (
    ListFilterOptions,
    TaskListField,
    filter_list_by_role,
    filter_task_list,
    list_filter_options,
    sort_task_list,
)

logger = logging.getLogger(__name__)


def task_to_dict(task: TaskRecord) -> dict[str, Any]:
    """Format a task record for JSON output."""
    return {
        "task_id": task.task_id,
        "timestamp": task.timestamp,
        "sheet": task.sheet_kind.value,
        "department": task.department,
        "given_by": task.given_by,
        "name": task.name,
        "description": task.description,
        "start_date": task.start_date.isoformat(),
        "frequency": task.frequency.value,
        "frequency_text": task.frequency_text,
        "time": task.time,
        "status": task.status,
        "remarks": task.remarks,
        "priority": task.priority,
        "row_index": task.row_index,
    }


def occurrence_to_dict(occurrence: Occurrence) -> dict[str, Any]:
    return {**task_to_dict(occurrence.task), "display_date": occurrence.display_date.isoformat()}


def group_to_dict(group: TaskGroup) -> dict[str, list[dict[str, Any]]]:
    return {
        "delegation": [occurrence_to_dict(o) for o in group.delegation],
        "checklist": [occurrence_to_dict(o) for o in group.checklist],
    }


def event_to_dict(event: CalendarEvent) -> dict[str, Any]:
    """Format a calendar event for JSON output."""
    return {
        "id": event.id,
        "title": event.title,
        "date": event.date_key,
        "time_key": event.time_key,
        "all_day": event.all_day,
        "start": event.start.isoformat(),
        "end": event.end.isoformat() if event.end else None,
        "delegation_count": event.delegation_count,
        "checklist_count": event.checklist_count,
    }


class CalendarService:
    """
    Maintains the calendar state for one acting user.

    A refresh reads the working-day calendar, the delegation sheet and the
    checklist sheet in sequence. Either all three succeed and every
    derived view is rebuilt, or the refresh fails, all state is cleared
    and a single error message is recorded for the caller to show with a
    retry action.
    """

    def __init__(
        self,
        source: SheetSource,
        session: SessionContext,
        name_filter: str = ALL_NAMES,
    ) -> None:
        """
        Initialize Calendar Service.

        Args:
            source: Backend the sheets are read from
            session: Acting user identity
            name_filter: Initial assignee filter, or "all"
        """
        self._source = source
        self._session = session
        self._name_filter = resolve_name_filter(name_filter)
        self._loading = False
        self._error: str | None = None
        self._reset()

    def _reset(self) -> None:
        self._last_refreshed: datetime | None = None
        self._working_dates: list[date] = []
        self._delegation_tasks: list[TaskRecord] = []
        self._checklist_tasks: list[TaskRecord] = []
        self._date_map: DateAggregationMap = {}
        self._events: list[CalendarEvent] = []
        self._stats: dict[SheetKind, SheetStats] = {
            SheetKind.DELEGATION: SheetStats(),
            SheetKind.CHECKLIST: SheetStats(),
        }
        self._available_names: list[str] = []

    def _rebuild(self) -> None:
        self._date_map = build_date_map(
            self._delegation_tasks,
            self._checklist_tasks,
            self._working_dates,
            self._session,
            self._name_filter,
        )
        self._events = build_calendar_events(self._date_map)

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def name_filter(self) -> str:
        return self._name_filter

    @property
    def working_dates(self) -> list[date]:
        return list(self._working_dates)

    @property
    def date_map(self) -> DateAggregationMap:
        return self._date_map

    @property
    def events(self) -> list[CalendarEvent]:
        return list(self._events)

    @property
    def available_names(self) -> list[str]:
        return list(self._available_names)

    @property
    def last_refreshed(self) -> datetime | None:
        return self._last_refreshed

    async def refresh(self) -> bool:
        """
        Reload all sheets and rebuild the calendar.

        A call made while another refresh is in flight is ignored.

        Returns:
            True if the calendar was rebuilt, False if the refresh failed
            or was ignored
        """
        if self._loading:
            logger.warning("Refresh already in progress, ignoring request")
            return False

        self._loading = True
        self._error = None
        logger.info(f"Refreshing calendar (role={self._session.role})")

        try:
            working_dates = transform_working_dates(
                await self._source.fetch_rows(WORKING_DAY_SHEET)
            )
            delegation_tasks = transform_rows(
                await self._source.fetch_rows(DELEGATION_SHEET), SheetKind.DELEGATION
            )
            checklist_tasks = transform_rows(
                await self._source.fetch_rows(CHECKLIST_SHEET), SheetKind.CHECKLIST
            )
        except BackendError as e:
            self._reset()
            self._error = f"{REFRESH_ERROR_PREFIX}: {e}"
            logger.error(self._error)
            return False
        finally:
            self._loading = False

        self._working_dates = working_dates
        self._delegation_tasks = delegation_tasks
        self._checklist_tasks = checklist_tasks
        self._stats = calculate_stats(delegation_tasks, checklist_tasks)
        self._available_names = extract_unique_names(delegation_tasks, checklist_tasks)
        self._rebuild()
        self._last_refreshed = datetime.now()

        logger.info(
            f"Calendar refreshed: {len(working_dates)} working dates, "
            f"{len(delegation_tasks)} delegation tasks, "
            f"{len(checklist_tasks)} checklist tasks, {len(self._events)} events"
        )
        return True

    def set_name_filter(self, name: str) -> None:
        """Show only tasks assigned to ``name`` ("all" shows everyone)."""
        self._name_filter = resolve_name_filter(name)
        self._rebuild()
        logger.info(f"Name filter set to '{self._name_filter}'")

    def set_session(self, session: SessionContext) -> None:
        """Switch the acting user and rebuild the calendar for them."""
        self._session = session
        self._rebuild()
        logger.info(f"Session switched to role={session.role}")

    def day_details(self, day: date, time_key: str | None = None) -> TaskGroup:
        """
        Get the tasks scheduled on a date.

        Args:
            day: Date to inspect
            time_key: Optional time slot to narrow to

        Returns:
            Occurrences on that date (and slot), split by sheet kind
        """
        bucket = self._date_map.get(day.isoformat())
        if bucket is None:
            return TaskGroup()
        if time_key is None:
            return TaskGroup(delegation=list(bucket.delegation), checklist=list(bucket.checklist))
        slot = bucket.tasks_by_time.get(time_key)
        if slot is None:
            return TaskGroup()
        return TaskGroup(delegation=list(slot.delegation), checklist=list(slot.checklist))

    def drill_down(
        self,
        anchor: date,
        scope: DrillDownScope = DrillDownScope.DAY,
        sheet_filter: SheetFilter = SheetFilter.ALL,
        query: str = "",
        search_field: SearchField = SearchField.NAME,
    ) -> TaskGroup:
        """Get the filtered day, week or month view around ``anchor``."""
        view = tasks_for_scope(self._date_map, anchor, scope)
        return filter_tasks(view, sheet_filter, query, search_field)

    def _sheet_tasks(self, sheet: SheetKind) -> list[TaskRecord]:
        tasks = self._delegation_tasks if sheet == SheetKind.DELEGATION else self._checklist_tasks
        return filter_list_by_role(tasks, self._session)

    def list_tasks(
        self,
        sheet: SheetKind = SheetKind.DELEGATION,
        name: str = "",
        frequency_text: str = "",
        query: str = "",
        sort_field: TaskListField | None = None,
        descending: bool = False,
    ) -> list[TaskRecord]:
        """
        Get the flat task list of one sheet.

        Unlike the calendar, the list includes completed tasks and tasks
        whose start date is not a working date.

        Args:
            sheet: Sheet to list
            name: Exact assignee name, blank for everyone
            frequency_text: Exact frequency text, blank for every frequency
            query: Case-insensitive search across all fields
            sort_field: Column to sort by, None for sheet order
            descending: Reverse the sort

        Returns:
            Visible tasks after filtering and sorting
        """
        tasks = filter_task_list(self._sheet_tasks(sheet), name, frequency_text, query)
        return sort_task_list(tasks, sort_field, descending)

    def list_filter_options(self, sheet: SheetKind = SheetKind.DELEGATION) -> ListFilterOptions:
        """Get the names and frequencies offered by the list filters of a sheet."""
        return list_filter_options(self._sheet_tasks(sheet))

    def get_statistics(self) -> dict[str, dict[str, int]]:
        """
        Get task statistics.

        Returns:
            Total and pending counts keyed by sheet kind
        """
        return {
            kind.value: {"total": stats.total, "pending": stats.pending}
            for kind, stats in self._stats.items()
        }

    def snapshot(self) -> dict[str, Any]:
        """Summarise the current calendar state as JSON-ready data."""
        return {
            "role": self._session.role,
            "name_filter": self._name_filter,
            "error": self._error,
            "last_refreshed": (
                self._last_refreshed.isoformat() if self._last_refreshed else None
            ),
            "statistics": self.get_statistics(),
            "available_names": self.available_names,
            "events": [event_to_dict(event) for event in self._events],
        }

    async def shutdown(self) -> None:
        """
        Shutdown the service and close the backend connection.

        Handles errors gracefully to ensure cleanup completes.
        """
        logger.info("Shutting down Calendar Service")
        try:
            await self._source.close()
        except Exception as e:
            logger.error(f"Error closing sheet source: {e}")

        self._reset()
