"""Task calendar: working-day recurrence and calendar aggregation of sheet tasks."""

from .calendar_service import CalendarService
from .models import (
    CalendarEvent,
    DayBucket,
    Frequency,
    Occurrence,
    SessionContext,
    SheetKind,
    TaskGroup,
    TaskRecord,
)
from .sheet_client import SheetClient

__all__ = [
    "CalendarEvent",
    "CalendarService",
    "DayBucket",
    "Frequency",
    "Occurrence",
    "SessionContext",
    "SheetClient",
    "SheetKind",
    "TaskGroup",
    "TaskRecord",
]
