"""Calendar events derived from the date-aggregation map."""

from datetime import date, datetime, time, timedelta

from .config import EVENT_DURATION_MINUTES, NO_TIME_SLOT
from .dates import parse_time_slot
from .models import CalendarEvent, DateAggregationMap, TaskGroup


def build_event(date_key: str, time_key: str, tasks: TaskGroup) -> CalendarEvent | None:
    """
    Build the event for one date and time slot.

    Args:
        date_key: ISO date of the slot
        time_key: Slot text, or the no-time sentinel
        tasks: Occurrences scheduled in the slot

    Returns:
        CalendarEvent, or None if the slot holds no tasks
    """
    delegation_count = len(tasks.delegation)
    checklist_count = len(tasks.checklist)
    if delegation_count == 0 and checklist_count == 0:
        return None

    day = date.fromisoformat(date_key)
    slot_time = None if time_key == NO_TIME_SLOT else parse_time_slot(time_key)

    if slot_time is None:
        start: date | datetime = day
        end = None
    else:
        start = datetime.combine(day, slot_time)
        end = start + timedelta(minutes=EVENT_DURATION_MINUTES)

    return CalendarEvent(
        id=f"{date_key}-{time_key}",
        title=f"{delegation_count}D {checklist_count}C",
        date_key=date_key,
        time_key=time_key,
        all_day=slot_time is None,
        start=start,
        end=end,
        delegation_count=delegation_count,
        checklist_count=checklist_count,
        tasks=tasks,
    )


def slot_sort_key(time_key: str) -> tuple[bool, time, str]:
    """Order slots by clock time, with all-day slots after timed ones."""
    slot_time = None if time_key == NO_TIME_SLOT else parse_time_slot(time_key)
    return (slot_time is None, slot_time or time.min, time_key)


def build_calendar_events(date_map: DateAggregationMap) -> list[CalendarEvent]:
    """Build one event per populated date/time slot, ordered by date then slot."""
    events: list[CalendarEvent] = []
    for date_key in sorted(date_map):
        slots = date_map[date_key].tasks_by_time
        for time_key in sorted(slots, key=slot_sort_key):
            event = build_event(date_key, time_key, slots[time_key])
            if event is not None:
                events.append(event)
    return events
