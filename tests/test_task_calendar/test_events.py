"""Tests for calendar event building."""

from collections.abc import Callable
from datetime import date, datetime

import pytest

from task_dashboard.task_calendar.events import build_calendar_events, build_event
from task_dashboard.task_calendar.models import (
    DayBucket,
    Occurrence,
    SheetKind,
    TaskGroup,
    TaskRecord,
)

TaskFactory = Callable[..., TaskRecord]


def _group(*tasks: TaskRecord, day: date = date(2025, 7, 4)) -> TaskGroup:
    group = TaskGroup()
    for task in tasks:
        group.add(Occurrence(task=task, display_date=day))
    return group


@pytest.mark.unit
class TestBuildEvent:
    """Test cases for single-slot events."""

    def test_timed_slot_lasts_one_hour(self, make_task: TaskFactory) -> None:
        event = build_event("2025-07-04", "14:30", _group(make_task(time="14:30")))

        assert event is not None
        assert event.all_day is False
        assert event.start == datetime(2025, 7, 4, 14, 30)
        assert event.end == datetime(2025, 7, 4, 15, 30)

    def test_twelve_hour_slot(self, make_task: TaskFactory) -> None:
        event = build_event("2025-07-04", "2:30 PM", _group(make_task(time="2:30 PM")))

        assert event is not None
        assert event.start == datetime(2025, 7, 4, 14, 30)

    def test_late_slot_ends_next_day(self, make_task: TaskFactory) -> None:
        event = build_event("2025-07-04", "23:30", _group(make_task(time="23:30")))

        assert event is not None
        assert event.end == datetime(2025, 7, 5, 0, 30)

    def test_no_time_slot_is_all_day(self, make_task: TaskFactory) -> None:
        event = build_event("2025-07-04", "no-time", _group(make_task()))

        assert event is not None
        assert event.all_day is True
        assert event.start == date(2025, 7, 4)
        assert event.end is None

    def test_unparseable_slot_is_all_day_but_keeps_key(self, make_task: TaskFactory) -> None:
        event = build_event("2025-07-04", "after lunch", _group(make_task(time="after lunch")))

        assert event is not None
        assert event.all_day is True
        assert event.id == "2025-07-04-after lunch"
        assert event.time_key == "after lunch"

    def test_title_counts_both_sheets(self, make_task: TaskFactory) -> None:
        group = _group(
            make_task(task_id="D1"),
            make_task(task_id="D2"),
            make_task(task_id="C1", sheet_kind=SheetKind.CHECKLIST),
        )

        event = build_event("2025-07-04", "no-time", group)

        assert event is not None
        assert event.title == "2D 1C"
        assert (event.delegation_count, event.checklist_count) == (2, 1)

    def test_empty_slot_has_no_event(self) -> None:
        assert build_event("2025-07-04", "10:00", TaskGroup()) is None


@pytest.mark.unit
class TestBuildCalendarEvents:
    """Test cases for whole-map event lists."""

    def test_one_event_per_date_and_slot_in_order(self, make_task: TaskFactory) -> None:
        later = DayBucket(tasks_by_time={"no-time": _group(make_task(), day=date(2025, 7, 8))})
        earlier = DayBucket(
            tasks_by_time={
                "15:00": _group(make_task(time="15:00")),
                "09:00": _group(make_task(time="09:00")),
            }
        )

        events = build_calendar_events({"2025-07-08": later, "2025-07-04": earlier})

        assert [event.id for event in events] == [
            "2025-07-04-09:00",
            "2025-07-04-15:00",
            "2025-07-08-no-time",
        ]

    def test_slots_in_clock_order(self, make_task: TaskFactory) -> None:
        slots = ["no-time", "10:00", "2:00 PM", "9:00", "9:00 AM", "after lunch"]
        bucket = DayBucket(tasks_by_time={slot: _group(make_task(time=slot)) for slot in slots})

        events = build_calendar_events({"2025-07-04": bucket})

        assert [event.time_key for event in events] == [
            "9:00",
            "9:00 AM",
            "10:00",
            "2:00 PM",
            "after lunch",
            "no-time",
        ]

    def test_empty_map(self) -> None:
        assert build_calendar_events({}) == []
