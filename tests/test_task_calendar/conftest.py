"""Shared fixtures for task calendar tests."""

from collections.abc import Callable
from datetime import date, timedelta
from typing import Any

import pytest

from task_dashboard.task_calendar.models import (
    Frequency,
    SessionContext,
    SheetKind,
    TaskRecord,
)

RowFactory = Callable[..., dict[str, Any]]


def _cells(values: dict[int, Any], width: int = 16) -> dict[str, Any]:
    return {"c": [{"v": values[i]} if values.get(i) is not None else None for i in range(width)]}


@pytest.fixture
def task_row() -> RowFactory:
    """Build a backend task-sheet row using the sheet column layout."""

    def factory(
        task_id: Any = "T-1",
        name: str = "Asha",
        start: Any = "Date(2025,6,1)",
        frequency: str = "",
        time: Any = None,
        column_m: str | None = None,
        column_n: str | None = None,
        description: str = "Check stock",
        priority: str | None = None,
    ) -> dict[str, Any]:
        return _cells(
            {
                0: "Date(2025,5,20,10,15,0)",
                1: task_id,
                2: "Stores",
                3: "Manager",
                4: name,
                5: description,
                6: start,
                7: frequency,
                8: time,
                12: column_m,
                13: column_n,
                15: priority,
            }
        )

    return factory


@pytest.fixture
def header_row() -> dict[str, Any]:
    return {"c": [{"v": "Header"} for _ in range(16)]}


@pytest.fixture
def july_weekdays() -> list[date]:
    """Every weekday of July 2025 (starts on Tuesday the 1st)."""
    first = date(2025, 7, 1)
    days = (first + timedelta(days=offset) for offset in range(31))
    return [day for day in days if day.weekday() < 5]


@pytest.fixture
def working_day_payload() -> Callable[[list[date]], dict[str, Any]]:
    """Build a working-day calendar payload from dates."""

    def factory(dates: list[date]) -> dict[str, Any]:
        rows = [{"c": [{"v": "Working Date"}]}]
        rows += [{"c": [{"v": f"Date({d.year},{d.month - 1},{d.day})"}]} for d in dates]
        return {"table": {"rows": rows}}

    return factory


@pytest.fixture
def admin_session() -> SessionContext:
    return SessionContext(username="root", display_name="Administrator", role="admin")


@pytest.fixture
def user_session() -> SessionContext:
    return SessionContext(username="asha", display_name="Asha", role="user")


@pytest.fixture
def make_task() -> Callable[..., TaskRecord]:
    """Build a TaskRecord directly."""

    def factory(
        task_id: str = "T-1",
        start_date: date = date(2025, 7, 1),
        sheet_kind: SheetKind = SheetKind.DELEGATION,
        name: str = "Asha",
        frequency: Frequency = Frequency.ONE_TIME,
        time: str = "no-time",
        completion_marker: str = "",
        **fields: Any,
    ) -> TaskRecord:
        return TaskRecord(
            task_id=task_id,
            start_date=start_date,
            sheet_kind=sheet_kind,
            row_index=2,
            name=name,
            frequency=frequency,
            time=time,
            completion_marker=completion_marker,
            **fields,
        )

    return factory
