"""Tests for the Calendar Service refresh cycle."""

import asyncio
from collections.abc import Callable
from datetime import date
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from task_dashboard.task_calendar.calendar_service import CalendarService
from task_dashboard.task_calendar.drilldown import DrillDownScope, SheetFilter
from task_dashboard.task_calendar.exceptions import BackendTimeoutError, SheetFetchError
from task_dashboard.task_calendar.models import SessionContext, SheetKind
from task_dashboard.task_calendar.sheet_client import SheetClient
from task_dashboard.task_calendar.task_list import TaskListField


@pytest.fixture
def sheet_rows(
    header_row: Any,
    task_row: Any,
    july_weekdays: list[date],
    working_day_payload: Callable[[list[date]], dict[str, Any]],
) -> dict[str, list[Any]]:
    """Rows keyed by sheet name for a small July 2025 dataset."""
    return {
        "Working Day Calendar": working_day_payload(july_weekdays)["table"]["rows"],
        "DELEGATION": [
            header_row,
            task_row(task_id="D1", name="Asha", frequency="Weekly", time="10:00"),
            task_row(task_id="D2", name="Ravi", start="Date(2025,6,4)", column_n="Done"),
            task_row(task_id="D3", name="Ravi", start="Date(2025,6,7)", time="2:00 PM"),
        ],
        "Checklist": [
            header_row,
            task_row(task_id="C1", name="asha", frequency="Daily"),
            task_row(task_id="C2", name="Meena", column_m="Yes"),
            task_row(task_id=None),
        ],
    }


@pytest.fixture
def mock_source(sheet_rows: dict[str, list[Any]]) -> AsyncMock:
    """Create a mock sheet source serving ``sheet_rows``."""
    source = AsyncMock()

    async def fetch_rows(sheet_name: str) -> list[Any]:
        return sheet_rows[sheet_name]

    source.fetch_rows = AsyncMock(side_effect=fetch_rows)
    source.close = AsyncMock()
    return source


@pytest.mark.unit
@pytest.mark.asyncio
class TestCalendarServiceRefresh:
    """Test successful refreshes."""

    async def test_fetches_sheets_in_order(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)

        assert await service.refresh() is True

        sheets = [call.args[0] for call in mock_source.fetch_rows.call_args_list]
        assert sheets == ["Working Day Calendar", "DELEGATION", "Checklist"]

    async def test_builds_all_views(
        self, mock_source: AsyncMock, admin_session: SessionContext, july_weekdays: list[date]
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()

        assert service.error is None
        assert service.working_dates == july_weekdays
        assert service.available_names == ["Asha", "Meena", "Ravi", "asha"]
        assert service.get_statistics() == {
            "delegation": {"total": 3, "pending": 2},
            "checklist": {"total": 2, "pending": 1},
        }
        assert service.last_refreshed is not None

        first_day = service.day_details(date(2025, 7, 1))
        assert [o.task.task_id for o in first_day.delegation] == ["D1"]
        assert [o.task.task_id for o in first_day.checklist] == ["C1"]

    async def test_done_tasks_are_not_scheduled(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()

        scheduled = {
            o.task.task_id
            for bucket in service.date_map.values()
            for o in [*bucket.delegation, *bucket.checklist]
        }
        assert scheduled == {"D1", "D3", "C1"}

    async def test_events_per_time_slot(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()

        events = {event.id: event for event in service.events}
        assert events["2025-07-01-10:00"].title == "1D 0C"
        assert events["2025-07-01-no-time"].title == "0D 1C"
        assert events["2025-07-07-2:00 PM"].start.hour == 14

    async def test_day_details_by_slot(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()

        slot = service.day_details(date(2025, 7, 1), "10:00")
        assert [o.task.task_id for o in slot.delegation] == ["D1"]
        assert slot.checklist == []
        assert service.day_details(date(2025, 7, 1), "23:00").total == 0

    async def test_user_sees_own_tasks(
        self, mock_source: AsyncMock, user_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, user_session)
        await service.refresh()

        names = {
            o.task.name.lower()
            for bucket in service.date_map.values()
            for o in [*bucket.delegation, *bucket.checklist]
        }
        assert names == {"asha"}

    async def test_name_filter_rebuilds_without_refetch(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()
        fetches = mock_source.fetch_rows.await_count

        service.set_name_filter("Ravi")

        assert mock_source.fetch_rows.await_count == fetches
        assert service.name_filter == "Ravi"
        assert [event.id for event in service.events] == ["2025-07-07-2:00 PM"]

        service.set_name_filter("  ")
        assert service.name_filter == "all"

    async def test_session_switch_rebuilds(
        self,
        mock_source: AsyncMock,
        admin_session: SessionContext,
        user_session: SessionContext,
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()
        admin_events = len(service.events)

        service.set_session(user_session)

        assert 0 < len(service.events) < admin_events

    async def test_drill_down(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()

        view = service.drill_down(
            date(2025, 7, 9), DrillDownScope.WEEK, SheetFilter.DELEGATION
        )

        assert [o.task.task_id for o in view.delegation] == ["D3", "D1"]
        assert view.checklist == []

    async def test_snapshot_is_json_ready(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()

        snapshot = service.snapshot()

        assert snapshot["role"] == "admin"
        assert snapshot["error"] is None
        assert snapshot["events"][0] == {
            "id": "2025-07-01-10:00",
            "title": "1D 0C",
            "date": "2025-07-01",
            "time_key": "10:00",
            "all_day": False,
            "start": "2025-07-01T10:00:00",
            "end": "2025-07-01T11:00:00",
            "delegation_count": 1,
            "checklist_count": 0,
        }


    async def test_blank_initial_name_filter_shows_everyone(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        everyone = CalendarService(mock_source, admin_session)
        blank = CalendarService(mock_source, admin_session, name_filter="  ")
        await everyone.refresh()
        await blank.refresh()

        assert blank.name_filter == "all"
        assert [event.id for event in blank.events] == [event.id for event in everyone.events]

    async def test_list_tasks_includes_completed(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()

        listed = service.list_tasks(SheetKind.DELEGATION)
        weekly = service.list_tasks(SheetKind.DELEGATION, frequency_text="Weekly")
        newest_first = service.list_tasks(
            SheetKind.DELEGATION, sort_field=TaskListField.START_DATE, descending=True
        )

        assert [task.task_id for task in listed] == ["D1", "D2", "D3"]
        assert [task.task_id for task in weekly] == ["D1"]
        assert [task.task_id for task in newest_first] == ["D3", "D2", "D1"]

    async def test_list_follows_session(
        self, mock_source: AsyncMock, user_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, user_session)
        await service.refresh()

        assert [task.task_id for task in service.list_tasks(SheetKind.DELEGATION)] == ["D1"]
        options = service.list_filter_options(SheetKind.CHECKLIST)
        assert options.names == ["asha"]
        assert options.frequencies == ["Daily"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestCalendarServiceFailures:
    """Test all-or-nothing refresh failures."""

    async def test_working_day_failure_clears_state(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()
        assert service.events

        mock_source.fetch_rows.side_effect = SheetFetchError("network down")

        assert await service.refresh() is False
        assert service.error == "Failed to load data: network down"
        assert service.last_refreshed is None
        assert service.snapshot()["last_refreshed"] is None
        assert service.date_map == {}
        assert service.events == []
        assert service.working_dates == []
        assert service.available_names == []
        assert service.get_statistics() == {
            "delegation": {"total": 0, "pending": 0},
            "checklist": {"total": 0, "pending": 0},
        }

    async def test_partial_success_is_discarded(
        self, mock_source: AsyncMock, admin_session: SessionContext, sheet_rows: Any
    ) -> None:
        async def fetch_rows(sheet_name: str) -> list[Any]:
            if sheet_name == "Checklist":
                raise BackendTimeoutError("Request for sheet 'Checklist' timed out after 30.0s")
            return sheet_rows[sheet_name]

        mock_source.fetch_rows.side_effect = fetch_rows
        service = CalendarService(mock_source, admin_session)

        assert await service.refresh() is False
        assert service.working_dates == []
        assert service.date_map == {}
        assert "timed out" in (service.error or "")

    async def test_retry_after_failure_repopulates(
        self, mock_source: AsyncMock, admin_session: SessionContext, sheet_rows: Any
    ) -> None:
        async def fetch_rows(sheet_name: str) -> list[Any]:
            return sheet_rows[sheet_name]

        mock_source.fetch_rows.side_effect = SheetFetchError("offline")
        service = CalendarService(mock_source, admin_session)
        await service.refresh()
        assert service.error is not None

        mock_source.fetch_rows.side_effect = fetch_rows

        assert await service.refresh() is True
        assert service.error is None
        assert service.events
        assert service.loading is False

    async def test_refresh_while_loading_is_ignored(
        self, mock_source: AsyncMock, admin_session: SessionContext, sheet_rows: Any
    ) -> None:
        release = asyncio.Event()

        async def slow_fetch(sheet_name: str) -> list[Any]:
            await release.wait()
            return sheet_rows[sheet_name]

        mock_source.fetch_rows.side_effect = slow_fetch
        service = CalendarService(mock_source, admin_session)

        first = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)
        assert service.loading is True

        assert await service.refresh() is False

        release.set()
        assert await first is True
        assert mock_source.fetch_rows.await_count == 3

    async def test_shutdown_closes_source(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        service = CalendarService(mock_source, admin_session)
        await service.refresh()

        await service.shutdown()

        mock_source.close.assert_awaited_once()
        assert service.events == []

    async def test_shutdown_survives_close_error(
        self, mock_source: AsyncMock, admin_session: SessionContext
    ) -> None:
        mock_source.close.side_effect = RuntimeError("already closed")
        service = CalendarService(mock_source, admin_session)

        await service.shutdown()


@pytest.mark.integration
@pytest.mark.asyncio
class TestCalendarEndToEnd:
    """Drive the service through a real SheetClient over a mock transport."""

    async def test_weekly_delegation_over_weekday_month(
        self,
        header_row: Any,
        task_row: Any,
        july_weekdays: list[date],
        working_day_payload: Callable[[list[date]], dict[str, Any]],
        admin_session: SessionContext,
    ) -> None:
        payloads = {
            "Working Day Calendar": working_day_payload(july_weekdays),
            "DELEGATION": {
                "table": {"rows": [header_row, task_row(task_id="W1", frequency="weekly")]}
            },
            "Checklist": {"table": {"rows": [header_row]}},
        }

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payloads[request.url.params["sheet"]])

        client = SheetClient(
            base_url="https://backend.example/exec", transport=httpx.MockTransport(handler)
        )
        service = CalendarService(client, admin_session)

        assert await service.refresh() is True

        dates = [date.fromisoformat(key) for key in sorted(service.date_map)]
        assert 4 <= len(dates) <= 5
        assert all(day in july_weekdays for day in dates)
        assert len({day.isocalendar()[1] for day in dates}) == len(dates)
        positions = [july_weekdays.index(day) for day in dates]
        assert positions == list(range(0, len(july_weekdays), 7))

        await service.shutdown()

    async def test_network_failure_then_retry(
        self,
        header_row: Any,
        task_row: Any,
        july_weekdays: list[date],
        working_day_payload: Callable[[list[date]], dict[str, Any]],
        admin_session: SessionContext,
    ) -> None:
        online = False
        payloads = {
            "Working Day Calendar": working_day_payload(july_weekdays),
            "DELEGATION": {"table": {"rows": [header_row, task_row(frequency="daily")]}},
            "Checklist": {"table": {"rows": [header_row]}},
        }

        def handler(request: httpx.Request) -> httpx.Response:
            if not online:
                raise httpx.ConnectError("network unreachable", request=request)
            return httpx.Response(200, json=payloads[request.url.params["sheet"]])

        client = SheetClient(
            base_url="https://backend.example/exec", transport=httpx.MockTransport(handler)
        )
        service = CalendarService(client, admin_session)

        assert await service.refresh() is False
        assert service.date_map == {}
        assert service.events == []
        assert service.error is not None and service.error.startswith("Failed to load data")

        online = True

        assert await service.refresh() is True
        assert service.error is None
        assert len(service.date_map) == len(july_weekdays)

        await service.shutdown()
