"""MCP Server for the task calendar using FastMCP."""

import logging
from datetime import date
from typing import Any

from fastmcp import FastMCP

from .calendar_service import CalendarService, event_to_dict, group_to_dict, task_to_dict
from .config import (
    DEFAULT_BACKEND_URL,
    DEFAULT_MCP_HOST,
    DEFAULT_MCP_PORT,
    DEFAULT_MCP_SERVER_NAME,
    SESSION_DISPLAY_NAME,
    SESSION_ROLE,
    SESSION_USERNAME,
)
from .drilldown import DrillDownScope, SearchField, SheetFilter
from .models import SessionContext, SheetKind
from .sheet_client import SheetClient
from .task_list import TaskListField

logger = logging.getLogger(__name__)

# Create FastMCP server instance
mcp = FastMCP(DEFAULT_MCP_SERVER_NAME)

# Global calendar service (initialized in cli_entry())
_calendar_service: CalendarService | None = None


def get_calendar_service() -> CalendarService:
    """Get the global calendar service instance."""
    if _calendar_service is None:
        raise RuntimeError("Calendar service not initialized")
    return _calendar_service


def set_calendar_service(service: CalendarService | None) -> None:
    """Set the global calendar service instance (for testing)."""
    global _calendar_service
    _calendar_service = service


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


async def _ensure_loaded(service: CalendarService) -> None:
    """Run the first refresh on demand; later reloads are explicit."""
    if service.last_refreshed is None and service.error is None and not service.loading:
        await service.refresh()


async def _refresh_calendar_impl() -> dict[str, Any]:
    """Implementation of refresh_calendar tool."""
    try:
        service = get_calendar_service()
        if await service.refresh():
            return {"success": True, "events": len(service.events)}
        return {"success": False, "error": service.error or "Refresh already in progress"}

    except Exception as e:
        logger.error(f"Error refreshing calendar: {e}")
        return {"success": False, "error": str(e)}


async def _get_calendar_events_impl(
    start_date: str | None = None, end_date: str | None = None
) -> dict[str, Any]:
    """Implementation of get_calendar_events tool."""
    try:
        service = get_calendar_service()
        await _ensure_loaded(service)

        first = _parse_date(start_date) if start_date else None
        if start_date and first is None:
            return {"success": False, "error": f"Invalid date format: {start_date}"}
        last = _parse_date(end_date) if end_date else None
        if end_date and last is None:
            return {"success": False, "error": f"Invalid date format: {end_date}"}

        events = [
            event
            for event in service.events
            if (first is None or event.date_key >= first.isoformat())
            and (last is None or event.date_key <= last.isoformat())
        ]
        return {
            "events": [event_to_dict(event) for event in events],
            "error": service.error,
        }

    except Exception as e:
        logger.error(f"Error listing events: {e}")
        return {"success": False, "error": str(e)}


async def _get_day_details_impl(
    day: str,
    scope: str = "day",
    sheet: str = "all",
    query: str = "",
    search_field: str = "name",
    time_key: str | None = None,
) -> dict[str, Any]:
    """Implementation of get_day_details tool."""
    try:
        service = get_calendar_service()
        await _ensure_loaded(service)

        anchor = _parse_date(day)
        if anchor is None:
            return {"success": False, "error": f"Invalid date format: {day}"}

        try:
            drill_scope = DrillDownScope(scope)
        except ValueError:
            return {"success": False, "error": f"Invalid scope: {scope}"}

        try:
            sheet_filter = SheetFilter(sheet)
        except ValueError:
            return {"success": False, "error": f"Invalid sheet: {sheet}"}

        try:
            field = SearchField(search_field)
        except ValueError:
            return {"success": False, "error": f"Invalid search field: {search_field}"}

        if time_key is not None:
            group = service.day_details(anchor, time_key)
        else:
            group = service.drill_down(anchor, drill_scope, sheet_filter, query, field)

        return {"date": anchor.isoformat(), "scope": drill_scope.value, **group_to_dict(group)}

    except Exception as e:
        logger.error(f"Error getting day details: {e}")
        return {"success": False, "error": str(e)}


async def _get_task_statistics_impl() -> dict[str, Any]:
    """Implementation of get_task_statistics tool."""
    try:
        service = get_calendar_service()
        await _ensure_loaded(service)
        return {
            "statistics": service.get_statistics(),
            "available_names": service.available_names,
        }

    except Exception as e:
        logger.error(f"Error getting statistics: {e}")
        return {"success": False, "error": str(e)}


async def _list_tasks_impl(
    sheet: str = "delegation",
    name: str = "",
    frequency: str = "",
    query: str = "",
    sort_by: str | None = None,
    descending: bool = False,
) -> dict[str, Any]:
    """Implementation of list_tasks tool."""
    try:
        service = get_calendar_service()
        await _ensure_loaded(service)

        try:
            sheet_kind = SheetKind(sheet)
        except ValueError:
            return {"success": False, "error": f"Invalid sheet: {sheet}"}

        sort_field = None
        if sort_by:
            try:
                sort_field = TaskListField(sort_by)
            except ValueError:
                return {"success": False, "error": f"Invalid sort field: {sort_by}"}

        tasks = service.list_tasks(
            sheet=sheet_kind,
            name=name,
            frequency_text=frequency,
            query=query,
            sort_field=sort_field,
            descending=descending,
        )
        options = service.list_filter_options(sheet_kind)

        return {
            "tasks": [task_to_dict(task) for task in tasks],
            "count": len(tasks),
            "names": options.names,
            "frequencies": options.frequencies,
            "error": service.error,
        }

    except Exception as e:
        logger.error(f"Error listing tasks: {e}")
        return {"success": False, "error": str(e)}


async def _set_name_filter_impl(name: str) -> dict[str, Any]:
    """Implementation of set_name_filter tool."""
    try:
        service = get_calendar_service()
        service.set_name_filter(name)
        return {"success": True, "name_filter": service.name_filter, "events": len(service.events)}

    except Exception as e:
        logger.error(f"Error setting name filter: {e}")
        return {"success": False, "error": str(e)}


@mcp.tool()
async def refresh_calendar() -> dict[str, Any]:
    """
    Reload the working-day calendar, delegation and checklist sheets.

    Returns:
        Dictionary with success status and event count, or the error
    """
    return await _refresh_calendar_impl()


@mcp.tool()
async def get_calendar_events(
    start_date: str | None = None, end_date: str | None = None
) -> dict[str, Any]:
    """
    List calendar events (one per date and time slot).

    Args:
        start_date: First date to include, ISO format (optional)
        end_date: Last date to include, ISO format (optional)

    Returns:
        Dictionary with events list
    """
    return await _get_calendar_events_impl(start_date=start_date, end_date=end_date)


@mcp.tool()
async def get_day_details(
    day: str,
    scope: str = "day",
    sheet: str = "all",
    query: str = "",
    search_field: str = "name",
    time_key: str | None = None,
) -> dict[str, Any]:
    """
    List the tasks scheduled around a date.

    Args:
        day: Date in ISO format
        scope: Period to list (day, week, month)
        sheet: Sheet to include (all, delegation, checklist)
        query: Case-insensitive search text (optional)
        search_field: Field to search (name, task_id)
        time_key: Time slot to narrow a single day to (optional)

    Returns:
        Dictionary with delegation and checklist task lists
    """
    return await _get_day_details_impl(
        day=day,
        scope=scope,
        sheet=sheet,
        query=query,
        search_field=search_field,
        time_key=time_key,
    )


@mcp.tool()
async def get_task_statistics() -> dict[str, Any]:
    """
    Get total and pending task counts per sheet.

    Returns:
        Dictionary with statistics and assignee names
    """
    return await _get_task_statistics_impl()


@mcp.tool()
async def set_name_filter(name: str) -> dict[str, Any]:
    """
    Show only tasks assigned to one person.

    Args:
        name: Assignee name, or "all" to show everyone

    Returns:
        Dictionary with the applied filter and event count
    """
    return await _set_name_filter_impl(name=name)


@mcp.tool()
async def list_tasks(
    sheet: str = "delegation",
    name: str = "",
    frequency: str = "",
    query: str = "",
    sort_by: str | None = None,
    descending: bool = False,
) -> dict[str, Any]:
    """
    List the tasks of one sheet, completed ones included.

    Args:
        sheet: Sheet to list (delegation, checklist)
        name: Exact assignee name (optional)
        frequency: Exact frequency text as written in the sheet (optional)
        query: Case-insensitive search across all fields (optional)
        sort_by: Column to sort by (timestamp, task_id, department,
            given_by, name, description, start_date, frequency_text,
            time, status, remarks, priority)
        descending: Sort in descending order

    Returns:
        Dictionary with tasks list and the available filter values
    """
    return await _list_tasks_impl(
        sheet=sheet,
        name=name,
        frequency=frequency,
        query=query,
        sort_by=sort_by,
        descending=descending,
    )


def cli_entry() -> None:
    """CLI entry point for the MCP server."""
    import sys

    # Check for transport argument
    transport_type = "stdio"
    if len(sys.argv) > 1 and sys.argv[1] in ("stdio", "sse", "http"):
        transport_type = "sse" if sys.argv[1] == "http" else sys.argv[1]

    session = SessionContext(
        username=SESSION_USERNAME,
        display_name=SESSION_DISPLAY_NAME,
        role=SESSION_ROLE,
        backend_url=DEFAULT_BACKEND_URL,
    )
    service = CalendarService(SheetClient(base_url=session.backend_url), session)
    set_calendar_service(service)

    logger.info(f"MCP Server initialized with 6 tools (transport={transport_type})")
    if transport_type == "sse":
        logger.info(f"Server will listen on http://{DEFAULT_MCP_HOST}:{DEFAULT_MCP_PORT}")

    # FastMCP's run() manages its own event loop
    if transport_type == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport="sse", host=DEFAULT_MCP_HOST, port=DEFAULT_MCP_PORT)


if __name__ == "__main__":
    cli_entry()
