"""Command-line interface for the task calendar."""

import argparse
import asyncio
import json
import sys
from datetime import date

from .logging_utils import configure_logging
from .task_calendar.calendar_service import CalendarService, group_to_dict, task_to_dict
from .task_calendar.config import (
    ALL_NAMES,
    DEFAULT_BACKEND_URL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_ROLE,
    NO_TIME_SLOT,
)
from .task_calendar.drilldown import DrillDownScope, SearchField, SheetFilter
from .task_calendar.exceptions import ConfigurationError
from .task_calendar.models import SessionContext, SheetKind, TaskGroup, TaskRecord
from .task_calendar.sheet_client import SheetClient
from .task_calendar.task_list import TaskListField


class TaskCalendarCLI:
    """Command-line front end that refreshes the calendar once and prints it."""

    def __init__(self, service: CalendarService, as_json: bool = False) -> None:
        """
        Initialize the CLI.

        Args:
            service: Calendar service to drive
            as_json: Whether to print JSON instead of a text summary
        """
        self._service = service
        self._as_json = as_json

    def _print_group(self, heading: str, group: TaskGroup) -> None:
        print(f"\n📅 {heading}")
        if group.total == 0:
            print("   No pending tasks.")
            return
        for label, occurrences in (("D", group.delegation), ("C", group.checklist)):
            for occurrence in occurrences:
                task = occurrence.task
                time_text = "" if task.time == NO_TIME_SLOT else f" @ {task.time}"
                print(
                    f"   [{label}] {task.task_id} {task.name}: "
                    f"{task.description}{time_text} ({task.frequency.value})"
                )

    def _print_task_list(self, sheet: SheetKind, tasks: list[TaskRecord]) -> None:
        print(f"\n📋 {sheet.value.title()} tasks ({len(tasks)})")
        if not tasks:
            print("   No matching tasks.")
            return
        for task in tasks:
            frequency = task.frequency_text or task.frequency.value
            print(
                f"   {task.task_id} {task.start_date.isoformat()} {task.name}: "
                f"{task.description} ({frequency}, {task.status})"
            )

    def _print_summary(self) -> None:
        service = self._service
        stats = service.get_statistics()
        session = service.session
        who = "" if session.is_admin else f" ({session.username or session.display_name})"
        print(f"Task Calendar • Role: {session.role}{who} • Filter: {service.name_filter}")
        print(
            f"Delegation: {stats['delegation']['pending']}/{stats['delegation']['total']} pending  "
            f"Checklist: {stats['checklist']['pending']}/{stats['checklist']['total']} pending"
        )
        for event in service.events:
            slot = "all day" if event.all_day else event.start.strftime("%H:%M")
            print(f"  {event.date_key} {slot:>7}  {event.title}")

    async def run(
        self,
        anchor: date | None = None,
        scope: DrillDownScope = DrillDownScope.DAY,
        sheet_filter: SheetFilter = SheetFilter.ALL,
        query: str = "",
        search_field: SearchField = SearchField.NAME,
        list_sheet: SheetKind | None = None,
        list_name: str = "",
        list_frequency: str = "",
        sort_field: TaskListField | None = None,
        descending: bool = False,
    ) -> bool:
        """
        Refresh the calendar and print it.

        With ``list_sheet`` set, the flat task list of that sheet is
        printed instead of the calendar summary.

        Returns:
            True if the refresh succeeded, False otherwise
        """
        try:
            if not await self._service.refresh():
                print(f"❌ {self._service.error}", file=sys.stderr)
                return False

            if list_sheet is not None:
                tasks = self._service.list_tasks(
                    list_sheet, list_name, list_frequency, query, sort_field, descending
                )
                if self._as_json:
                    options = self._service.list_filter_options(list_sheet)
                    output = {
                        "sheet": list_sheet.value,
                        "tasks": [task_to_dict(task) for task in tasks],
                        "names": options.names,
                        "frequencies": options.frequencies,
                    }
                    print(json.dumps(output, indent=2))
                else:
                    self._print_task_list(list_sheet, tasks)
                return True

            view = None
            if anchor is not None:
                view = self._service.drill_down(anchor, scope, sheet_filter, query, search_field)

            if self._as_json:
                output = self._service.snapshot()
                if view is not None:
                    output["details"] = {
                        "date": anchor.isoformat() if anchor else None,
                        "scope": scope.value,
                        **group_to_dict(view),
                    }
                print(json.dumps(output, indent=2))
            else:
                self._print_summary()
                if view is not None and anchor is not None:
                    self._print_group(f"{scope.value.title()} of {anchor.isoformat()}", view)
            return True
        finally:
            await self._service.shutdown()


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from e


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Task Calendar CLI - Delegation and checklist tasks on the working-day calendar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --role admin                       # Calendar for every assignee
  %(prog)s --username asha --display-name "Asha K"
  %(prog)s --role admin --name-filter "Ravi" --date 2025-07-04 --scope week
  %(prog)s --json                             # Machine-readable output
  %(prog)s --role admin --list delegation --sort start_date --descending
        """.strip(),
    )

    parser.add_argument(
        "--url",
        default=DEFAULT_BACKEND_URL,
        help="Spreadsheet backend endpoint (default: $TASK_CALENDAR_BACKEND_URL or built-in)",
    )
    parser.add_argument("--username", default="", help="Acting username")
    parser.add_argument("--display-name", default="", help="Acting display name")
    parser.add_argument("--role", default=DEFAULT_ROLE, help="Acting role ('admin' sees all tasks)")
    parser.add_argument(
        "--name-filter",
        default=ALL_NAMES,
        help="Show only tasks assigned to this name (default: all)",
    )
    parser.add_argument("--date", type=_iso_date, help="Show task details around this date")
    parser.add_argument(
        "--scope",
        choices=[scope.value for scope in DrillDownScope],
        default=DrillDownScope.DAY.value,
        help="Period shown with --date (default: day)",
    )
    parser.add_argument(
        "--sheet",
        choices=[sheet.value for sheet in SheetFilter],
        default=SheetFilter.ALL.value,
        help="Sheet shown with --date (default: all)",
    )
    parser.add_argument("--search", default="", help="Search text applied with --date")
    parser.add_argument(
        "--search-field",
        choices=[field.value for field in SearchField],
        default=SearchField.NAME.value,
        help="Field searched with --search (default: name)",
    )
    parser.add_argument(
        "--list",
        dest="list_sheet",
        choices=[kind.value for kind in SheetKind],
        help="Print the task list of a sheet instead of the calendar",
    )
    parser.add_argument("--list-name", default="", help="Exact assignee name for --list")
    parser.add_argument(
        "--list-frequency", default="", help="Exact frequency text for --list"
    )
    parser.add_argument(
        "--sort",
        choices=[field.value for field in TaskListField],
        help="Column to sort --list by (default: sheet order)",
    )
    parser.add_argument("--descending", action="store_true", help="Sort --list descending")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help="Per-request timeout in seconds (default: %(default)s)",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable trace logging, including skipped rows",
    )

    return parser


def handle_arguments(args: argparse.Namespace) -> TaskCalendarCLI:
    """
    Configure logging and build the CLI from parsed arguments.

    Args:
        args: Parsed arguments from argparse

    Returns:
        Ready-to-run TaskCalendarCLI

    Raises:
        ConfigurationError: If the backend settings are invalid
    """
    configure_logging(verbose=args.verbose, trace=args.trace)

    session = SessionContext(
        username=args.username,
        display_name=args.display_name,
        role=args.role,
        backend_url=args.url,
    )
    client = SheetClient(base_url=session.backend_url, timeout=args.timeout)
    service = CalendarService(client, session, name_filter=args.name_filter)
    return TaskCalendarCLI(service, as_json=args.json)


def cli_entry_with_args() -> None:
    """CLI entry point with argument parsing."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        cli = handle_arguments(args)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    try:
        success = asyncio.run(
            cli.run(
                anchor=args.date,
                scope=DrillDownScope(args.scope),
                sheet_filter=SheetFilter(args.sheet),
                query=args.search,
                search_field=SearchField(args.search_field),
                list_sheet=SheetKind(args.list_sheet) if args.list_sheet else None,
                list_name=args.list_name,
                list_frequency=args.list_frequency,
                sort_field=TaskListField(args.sort) if args.sort else None,
                descending=args.descending,
            )
        )
    except KeyboardInterrupt:
        sys.exit(130)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    cli_entry_with_args()
