"""Transformation of backend table rows into task records."""

from datetime import date
from typing import Any

from ..logging_utils import get_logger
from .config import HEADER_ROW_COUNT, NO_TIME_SLOT, ROW_INDEX_OFFSET
from .dates import classify_frequency, parse_sheet_literal, to_date
from .models import SheetKind, TaskRecord
from .schema import SHEET_SCHEMAS, WORKING_DATE_INDEX, Cell, FieldType, SheetSchema

logger = get_logger(__name__)


def parse_cells(row: Any) -> list[Cell]:
    """
    Resolve a raw ``{"c": [...]}`` row into cells.

    Args:
        row: Row object from the backend table payload

    Returns:
        List of cells; empty if the row carries no cell array
    """
    if not isinstance(row, dict):
        return []
    raw_cells = row.get("c") or []
    if not isinstance(raw_cells, list):
        return []
    return [Cell.from_json(raw) for raw in raw_cells]


def _cell_at(cells: list[Cell], index: int) -> Cell:
    if index < len(cells):
        return cells[index]
    return Cell()


def _time_text(cell: Cell, default: str) -> str:
    """Normalize a time-of-day cell to text."""
    value = cell.value
    # timeofday columns arrive as [hours, minutes, seconds, millis]
    if isinstance(value, list) and len(value) >= 2:
        try:
            return f"{int(value[0]):02d}:{int(value[1]):02d}"
        except (TypeError, ValueError):
            return default
    if isinstance(value, str):
        literal = parse_sheet_literal(value)
        if literal is not None:
            return literal.strftime("%H:%M")
    return cell.as_text(default)


def transform_row(cells: list[Cell], schema: SheetSchema, position: int) -> TaskRecord | None:
    """
    Build a task record from one row of a task sheet.

    Args:
        cells: Cells of the row
        schema: Column layout of the sheet the row came from
        position: Zero-based position of the row in the fetched table

    Returns:
        TaskRecord, or None if the row is empty or lacks a task ID or
        parseable start date
    """
    if all(cell.is_empty for cell in cells):
        return None

    values: dict[str, Any] = {}
    for spec in schema.fields:
        cell = _cell_at(cells, spec.index)
        if spec.type == FieldType.DATE:
            values[spec.name] = to_date(cell.value)
        elif spec.type == FieldType.TIME:
            values[spec.name] = _time_text(cell, spec.default)
        else:
            values[spec.name] = cell.as_text(spec.default)

    if not values["task_id"] or values["start_date"] is None:
        logger.trace(  # type: ignore[attr-defined]
            f"Skipping {schema.sheet_name} row {position}: "
            f"task_id={values['task_id']!r}, start_date={values['start_date']!r}"
        )
        return None

    return TaskRecord(
        sheet_kind=schema.kind,
        row_index=position + ROW_INDEX_OFFSET,
        frequency=classify_frequency(values["frequency_text"]),
        completion_marker=_cell_at(cells, schema.completion_index).as_text(),
        **values,
    )


def transform_rows(rows: list[Any], kind: SheetKind) -> list[TaskRecord]:
    """
    Transform every data row of a task sheet.

    The header row is skipped; rows that fail validation are dropped
    without aborting the batch.

    Args:
        rows: ``table.rows`` from the backend payload
        kind: Sheet kind the rows were fetched from

    Returns:
        Task records in sheet order
    """
    schema = SHEET_SCHEMAS[kind]
    tasks: list[TaskRecord] = []

    for position, row in enumerate(rows):
        if position < HEADER_ROW_COUNT:
            continue
        task = transform_row(parse_cells(row), schema, position)
        if task is not None:
            tasks.append(task)

    skipped = max(len(rows) - HEADER_ROW_COUNT, 0) - len(tasks)
    logger.debug(f"Transformed {len(tasks)} {kind.value} tasks ({skipped} rows skipped)")
    return tasks


def transform_working_dates(rows: list[Any]) -> list[date]:
    """
    Read the working-day calendar sheet.

    Args:
        rows: ``table.rows`` from the working-day payload

    Returns:
        Working dates in sheet order; unparseable cells are dropped
    """
    working_dates: list[date] = []
    for position, row in enumerate(rows):
        if position < HEADER_ROW_COUNT:
            continue
        parsed = to_date(_cell_at(parse_cells(row), WORKING_DATE_INDEX).value)
        if parsed is not None:
            working_dates.append(parsed)

    logger.debug(f"Loaded {len(working_dates)} working dates")
    return working_dates
