"""Cell model and per-sheet column schemas for backend tables.

Column positions are a contract with the spreadsheet backend. Changing
one requires a coordinated sheet update, so they live here and nowhere
else.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import (
    CHECKLIST_SHEET,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    DELEGATION_SHEET,
    NO_TIME_SLOT,
)
from .models import SheetKind


class FieldType(str, Enum):
    """How a cell is resolved into a record field."""

    TEXT = "text"
    DATE = "date"
    TIME = "time"


@dataclass(frozen=True)
class Cell:
    """A single table cell: a value, or nothing."""

    value: Any = None
    formatted: str | None = None

    @classmethod
    def from_json(cls, raw: Any) -> "Cell":
        """Build a cell from a ``{"v": ..., "f": ...}`` payload entry."""
        if not isinstance(raw, dict):
            return cls()
        return cls(value=raw.get("v"), formatted=raw.get("f"))

    @property
    def is_empty(self) -> bool:
        if self.value is None:
            return True
        if isinstance(self.value, str):
            return not self.value.strip()
        return False

    def as_text(self, default: str = "") -> str:
        """Resolve the cell to trimmed text, or the default if empty."""
        if self.is_empty:
            return default
        value = self.value
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()


@dataclass(frozen=True)
class FieldSpec:
    """One record field and the column it is read from."""

    name: str
    index: int
    type: FieldType = FieldType.TEXT
    default: str = ""


@dataclass(frozen=True)
class SheetSchema:
    """Ordered column layout of a task sheet."""

    kind: SheetKind
    sheet_name: str
    fields: tuple[FieldSpec, ...]
    completion_index: int

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)


_TASK_FIELDS = (
    FieldSpec("timestamp", 0),
    FieldSpec("task_id", 1),
    FieldSpec("department", 2),
    FieldSpec("given_by", 3),
    FieldSpec("name", 4),
    FieldSpec("description", 5),
    FieldSpec("start_date", 6, FieldType.DATE),
    FieldSpec("frequency_text", 7),
    FieldSpec("time", 8, FieldType.TIME, NO_TIME_SLOT),
    FieldSpec("status", 12, default=DEFAULT_STATUS),
    FieldSpec("remarks", 13),
    FieldSpec("priority", 15, default=DEFAULT_PRIORITY),
)

# Column M marks a finished checklist task, column N a finished delegation
DELEGATION_SCHEMA = SheetSchema(
    kind=SheetKind.DELEGATION,
    sheet_name=DELEGATION_SHEET,
    fields=_TASK_FIELDS,
    completion_index=13,
)

CHECKLIST_SCHEMA = SheetSchema(
    kind=SheetKind.CHECKLIST,
    sheet_name=CHECKLIST_SHEET,
    fields=_TASK_FIELDS,
    completion_index=12,
)

SHEET_SCHEMAS: dict[SheetKind, SheetSchema] = {
    SheetKind.DELEGATION: DELEGATION_SCHEMA,
    SheetKind.CHECKLIST: CHECKLIST_SCHEMA,
}

WORKING_DATE_INDEX = 0
