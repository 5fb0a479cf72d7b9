"""
Cell Value Model
================
A spreadsheet cell reduced to one of five shapes: text, number, boolean,
empty or an error marker. Cells carry their 1-based sheet position
(openpyxl convention) so conversion failures can point back at them.
"""

import datetime
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

import numpy as np
from openpyxl.utils import get_column_letter

# Error literals Excel stores in place of a value
EXCEL_ERROR_CODES = frozenset({
    "#NULL!", "#DIV/0!", "#VALUE!", "#REF!", "#NAME?", "#NUM!", "#N/A",
    "#GETTING_DATA", "#SPILL!", "#CALC!",
})

_EXCEL_EPOCH = datetime.datetime(1899, 12, 30)


class CellKind(Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class CellValue:
    """One cell of a sheet grid.

    ``value`` is a ``str`` for TEXT and ERROR cells, a ``float`` for NUMBER,
    a ``bool`` for BOOLEAN and ``None`` for EMPTY.
    """
    kind: CellKind
    value: Any = None
    row: Optional[int] = None
    col: Optional[int] = None

    @classmethod
    def text(cls, value: str, row: Optional[int] = None, col: Optional[int] = None) -> "CellValue":
        return cls(CellKind.TEXT, str(value), row, col)

    @classmethod
    def number(cls, value: float, row: Optional[int] = None, col: Optional[int] = None) -> "CellValue":
        return cls(CellKind.NUMBER, float(value), row, col)

    @classmethod
    def boolean(cls, value: bool, row: Optional[int] = None, col: Optional[int] = None) -> "CellValue":
        return cls(CellKind.BOOLEAN, bool(value), row, col)

    @classmethod
    def empty(cls, row: Optional[int] = None, col: Optional[int] = None) -> "CellValue":
        return cls(CellKind.EMPTY, None, row, col)

    @classmethod
    def error(cls, code: str = "#VALUE!", row: Optional[int] = None, col: Optional[int] = None) -> "CellValue":
        return cls(CellKind.ERROR, str(code), row, col)

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    @property
    def coordinate(self) -> Optional[str]:
        """A1-style address, when the cell knows its position."""
        if self.row is None or self.col is None:
            return None
        return f"{get_column_letter(self.col)}{self.row}"

    def at(self, row: int, col: int) -> "CellValue":
        """Return the same content placed at ``(row, col)``."""
        return replace(self, row=row, col=col)

    def __str__(self):
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.NUMBER and self.value.is_integer():
            return str(int(self.value))
        if self.kind is CellKind.BOOLEAN:
            return "true" if self.value else "false"
        return str(self.value)


def _excel_serial(value) -> float:
    """Convert a date/datetime to an Excel serial date number."""
    if isinstance(value, datetime.datetime):
        delta = value - _EXCEL_EPOCH
        return delta.days + delta.seconds / 86400
    delta = value - _EXCEL_EPOCH.date()
    return float(delta.days)


def from_python(value: Any, row: Optional[int] = None, col: Optional[int] = None) -> CellValue:
    """Build a CellValue from a raw value handed out by openpyxl or pandas."""
    if value is None:
        return CellValue.empty(row, col)
    # bool before numbers: bool is an int subclass
    if isinstance(value, (bool, np.bool_)):
        return CellValue.boolean(bool(value), row, col)
    if isinstance(value, (int, float, np.integer, np.floating)):
        if isinstance(value, (float, np.floating)) and math.isnan(value):
            return CellValue.empty(row, col)
        return CellValue.number(float(value), row, col)
    if isinstance(value, str):
        if value == "":
            return CellValue.empty(row, col)
        if value in EXCEL_ERROR_CODES:
            return CellValue.error(value, row, col)
        return CellValue.text(value, row, col)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return CellValue.number(_excel_serial(value), row, col)
    if isinstance(value, datetime.time):
        seconds = value.hour * 3600 + value.minute * 60 + value.second
        return CellValue.number(seconds / 86400, row, col)
    return CellValue.text(str(value), row, col)
