"""Exception hierarchy shared by the parse and render halves."""

from typing import Any, Optional, Sequence

from .cells import CellValue


class EpicsGenError(Exception):
    """Base class for every error raised by epics_gen."""


class SchemaError(EpicsGenError):
    """Raised when a row or record schema declaration is invalid."""


# ------------------------------------------------------------------
# Table discovery
# ------------------------------------------------------------------

class LocatorError(EpicsGenError):
    """Raised when a table or sheet cannot be found or has no data."""

    def __init__(self, message: str, table_name: Optional[str] = None,
                 sheet_name: Optional[str] = None):
        super().__init__(message)
        self.table_name = table_name
        self.sheet_name = sheet_name


class TableNotFoundError(LocatorError):
    pass


class EmptyTableError(LocatorError):
    pass


class SheetNotFoundError(LocatorError):
    pass


# ------------------------------------------------------------------
# Cell conversion
# ------------------------------------------------------------------

class ConversionError(EpicsGenError):
    """A single cell could not be converted by its rule."""

    def __init__(self, message: str, cell: Optional[CellValue] = None):
        super().__init__(message)
        self.cell = cell


class TypeMismatchError(ConversionError):
    def __init__(self, cell: CellValue, expected: str):
        super().__init__(f"Expected a {expected} cell, got {cell.kind.value}", cell)
        self.expected = expected


class MissingValueError(TypeMismatchError):
    """Empty cell where a value is required."""

    def __init__(self, cell: CellValue, expected: str):
        super().__init__(cell, expected)
        self.args = (f"Value is missing (expected a {expected} cell)",)


class NoMatchingPatternError(ConversionError):
    def __init__(self, cell: CellValue, received: str):
        super().__init__(f"No pattern matches {received!r}", cell)
        self.received = received


class SourceCellError(ConversionError):
    def __init__(self, cell: CellValue):
        super().__init__(f"Source cell holds an error value {cell.value}", cell)


class InvalidValueError(ConversionError):
    """The target constructor rejected an otherwise well-typed value."""


# ------------------------------------------------------------------
# Row mapping
# ------------------------------------------------------------------

class RowError(EpicsGenError):
    """A row failed to convert.

    ``row_index`` is the 0-based data row within the table and
    ``column_index`` the 0-based column within the table; the cell (when
    known) carries the absolute sheet position.
    """

    def __init__(self, row_index: int, column_index: int, field_name: str,
                 cause: ConversionError, table_name: Optional[str] = None):
        self.row_index = row_index
        self.column_index = column_index
        self.field_name = field_name
        self.cause = cause
        self.table_name = table_name
        super().__init__(self._describe())

    @property
    def cell(self) -> Optional[CellValue]:
        return self.cause.cell

    def _describe(self) -> str:
        location = f"Row: {self.row_index}, Col: {self.column_index}"
        if self.table_name is not None:
            location = f"Table: {self.table_name}, {location}"
        cell = self.cell
        if cell is not None:
            location += f", Value: {cell}"
            if cell.coordinate:
                location += f" ({cell.coordinate})"
        return f"err: {self.cause}! Field: {self.field_name}, {location}"


class MappingError(EpicsGenError):
    """Aggregate raised by the collect-all policy."""

    def __init__(self, errors: Sequence[RowError], table_name: Optional[str] = None):
        self.errors = list(errors)
        self.table_name = table_name
        where = f" in table {table_name!r}" if table_name else ""
        lines = [f"{len(self.errors)} row(s) failed to convert{where}:"]
        lines.extend(f"  {err}" for err in self.errors)
        super().__init__("\n".join(lines))


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------

class RenderError(EpicsGenError):
    pass


class MissingFieldError(RenderError):
    def __init__(self, attribute: str, record: Any = None):
        super().__init__(f"Record has no field {attribute!r}")
        self.attribute = attribute
        self.record = record


class FormatError(RenderError):
    def __init__(self, token: str, reason: str):
        super().__init__(f"Cannot format {token}: {reason}")
        self.token = token
        self.reason = reason
