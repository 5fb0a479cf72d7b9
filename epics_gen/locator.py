"""
Table Locator
=============
Finds a named table inside a loosely structured sheet.

A table is introduced by an *anchor* cell whose text equals the table
name. The row below the anchor is the header; header columns start at
the anchor column and run right until the first empty header cell. Data
rows follow the header and end at the first fully empty row (within the
header's columns) or at the end of the sheet::

    | test_table_1 |        |        |
    | row_id       | float1 | float2 |   <- header
    | First        | 0.23   | 0.333  |   <- data
    | Second       | 1.23   | 1.333  |
    |              |        |        |   <- end of table

Excel table objects defined on the sheet take precedence over the
anchor scan; their reference range supplies header and data rows.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .cells import CellKind
from .errors import EmptyTableError, TableNotFoundError
from .workbook import DefinedTable, SheetGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Table:
    """
    A located table: anchor position plus the half-open data row range
    ``[start, end)`` in sheet rows (1-based).

    Attributes:
        name: Table name as searched for
        sheet: Name of the sheet the table lives on
        anchor_row: Sheet row of the anchor cell (or of the header for
            Excel table objects, which have no separate anchor)
        anchor_col: Sheet column of the anchor cell
        header_row: Sheet row holding the column headers
        start: First data row
        end: One past the last data row
        min_col: First table column
        max_col: Last table column
        headers: Header text, one entry per table column
        rows: Data cells, one list per data row, ``max_col - min_col + 1`` wide
    """
    name: str
    sheet: str
    anchor_row: int
    anchor_col: int
    header_row: int
    start: int
    end: int
    min_col: int
    max_col: int
    headers: tuple = ()
    rows: tuple = field(default=(), repr=False)

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"start ({self.start}) must be <= end ({self.end})")

    @property
    def row_count(self) -> int:
        return self.end - self.start

    @property
    def width(self) -> int:
        return self.max_col - self.min_col + 1


def _same_name(text: str, name: str, case_sensitive: bool) -> bool:
    if case_sensitive:
        return text == name
    return text.casefold() == name.casefold()


def _find_anchor(grid: SheetGrid, table_name: str, case_sensitive: bool) -> Optional[tuple]:
    """``(row, col)`` of the first text cell equal to ``table_name``, top-to-bottom, left-to-right."""
    anchor = None
    for r, row in enumerate(grid.iter_rows(), start=1):
        for c, cell in enumerate(row, start=1):
            if cell.kind is CellKind.TEXT and _same_name(cell.value, table_name, case_sensitive):
                if anchor is None:
                    anchor = (r, c)
                else:
                    logger.debug(f"Ignoring duplicate anchor '{table_name}' at row {r}, col {c} "
                                 f"(first at row {anchor[0]}, col {anchor[1]})")
    return anchor


def _header_extent(grid: SheetGrid, header_row: int, first_col: int) -> int:
    """Last column of the contiguous header starting at ``first_col``."""
    col = first_col
    while not grid.cell(header_row, col + 1).is_empty:
        col += 1
    return col


def _collect_rows(grid: SheetGrid, start: int, stop: int, min_col: int, max_col: int) -> tuple:
    return tuple(tuple(grid.row_cells(r, min_col, max_col)) for r in range(start, stop))


def _from_anchor(grid: SheetGrid, table_name: str, anchor: tuple) -> Table:
    anchor_row, anchor_col = anchor
    header_row = anchor_row + 1
    min_col = anchor_col
    if grid.cell(header_row, min_col).is_empty:
        raise EmptyTableError(
            f"Table '{table_name}' on sheet '{grid.name}' has no header row",
            table_name=table_name, sheet_name=grid.name,
        )
    max_col = _header_extent(grid, header_row, min_col)

    start = header_row + 1
    end = start
    while end <= grid.max_row and not grid.row_is_blank(end, min_col, max_col):
        end += 1

    headers = tuple(str(c) for c in grid.row_cells(header_row, min_col, max_col))
    return Table(
        name=table_name, sheet=grid.name,
        anchor_row=anchor_row, anchor_col=anchor_col,
        header_row=header_row, start=start, end=end,
        min_col=min_col, max_col=max_col, headers=headers,
        rows=_collect_rows(grid, start, end, min_col, max_col),
    )


def _from_defined(grid: SheetGrid, defined: DefinedTable) -> Table:
    header_row = defined.min_row
    start = defined.min_row + defined.header_row_count
    end = defined.max_row + 1
    if defined.header_row_count:
        headers = tuple(str(c) for c in grid.row_cells(header_row, defined.min_col, defined.max_col))
    else:
        headers = tuple(f"Column{i}" for i in range(1, defined.max_col - defined.min_col + 2))
    return Table(
        name=defined.name, sheet=grid.name,
        anchor_row=header_row, anchor_col=defined.min_col,
        header_row=header_row, start=start, end=end,
        min_col=defined.min_col, max_col=defined.max_col, headers=headers,
        rows=_collect_rows(grid, start, end, defined.min_col, defined.max_col),
    )


def _find_defined(grid: SheetGrid, table_name: str, case_sensitive: bool) -> Optional[DefinedTable]:
    for name, defined in grid.tables.items():
        if _same_name(name, table_name, case_sensitive):
            return defined
    return None


def locate(grid: SheetGrid, table_name: str, case_sensitive: bool = True) -> Table:
    """
    Locate ``table_name`` on ``grid``.

    Raises:
        TableNotFoundError: No Excel table object and no anchor cell match
        EmptyTableError: The table has no header or no data rows
    """
    defined = _find_defined(grid, table_name, case_sensitive)
    if defined is not None:
        table = _from_defined(grid, defined)
    else:
        anchor = _find_anchor(grid, table_name, case_sensitive)
        if anchor is None:
            raise TableNotFoundError(
                f"Table '{table_name}' not found on sheet '{grid.name}'",
                table_name=table_name, sheet_name=grid.name,
            )
        table = _from_anchor(grid, table_name, anchor)

    if table.row_count == 0:
        raise EmptyTableError(
            f"Table '{table_name}' on sheet '{grid.name}' has no data rows",
            table_name=table_name, sheet_name=grid.name,
        )
    logger.info(f"  Table '{table_name}' on '{grid.name}': {table.row_count} rows, "
                f"columns {list(table.headers)}")
    return table


def has_table(grid: SheetGrid, table_name: str, case_sensitive: bool = True) -> bool:
    """True when ``grid`` defines ``table_name`` or holds an anchor cell for it."""
    return (_find_defined(grid, table_name, case_sensitive) is not None
            or _find_anchor(grid, table_name, case_sensitive) is not None)
