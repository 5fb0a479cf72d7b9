"""
Workbook adapters
=================
Reads worksheets into read-only ``SheetGrid`` snapshots of CellValues.
The grids are what the table locator and row mapper work on; nothing in
epics_gen writes back to a workbook.

Two sources are supported:

* openpyxl worksheets (cached values, ``data_only=True``), including the
  Excel table objects defined on each sheet;
* pandas DataFrames read with ``header=None`` (row/column labels are
  ignored, positions are counted from 1).
"""

import logging
import os
import warnings
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils import range_boundaries

from .cells import CellValue, from_python
from .errors import SheetNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DefinedTable:
    """An Excel table object (ListObject) declared on a sheet."""
    name: str
    ref: str
    min_row: int
    max_row: int
    min_col: int
    max_col: int
    header_row_count: int = 1

    @classmethod
    def from_ref(cls, name: str, ref: str, header_row_count: int = 1) -> "DefinedTable":
        min_col, min_row, max_col, max_row = range_boundaries(ref)
        return cls(name, ref, min_row, max_row, min_col, max_col, header_row_count)


@dataclass
class SheetGrid:
    """Rectangular snapshot of one sheet. Rows and columns are 1-based."""
    name: str
    rows: list = field(default_factory=list)
    tables: dict = field(default_factory=dict)  # table name -> DefinedTable

    @property
    def max_row(self) -> int:
        return len(self.rows)

    @property
    def max_col(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def cell(self, row: int, col: int) -> CellValue:
        """Return the cell at ``(row, col)``; outside the grid is Empty."""
        if 1 <= row <= len(self.rows):
            cells = self.rows[row - 1]
            if 1 <= col <= len(cells):
                return cells[col - 1]
        return CellValue.empty(row, col)

    def row_cells(self, row: int, min_col: int = 1, max_col: Optional[int] = None) -> list:
        if max_col is None:
            max_col = self.max_col
        return [self.cell(row, c) for c in range(min_col, max_col + 1)]

    def iter_rows(self) -> Iterator[list]:
        return iter(self.rows)

    def row_is_blank(self, row: int, min_col: int = 1, max_col: Optional[int] = None) -> bool:
        return all(c.is_empty for c in self.row_cells(row, min_col, max_col))

    @classmethod
    def from_values(cls, name: str, values: Iterable[Iterable]) -> "SheetGrid":
        """Build a grid from nested Python values (row-major)."""
        rows = []
        for r, row_values in enumerate(values, start=1):
            rows.append([from_python(v, r, c) for c, v in enumerate(row_values, start=1)])
        return cls(name=name, rows=rows)


def grid_from_worksheet(ws) -> SheetGrid:
    """Snapshot an openpyxl worksheet into a SheetGrid."""
    grid = SheetGrid(name=ws.title)
    max_row = ws.max_row or 0
    max_col = ws.max_column or 0
    for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=1, max_col=max_col):
        grid.rows.append([from_python(cell.value, cell.row, cell.column) for cell in row])

    # Excel table objects are not available on read-only worksheets
    for tbl in getattr(ws, "tables", {}).values():
        header_rows = tbl.headerRowCount if tbl.headerRowCount is not None else 1
        grid.tables[tbl.name] = DefinedTable.from_ref(tbl.name, tbl.ref, header_rows)

    logger.debug(f"  Sheet '{grid.name}': {grid.max_row} rows x {grid.max_col} cols, "
                 f"{len(grid.tables)} defined tables")
    return grid


def grid_from_dataframe(df: pd.DataFrame, name: str) -> SheetGrid:
    """Adapt a DataFrame (read with ``header=None``) to a SheetGrid."""
    rows = []
    for r, values in enumerate(df.itertuples(index=False, name=None), start=1):
        cells = []
        for c, value in enumerate(values, start=1):
            # pd.isna covers None, NaN and NaT
            if not isinstance(value, str) and pd.isna(value):
                value = None
            cells.append(from_python(value, r, c))
        rows.append(cells)
    return SheetGrid(name=name, rows=rows)


def load_grids(file_path: str, sheet_names: Optional[Iterable[str]] = None) -> dict:
    """
    Load worksheets of an .xlsx file as SheetGrids.

    Args:
        file_path: Path to the workbook
        sheet_names: Sheets to load; ``None`` loads all of them

    Returns:
        Ordered dict of sheet name -> SheetGrid (workbook order)
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Source workbook not found: {file_path}")

    logger.info(f"Loading workbook: {file_path}")
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", category=UserWarning)
        wb = load_workbook(file_path, data_only=True)

    try:
        wanted = list(wb.sheetnames) if sheet_names is None else list(sheet_names)
        missing = [s for s in wanted if s not in wb.sheetnames]
        if missing:
            raise SheetNotFoundError(
                f"Sheet(s) not found in {file_path}: {', '.join(missing)}",
                sheet_name=missing[0],
            )
        grids = {name: grid_from_worksheet(wb[name]) for name in wb.sheetnames if name in wanted}
    finally:
        wb.close()

    logger.info(f"  Loaded {len(grids)} sheets")
    return grids


def load_grids_from_frames(frames: dict) -> dict:
    """Adapt ``pd.read_excel(..., sheet_name=None, header=None)`` output."""
    return {name: grid_from_dataframe(df, name) for name, df in frames.items()}
