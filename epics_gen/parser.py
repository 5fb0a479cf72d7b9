"""
Workbook parser
===============
Selects sheets and tables of a workbook and maps every selected table
with one row schema.

Example:
    >>> parser = (WorkbookParser.open("devices.xlsx")
    ...           .add_sheet("Sheet1")
    ...           .add_table("test_table_1"))
    >>> records = parser.parse(RowSchema.from_dataclass(TargetStruct))
"""

import logging
import re
from typing import Mapping, Union

from .errors import SheetNotFoundError, TableNotFoundError
from .locator import Table, has_table, locate
from .mapper import ErrorPolicy, RowSchema, map_rows
from .workbook import SheetGrid, load_grids

logger = logging.getLogger(__name__)

Pattern = Union[str, "re.Pattern[str]"]


class WorkbookParser:
    """
    Sheet and table selection over a set of SheetGrids.

    Sheets are kept in workbook order; tables in the order they were
    added. A table name added by ``add_table`` must exist on at least one
    selected sheet, either as an Excel table object or as an anchor cell.
    ``add_tables`` matches a regular expression against Excel table
    object names only (anchor cells are plain text and are not enumerable).
    """

    def __init__(self, grids: Mapping[str, SheetGrid], case_sensitive: bool = True):
        self.grids = dict(grids)
        self.case_sensitive = case_sensitive
        self._sheets: list = []
        self._tables: list = []  # (sheet name, table name)

    @classmethod
    def open(cls, file_path: str, case_sensitive: bool = True) -> "WorkbookParser":
        return cls(load_grids(file_path), case_sensitive=case_sensitive)

    @property
    def sheets(self) -> list:
        return list(self._sheets)

    @property
    def tables(self) -> list:
        return list(self._tables)

    def _select_sheet(self, name: str) -> None:
        if name not in self._sheets:
            self._sheets.append(name)
            self._sheets.sort(key=list(self.grids).index)

    def add_sheet(self, name: str) -> "WorkbookParser":
        if name not in self.grids:
            raise SheetNotFoundError(f"Sheet '{name}' does not exist", sheet_name=name)
        self._select_sheet(name)
        return self

    def add_sheets(self, pattern: Pattern) -> "WorkbookParser":
        regex = re.compile(pattern)
        matched = [name for name in self.grids if regex.search(name)]
        if not matched:
            raise SheetNotFoundError(f"No sheet matches /{regex.pattern}/")
        for name in matched:
            self._select_sheet(name)
        return self

    def add_table(self, name: str) -> "WorkbookParser":
        found = False
        for sheet in self._sheets:
            if has_table(self.grids[sheet], name, self.case_sensitive):
                if (sheet, name) not in self._tables:
                    self._tables.append((sheet, name))
                found = True
        if not found:
            raise TableNotFoundError(
                f"Table '{name}' does not exist on sheets {self._sheets}", table_name=name,
            )
        return self

    def add_tables(self, pattern: Pattern) -> "WorkbookParser":
        regex = re.compile(pattern)
        found = False
        for sheet in self._sheets:
            for table_name in self.grids[sheet].tables:
                if regex.search(table_name):
                    if (sheet, table_name) not in self._tables:
                        self._tables.append((sheet, table_name))
                    found = True
        if not found:
            raise TableNotFoundError(f"No table matches /{regex.pattern}/ on sheets {self._sheets}")
        return self

    def locate_tables(self) -> list:
        """Locate every selected table, in sheet order then table order."""
        located = []
        for sheet in self._sheets:
            for table_sheet, table_name in self._tables:
                if table_sheet == sheet:
                    located.append(locate(self.grids[sheet], table_name, self.case_sensitive))
        return located

    def parse_tables(self, schema: RowSchema,
                     policy: ErrorPolicy = ErrorPolicy.FAIL_FAST) -> dict:
        """Map each selected table; returns ``{(sheet, table): [records]}``."""
        results = {}
        for table in self.locate_tables():
            results[(table.sheet, table.name)] = map_rows(table, schema, policy)
        return results

    def parse(self, schema: RowSchema,
              policy: ErrorPolicy = ErrorPolicy.FAIL_FAST) -> list:
        """Map all selected tables and concatenate their records."""
        records = []
        for (sheet, table_name), table_records in self.parse_tables(schema, policy).items():
            logger.info(f"Parsed {len(table_records)} records from '{sheet}'/'{table_name}'")
            records.extend(table_records)
        return records


def parse_table(grid: SheetGrid, table_name: str, schema: RowSchema,
                policy: ErrorPolicy = ErrorPolicy.FAIL_FAST,
                case_sensitive: bool = True) -> list:
    """Locate ``table_name`` on ``grid`` and map its rows."""
    table: Table = locate(grid, table_name, case_sensitive)
    return map_rows(table, schema, policy)
