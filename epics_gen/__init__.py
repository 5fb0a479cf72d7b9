"""
epics_gen - typed records from Excel tables, rendered as EPICS databases
=======================================================================

Parse half: a sheet is read into a ``SheetGrid``, a named table is
located on it (anchor cell or Excel table object) and every data row is
mapped onto a typed record by a ``RowSchema``.

Render half: every record is rendered with one or more ``RecordSchema``
/ ``RecordTemplate`` declarations into ``record(type, "name") {...}``
text.

Example:
    >>> from dataclasses import dataclass
    >>> from epics_gen import WorkbookParser, RowSchema, RecordSchema, OutputField, render_all
    >>> @dataclass
    ... class Channel:
    ...     desc: str
    ...     egu: str
    ...     val: float
    >>> records = (WorkbookParser.open("channels.xlsx")
    ...            .add_sheet("Sheet1").add_table("channels")
    ...            .parse(RowSchema.from_dataclass(Channel)))
    >>> schema = RecordSchema("$(P)Voltage", "ao", fields=[
    ...     OutputField("DESC", "desc"), OutputField("EGU", "egu"),
    ...     OutputField("VAL", "val", "numeric")])
    >>> print(render_all(records[0], [schema]))
"""

from .cells import CellKind, CellValue, from_python
from .config import (
    load_config,
    record_schema_from_config,
    row_schema_from_config,
    rule_from_config,
    setup_logging,
)
from .conversions import (
    DEFAULT_REGISTRY,
    BooleanRule,
    ConversionRegistry,
    ConversionRule,
    NumericRule,
    SubstitutionRule,
    TextRule,
    convert,
)
from .errors import (
    ConversionError,
    EmptyTableError,
    EpicsGenError,
    FormatError,
    InvalidValueError,
    LocatorError,
    MappingError,
    MissingFieldError,
    MissingValueError,
    NoMatchingPatternError,
    RenderError,
    RowError,
    SchemaError,
    SheetNotFoundError,
    SourceCellError,
    TableNotFoundError,
    TypeMismatchError,
)
from .generator import generate_database
from .locator import Table, has_table, locate
from .mapper import ErrorPolicy, FieldSchema, RowSchema, map_row, map_rows
from .parser import WorkbookParser, parse_table
from .record import NameBinding, OutputField, RecordSchema, RecordTemplate, Representation
from .renderer import RenderedRecord, render, render_all, render_database, write_database
from .workbook import SheetGrid, grid_from_dataframe, grid_from_worksheet, load_grids

__version__ = "0.1.0"

__all__ = [
    "CellKind", "CellValue", "from_python",
    "load_config", "setup_logging", "rule_from_config",
    "row_schema_from_config", "record_schema_from_config",
    "ConversionRule", "SubstitutionRule", "TextRule", "NumericRule", "BooleanRule",
    "ConversionRegistry", "DEFAULT_REGISTRY", "convert",
    "EpicsGenError", "SchemaError", "LocatorError", "TableNotFoundError",
    "EmptyTableError", "SheetNotFoundError", "ConversionError", "TypeMismatchError",
    "MissingValueError", "NoMatchingPatternError", "SourceCellError",
    "InvalidValueError", "RowError", "MappingError", "RenderError",
    "MissingFieldError", "FormatError",
    "generate_database",
    "Table", "locate", "has_table",
    "ErrorPolicy", "FieldSchema", "RowSchema", "map_row", "map_rows",
    "WorkbookParser", "parse_table",
    "Representation", "OutputField", "NameBinding", "RecordSchema", "RecordTemplate",
    "RenderedRecord", "render", "render_all", "render_database", "write_database",
    "SheetGrid", "grid_from_worksheet", "grid_from_dataframe", "load_grids",
]
