"""
Row Mapper
==========
Turns the data rows of a located table into typed records.

A ``RowSchema`` is an ordered list of ``FieldSchema`` entries. The order
is explicit and is the order in which fields consume table columns:
unbound fields take the next free column, fields bound by index or
header name jump to that column and continue from there. Each field
converts its cell(s) with its own ``ConversionRule``.

Row conversion is fail-fast within a row. Across rows the caller picks
the policy: stop at the first bad row (``ErrorPolicy.FAIL_FAST``) or
convert every row and report all failures together
(``ErrorPolicy.COLLECT_ALL``). A row is either fully converted or
reported; no partially converted record is returned.
"""

import dataclasses
import logging
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Union

from .cells import CellValue
from .conversions import DEFAULT_REGISTRY, ConversionRegistry, ConversionRule
from .errors import ConversionError, MappingError, RowError, SchemaError
from .locator import Table

logger = logging.getLogger(__name__)


class ErrorPolicy(Enum):
    FAIL_FAST = "fail_fast"
    COLLECT_ALL = "collect_all"


@dataclass(frozen=True)
class FieldSchema:
    """
    One target field.

    Attributes:
        name: Attribute / keyword name on the target
        rule: Conversion applied to the bound cell(s)
        column: 0-based table column, header name, or None for "next column"
        width: Number of consecutive columns consumed; > 1 yields a list
        optional: Empty cells yield None instead of failing
    """
    name: str
    rule: ConversionRule
    column: Optional[Union[int, str]] = None
    width: int = 1
    optional: bool = False

    def __post_init__(self):
        if self.width < 1:
            raise SchemaError(f"Field '{self.name}': width must be >= 1, got {self.width}")
        if isinstance(self.column, int) and self.column < 0:
            raise SchemaError(f"Field '{self.name}': column must be >= 0, got {self.column}")

    def convert(self, cell: CellValue) -> Any:
        if self.optional and cell.is_empty:
            return None
        return self.rule.convert(cell)


def _unwrap_optional(hint) -> tuple:
    """Return ``(inner_hint, is_optional)`` for ``Optional[X]`` / ``X | None``."""
    origin = typing.get_origin(hint)
    if origin is Union or origin is getattr(types, "UnionType", None):
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(hint)) == 2:
            return args[0], True
        raise SchemaError(f"Unsupported union type {hint!r}")
    return hint, False


@dataclass(frozen=True)
class RowSchema:
    """Ordered field schemas plus the factory that builds one record per row.

    ``target`` is called with the converted values as keyword arguments;
    when it is None each record is a plain dict.
    """
    fields: tuple
    target: Optional[Callable[..., Any]] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        if not self.fields:
            raise SchemaError("A row schema needs at least one field")
        seen = set()
        for fs in self.fields:
            if fs.name in seen:
                raise SchemaError(f"Duplicate field name '{fs.name}'")
            seen.add(fs.name)

    @property
    def field_names(self) -> list:
        return [fs.name for fs in self.fields]

    @classmethod
    def from_dataclass(cls, target: type,
                       registry: Optional[ConversionRegistry] = None) -> "RowSchema":
        """
        Derive a schema from a dataclass, in field declaration order.

        Per-field ``metadata`` may carry ``rule`` (a ConversionRule),
        ``column`` (index or header name) and ``width`` (required for
        ``list[X]`` fields). ``Optional[X]`` fields accept empty cells.
        """
        if not dataclasses.is_dataclass(target):
            raise SchemaError(f"{target!r} is not a dataclass")
        registry = registry or DEFAULT_REGISTRY
        hints = typing.get_type_hints(target)

        fields = []
        for f in dataclasses.fields(target):
            if not f.init:
                continue
            hint, optional = _unwrap_optional(hints[f.name])
            width = f.metadata.get("width", 1)
            if typing.get_origin(hint) in (list, tuple):
                if "width" not in f.metadata:
                    raise SchemaError(f"Field '{f.name}': sequence fields need a 'width' in metadata")
                hint = typing.get_args(hint)[0]
            rule = f.metadata.get("rule") or registry.rule_for(hint)
            fields.append(FieldSchema(
                name=f.name,
                rule=rule,
                column=f.metadata.get("column"),
                width=width,
                optional=optional,
            ))
        return cls(fields=tuple(fields), target=target)

    def bind(self, headers: Sequence[str] = (), width: Optional[int] = None) -> list:
        """
        Resolve each field to its 0-based table columns.

        Args:
            headers: Header text per table column (for name bindings)
            width: Number of table columns; None skips the bounds check

        Returns:
            List of ``(FieldSchema, [column, ...])`` in schema order
        """
        headers = list(headers)
        bindings = []
        taken = {}
        cursor = 0
        for fs in self.fields:
            if fs.column is None:
                first = cursor
            elif isinstance(fs.column, str):
                if fs.column not in headers:
                    raise SchemaError(f"Field '{fs.name}': no column named '{fs.column}' "
                                      f"in header {headers}")
                first = headers.index(fs.column)
            else:
                first = fs.column
            columns = list(range(first, first + fs.width))
            if width is not None and columns[-1] >= width:
                raise SchemaError(f"Field '{fs.name}' needs column {columns[-1]}, "
                                  f"table has {width} columns")
            for col in columns:
                if col in taken:
                    raise SchemaError(f"Column {col} bound to both '{taken[col]}' and '{fs.name}'")
                taken[col] = fs.name
            bindings.append((fs, columns))
            cursor = first + fs.width
        return bindings

    def build(self, values: dict) -> Any:
        if self.target is None:
            return dict(values)
        return self.target(**values)


def _map_bound_row(cells: Sequence[CellValue], bindings: list, schema: RowSchema,
                   row_index: int, table_name: Optional[str]) -> Any:
    values = {}
    for fs, columns in bindings:
        converted = []
        for col in columns:
            cell = cells[col] if col < len(cells) else CellValue.empty()
            try:
                converted.append(fs.convert(cell))
            except ConversionError as exc:
                raise RowError(row_index, col, fs.name, exc, table_name) from exc
        values[fs.name] = converted if fs.width > 1 else converted[0]
    return schema.build(values)


def map_row(cells: Sequence[CellValue], schema: RowSchema, row_index: int = 0,
            table_name: Optional[str] = None, headers: Sequence[str] = ()) -> Any:
    """Convert a single row of cells into one record.

    Raises:
        RowError: The first field that failed to convert
    """
    bindings = schema.bind(headers)
    return _map_bound_row(cells, bindings, schema, row_index, table_name)


def map_rows(table: Table, schema: RowSchema,
             policy: ErrorPolicy = ErrorPolicy.FAIL_FAST) -> list:
    """
    Convert every data row of ``table``, preserving sheet order.

    Args:
        table: Located table
        schema: Row schema to apply
        policy: FAIL_FAST raises the first RowError; COLLECT_ALL converts
            every row and raises a MappingError listing all failures

    Returns:
        One record per data row
    """
    bindings = schema.bind(table.headers, table.width)
    records = []
    errors = []
    for row_index, cells in enumerate(table.rows):
        try:
            records.append(_map_bound_row(cells, bindings, schema, row_index, table.name))
        except RowError as err:
            if policy is ErrorPolicy.FAIL_FAST:
                raise
            logger.debug(f"Row {row_index} of '{table.name}' failed: {err}")
            errors.append(err)

    if errors:
        raise MappingError(errors, table.name)
    logger.debug(f"Mapped {len(records)} rows from table '{table.name}'")
    return records
