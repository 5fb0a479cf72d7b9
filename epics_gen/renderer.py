"""
Record Renderer
===============
Renders parsed records as EPICS database text using RecordSchemas and
RecordTemplates. Rendering is a pure function of (record, schema): the
same inputs always give byte-identical text.
"""

import enum
import logging
import numbers
import operator
import os
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from .errors import FormatError, MissingFieldError
from .record import NameBinding, RecordSchema, RecordTemplate, Representation

logger = logging.getLogger(__name__)

FIELD_INDENT = "  "

Schema = Union[RecordSchema, RecordTemplate]


@dataclass(frozen=True)
class RenderedRecord:
    text: str
    record_type: Optional[str] = None
    name: Optional[str] = None

    def __str__(self):
        return self.text


# ------------------------------------------------------------------
# Value formatting
# ------------------------------------------------------------------

def read_attribute(record: Any, attribute: str) -> Any:
    """Fetch ``attribute`` from a dataclass/object or a mapping."""
    if isinstance(record, Mapping):
        if attribute not in record:
            raise MissingFieldError(attribute, record)
        return record[attribute]
    try:
        return getattr(record, attribute)
    except AttributeError:
        raise MissingFieldError(attribute, record) from None


def format_number(value: Union[int, float]) -> str:
    """Shortest text for a number; integral floats drop their fraction."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def display(value: Any) -> str:
    """Display text of a parsed value."""
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        return format_number(float(value))
    if not isinstance(value, str):
        # numeric newtypes (__index__ / __float__)
        try:
            return str(operator.index(value))
        except TypeError:
            pass
        if hasattr(type(value), "__float__"):
            return format_number(float(value))
    return str(value)


def _as_number(token: str, value: Any) -> Union[int, float]:
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return float(value)
    if not isinstance(value, (str, bytes)):
        try:
            return operator.index(value)
        except TypeError:
            pass
        try:
            return float(value)
        except (TypeError, ValueError):
            pass
    raise FormatError(token, f"{value!r} is not numeric")


def _substitute(token: str, value: Any, substitution: Mapping[Any, str]) -> str:
    if value in substitution:
        return substitution[value]
    if isinstance(value, enum.Enum) and value.name in substitution:
        return substitution[value.name]
    raise FormatError(token, f"no substitution for {value!r}")


def format_value(token: str, value: Any, representation: Representation,
                 format_override: Optional[str] = None,
                 substitution: Optional[Mapping[Any, str]] = None) -> str:
    """
    Format one value for output.

    Raises:
        FormatError: The override or substitution does not apply to the
            representation, or the value cannot be formatted with it
    """
    if representation is Representation.STRING:
        if format_override is not None:
            raise FormatError(token, f"format {format_override!r} does not apply to a string representation")
        if substitution is not None:
            return _substitute(token, value, substitution)
        return display(value)

    if representation is Representation.NUMERIC:
        if substitution is not None:
            raise FormatError(token, "substitution does not apply to a numeric representation")
        number = _as_number(token, value)
        if format_override is None:
            return format_number(number)
        try:
            return format_override % number
        except (TypeError, ValueError) as exc:
            raise FormatError(token, f"format {format_override!r}: {exc}") from exc

    # FORMATTED
    if format_override is None:
        raise FormatError(token, "formatted representation needs a format override")
    if substitution is not None:
        value = _substitute(token, value, substitution)
    try:
        return format_override.format(value)
    except (IndexError, KeyError, ValueError) as exc:
        raise FormatError(token, f"format {format_override!r}: {exc}") from exc


def quote(text: str) -> str:
    """Escape text for use inside an EPICS double-quoted string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def resolve_bindings(text: str, bindings: Iterable[NameBinding], record: Any) -> str:
    """Replace each binding's exact token; unrelated ``$(...)`` tokens are kept.

    All tokens are replaced in one pass, so substituted text is never
    scanned again for other tokens.
    """
    values = {b.token: display(read_attribute(record, b.attribute)) for b in bindings}
    if not values:
        return text
    # longest token first so overlapping tokens resolve to the longer one
    pattern = "|".join(re.escape(token) for token in sorted(values, key=len, reverse=True))
    return re.sub(pattern, lambda m: values[m.group(0)], text)


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------

def _render_block(record: Any, schema: RecordSchema) -> RenderedRecord:
    name = resolve_bindings(schema.name_template, schema.bindings, record)
    lines = [f'record({schema.record_type}, "{quote(name)}") {{']
    for out in schema.fields:
        value = read_attribute(record, out.attribute)
        text = format_value(out.token, value, out.representation,
                            out.format_override, out.substitution)
        lines.append(f'{FIELD_INDENT}field({out.token}, "{quote(text)}")')
    lines.append("}")
    return RenderedRecord("\n".join(lines) + "\n", schema.record_type, name)


def _render_template(record: Any, template: RecordTemplate) -> RenderedRecord:
    value = read_attribute(record, template.attribute)
    text = format_value(template.token, value, template.representation, template.format_override)
    try:
        rendered = template.template.format(text)
    except (IndexError, KeyError, ValueError) as exc:
        raise FormatError(template.token, f"template {template.template!r}: {exc}") from exc
    rendered = resolve_bindings(rendered, template.bindings, record)
    if not rendered.endswith("\n"):
        rendered += "\n"
    return RenderedRecord(rendered)


def render(record: Any, schema: Schema) -> RenderedRecord:
    """
    Render one parsed record with one schema.

    Raises:
        MissingFieldError: The schema references an attribute the record lacks
        FormatError: A value cannot be formatted as declared
    """
    if isinstance(schema, RecordTemplate):
        return _render_template(record, schema)
    return _render_block(record, schema)


def render_all(record: Any, schemas: Sequence[Schema]) -> str:
    """Render one record with several schemas, in order."""
    return "".join(render(record, schema).text for schema in schemas)


def render_database(records: Iterable[Any], schemas: Sequence[Schema]) -> str:
    """Render every record with every schema; records keep their order."""
    blocks = []
    count = 0
    for record in records:
        blocks.append(render_all(record, schemas))
        count += 1
    logger.debug(f"Rendered {count} records x {len(schemas)} schemas")
    return "".join(blocks)


def write_database(output_path: str, text: str) -> str:
    """Write database text to ``output_path``; returns the path."""
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(text)
    logger.info(f"Generated database: {output_path}")
    return output_path
