"""
Record schemas
==============
Declarative descriptions of the EPICS records produced for one parsed
record (one row of a table).

``RecordSchema`` describes a full record block::

    record(<record_type>, "<name_template>") {
      field(<TOKEN>, "<value>")
      ...
    }

``RecordTemplate`` is a free-form ``str.format`` template with a single
positional slot, for records that do not fit the block layout, e.g.::

    record(waveform, "$(P)Label-I") {{ field(INP, "{{const:"{}"}}") }}

``NameBinding`` replaces one exact token (``$(MxcId)``) with a value
from the parsed record. Any other ``$(...)`` token is left untouched
for the EPICS macro substitution done when the database is loaded.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import SchemaError


class Representation(Enum):
    """How a field value is turned into text.

    STRING: display text of the value, or its ``substitution`` entry
    NUMERIC: a number (Enum members render as their integer value),
        ``format_override`` is a printf-style spec such as ``"%.3f"``
    FORMATTED: ``format_override`` is a ``str.format`` template applied
        to the value (or its ``substitution`` entry)
    """
    STRING = "string"
    NUMERIC = "numeric"
    FORMATTED = "formatted"


@dataclass(frozen=True)
class OutputField:
    token: str
    attribute: str
    representation: Representation = Representation.STRING
    format_override: Optional[str] = None
    substitution: Optional[Mapping[Any, str]] = None

    def __post_init__(self):
        if not self.token:
            raise SchemaError(f"Output field for '{self.attribute}' has no field token")
        if isinstance(self.representation, str):
            object.__setattr__(self, "representation", Representation(self.representation))


@dataclass(frozen=True)
class NameBinding:
    token: str
    attribute: str

    def __post_init__(self):
        if not self.token:
            raise SchemaError(f"Name binding for '{self.attribute}' has an empty token")


@dataclass(frozen=True)
class RecordSchema:
    name_template: str
    record_type: str
    fields: tuple = ()
    bindings: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "bindings", tuple(self.bindings))
        if not self.record_type:
            raise SchemaError(f"Record '{self.name_template}' has no record type")
        tokens = set()
        for out in self.fields:
            if out.token in tokens:
                raise SchemaError(f"Duplicate field token '{out.token}' in record "
                                  f"'{self.name_template}'")
            tokens.add(out.token)

    @property
    def tokens(self) -> list:
        return [out.token for out in self.fields]


@dataclass(frozen=True)
class RecordTemplate:
    template: str
    attribute: str
    representation: Representation = Representation.STRING
    format_override: Optional[str] = None
    bindings: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "bindings", tuple(self.bindings))
        if isinstance(self.representation, str):
            object.__setattr__(self, "representation", Representation(self.representation))

    @property
    def token(self) -> str:
        """Label used in error messages."""
        return f"template<{self.attribute}>"
