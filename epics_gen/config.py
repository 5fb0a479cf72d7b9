"""
YAML configuration
==================
Loads generator settings and declarative row / record schemas from YAML.

Example::

    log_level: INFO
    error_policy: fail_fast        # or collect_all
    case_sensitive_tables: true
    tables:
      - sheet: Sheet1
        table: voltages
        fields:
          - {name: row_id, type: substitution, patterns: {First: 1, Second: 2}}
          - {name: desc, type: text}
          - {name: val, type: numeric, column: Value}
    records:
      - name: "$(P)$(Id)Voltage"
        type: ao
        bindings: {"$(Id)": row_id}
        fields:
          - {token: DESC, attribute: desc}
          - {token: VAL, attribute: val, repr: numeric, format: "%.3f"}
      - template: 'record(ao, "$(P)Out") {{ field(VAL, "{}") }}'
        attribute: val
"""

import logging
import os
from typing import Any, Optional

import yaml

from .conversions import (
    BooleanRule,
    ConversionRule,
    NumericRule,
    SubstitutionRule,
    TextRule,
    integral,
    pairs_from,
)
from .errors import SchemaError
from .mapper import ErrorPolicy, FieldSchema, RowSchema
from .record import NameBinding, OutputField, RecordSchema, RecordTemplate, Representation

DEFAULT_CONFIG = {
    "log_level": "INFO",
    "error_policy": ErrorPolicy.FAIL_FAST.value,
    "case_sensitive_tables": True,
    "tables": [],
    "records": [],
}


def setup_logging(level_str: str = "INFO"):
    """Configure logging."""
    level = getattr(logging, str(level_str).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def load_config(config_path: Optional[str]) -> dict:
    """Load configuration from a YAML file, falling back to defaults."""
    config = {k: (list(v) if isinstance(v, list) else v) for k, v in DEFAULT_CONFIG.items()}
    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        if not isinstance(user_config, dict):
            raise SchemaError(f"Invalid config structure in {config_path} (expected mapping)")
        config.update(user_config)
    config["error_policy"] = error_policy_from(config["error_policy"])
    return config


def error_policy_from(value) -> ErrorPolicy:
    """Parse an ``error_policy`` setting (name or ErrorPolicy)."""
    try:
        return ErrorPolicy(value)
    except ValueError:
        raise SchemaError(f"Unknown error_policy {value!r}") from None


def _require(entry: dict, key: str, what: str) -> Any:
    if not isinstance(entry, dict) or key not in entry:
        raise SchemaError(f"{what} entry missing required key '{key}': {entry!r}")
    return entry[key]


# ------------------------------------------------------------------
# Row schemas
# ------------------------------------------------------------------

def rule_from_config(entry: dict) -> ConversionRule:
    """Build a ConversionRule from a field entry's ``type`` and options."""
    kind = entry.get("type", "text")
    if kind == "substitution":
        patterns = _require(entry, "patterns", "Substitution field")
        try:
            pairs = pairs_from(patterns)
        except (TypeError, ValueError) as exc:
            raise SchemaError(f"Field '{entry.get('name')}': bad patterns: {exc}") from exc
        return SubstitutionRule(pairs, case_sensitive=entry.get("case_sensitive", True))
    if kind == "numeric":
        return NumericRule()
    if kind == "integer":
        return NumericRule(wrapper=integral)
    if kind == "text":
        return TextRule(strip=entry.get("strip", False))
    if kind == "boolean":
        return BooleanRule()
    raise SchemaError(f"Field '{entry.get('name')}': unknown type {kind!r}")


def row_schema_from_config(entry: dict) -> RowSchema:
    """Build a dict-producing RowSchema from a table entry's ``fields``."""
    fields = []
    for field_entry in _require(entry, "fields", "Table"):
        fields.append(FieldSchema(
            name=str(_require(field_entry, "name", "Field")),
            rule=rule_from_config(field_entry),
            column=field_entry.get("column"),
            width=int(field_entry.get("width", 1)),
            optional=bool(field_entry.get("optional", False)),
        ))
    return RowSchema(fields=tuple(fields))


# ------------------------------------------------------------------
# Record schemas
# ------------------------------------------------------------------

def _bindings_from_config(entry: dict) -> tuple:
    return tuple(NameBinding(str(token), str(attribute))
                 for token, attribute in (entry.get("bindings") or {}).items())


def _representation(entry: dict) -> Representation:
    try:
        return Representation(entry.get("repr", Representation.STRING.value))
    except ValueError:
        raise SchemaError(f"Unknown repr {entry.get('repr')!r} in {entry!r}") from None


def record_schema_from_config(entry: dict):
    """Build a RecordSchema (``name`` + ``type``) or RecordTemplate (``template``)."""
    if isinstance(entry, dict) and "template" in entry:
        return RecordTemplate(
            template=str(entry["template"]),
            attribute=str(_require(entry, "attribute", "Template")),
            representation=_representation(entry),
            format_override=entry.get("format"),
            bindings=_bindings_from_config(entry),
        )

    fields = []
    for field_entry in entry.get("fields") or []:
        fields.append(OutputField(
            token=str(_require(field_entry, "token", "Record field")),
            attribute=str(_require(field_entry, "attribute", "Record field")),
            representation=_representation(field_entry),
            format_override=field_entry.get("format"),
            substitution=field_entry.get("substitution"),
        ))
    return RecordSchema(
        name_template=str(_require(entry, "name", "Record")),
        record_type=str(_require(entry, "type", "Record")),
        fields=tuple(fields),
        bindings=_bindings_from_config(entry),
    )
