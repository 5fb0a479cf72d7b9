"""
EPICS database generator
========================
Pipeline from a workbook and a YAML configuration to EPICS database text.

Steps:
1. Load the workbook sheets as SheetGrids
2. Locate and map every configured table with its row schema
3. Render every record with the record schemas (per table, or global)
4. Optionally write the ``.db`` file

Usage:
    >>> from epics_gen.generator import generate_database
    >>> text = generate_database("devices.xlsx", "config.yaml", "out/devices.db")
"""

import logging
from typing import Optional, Union

from .config import (
    error_policy_from,
    load_config,
    record_schema_from_config,
    row_schema_from_config,
)
from .errors import SchemaError, SheetNotFoundError
from .mapper import ErrorPolicy
from .parser import parse_table
from .renderer import render_database, write_database
from .workbook import load_grids

logger = logging.getLogger(__name__)


def _record_schemas(entries) -> list:
    return [record_schema_from_config(entry) for entry in entries or []]


def generate_database(workbook_path: str, config: Union[str, dict, None] = None,
                      output_path: Optional[str] = None) -> str:
    """
    Parse the configured tables of ``workbook_path`` and render them.

    Args:
        workbook_path: Source .xlsx file
        config: Path to a YAML config, an already loaded config dict, or
            None for defaults
        output_path: When given, the database text is also written here

    Returns:
        The rendered database text
    """
    if not isinstance(config, dict):
        config = load_config(config)
    policy = error_policy_from(config.get("error_policy", ErrorPolicy.FAIL_FAST))
    case_sensitive = config.get("case_sensitive_tables", True)
    global_schemas = _record_schemas(config.get("records"))

    table_entries = config.get("tables") or []
    if not table_entries:
        logger.warning("No tables configured; the database will be empty")

    logger.info(f"Source workbook: {workbook_path}")
    logger.info(f"Error policy: {policy.value}")

    grids = load_grids(workbook_path)

    blocks = []
    total = 0
    for entry in table_entries:
        if not isinstance(entry, dict) or "sheet" not in entry or "table" not in entry:
            raise SchemaError(f"Table entry needs 'sheet' and 'table': {entry!r}")
        sheet_name = entry["sheet"]
        table_name = entry["table"]
        if sheet_name not in grids:
            raise SheetNotFoundError(
                f"Sheet '{sheet_name}' not found in {workbook_path}", sheet_name=sheet_name,
            )

        row_schema = row_schema_from_config(entry)
        schemas = _record_schemas(entry["records"]) if "records" in entry else global_schemas
        records = parse_table(grids[sheet_name], table_name, row_schema, policy, case_sensitive)
        if not schemas:
            logger.warning(f"Table '{table_name}' has no record schemas; nothing rendered")
        blocks.append(render_database(records, schemas))
        total += len(records)
        logger.info(f"  '{sheet_name}'/'{table_name}': {len(records)} records, "
                    f"{len(schemas)} schemas")

    text = "".join(blocks)
    logger.info(f"Rendered {total} records from {len(table_entries)} tables")

    if output_path:
        write_database(output_path, text)
    return text
