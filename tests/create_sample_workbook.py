"""
Create a sample Excel workbook for testing the table parser and generator.

This workbook has:
- Sheet1: Anchor-cell tables (test_table_1, bad_table, sparse_table),
  a blank-row terminator and a duplicate test_table_1 anchor further down
- Devices: Excel table objects (Channels, Limits)
- Notes: Tables with no data rows / no header
"""

import os
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.worksheet.table import Table, TableStyleInfo


TEST_TABLE_1_ROWS = [
    ("First", 0.23, 0.333),
    ("Second", 1.23, 1.333),
    ("Third", 2.23, 2.333),
    ("Fourth", 3.23, 3.333),
]

CHANNEL_ROWS = [
    ("Ch0", "Output Voltage", "V", 0.5),
    ("Ch1", "Output Current", "A", 1.25),
    ("Ch2", "Slew Rate", "V/s", 0.05),
]


def _write_rows(ws, top_row, left_col, rows):
    for r, values in enumerate(rows, start=top_row):
        for c, value in enumerate(values, start=left_col):
            if value is not None:
                ws.cell(row=r, column=c, value=value)


def create_sample_workbook(output_path):
    """Create a multi-sheet workbook with anchor tables and Excel table objects."""
    wb = Workbook()

    # ---- Sheet1: anchor-cell tables ----
    ws1 = wb.active
    ws1.title = "Sheet1"

    # A1 anchor, header on row 2, data rows 3-6, blank row 7
    ws1["A1"] = "test_table_1"
    ws1["A1"].font = Font(bold=True)
    _write_rows(ws1, 2, 1, [("row_id", "float1", "float2")] + TEST_TABLE_1_ROWS)
    ws1["A9"] = "Free text below the table"

    # Duplicate anchor: the first one (A1) wins
    ws1["A12"] = "test_table_1"
    _write_rows(ws1, 13, 1, [("row_id", "float1", "float2"), ("Bogus", 9.0, 9.0)])

    # G1 anchor: text in a number column at I5 (data row 2, column 2),
    # unknown row_id at G6 (data row 3, column 0)
    ws1["G1"] = "bad_table"
    _write_rows(ws1, 2, 7, [
        ("row_id", "float1", "float2"),
        ("First", 0.5, 1.5),
        ("Second", 1.5, 2.5),
        ("Third", 2.5, "n/a"),
        ("Fifth", 3.5, 4.5),
    ])

    # K1 anchor: optional column with an empty cell at L4
    ws1["K1"] = "sparse_table"
    _write_rows(ws1, 2, 11, [
        ("row_id", "limit"),
        ("First", 10),
        ("Second", None),
        ("Third", 30),
    ])

    # ---- Devices: Excel table objects ----
    ws2 = wb.create_sheet("Devices")
    _write_rows(ws2, 1, 1, [("name", "desc", "egu", "val")] + CHANNEL_ROWS)
    channels = Table(displayName="Channels", ref="A1:D4")
    channels.tableStyleInfo = TableStyleInfo(name="TableStyleMedium9", showRowStripes=True)
    ws2.add_table(channels)

    _write_rows(ws2, 1, 6, [("channel", "high"), ("Ch0", 10), ("Ch1", 2)])
    limits = Table(displayName="Limits", ref="F1:G3")
    ws2.add_table(limits)

    # ---- Notes: degenerate tables ----
    ws3 = wb.create_sheet("Notes")
    ws3["A1"] = "empty_table"
    ws3["A2"] = "col_a"
    ws3["A5"] = "headless_table"

    wb.save(output_path)
    wb.close()
    return output_path


if __name__ == "__main__":
    path = os.path.join(os.path.dirname(__file__), "test_data", "sample.xlsx")
    os.makedirs(os.path.dirname(path), exist_ok=True)
    create_sample_workbook(path)
    print(f"Created: {path}")
