"""Tests for the workbook -> EPICS database pipeline (end-to-end)."""

import os
import sys
import shutil
import tempfile
import unittest

import yaml

# Ensure project root is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from epics_gen.errors import MappingError, SchemaError, SheetNotFoundError, TableNotFoundError
from epics_gen.generator import generate_database
from tests.create_sample_workbook import create_sample_workbook


CHANNEL_TABLE = {
    "sheet": "Devices",
    "table": "Channels",
    "fields": [
        {"name": "name", "type": "text"},
        {"name": "desc", "type": "text"},
        {"name": "egu", "type": "text"},
        {"name": "val", "type": "numeric"},
    ],
}

CHANNEL_RECORD = {
    "name": "$(P)$(Ch)Val",
    "type": "ao",
    "bindings": {"$(Ch)": "name"},
    "fields": [
        {"token": "DESC", "attribute": "desc"},
        {"token": "EGU", "attribute": "egu"},
        {"token": "VAL", "attribute": "val", "repr": "numeric"},
    ],
}

ROW_TABLE = {
    "sheet": "Sheet1",
    "table": "test_table_1",
    "fields": [
        {"name": "row_id", "type": "substitution",
         "patterns": {"First": "A", "Second": "B", "Third": "C", "Fourth": "D"}},
        {"name": "offset", "type": "numeric", "column": "float2"},
    ],
    "records": [
        {"template": 'record(ao, "$(P)Row{}Offset") {{ field(VAL, "0") }}', "attribute": "row_id"},
    ],
}


class TestGenerateDatabase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.tmpdir = tempfile.mkdtemp()
        cls.sample_path = os.path.join(cls.tmpdir, "sample.xlsx")
        create_sample_workbook(cls.sample_path)

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tmpdir)

    def _config_file(self, config):
        path = os.path.join(self.tmpdir, "config.yaml")
        with open(path, "w") as f:
            yaml.safe_dump(config, f)
        return path

    def test_channels_from_yaml(self):
        config_path = self._config_file({"tables": [CHANNEL_TABLE], "records": [CHANNEL_RECORD]})
        output_path = os.path.join(self.tmpdir, "out", "channels.db")

        text = generate_database(self.sample_path, config_path, output_path)

        self.assertTrue(text.startswith(
            'record(ao, "$(P)Ch0Val") {\n'
            '  field(DESC, "Output Voltage")\n'
            '  field(EGU, "V")\n'
            '  field(VAL, "0.5")\n'
            '}\n'
        ))
        self.assertIn('field(VAL, "0.05")', text)
        self.assertEqual(text.count("record("), 3)
        with open(output_path, encoding="utf-8") as f:
            self.assertEqual(f.read(), text)

    def test_per_table_records(self):
        config = {"tables": [CHANNEL_TABLE, ROW_TABLE], "records": [CHANNEL_RECORD]}
        text = generate_database(self.sample_path, config)
        self.assertIn('record(ao, "$(P)RowAOffset") { field(VAL, "0") }\n', text)
        self.assertLess(text.index("Ch2Val"), text.index("RowAOffset"))
        self.assertEqual(text.count("Offset"), 4)

    def test_no_tables(self):
        self.assertEqual(generate_database(self.sample_path, {"tables": []}), "")

    def test_collect_all_policy(self):
        table = dict(ROW_TABLE, table="bad_table",
                     fields=[ROW_TABLE["fields"][0], {"name": "a", "type": "numeric"},
                             {"name": "b", "type": "numeric"}])
        with self.assertRaises(MappingError) as ctx:
            generate_database(self.sample_path, {"tables": [table], "error_policy": "collect_all"})
        self.assertEqual(len(ctx.exception.errors), 2)

    def test_case_insensitive_tables(self):
        table = dict(CHANNEL_TABLE, table="channels")
        config = {"tables": [table], "records": [CHANNEL_RECORD]}
        with self.assertRaises(TableNotFoundError):
            generate_database(self.sample_path, config)
        config["case_sensitive_tables"] = False
        self.assertEqual(generate_database(self.sample_path, config).count("record("), 3)

    def test_unknown_sheet(self):
        table = dict(CHANNEL_TABLE, sheet="Nope")
        with self.assertRaises(SheetNotFoundError):
            generate_database(self.sample_path, {"tables": [table], "records": [CHANNEL_RECORD]})

    def test_unknown_policy(self):
        with self.assertRaises(SchemaError):
            generate_database(self.sample_path, {"tables": [CHANNEL_TABLE], "error_policy": "sometimes"})

    def test_table_entry_needs_location(self):
        with self.assertRaises(SchemaError):
            generate_database(self.sample_path, {"tables": [{"fields": []}], "records": [CHANNEL_RECORD]})


if __name__ == "__main__":
    unittest.main()
