"""Tests for YAML configuration and declarative schemas."""

import os
import sys
import tempfile
import unittest

# Ensure project root is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from epics_gen.cells import CellValue
from epics_gen.config import (
    load_config,
    record_schema_from_config,
    row_schema_from_config,
    rule_from_config,
)
from epics_gen.conversions import BooleanRule, NumericRule, SubstitutionRule, TextRule
from epics_gen.errors import InvalidValueError, SchemaError
from epics_gen.mapper import ErrorPolicy, map_row
from epics_gen.record import RecordSchema, RecordTemplate, Representation
from epics_gen.renderer import render


class TestLoadConfig(unittest.TestCase):
    def _write(self, text):
        f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
        f.write(text)
        f.close()
        self.addCleanup(os.unlink, f.name)
        return f.name

    def test_default_config(self):
        config = load_config(None)
        self.assertEqual(config["log_level"], "INFO")
        self.assertIs(config["error_policy"], ErrorPolicy.FAIL_FAST)
        self.assertTrue(config["case_sensitive_tables"])
        self.assertEqual(config["tables"], [])

    def test_missing_file_gives_defaults(self):
        config = load_config("/nonexistent/config.yaml")
        self.assertEqual(config["records"], [])

    def test_custom_config(self):
        path = self._write("error_policy: collect_all\ncase_sensitive_tables: false\n")
        config = load_config(path)
        self.assertIs(config["error_policy"], ErrorPolicy.COLLECT_ALL)
        self.assertFalse(config["case_sensitive_tables"])
        self.assertEqual(config["log_level"], "INFO")

    def test_empty_file(self):
        self.assertEqual(load_config(self._write(""))["tables"], [])

    def test_bad_policy(self):
        with self.assertRaises(SchemaError):
            load_config(self._write("error_policy: sometimes\n"))

    def test_not_a_mapping(self):
        with self.assertRaises(SchemaError):
            load_config(self._write("- a\n- b\n"))

    def test_defaults_are_not_shared(self):
        load_config(None)["tables"].append({"sheet": "x"})
        self.assertEqual(load_config(None)["tables"], [])


class TestRuleFromConfig(unittest.TestCase):
    def test_types(self):
        self.assertEqual(rule_from_config({"type": "numeric"}), NumericRule())
        self.assertEqual(rule_from_config({"type": "text", "strip": True}), TextRule(strip=True))
        self.assertEqual(rule_from_config({}), TextRule())
        self.assertEqual(rule_from_config({"type": "boolean"}), BooleanRule())

    def test_integer(self):
        rule = rule_from_config({"type": "integer"})
        self.assertEqual(rule.convert(CellValue.number(4.0)), 4)
        with self.assertRaises(InvalidValueError):
            rule.convert(CellValue.number(4.5))

    def test_substitution(self):
        rule = rule_from_config({
            "type": "substitution",
            "patterns": [["First", 1], ["first", 2]],
            "case_sensitive": False,
        })
        self.assertIsInstance(rule, SubstitutionRule)
        self.assertEqual(rule.convert(CellValue.text("FIRST")), 1)

    def test_substitution_needs_patterns(self):
        with self.assertRaises(SchemaError):
            rule_from_config({"name": "row_id", "type": "substitution"})
        with self.assertRaises(SchemaError):
            rule_from_config({"name": "row_id", "type": "substitution", "patterns": [["a"]]})

    def test_unknown_type(self):
        with self.assertRaises(SchemaError):
            rule_from_config({"name": "x", "type": "complex"})


class TestSchemasFromConfig(unittest.TestCase):
    def test_row_schema(self):
        schema = row_schema_from_config({"fields": [
            {"name": "row_id", "type": "substitution", "patterns": {"First": "A"}},
            {"name": "limit", "type": "numeric", "optional": True},
            {"name": "pair", "type": "numeric", "width": 2},
        ]})
        self.assertIsNone(schema.target)
        record = map_row([CellValue.text("First"), CellValue.empty(),
                          CellValue.number(1.0), CellValue.number(2.0)], schema)
        self.assertEqual(record, {"row_id": "A", "limit": None, "pair": [1.0, 2.0]})

    def test_row_schema_needs_fields(self):
        with self.assertRaises(SchemaError):
            row_schema_from_config({"sheet": "Sheet1", "table": "t"})
        with self.assertRaises(SchemaError):
            row_schema_from_config({"fields": [{"type": "text"}]})

    def test_record_block(self):
        schema = record_schema_from_config({
            "name": "$(P)$(Ch)Val",
            "type": "ao",
            "bindings": {"$(Ch)": "name"},
            "fields": [
                {"token": "DESC", "attribute": "desc"},
                {"token": "VAL", "attribute": "val", "repr": "numeric", "format": "%.2f"},
            ],
        })
        self.assertIsInstance(schema, RecordSchema)
        self.assertIs(schema.fields[1].representation, Representation.NUMERIC)
        text = render({"name": "Ch0", "desc": "Output Voltage", "val": 0.5}, schema).text
        self.assertEqual(text, 'record(ao, "$(P)Ch0Val") {\n'
                               '  field(DESC, "Output Voltage")\n'
                               '  field(VAL, "0.50")\n'
                               '}\n')

    def test_record_template(self):
        schema = record_schema_from_config({
            "template": 'record(ao, "$(P)SomeOut") {{ field(VAL, "{}") }}',
            "attribute": "val",
        })
        self.assertIsInstance(schema, RecordTemplate)
        self.assertEqual(render({"val": 0.5}, schema).text,
                         'record(ao, "$(P)SomeOut") { field(VAL, "0.5") }\n')

    def test_bad_record_entries(self):
        with self.assertRaises(SchemaError):
            record_schema_from_config({"name": "X"})
        with self.assertRaises(SchemaError):
            record_schema_from_config({"name": "X", "type": "ao",
                                       "fields": [{"token": "VAL", "attribute": "v", "repr": "hex"}]})
        with self.assertRaises(SchemaError):
            record_schema_from_config({"template": "{}"})


if __name__ == "__main__":
    unittest.main()
