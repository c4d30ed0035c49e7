"""Tests for the ConsoleOutputter class."""

import unittest
from io import StringIO
from unittest.mock import patch

from dbresource_core.config_objects.common import AnnotationType
from dbresource_core.config_objects.result_set import CellAnnotation, ResultSetData
from dbresource_core.outputter.outputter_console import ConsoleOutputter, _describe


class TestConsoleOutputterHelpers(unittest.TestCase):
    def test_describe_update(self):
        annotation = CellAnnotation(type=AnnotationType.UPD, values={"other_value": "x"})
        self.assertEqual(_describe(annotation), "other_value='x'")

    def test_describe_rule(self):
        annotation = CellAnnotation(
            type=AnnotationType.RUL,
            values={"name": "r", "message": "Error: r", "condition_values": {"a": 1}},
        )
        self.assertEqual(_describe(annotation), "Error: r {'a': 1}")

    def test_describe_add(self):
        self.assertEqual(_describe(CellAnnotation(type=AnnotationType.ADD)), "")


class TestConsoleOutputter(unittest.TestCase):
    @patch("sys.stdout", new_callable=StringIO)
    def test_write_summary_and_cells(self, mock_stdout):
        rs = ResultSetData.from_records(["id", "name"], [{"id": 1, "name": "a"}, {"id": 2}])
        rs.meta.table_name = "users"
        rs.rows[0].push_annotation(
            "name", CellAnnotation(type=AnnotationType.UPD, values={"other_value": "b"})
        )
        rs.rows[1].push_annotation("id", CellAnnotation(type=AnnotationType.DEL))

        ConsoleOutputter().write(rs, "Inserted:0, Deleted:1, Updated:1")
        output = mock_stdout.getvalue()

        self.assertIn("=== users ===", output)
        self.assertIn("Inserted:0, Deleted:1, Updated:1", output)
        self.assertIn("Rows: 2 | Add: 0 | Del: 1 | Upd: 1 | Rul: 0", output)
        self.assertIn("row 0 [name] Upd  (other_value='b')", output)
        self.assertIn("row 1 [id] Del", output)

    @patch("sys.stdout", new_callable=StringIO)
    def test_write_without_annotations(self, mock_stdout):
        ConsoleOutputter().write(ResultSetData.from_records(["a"], [{"a": 1}]))
        output = mock_stdout.getvalue()
        self.assertIn("=== result set ===", output)
        self.assertIn("Rows: 1 | Add: 0 | Del: 0 | Upd: 0 | Rul: 0", output)


if __name__ == "__main__":
    unittest.main()
