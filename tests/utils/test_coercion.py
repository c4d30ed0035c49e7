import datetime
from decimal import Decimal
from unittest import TestCase

from dbresource_core.config_objects.common import GeneralColumnType
from dbresource_core.utils.coercion import (
    to_bind_value,
    to_boolean,
    to_date,
    to_num,
    to_time,
)


class TestCoercion(TestCase):
    def test_to_num(self):
        self.assertEqual(to_num("12"), 12)
        self.assertEqual(to_num(" 1.5 "), 1.5)
        self.assertEqual(to_num(7), 7)
        self.assertEqual(to_num(Decimal("2.5")), Decimal("2.5"))
        self.assertIsNone(to_num("abc"))
        self.assertIsNone(to_num(""))
        self.assertIsNone(to_num("nan"))
        self.assertIsNone(to_num(float("nan")))
        self.assertIsNone(to_num(True))
        self.assertIsNone(to_num(None))

    def test_to_boolean(self):
        for spelling in ("true", "TRUE", "t", "yes", "1", "on"):
            self.assertIs(to_boolean(spelling), True)
        for spelling in ("false", "F", "no", "0", "off"):
            self.assertIs(to_boolean(spelling), False)
        self.assertIs(to_boolean(1), True)
        self.assertIs(to_boolean(0), False)
        self.assertIsNone(to_boolean("maybe"))
        self.assertIsNone(to_boolean(2))

    def test_to_date(self):
        self.assertEqual(to_date("2024-03-01"), datetime.datetime(2024, 3, 1))
        self.assertEqual(
            to_date(datetime.date(2024, 3, 1)), datetime.datetime(2024, 3, 1)
        )
        self.assertIsNone(to_date("not a date"))
        self.assertIsNone(to_date(12345))
        self.assertIsNone(to_date("  "))

    def test_to_time(self):
        self.assertEqual(to_time("12:30:00"), datetime.time(12, 30))
        self.assertEqual(
            to_time(datetime.datetime(2024, 1, 1, 8, 15)), datetime.time(8, 15)
        )
        self.assertIsNone(to_time("later"))

    def test_to_bind_value(self):
        self.assertEqual(to_bind_value(GeneralColumnType.TEXT, ""), "")
        self.assertEqual(to_bind_value(GeneralColumnType.VARCHAR, 5), 5)
        self.assertIsNone(to_bind_value(GeneralColumnType.INTEGER, ""))
        self.assertEqual(to_bind_value(GeneralColumnType.BIGINT, "42"), 42)
        self.assertIs(to_bind_value(GeneralColumnType.BOOLEAN, "yes"), True)
        self.assertEqual(
            to_bind_value(GeneralColumnType.TIMESTAMP, "2020-05-06 07:08:09"),
            datetime.datetime(2020, 5, 6, 7, 8, 9),
        )
        self.assertEqual(to_bind_value(GeneralColumnType.JSON, {"a": 1}), {"a": 1})
        self.assertIsNone(to_bind_value(GeneralColumnType.NUMERIC, "twelve"))
