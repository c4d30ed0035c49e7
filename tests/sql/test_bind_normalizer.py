from unittest import TestCase

from dbresource_core.exceptions import MissingBindParameterError
from dbresource_core.sql.bind_normalizer import (
    normalize_positioned_parameters_query,
    normalize_query,
    normalize_simple_parameters_query,
    strip_comment,
)


class TestPositionedParameters(TestCase):
    def test_repeated_name_reuses_position(self):
        result = normalize_positioned_parameters_query(
            "WHERE a = :x AND b = :x", {"x": 5}
        )
        self.assertEqual(result.query, "WHERE a = $1 AND b = $1")
        self.assertEqual(result.binds, [5])

    def test_positions_follow_first_appearance(self):
        result = normalize_positioned_parameters_query(
            "select * from t where b = :b and a = :a and c = :b",
            {"a": 1, "b": 2},
        )
        self.assertEqual(result.query, "select * from t where b = $1 and a = $2 and c = $1")
        self.assertEqual(result.binds, [2, 1])

    def test_array_expands_into_consecutive_positions(self):
        result = normalize_positioned_parameters_query("IN (:ids)", {"ids": [1, 2, 3]})
        self.assertEqual(result.query, "IN ($1,$2,$3)")
        self.assertEqual(result.binds, [1, 2, 3])

    def test_array_followed_by_scalar(self):
        result = normalize_positioned_parameters_query(
            "id IN (:ids) AND name = :name AND id2 IN (:ids)",
            {"ids": ["a", "b"], "name": "n"},
        )
        self.assertEqual(result.query, "id IN ($1,$2) AND name = $3 AND id2 IN ($1,$2)")
        self.assertEqual(result.binds, ["a", "b", "n"])

    def test_empty_array_consumes_no_position(self):
        result = normalize_positioned_parameters_query(
            "IN (:ids) AND x = :x", {"ids": [], "x": 9}
        )
        self.assertEqual(result.query, "IN ( null ) AND x = $1")
        self.assertEqual(result.binds, [9])

    def test_double_colon_cast_is_not_a_parameter(self):
        result = normalize_positioned_parameters_query(
            "select :v::text, col::int from t", {"v": "1"}
        )
        self.assertEqual(result.query, "select $1::text, col::int from t")
        self.assertEqual(result.binds, ["1"])

    def test_missing_parameter_is_named(self):
        with self.assertRaises(MissingBindParameterError) as ctx:
            normalize_positioned_parameters_query(":a + :b", {"a": 1})
        self.assertEqual(ctx.exception.names, ["b"])
        self.assertIn("[b]", str(ctx.exception))


class TestSimpleParameters(TestCase):
    def test_repeated_name_is_bound_per_occurrence(self):
        result = normalize_simple_parameters_query("WHERE a = :x AND b = :x", {"x": 5})
        self.assertEqual(result.query, "WHERE a = ? AND b = ?")
        self.assertEqual(result.binds, [5, 5])

    def test_array_expansion(self):
        result = normalize_simple_parameters_query("IN (:ids)", {"ids": (1, 2)})
        self.assertEqual(result.query, "IN (?,?)")
        self.assertEqual(result.binds, [1, 2])

    def test_empty_array(self):
        result = normalize_simple_parameters_query("IN (:ids)", {"ids": []})
        self.assertEqual(result.query, "IN ( null )")
        self.assertEqual(result.binds, [])

    def test_missing_parameters_all_reported(self):
        with self.assertRaises(MissingBindParameterError) as ctx:
            normalize_simple_parameters_query(":a + :b + :c", {"a": 1})
        self.assertEqual(ctx.exception.names, ["b", "c"])
        self.assertEqual(str(ctx.exception), "Missing bind parameters [b,c]")

    def test_none_value_is_still_bound(self):
        result = normalize_simple_parameters_query("a = :a", {"a": None})
        self.assertEqual(result.binds, [None])


class TestComments(TestCase):
    def test_block_and_line_comments_are_removed(self):
        sql = "select /* :hidden */ a -- uses :nothing\nfrom t # :gone\nwhere a = :a"
        result = normalize_query(sql, bind_params={"a": 1})
        self.assertNotIn("hidden", result.query)
        self.assertNotIn("nothing", result.query)
        self.assertNotIn("gone", result.query)
        self.assertEqual(result.binds, [1])
        self.assertTrue(result.query.endswith("where a = ?"))

    def test_multiline_block_comment(self):
        self.assertEqual(strip_comment("a/* one\ntwo */b"), "ab")

    def test_comment_markers_inside_literals_are_kept(self):
        sql = "select * from t where note = 'a -- b' and tag = \"x # y\" and id = :id -- tail"
        result = normalize_query(sql, to_positioned_parameter=True, bind_params={"id": 7})
        self.assertEqual(
            result.query,
            "select * from t where note = 'a -- b' and tag = \"x # y\" and id = $1 ",
        )
        self.assertEqual(result.binds, [7])

    def test_escaped_quote_does_not_end_literal(self):
        self.assertEqual(strip_comment("x = 'it''s -- fine' -- gone"), "x = 'it''s -- fine' ")

    def test_lines_are_kept(self):
        result = normalize_query(
            "select *\nfrom t\nwhere a = :a", to_positioned_parameter=True, bind_params={"a": 1}
        )
        self.assertEqual(result.query, "select *\nfrom t\nwhere a = $1")
