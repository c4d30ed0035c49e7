from datetime import datetime
from unittest import TestCase

from dbresource_core.config_objects.common import GeneralColumnType
from dbresource_core.config_objects.result_set import RdhKey
from dbresource_core.config_objects.schema import DbColumn
from dbresource_core.exceptions import InvalidRuleException
from dbresource_core.sql.bind_normalizer import normalize_query
from dbresource_core.sql.conditional_clause import (
    compile_conditional_clause,
    operator_to_sql_string,
)

COLUMNS = [
    DbColumn(name="id", col_type=GeneralColumnType.INTEGER, primary_key=True),
    DbColumn(name="name", col_type=GeneralColumnType.VARCHAR),
    DbColumn(name="active", col_type=GeneralColumnType.BOOLEAN),
    DbColumn(name="created", col_type=GeneralColumnType.TIMESTAMP),
]


class TestConditionalClause(TestCase):
    def test_single_leaf(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "id", "operator": "equal", "value": "3"}]}, COLUMNS
        )
        self.assertEqual(clause.clause_text, "  id = :val1")
        self.assertEqual(clause.bind_params, {"val1": 3})
        self.assertEqual(clause.next_position, 2)

    def test_and_group_is_joined_per_line(self):
        clause = compile_conditional_clause(
            {
                "all": [
                    {"fact": "id", "operator": "greaterThan", "value": 1},
                    {"fact": "name", "operator": "notEqual", "value": "x"},
                ]
            },
            COLUMNS,
        )
        self.assertEqual(clause.clause_text, "  id > :val1\n  AND name <> :val2")

    def test_nested_group_is_parenthesized_and_indented(self):
        clause = compile_conditional_clause(
            {
                "all": [
                    {"fact": "active", "operator": "equal", "value": "true"},
                    {
                        "any": [
                            {"fact": "name", "operator": "startsWith", "value": "ab"},
                            {"fact": "name", "operator": "isNull"},
                        ]
                    },
                ]
            },
            COLUMNS,
        )
        self.assertEqual(
            clause.clause_text,
            "  active = :val1\n  AND (\n    name LIKE :val2\n    OR name IS NULL\n  )",
        )
        self.assertEqual(clause.bind_params, {"val1": True, "val2": "ab%"})

    def test_in_operator_binds_coerced_list(self):
        clause = compile_conditional_clause(
            {"any": [{"fact": "id", "operator": "in", "value": "1, 2,3"}]}, COLUMNS
        )
        self.assertEqual(clause.clause_text, "  id IN (:val1)")
        self.assertEqual(clause.bind_params, {"val1": [1, 2, 3]})

        normalized = normalize_query(
            clause.clause_text, to_positioned_parameter=True, bind_params=clause.bind_params
        )
        self.assertEqual(normalized.query, "  id IN ($1,$2,$3)")
        self.assertEqual(normalized.binds, [1, 2, 3])

    def test_in_operator_accepts_json_list_text(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "name", "operator": "notIn", "value": '["a", "b"]'}]}, COLUMNS
        )
        self.assertEqual(clause.bind_params, {"val1": ["a", "b"]})

    def test_between_takes_two_positions(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "created", "operator": "between", "value": ["2024-01-01", "2024-02-01"]}]},
            COLUMNS,
        )
        self.assertEqual(clause.clause_text, "  created BETWEEN :val1 AND :val2")
        self.assertEqual(clause.bind_params["val1"], datetime(2024, 1, 1))
        self.assertEqual(clause.bind_params["val2"], datetime(2024, 2, 1))

    def _normalized_both_ways(self, clause):
        positioned = normalize_query(
            clause.clause_text, to_positioned_parameter=True, bind_params=clause.bind_params
        )
        simple = normalize_query(clause.clause_text, bind_params=clause.bind_params)
        return positioned, simple

    def test_between_without_value_binds_nulls(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "id", "operator": "between"}]}, COLUMNS
        )
        self.assertEqual(clause.clause_text, "  id BETWEEN :val1 AND :val2")
        self.assertEqual(clause.bind_params, {"val1": None, "val2": None})

        positioned, simple = self._normalized_both_ways(clause)
        self.assertEqual(positioned.query, "  id BETWEEN $1 AND $2")
        self.assertEqual(positioned.binds, [None, None])
        self.assertEqual(simple.query, "  id BETWEEN ? AND ?")
        self.assertEqual(simple.binds, [None, None])

    def test_between_with_one_value_binds_null_upper_bound(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "id", "operator": "between", "value": [3]}]}, COLUMNS
        )
        self.assertEqual(clause.bind_params, {"val1": 3, "val2": None})

        positioned, simple = self._normalized_both_ways(clause)
        self.assertEqual(positioned.binds, [3, None])
        self.assertEqual(simple.query, "  id BETWEEN ? AND ?")
        self.assertEqual(simple.binds, [3, None])

    def test_in_without_value_binds_single_null(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "id", "operator": "in", "value": None}]}, COLUMNS
        )
        self.assertEqual(clause.clause_text, "  id IN (:val1)")
        self.assertEqual(clause.bind_params, {"val1": None})

        positioned, simple = self._normalized_both_ways(clause)
        self.assertEqual(positioned.query, "  id IN ($1)")
        self.assertEqual(positioned.binds, [None])
        self.assertEqual(simple.query, "  id IN (?)")
        self.assertEqual(simple.binds, [None])

    def test_ends_with_and_quote(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "name", "operator": "endsWith", "value": "z"}]},
            [RdhKey(name="name", type=GeneralColumnType.TEXT)],
            quote=True,
        )
        self.assertEqual(clause.clause_text, "  `name` LIKE :val1")
        self.assertEqual(clause.bind_params, {"val1": "%z"})

    def test_unknown_column_is_treated_as_text(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "other", "operator": "equal", "value": 12}]}, COLUMNS
        )
        self.assertEqual(clause.bind_params, {"val1": 12})

    def test_start_position(self):
        clause = compile_conditional_clause(
            {"all": [{"fact": "id", "operator": "equal", "value": 1}]}, COLUMNS, start_position=4
        )
        self.assertEqual(clause.clause_text, "  id = :val4")
        self.assertEqual(clause.next_position, 5)

    def test_empty_group_renders_nothing(self):
        clause = compile_conditional_clause({"all": []}, COLUMNS)
        self.assertEqual(clause.clause_text, "")
        self.assertEqual(clause.bind_params, {})

    def test_unknown_operator(self):
        with self.assertRaises(InvalidRuleException):
            operator_to_sql_string("contains")
        with self.assertRaises(InvalidRuleException):
            compile_conditional_clause(
                {"all": [{"fact": "id", "operator": "sounds_like", "value": 1}]}, COLUMNS
            )

    def test_malformed_tree(self):
        with self.assertRaises(InvalidRuleException):
            compile_conditional_clause({"all": [], "any": []}, COLUMNS)
