from unittest import TestCase

from dbresource_core.config_objects.result_set import (
    PrimaryCompareKey,
    QueryMeta,
    QueryParams,
    ResultSetData,
    ResultSetMeta,
    UniqCompareKey,
)
from dbresource_core.config_objects.schema import DbColumn, DbSchema, DbTable, RdsDatabase
from dbresource_core.query_context import apply_query_metadata

DATABASE = RdsDatabase(
    name="db",
    children=[
        DbSchema(
            name="public",
            is_default=True,
            children=[
                DbTable(
                    name="Users",
                    comment="application users",
                    children=[DbColumn(name="id", primary_key=True), DbColumn(name="name")],
                )
            ],
        )
    ],
)


class TestApplyQueryMetadata(TestCase):
    def test_table_resolved_from_statement(self):
        rs = ResultSetData.from_records(["id", "name"], [])
        params = QueryParams(sql="select * from USERS where id = 1")
        result = apply_query_metadata(rs, params, "local", DATABASE)

        self.assertIs(result, rs)
        self.assertEqual(rs.sql_statement, params.sql)
        self.assertEqual(rs.meta.connection_name, "local")
        self.assertEqual(rs.meta.table_name, "Users")
        self.assertEqual(rs.meta.comment, "application users")
        self.assertEqual(rs.meta.type, "select")
        self.assertEqual(rs.meta.compare_keys, [PrimaryCompareKey(kind="primary", names=["id"])])

    def test_params_meta_wins(self):
        rs = ResultSetData.from_records(["id"], [])
        params = QueryParams(
            sql="select * from users",
            conditions={"all": [{"fact": "id", "operator": "equal", "value": 1}]},
            meta=QueryMeta(
                table_name="alias_name",
                comment="custom",
                compare_keys=[UniqCompareKey(kind="uniq", name="id")],
                editable=True,
            ),
        )
        apply_query_metadata(rs, params, "local", DATABASE)

        self.assertEqual(rs.meta.table_name, "alias_name")
        self.assertEqual(rs.meta.comment, "custom")
        self.assertEqual(rs.meta.compare_keys, [UniqCompareKey(kind="uniq", name="id")])
        self.assertTrue(rs.meta.editable)
        self.assertEqual(rs.query_conditions, params.conditions)

    def test_existing_meta_is_kept(self):
        existing = [UniqCompareKey(kind="uniq", name="name")]
        rs = ResultSetData.from_records(
            ["id", "name"], [], meta=ResultSetMeta(table_name="kept", compare_keys=existing)
        )
        apply_query_metadata(rs, QueryParams(sql="select * from users"), "local", DATABASE)

        self.assertEqual(rs.meta.table_name, "kept")
        self.assertEqual(rs.meta.compare_keys, existing)

    def test_unparseable_sql_without_schema(self):
        rs = ResultSetData.from_records(["x"], [])
        apply_query_metadata(rs, QueryParams(sql="SELECT * FROM ("), "local")

        self.assertIsNone(rs.meta.type)
        self.assertIsNone(rs.meta.table_name)
        self.assertIsNone(rs.meta.compare_keys)
