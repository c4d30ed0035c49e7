import logging
from typing import Optional

from dbresource_core.config_objects.result_set import QueryParams, ResultSetData
from dbresource_core.config_objects.schema import RdsDatabase
from dbresource_core.sql.query_parser import get_table_name, parse_query

log = logging.getLogger(__name__)


def apply_query_metadata(
    result_set: ResultSetData,
    params: QueryParams,
    connection_name: Optional[str],
    database: Optional[RdsDatabase] = None,
) -> ResultSetData:
    """
    Record where ``result_set`` came from: the statement, its conditions and
    the table it reads (with compare keys taken from the table when nobody
    supplied any).
    """
    parsed = parse_query(params.sql)
    ast_table_name = get_table_name(parsed)
    db_table = database.find_table(ast_table_name) if database else None
    if db_table:
        ast_table_name = db_table.name

    meta = result_set.meta
    query_meta = params.meta

    table_name = query_meta.table_name if query_meta else None
    if not meta.table_name:
        table_name = table_name or ast_table_name
    comment = query_meta.comment if query_meta and query_meta.comment else None
    if comment is None and db_table:
        comment = db_table.comment

    compare_keys = query_meta.compare_keys if query_meta else None
    if not meta.compare_keys and not compare_keys and db_table:
        compare_keys = db_table.get_compare_keys()

    result_set.sql_statement = params.sql
    result_set.query_conditions = params.conditions
    meta.connection_name = connection_name
    if table_name:
        meta.table_name = table_name
    if comment is not None:
        meta.comment = comment
    if compare_keys:
        meta.compare_keys = compare_keys
    meta.type = parsed.type
    if query_meta and query_meta.editable is not None:
        meta.editable = query_meta.editable

    log.debug(
        "Query metadata: type=%s table=%s compare_keys=%s",
        meta.type,
        meta.table_name,
        meta.compare_keys,
    )
    return result_set
