import logging
from typing import Any, Dict, List, Optional, Union

from dbresource_core.config_objects.common import GeneralColumnType
from dbresource_core.config_objects.result_set import RdhKey
from dbresource_core.config_objects.rule import TopLevelCondition
from dbresource_core.config_objects.schema import DbTable
from dbresource_core.sql.bind_normalizer import QueryWithBindsResult, normalize_query
from dbresource_core.sql.conditional_clause import compile_conditional_clause, wrap_quote
from dbresource_core.utils.coercion import to_bind_value

log = logging.getLogger(__name__)


def create_table_name_with_schema(
    table: str, schema: Optional[str] = None, quote: bool = False
) -> str:
    if schema:
        return f"{wrap_quote(schema, quote)}.{wrap_quote(table, quote)}"
    return wrap_quote(table, quote)


def _placeholder(index: int, to_positioned_parameter: bool) -> str:
    return f"${index + 1}" if to_positioned_parameter else "?"


def _key_type(keys: List[RdhKey], name: str) -> GeneralColumnType:
    return next((k.type for k in keys if k.name == name), GeneralColumnType.UNKNOWN)


def to_insert_statement_with_binds(
    table_name: str,
    keys: List[RdhKey],
    values: Dict[str, Any],
    schema_name: Optional[str] = None,
    to_positioned_parameter: bool = False,
    quote: bool = False,
) -> QueryWithBindsResult:
    """Columns whose value coerces to None are left out of the statement."""
    table = create_table_name_with_schema(table_name, schema_name, quote)
    binds: List[Any] = []
    column_names: List[str] = []
    placeholders: List[str] = []

    for key, raw in values.items():
        value = to_bind_value(_key_type(keys, key), raw)
        if value is None:
            continue
        column_names.append(wrap_quote(key, quote))
        placeholders.append(_placeholder(len(binds), to_positioned_parameter))
        binds.append(value)

    query = f"INSERT INTO {table} ({','.join(column_names)}) VALUES ({','.join(placeholders)})"
    return QueryWithBindsResult(query=query, binds=binds)


def to_update_statement_with_binds(
    table_name: str,
    keys: List[RdhKey],
    values: Dict[str, Any],
    conditions: Dict[str, Any],
    schema_name: Optional[str] = None,
    to_positioned_parameter: bool = False,
    quote: bool = False,
) -> QueryWithBindsResult:
    table = create_table_name_with_schema(table_name, schema_name, quote)
    binds: List[Any] = []
    set_list: List[str] = []
    condition_list: List[str] = []

    for key, raw in values.items():
        set_list.append(f"{wrap_quote(key, quote)} = {_placeholder(len(binds), to_positioned_parameter)}")
        binds.append(to_bind_value(_key_type(keys, key), raw))
    for key, raw in conditions.items():
        condition_list.append(f"{wrap_quote(key, quote)} = {_placeholder(len(binds), to_positioned_parameter)}")
        binds.append(to_bind_value(_key_type(keys, key), raw))

    query = f"UPDATE {table} SET {','.join(set_list)} WHERE {' AND '.join(condition_list)}"
    return QueryWithBindsResult(query=query, binds=binds)


def to_delete_statement_with_binds(
    table_name: str,
    keys: List[RdhKey],
    conditions: Dict[str, Any],
    schema_name: Optional[str] = None,
    to_positioned_parameter: bool = False,
    quote: bool = False,
) -> QueryWithBindsResult:
    table = create_table_name_with_schema(table_name, schema_name, quote)
    binds: List[Any] = []
    condition_list: List[str] = []

    for key, raw in conditions.items():
        condition_list.append(f"{wrap_quote(key, quote)} = {_placeholder(len(binds), to_positioned_parameter)}")
        binds.append(to_bind_value(_key_type(keys, key), raw))

    query = f"DELETE FROM {table} WHERE {' AND '.join(condition_list)}"
    return QueryWithBindsResult(query=query, binds=binds)


def to_view_data_query(
    table: DbTable,
    schema_name: Optional[str] = None,
    conditions: Optional[Union[TopLevelCondition, Dict[str, Any]]] = None,
    quote: bool = False,
    to_positioned_parameter: bool = False,
) -> QueryWithBindsResult:
    table_name = create_table_name_with_schema(table.name, schema_name, quote)
    query = f"SELECT * \nFROM {table_name} "
    bind_params: Dict[str, Any] = {}
    if conditions:
        clause = compile_conditional_clause(
            conditions, table.children, indent="  ", quote=quote
        )
        if clause.clause_text:
            query += "\nWHERE\n" + clause.clause_text
            bind_params = clause.bind_params

    log.debug("View data query for %s with %d bind params", table_name, len(bind_params))
    return normalize_query(
        query.strip(),
        to_positioned_parameter=to_positioned_parameter,
        bind_params=bind_params,
    )
