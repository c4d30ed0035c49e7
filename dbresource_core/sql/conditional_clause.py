import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Sequence, Union

from dbresource_core.config_objects.common import (
    GeneralColumnType,
    is_boolean_like,
    is_date_time_or_date,
    is_numeric_like,
    is_time,
)
from dbresource_core.config_objects.result_set import RdhKey
from dbresource_core.config_objects.rule import (
    ConditionLeaf,
    TopLevelCondition,
    is_top_level_condition,
    parse_conditions,
)
from dbresource_core.config_objects.schema import DbColumn
from dbresource_core.exceptions import InvalidRuleException
from dbresource_core.utils.coercion import to_boolean, to_date, to_num, to_time

log = logging.getLogger(__name__)

OPERATOR_SQL = MappingProxyType(
    {
        "equal": "=",
        "notEqual": "<>",
        "lessThan": "<",
        "lessThanInclusive": "<=",
        "greaterThan": ">",
        "greaterThanInclusive": ">=",
        "in": "IN",
        "notIn": "NOT IN",
        "between": "BETWEEN",
        "isNull": "IS NULL",
        "isNotNull": "IS NOT NULL",
        "isNil": "IS NULL",
        "isNotNil": "IS NOT NULL",
        "startsWith": "LIKE",
        "endsWith": "LIKE",
    }
)
NO_VALUE_OPERATORS = frozenset({"isNull", "isNotNull", "isNil", "isNotNil"})
LIST_OPERATORS = frozenset({"between", "in", "notIn"})

Column = Union[DbColumn, RdhKey]


def operator_to_sql_string(operator: str) -> str:
    try:
        return OPERATOR_SQL[operator]
    except KeyError:
        raise InvalidRuleException(f"Operator '{operator}' has no SQL form") from None


@dataclass
class ConditionalClause:
    clause_text: str
    bind_params: Dict[str, Any]
    next_position: int


@dataclass
class _ClauseParams:
    pos: int = 1
    bind_params: Dict[str, Any] = field(default_factory=dict)

    def next_bind_name(self) -> str:
        name = f"val{self.pos}"
        self.pos += 1
        return name


def wrap_quote(s: str, with_quote: bool = False) -> str:
    if with_quote:
        return f"`{s}`"
    return s


def _column_type(columns: Sequence[Column], fact: str) -> GeneralColumnType:
    for column in columns:
        if column.name == fact:
            return column.col_type if isinstance(column, DbColumn) else column.type
    return GeneralColumnType.TEXT


def _coerce(col_type: GeneralColumnType, value: Any) -> Any:
    if is_numeric_like(col_type):
        return to_num(value)
    if is_boolean_like(col_type):
        return to_boolean(value)
    if is_date_time_or_date(col_type):
        return to_date(value)
    if is_time(col_type):
        return to_time(value)
    return value


def _to_value_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    text = str(value).strip()
    if text.startswith("[") and text.endswith("]"):
        try:
            decoded = json.loads(text)
            if isinstance(decoded, list):
                return decoded
        except ValueError:
            log.debug("Value %r is not a JSON list, splitting on commas", text)
        text = text[1:-1]
    return [it.strip() for it in text.split(",")]


def _coerce_list(col_type: GeneralColumnType, value: Any) -> Optional[List[Any]]:
    if value is None:
        return None
    arr = _to_value_list(value)
    if is_numeric_like(col_type) or is_boolean_like(col_type) or is_date_time_or_date(col_type) or is_time(col_type):
        return [_coerce(col_type, it) for it in arr]
    return [str(it) for it in arr]


def _leaf_clause(
    leaf: ConditionLeaf, columns: Sequence[Column], params: _ClauseParams, quote: bool
) -> str:
    fact, operator, value = leaf.fact, leaf.operator, leaf.value
    col_type = _column_type(columns, fact)
    q = f"{wrap_quote(fact, quote)} {operator_to_sql_string(operator)}"

    if operator in NO_VALUE_OPERATORS:
        return q

    if operator in LIST_OPERATORS:
        val = _coerce_list(col_type, value)
        if operator == "between":
            bind_name1 = params.next_bind_name()
            bind_name2 = params.next_bind_name()
            if val is None:
                params.bind_params[bind_name1] = None
                params.bind_params[bind_name2] = None
            else:
                params.bind_params[bind_name1] = val[0] if len(val) > 0 else None
                params.bind_params[bind_name2] = val[1] if len(val) > 1 else None
            return f"{q} :{bind_name1} AND :{bind_name2}"
        bind_name = params.next_bind_name()
        params.bind_params[bind_name] = val
        return f"{q} (:{bind_name})"

    bind_name = params.next_bind_name()
    if operator == "startsWith":
        val = None if value is None else f"{value}%"
    elif operator == "endsWith":
        val = None if value is None else f"%{value}"
    else:
        val = _coerce(col_type, value)
    params.bind_params[bind_name] = val
    return f"{q} :{bind_name}"


def _create_conditional_clause(
    conditions: TopLevelCondition,
    columns: Sequence[Column],
    params: _ClauseParams,
    indent: str,
    quote: bool,
) -> str:
    queries: List[str] = []
    and_or = conditions.logic_operator

    for nest in conditions.children:
        if is_top_level_condition(nest):
            q = _create_conditional_clause(nest, columns, params, indent + "  ", quote)
            queries.append(f"(\n{q}\n{indent})")
        else:
            queries.append(_leaf_clause(nest, columns, params, quote))

    if queries:
        return indent + f"\n{indent}{and_or} ".join(queries)
    return ""


def compile_conditional_clause(
    conditions: Union[TopLevelCondition, Dict[str, Any]],
    columns: Sequence[Column],
    indent: str = "  ",
    quote: bool = False,
    start_position: int = 1,
) -> ConditionalClause:
    """
    Render a rule tree as an indented SQL boolean expression.

    Values are bound through named placeholders ``:val1, :val2, ...``; pass
    the result through ``normalize_query`` to obtain ``?`` or ``$N`` form.
    """
    tree = parse_conditions(conditions)
    params = _ClauseParams(pos=start_position)
    clause = _create_conditional_clause(tree, columns, params, indent, quote)
    log.debug("Compiled conditional clause with %d bind params", len(params.bind_params))
    return ConditionalClause(
        clause_text=clause, bind_params=params.bind_params, next_position=params.pos
    )
