"""
Best-effort statement parsing.

Only the statement's shape matters here (its type and the table it targets),
so dialect constructs the parser does not understand are rewritten into
something it does before parsing. The rewrite is lossy on purpose.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from dbresource_core.sql.bind_normalizer import strip_comment

log = logging.getLogger(__name__)

PARSER_DIALECT = "postgres"

# MySQL / Oracle / SQL Server functions the parser rejects or misreads
FUNCTIONS = (
    "ADDDATE",
    "CONCAT_WS",
    "CONVERT_TZ",
    "CURDATE",
    "DATE_ADD",
    "DATE_FORMAT",
    "DATE_SUB",
    "DATEADD",
    "DATEDIFF",
    "DAYOFWEEK",
    "FIND_IN_SET",
    "FROM_UNIXTIME",
    "GROUP_CONCAT",
    "IFNULL",
    "INSTR",
    "ISNULL",
    "LAST_INSERT_ID",
    "NVL",
    "NVL2",
    "STR_TO_DATE",
    "SUBDATE",
    "TIMESTAMPDIFF",
    "TO_DAYS",
    "UNIX_TIMESTAMP",
)

FUNCTION_MATCHER = re.compile(r"\b(" + "|".join(FUNCTIONS) + r")\([^)]+?\)", re.IGNORECASE)
SHOW_PATTERN = re.compile(r"^\s*(SHOW)\s+(\S+).*$", re.IGNORECASE)
INTERVAL_PATTERN = re.compile(r"\s*INTERVAL\s+(\d+)\s+(\S+)", re.IGNORECASE)
MYSQL_LIMIT_PATTERN = re.compile(r"\bLIMIT\s+(\d+)\s*,\s*(\d+)", re.IGNORECASE)
LOCK_MODE_PATTERN = re.compile(r"\bLOCK\s+IN\s+\S+\s+MODE", re.IGNORECASE)
SET_PATTERN = re.compile(r"^\s*(SET)(\s+global)?\s+(\S+)\s+=\s+\S+$", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedStatement:
    sql: str
    sanitized_sql: str
    statement: exp.Expression

    @property
    def type(self) -> str:
        return self.statement.key


@dataclass(frozen=True)
class UnparseableStatement:
    sql: str
    sanitized_sql: str
    reason: str

    @property
    def type(self) -> None:
        return None


ParseResult = Union[ParsedStatement, UnparseableStatement]


def to_safe_query_for_parser(query: str) -> str:
    """
    select * from table where id > ?   =>  select * from table where id > $1
    set global general_log = on        =>  SET general_log TO dummy
    """
    replaced = strip_comment(query).replace("?", "$1")
    replaced = SHOW_PATTERN.sub(r"\1 \2", replaced)
    replaced = INTERVAL_PATTERN.sub(r" cast('\1 \2' as INTERVAL)", replaced)
    replaced = MYSQL_LIMIT_PATTERN.sub(r"LIMIT \2 OFFSET \1", replaced)
    replaced = LOCK_MODE_PATTERN.sub(" ", replaced)
    replaced = SET_PATTERN.sub(r"\1 \3 TO dummy", replaced)
    return FUNCTION_MATCHER.sub("1", replaced)


def parse_query(sql: str) -> ParseResult:
    sanitized = to_safe_query_for_parser(sql)
    try:
        statement = sqlglot.parse_one(sanitized, read=PARSER_DIALECT)
    except SqlglotError as e:
        log.debug("Unparseable sql=%r sanitized=%r: %s", sql, sanitized, e)
        return UnparseableStatement(sql=sql, sanitized_sql=sanitized, reason=str(e))
    if statement is None:
        return UnparseableStatement(sql=sql, sanitized_sql=sanitized, reason="empty statement")
    return ParsedStatement(sql=sql, sanitized_sql=sanitized, statement=statement)


def _table_name(node: Optional[exp.Expression]) -> Optional[str]:
    if isinstance(node, exp.Table) and node.name:
        return node.name.lower()
    return None


def get_table_name(result: ParseResult) -> Optional[str]:
    """Lower-cased name of the table a select/insert/update/delete targets."""
    if not isinstance(result, ParsedStatement):
        return None
    ast = result.statement
    if isinstance(ast, exp.Select):
        from_clause = ast.args.get("from") or ast.args.get("from_")
        return _table_name(from_clause.this) if from_clause else None
    if isinstance(ast, exp.Insert):
        target = ast.this
        if isinstance(target, exp.Schema):
            target = target.this
        return _table_name(target)
    if isinstance(ast, (exp.Update, exp.Delete)):
        return _table_name(ast.this)
    return None
