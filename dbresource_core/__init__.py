from dbresource_core.diff.row_set_diff import DiffResult, diff
from dbresource_core.rules.rule_validator import run_rule_engine, validate
from dbresource_core.sql.bind_normalizer import QueryWithBindsResult, normalize_query
from dbresource_core.sql.conditional_clause import compile_conditional_clause

__all__ = [
    "DiffResult",
    "QueryWithBindsResult",
    "compile_conditional_clause",
    "diff",
    "normalize_query",
    "run_rule_engine",
    "validate",
]
