from .common import AnnotationType, ConnectionSetting, GeneralColumnType
from .json_loader import JsonLoader
from .result_set import (
    CellAnnotation,
    PrimaryCompareKey,
    QueryMeta,
    QueryParams,
    RdhKey,
    RdhRow,
    ResultSetData,
    ResultSetMeta,
    UniqCompareKey,
)
from .rule import AllConditions, AnyConditions, ConditionLeaf, TableRule, TableRuleDetail
from .schema import DbColumn, DbSchema, DbTable, RdsDatabase

__all__ = [
    "AllConditions",
    "AnnotationType",
    "AnyConditions",
    "CellAnnotation",
    "ConditionLeaf",
    "ConnectionSetting",
    "DbColumn",
    "DbSchema",
    "DbTable",
    "GeneralColumnType",
    "JsonLoader",
    "PrimaryCompareKey",
    "QueryMeta",
    "QueryParams",
    "RdhKey",
    "RdhRow",
    "RdsDatabase",
    "ResultSetData",
    "ResultSetMeta",
    "TableRule",
    "TableRuleDetail",
    "UniqCompareKey",
]
