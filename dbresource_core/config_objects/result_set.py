import logging
import warnings
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from dbresource_core.config_objects.common import AnnotationType, GeneralColumnType
from dbresource_core.config_objects.rule import TableRule, TopLevelCondition

log = logging.getLogger(__name__)


class PrimaryCompareKey(BaseModel):
    # "primary" comes from the table's primary key, "custom" from the caller
    kind: Literal["primary", "custom"]
    names: List[str]

    def is_available(self, keynames: Iterable[str]) -> bool:
        keynames = set(keynames)
        return all(name in keynames for name in self.names)


class UniqCompareKey(BaseModel):
    kind: Literal["uniq"]
    name: str

    def is_available(self, keynames: Iterable[str]) -> bool:
        return self.name in set(keynames)


CompareKey = Annotated[
    Union[PrimaryCompareKey, UniqCompareKey], Field(discriminator="kind")
]


class CellAnnotation(BaseModel):
    type: AnnotationType
    values: Optional[Dict[str, Any]] = None


class RdhKey(BaseModel):
    name: str
    type: GeneralColumnType = GeneralColumnType.UNKNOWN
    comment: Optional[str] = None


class RdhRow(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict)
    # column name -> annotations, in the order they were pushed
    meta: Dict[str, List[CellAnnotation]] = Field(default_factory=dict)

    def push_annotation(self, key: str, annotation: CellAnnotation) -> None:
        self.meta.setdefault(key, []).append(annotation)

    def get_annotations(
        self, key: str, annotation_type: Optional[AnnotationType] = None
    ) -> List[CellAnnotation]:
        annotations = self.meta.get(key, [])
        if annotation_type is None:
            return list(annotations)
        return [a for a in annotations if a.type == annotation_type]

    def has_annotation(self, annotation_type: Optional[AnnotationType] = None) -> bool:
        return any(self.get_annotations(key, annotation_type) for key in self.meta)

    def clear_annotations(self, annotation_type: Optional[AnnotationType] = None) -> None:
        if annotation_type is None:
            self.meta.clear()
            return
        for key in list(self.meta):
            kept = [a for a in self.meta[key] if a.type != annotation_type]
            if kept:
                self.meta[key] = kept
            else:
                del self.meta[key]


class ResultSetMeta(BaseModel):
    connection_name: Optional[str] = Field(None, alias="connectionName")
    table_name: Optional[str] = Field(None, alias="tableName")
    comment: Optional[str] = None
    type: Optional[str] = None
    editable: Optional[bool] = None
    compare_keys: Optional[List[CompareKey]] = Field(None, alias="compareKeys")
    table_rule: Optional[TableRule] = Field(None, alias="tableRule")

    model_config = ConfigDict(populate_by_name=True)


class QueryMeta(BaseModel):
    table_name: Optional[str] = Field(None, alias="tableName")
    comment: Optional[str] = None
    compare_keys: Optional[List[CompareKey]] = Field(None, alias="compareKeys")
    editable: Optional[bool] = None

    model_config = ConfigDict(populate_by_name=True)


class QueryParams(BaseModel):
    sql: str
    conditions: Optional[TopLevelCondition] = None
    meta: Optional[QueryMeta] = None


_DTYPE_TO_COLUMN_TYPE = (
    (pd.api.types.is_bool_dtype, GeneralColumnType.BOOLEAN),
    (pd.api.types.is_integer_dtype, GeneralColumnType.INTEGER),
    (pd.api.types.is_float_dtype, GeneralColumnType.DOUBLE),
    (pd.api.types.is_datetime64_any_dtype, GeneralColumnType.TIMESTAMP),
    (pd.api.types.is_string_dtype, GeneralColumnType.TEXT),
)


def column_type_from_dtype(dtype) -> GeneralColumnType:
    for predicate, col_type in _DTYPE_TO_COLUMN_TYPE:
        if predicate(dtype):
            return col_type
    return GeneralColumnType.UNKNOWN


def restore_integer_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Turn float columns that only widened because of blank cells back into
    nullable ``Int64``, so ``10`` is not read back as ``10.0``.
    """
    restored = {}
    for col in df.columns:
        series = df[col]
        if not pd.api.types.is_float_dtype(series.dtype) or not series.isna().any():
            continue
        present = series.dropna()
        if len(present) and (present % 1 == 0).all():
            restored[col] = series.astype("Int64")
    if not restored:
        return df
    log.debug("Restored integer columns: %s", list(restored))
    df = df.copy()
    for col, series in restored.items():
        df[col] = series
    return df


class ResultSetData(BaseModel):
    """Keys, rows and provenance of one fetched result set."""

    keys: List[RdhKey] = Field(default_factory=list)
    rows: List[RdhRow] = Field(default_factory=list)
    meta: ResultSetMeta = Field(default_factory=ResultSetMeta)
    sql_statement: Optional[str] = Field(None, alias="sqlStatement")
    query_conditions: Optional[TopLevelCondition] = Field(
        None, alias="queryConditions"
    )

    model_config = ConfigDict(populate_by_name=True)

    def keynames(self) -> List[str]:
        return [k.name for k in self.keys]

    def get_key(self, name: str) -> Optional[RdhKey]:
        return next((k for k in self.keys if k.name == name), None)

    def clear_all_annotations(self, annotation_type: Optional[AnnotationType] = None) -> None:
        for row in self.rows:
            row.clear_annotations(annotation_type)

    def rule_engine_facts(self, row: RdhRow) -> Dict[str, Any]:
        # columns the row has no value for stay absent, so isNil can tell them apart
        return {k.name: row.values[k.name] for k in self.keys if k.name in row.values}

    def annotated_cells(self, annotation_type: Optional[AnnotationType] = None):
        """Yield ``(row_index, column, annotation)`` in key order."""
        for idx, row in enumerate(self.rows):
            for name in self.keynames():
                for annotation in row.get_annotations(name, annotation_type):
                    yield idx, name, annotation

    @classmethod
    def from_records(
        cls,
        keys: List[Union[RdhKey, str]],
        records: Iterable[Dict[str, Any]],
        meta: Optional[ResultSetMeta] = None,
    ) -> "ResultSetData":
        rdh_keys = [k if isinstance(k, RdhKey) else RdhKey(name=k) for k in keys]
        rows = [RdhRow(values=dict(r)) for r in records]
        return cls(keys=rdh_keys, rows=rows, meta=meta or ResultSetMeta())

    @classmethod
    def from_dataframe(
        cls, df: pd.DataFrame, meta: Optional[ResultSetMeta] = None
    ) -> "ResultSetData":
        df = restore_integer_columns(df)
        keys = [
            RdhKey(name=str(col), type=column_type_from_dtype(df[col].dtype))
            for col in df.columns
        ]
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", FutureWarning)
            cleaned = df.astype(object).where(pd.notna(df), None)
        records = cleaned.to_dict("records")
        log.debug("Built result set from dataframe: %d rows, %d keys", len(records), len(keys))
        return cls.from_records(keys, records, meta=meta)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [[row.values.get(name) for name in self.keynames()] for row in self.rows],
            columns=self.keynames(),
        )
