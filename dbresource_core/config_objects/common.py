from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GeneralColumnType(Enum):
    TEXT = "text"
    VARCHAR = "varchar"
    CHAR = "char"
    UUID = "uuid"
    ENUM = "enum"
    SMALLINT = "smallint"
    INTEGER = "integer"
    BIGINT = "bigint"
    DECIMAL = "decimal"
    NUMERIC = "numeric"
    REAL = "real"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    TIMESTAMP_WITH_TIME_ZONE = "timestamp with time zone"
    TIME = "time"
    TIME_WITH_TIME_ZONE = "time with time zone"
    JSON = "json"
    BINARY = "binary"
    UNKNOWN = "unknown"


TEXT_LIKE_TYPES = frozenset(
    {
        GeneralColumnType.TEXT,
        GeneralColumnType.VARCHAR,
        GeneralColumnType.CHAR,
        GeneralColumnType.UUID,
        GeneralColumnType.ENUM,
    }
)
NUMERIC_LIKE_TYPES = frozenset(
    {
        GeneralColumnType.SMALLINT,
        GeneralColumnType.INTEGER,
        GeneralColumnType.BIGINT,
        GeneralColumnType.DECIMAL,
        GeneralColumnType.NUMERIC,
        GeneralColumnType.REAL,
        GeneralColumnType.FLOAT,
        GeneralColumnType.DOUBLE,
    }
)
DATE_TIME_OR_DATE_TYPES = frozenset(
    {
        GeneralColumnType.DATE,
        GeneralColumnType.TIMESTAMP,
        GeneralColumnType.TIMESTAMP_WITH_TIME_ZONE,
    }
)
TIME_TYPES = frozenset(
    {GeneralColumnType.TIME, GeneralColumnType.TIME_WITH_TIME_ZONE}
)


def is_text_like(col_type: GeneralColumnType) -> bool:
    return col_type in TEXT_LIKE_TYPES


def is_numeric_like(col_type: GeneralColumnType) -> bool:
    return col_type in NUMERIC_LIKE_TYPES


def is_boolean_like(col_type: GeneralColumnType) -> bool:
    return col_type == GeneralColumnType.BOOLEAN


def is_date_time_or_date(col_type: GeneralColumnType) -> bool:
    return col_type in DATE_TIME_OR_DATE_TYPES


def is_time(col_type: GeneralColumnType) -> bool:
    return col_type in TIME_TYPES


def is_date_time_or_date_or_time(col_type: GeneralColumnType) -> bool:
    return is_date_time_or_date(col_type) or is_time(col_type)


class AnnotationType(Enum):
    ADD = "Add"
    DEL = "Del"
    UPD = "Upd"
    RUL = "Rul"


class ConnectionSetting(BaseModel):
    """Subset of a driver connection used by the core: naming and bind style."""

    name: str
    database: Optional[str] = None
    user: Optional[str] = None
    positioned_parameter: bool = Field(False, alias="positionedParameter")
    quote: bool = False

    model_config = ConfigDict(populate_by_name=True)
