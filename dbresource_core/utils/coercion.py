"""Lenient conversion of raw cell/user values to a column's semantic type.

Every function returns ``None`` when the value cannot be converted; callers
decide whether that means "omit" or "bind NULL".
"""
import datetime
import logging
import warnings
from decimal import Decimal
from typing import Any, Optional, Union

import pandas as pd

from dbresource_core.config_objects.common import (
    GeneralColumnType,
    is_boolean_like,
    is_date_time_or_date,
    is_numeric_like,
    is_text_like,
    is_time,
)

log = logging.getLogger(__name__)

TRUE_SPELLINGS = frozenset({"true", "t", "yes", "y", "on", "1"})
FALSE_SPELLINGS = frozenset({"false", "f", "no", "n", "off", "0"})


def to_num(value: Any) -> Optional[Union[int, float]]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return None if value != value else value
    s = str(value).strip()
    if not s:
        return None
    try:
        return int(s)
    except ValueError:
        pass
    try:
        num = float(s)
    except ValueError:
        return None
    # reject nan/inf spellings
    if num != num or num in (float("inf"), float("-inf")):
        return None
    return num


def to_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if not isinstance(value, str):
        return None
    s = value.strip().lower()
    if s in TRUE_SPELLINGS:
        return True
    if s in FALSE_SPELLINGS:
        return False
    return None


def _parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        try:
            ts = pd.to_datetime(value, errors="coerce")
        except (TypeError, ValueError, OverflowError):
            return None
    if ts is None or pd.isna(ts):
        return None
    return ts


def to_date(value: Any) -> Optional[datetime.datetime]:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    ts = _parse_timestamp(value.strip())
    return ts.to_pydatetime() if ts is not None else None


def to_time(value: Any) -> Optional[datetime.time]:
    if isinstance(value, datetime.datetime):
        return value.timetz()
    if isinstance(value, datetime.time):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    try:
        return datetime.time.fromisoformat(s)
    except ValueError:
        pass
    ts = _parse_timestamp(s)
    return ts.to_pydatetime().timetz() if ts is not None else None


def to_bind_value(col_type: GeneralColumnType, value: Any) -> Any:
    if is_text_like(col_type):
        return value

    if value is None or (isinstance(value, str) and len(value) == 0):
        return None

    if is_numeric_like(col_type):
        v = to_num(value)
    elif is_date_time_or_date(col_type):
        v = to_date(value)
    elif is_time(col_type):
        v = to_time(value)
    elif is_boolean_like(col_type):
        v = to_boolean(value)
    else:
        return value

    if v is None:
        log.debug("Could not coerce %r to %s, binding NULL", value, col_type.value)
    return v
