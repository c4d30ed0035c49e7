import logging
import sys
import warnings
from typing import Dict, Optional

import pandas as pd

from dbresource_core.config_objects.common import GeneralColumnType
from dbresource_core.config_objects.result_set import ResultSetData, ResultSetMeta

# pandas dtype used to read a column declared with one of these types
_READ_DTYPES = {
    GeneralColumnType.TEXT: "string",
    GeneralColumnType.VARCHAR: "string",
    GeneralColumnType.CHAR: "string",
    GeneralColumnType.UUID: "string",
    GeneralColumnType.ENUM: "string",
    GeneralColumnType.SMALLINT: "Int64",
    GeneralColumnType.INTEGER: "Int64",
    GeneralColumnType.BIGINT: "Int64",
    GeneralColumnType.REAL: "float64",
    GeneralColumnType.FLOAT: "float64",
    GeneralColumnType.DOUBLE: "float64",
    GeneralColumnType.BOOLEAN: "boolean",
}


class CSVDataLoader:
    def __init__(
        self,
        data_filename,
        column_types: Optional[Dict[str, GeneralColumnType]] = None,
        meta: Optional[ResultSetMeta] = None,
    ):
        self.data_filename = data_filename
        self.column_types = column_types or {}
        self.meta = meta
        self.log = logging.getLogger(f"{__name__}.{self.__class__.__qualname__}")

    def _read(self, filename_or_buffer, dtype_dict):
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", UserWarning)
                return pd.read_csv(filename_or_buffer, dtype=dtype_dict or None)
        except (ValueError, TypeError) as e:
            if not dtype_dict:
                raise
            self.log.warning("Load with declared column types failed, inferring instead: %s", e)
            if hasattr(filename_or_buffer, "seek"):
                filename_or_buffer.seek(0)
            return pd.read_csv(filename_or_buffer)

    def load(self) -> ResultSetData:
        dtype_dict = {
            col: _READ_DTYPES[col_type]
            for col, col_type in self.column_types.items()
            if col_type in _READ_DTYPES
        }
        source = sys.stdin if self.data_filename == "-" else self.data_filename
        df = self._read(source, dtype_dict)
        self.log.debug("Read %d rows with columns %s", len(df), list(df.columns))

        result_set = ResultSetData.from_dataframe(df, meta=self.meta)
        for key in result_set.keys:
            if key.name in self.column_types:
                key.type = self.column_types[key.name]
        return result_set
