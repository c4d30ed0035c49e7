import json
import logging
from typing import Optional

from dbresource_core.config_objects.result_set import ResultSetData, ResultSetMeta
from dbresource_core.exceptions import DbResourceError


class JsonDataLoader:
    """
    Accepts either a dumped ``ResultSetData`` (an object with ``keys`` and
    ``rows``) or a plain list of records, whose first record fixes the keys.
    """

    def __init__(self, data_filename, meta: Optional[ResultSetMeta] = None):
        self.data_filename = data_filename
        self.meta = meta
        self.log = logging.getLogger(f"{__name__}.{self.__class__.__qualname__}")

    def load(self) -> ResultSetData:
        with open(self.data_filename, "r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, dict) and "keys" in data and "rows" in data:
            self.log.debug("Loading serialized result set")
            result_set = ResultSetData.model_validate(data)
            if self.meta is not None:
                result_set.meta = self.meta
            return result_set

        if isinstance(data, list):
            keys = []
            for record in data:
                for name in record:
                    if name not in keys:
                        keys.append(name)
            self.log.debug("Loading %d records with keys %s", len(data), keys)
            return ResultSetData.from_records(keys, data, meta=self.meta)

        raise DbResourceError(
            f"Unsupported JSON layout in {self.data_filename}: expected a result set or a list of records"
        )
