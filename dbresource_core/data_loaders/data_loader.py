import logging
import os
from typing import Dict, Optional

from dbresource_core.config_objects.common import GeneralColumnType
from dbresource_core.config_objects.result_set import ResultSetData, ResultSetMeta
from dbresource_core.data_loaders.csv_data_loader import CSVDataLoader
from dbresource_core.data_loaders.json_data_loader import JsonDataLoader
from dbresource_core.exceptions import DbResourceNotImplementedError
from dbresource_core.utils.performance_logging import logPerformance


class DataLoader:
    def __init__(
        self,
        data_filename,
        column_types: Optional[Dict[str, GeneralColumnType]] = None,
        meta: Optional[ResultSetMeta] = None,
    ):
        self.log = logging.getLogger(f"{__name__}.{self.__class__.__qualname__}")
        self.data_filename = data_filename

        self.log.info("Initializing DataLoader for file: %s", data_filename)

        if data_filename and os.path.exists(data_filename):
            file_size = os.path.getsize(data_filename)
            self.log.info("File size: %.2f MB", file_size / 1024 / 1024)
        elif data_filename != "-":
            self.log.warning("Data file does not exist or path is None: %s", data_filename)

        self.data_loader_class = self.find_data_loader()
        if self.data_loader_class is CSVDataLoader:
            self.data_loader = CSVDataLoader(data_filename, column_types=column_types, meta=meta)
        else:
            self.data_loader = JsonDataLoader(data_filename, meta=meta)

    def find_data_loader(self):
        self.log.debug("Determining data loader for file: %s", self.data_filename)

        if self.data_filename == "-" or self.data_filename.endswith(".csv"):
            self.log.debug("Using CSV data loader")
            return CSVDataLoader
        elif self.data_filename.endswith(".json"):
            self.log.debug("Using JSON data loader")
            return JsonDataLoader
        else:
            self.log.error("Unsupported file type: %s", self.data_filename)
            raise DbResourceNotImplementedError("File type not implemented yet.")

    @logPerformance("data_loader.load")
    def load(self) -> ResultSetData:
        self.log.info("Loading data from file...")
        result = self.data_loader.load()
        self.log.info(
            "Data loaded successfully: %d rows, %d columns", len(result.rows), len(result.keys)
        )
        self.log.debug("Columns: %s", result.keynames())
        return result
