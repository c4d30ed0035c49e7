import logging
from typing import Optional

from dbresource_core.config_objects.result_set import ResultSetData
from dbresource_core.exceptions import DbResourceNotImplementedError
from dbresource_core.outputter.outputter_console import ConsoleOutputter
from dbresource_core.outputter.outputter_json import JsonOutputter


class Outputter:
    def __init__(self, output_type, output_destination=None):
        self.log = logging.getLogger(f"{__name__}.{self.__class__.__qualname__}")
        if output_type == "console":
            self.outputter = ConsoleOutputter(output_destination=output_destination)
        elif output_type == "json":
            self.outputter = JsonOutputter(output_destination=output_destination)
        else:
            raise DbResourceNotImplementedError("Output type not supported")

    def write(self, result_set: ResultSetData, summary: Optional[str] = None):
        self.outputter.write(result_set, summary)
