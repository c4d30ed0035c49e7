import json
import logging
import sys
from typing import Optional

from dbresource_core.config_objects.result_set import ResultSetData


class JsonOutputter:
    """Dumps the annotated result set, by alias, to a file or stdout ("-")."""

    def __init__(self, output_destination):
        self.log = logging.getLogger(f"{__name__}.{self.__class__.__qualname__}")
        self.output_destination = output_destination

    def build_document(self, result_set: ResultSetData, summary: Optional[str] = None):
        return {
            "summary": summary,
            "resultSet": result_set.model_dump(mode="json", by_alias=True),
        }

    def write(self, result_set: ResultSetData, summary: Optional[str] = None) -> None:
        document = self.build_document(result_set, summary)
        if not self.output_destination or self.output_destination == "-":
            json.dump(document, sys.stdout, indent=2, ensure_ascii=False)
            sys.stdout.write("\n")
            return
        with open(self.output_destination, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
        self.log.info("Wrote annotated result set to %s", self.output_destination)
