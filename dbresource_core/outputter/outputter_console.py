import logging
import sys
from typing import Optional

from dbresource_core.config_objects.common import AnnotationType
from dbresource_core.config_objects.result_set import CellAnnotation, ResultSetData


def _get_safe_icons():
    """Get console-safe icons based on the system's encoding capabilities."""
    try:
        test_chars = "➕➖✏️❌"
        if hasattr(sys.stdout, "encoding") and sys.stdout.encoding:
            test_chars.encode(sys.stdout.encoding)
        return {
            AnnotationType.ADD: "➕",
            AnnotationType.DEL: "➖",
            AnnotationType.UPD: "✏️",
            AnnotationType.RUL: "❌",
        }
    except (UnicodeEncodeError, LookupError):
        return {
            AnnotationType.ADD: "[ADD]",
            AnnotationType.DEL: "[DEL]",
            AnnotationType.UPD: "[UPD]",
            AnnotationType.RUL: "[RUL]",
        }


def _describe(annotation: CellAnnotation) -> str:
    values = annotation.values or {}
    if annotation.type == AnnotationType.UPD:
        return f"other_value={values.get('other_value')!r}"
    if annotation.type == AnnotationType.RUL:
        return f"{values.get('message')} {values.get('condition_values')}"
    return ""


def _line_for_cell(row_index: int, column: str, annotation: CellAnnotation, icons) -> str:
    detail = _describe(annotation)
    tail = f"  ({detail})" if detail else ""
    return f"{icons[annotation.type]} row {row_index} [{column}] {annotation.type.value}{tail}"


class ConsoleOutputter:
    def __init__(self, output_destination=None):
        self.log = logging.getLogger(f"{__name__}.{self.__class__.__qualname__}")
        self.output_destination = output_destination

    def write(self, result_set: ResultSetData, summary: Optional[str] = None) -> None:
        icons = _get_safe_icons()
        counts = {t: 0 for t in AnnotationType}
        lines = []
        for row_index, column, annotation in result_set.annotated_cells():
            counts[annotation.type] += 1
            lines.append(_line_for_cell(row_index, column, annotation, icons))

        title = result_set.meta.table_name or "result set"
        print(f"\n=== {title} ===")
        if summary:
            print(summary)
        print(
            f"Rows: {len(result_set.rows)} | "
            + " | ".join(f"{t.value}: {counts[t]}" for t in AnnotationType)
        )
        for line in lines:
            print(line)
        self.log.debug("Printed %d annotated cells", len(lines))
