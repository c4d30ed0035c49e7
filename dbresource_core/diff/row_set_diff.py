"""Compare two result sets row by row and annotate what changed."""
import logging
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dbresource_core.config_objects.common import AnnotationType
from dbresource_core.config_objects.result_set import (
    CellAnnotation,
    CompareKey,
    PrimaryCompareKey,
    RdhRow,
    ResultSetData,
)
from dbresource_core.utils.performance_logging import logPerformance

log = logging.getLogger(__name__)

# joins composite key members; never produced by ordinary cell data
COMPOSITE_KEY_SEPARATOR = "|:|"

MISSING_COMPARE_KEY = "Missing compare key (Primary or uniq key)."
MISSING_AVAILABLE_COMPARE_KEY = "Missing available compare key (Primary or uniq key)."
NO_CHANGES = "No changes"


@dataclass
class DiffResult:
    ok: bool = False
    deleted: int = 0
    inserted: int = 0
    updated: int = 0
    message: str = ""

    def summary(self) -> str:
        if self.inserted == 0 and self.deleted == 0 and self.updated == 0:
            return NO_CHANGES
        return f"Inserted:{self.inserted}, Deleted:{self.deleted}, Updated:{self.updated}"


def _stringify(value: Any) -> str:
    return "" if value is None else str(value)


def create_compare_keys_value(compare_key: CompareKey, row: RdhRow) -> Any:
    if isinstance(compare_key, PrimaryCompareKey):
        return COMPOSITE_KEY_SEPARATOR.join(
            _stringify(row.values.get(name)) for name in compare_key.names
        )
    value = row.values.get(compare_key.name)
    if value is None:
        value = ""
    elif not isinstance(value, Hashable):
        value = str(value)
    # True and 1 hash alike, so booleans get their own tag
    return (isinstance(value, bool), value)


def get_available_compare_key(
    keynames: List[str], compare_keys: Optional[List[CompareKey]]
) -> Optional[CompareKey]:
    for compare_key in compare_keys or []:
        if compare_key.is_available(keynames):
            return compare_key
    return None


@logPerformance("diff.row_sets", includeArgs=True)
def diff(old_set: ResultSetData, new_set: ResultSetData) -> DiffResult:
    """
    Annotate ``old_set`` and ``new_set`` in place with Add/Del/Upd markers.

    Rows are matched on the first compare key of ``old_set`` whose columns all
    exist in it; when several new rows share a key value the first one wins.
    """
    result = DiffResult()
    compare_keys = old_set.meta.compare_keys
    if not compare_keys:
        result.message = MISSING_COMPARE_KEY
        log.info("Diff aborted: %s", result.message)
        return result

    keynames = old_set.keynames()
    compare_key = get_available_compare_key(keynames, compare_keys)
    if compare_key is None:
        result.message = MISSING_AVAILABLE_COMPARE_KEY
        log.info("Diff aborted: %s (keys=%s)", result.message, keynames)
        return result

    old_set.clear_all_annotations()
    new_set.clear_all_annotations()

    new_index: Dict[Any, RdhRow] = {}
    for row2 in new_set.rows:
        new_index.setdefault(create_compare_keys_value(compare_key, row2), row2)

    has_already_checked = set()

    for row1 in old_set.rows:
        key1 = create_compare_keys_value(compare_key, row1)
        has_already_checked.add(key1)
        row2 = new_index.get(key1)

        if row2 is None:
            for name in keynames:
                row1.push_annotation(name, CellAnnotation(type=AnnotationType.DEL))
            result.deleted += 1
            continue

        updated = False
        for name in keynames:
            v1 = row1.values.get(name)
            v2 = row2.values.get(name)
            if _stringify(v1) != _stringify(v2):
                updated = True
                row1.push_annotation(
                    name,
                    CellAnnotation(type=AnnotationType.UPD, values={"other_value": v2}),
                )
                row2.push_annotation(
                    name,
                    CellAnnotation(type=AnnotationType.UPD, values={"other_value": v1}),
                )
        if updated:
            result.updated += 1

    for row2 in new_set.rows:
        if create_compare_keys_value(compare_key, row2) not in has_already_checked:
            for name in keynames:
                row2.push_annotation(name, CellAnnotation(type=AnnotationType.ADD))
            result.inserted += 1

    result.ok = True
    result.message = result.summary()
    log.info("Diff on %s: %s", old_set.meta.table_name or "result set", result.message)
    return result
