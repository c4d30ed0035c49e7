import logging
from typing import Dict

from dbresource_core.config_objects.common import AnnotationType
from dbresource_core.config_objects.result_set import CellAnnotation, ResultSetData
from dbresource_core.config_objects.rule import TableRule
from dbresource_core.rules.rule_engine import RuleEngine, get_condition_values
from dbresource_core.utils.performance_logging import logPerformance

log = logging.getLogger(__name__)


def _error_message(rule_name: str) -> str:
    return f"Error: {rule_name}"


@logPerformance("rules.validate", includeArgs=True)
def run_rule_engine(result_set: ResultSetData, table_rule: TableRule) -> bool:
    """
    Evaluate every rule of ``table_rule`` against each row of ``result_set``.

    A rule whose conditions hold for a row is a violation. Up to ``error.limit``
    violations per rule are recorded as ``Rul`` annotations on the row's
    ``error.column`` cell; the rest only affect the return value.

    :return: True when no row violated any rule.
    """
    result_set.meta.table_rule = table_rule
    result_set.clear_all_annotations(AnnotationType.RUL)

    engine = RuleEngine()
    details = {}
    for detail in table_rule.details:
        engine.addRule(detail.rule_name, detail.conditions)
        details[detail.rule_name] = detail

    error_counts: Dict[str, int] = {name: 0 for name in details}
    ok = True

    for row_index, row in enumerate(result_set.rows):
        facts = result_set.rule_engine_facts(row)
        outcome = engine.run(facts)
        for rule_result in outcome.success_results:
            ok = False
            detail = details[rule_result.name]
            if error_counts[rule_result.name] >= detail.error.limit:
                continue
            row.push_annotation(
                detail.error.column,
                CellAnnotation(
                    type=AnnotationType.RUL,
                    values={
                        "name": detail.rule_name,
                        "message": _error_message(detail.rule_name),
                        "condition_values": get_condition_values(detail.conditions, facts),
                    },
                ),
            )
            error_counts[rule_result.name] += 1

        if all(error_counts[name] >= d.error.limit for name, d in details.items()):
            log.debug("Every rule reached its limit at row %d, stopping", row_index)
            break

    log.info(
        "Validated %s against %d rules: %s",
        result_set.meta.table_name or table_rule.table,
        len(details),
        "ok" if ok else f"violations {error_counts}",
    )
    return ok


validate = run_rule_engine
