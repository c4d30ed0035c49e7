"""
Evaluation of all/any rule trees against a map of facts (column -> value).

The operator vocabulary follows json-rules-engine: ``equal``, ``lessThan``,
``in`` ... plus the null/prefix/suffix predicates used by table rules.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Union

from dbresource_core.config_objects.rule import (
    ConditionLeaf,
    ConditionNode,
    TopLevelCondition,
    is_all_conditions,
    is_top_level_condition,
    parse_conditions,
)
from dbresource_core.exceptions import InvalidRuleException

log = logging.getLogger(__name__)

OperatorFn = Callable[[Any, Any], bool]


class _Missing:
    """Stands in for a fact the row has no value for."""

    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


def _compare(fact_value: Any, json_value: Any, op: Callable[[Any, Any], bool]) -> bool:
    if fact_value is None or fact_value is MISSING or json_value is None:
        return False
    try:
        return op(fact_value, json_value)
    except TypeError:
        pass
    try:
        return op(float(fact_value), float(json_value))
    except (TypeError, ValueError):
        return False


def _in(fact_value: Any, json_value: Any) -> bool:
    if not isinstance(json_value, (list, tuple, set, frozenset)):
        return False
    return fact_value in json_value


def _contains(fact_value: Any, json_value: Any) -> bool:
    if not isinstance(fact_value, (list, tuple, set, frozenset)):
        return False
    return json_value in fact_value


def _between(fact_value: Any, json_value: Any) -> bool:
    if not isinstance(json_value, (list, tuple)) or len(json_value) != 2:
        return False
    low, high = json_value
    return _compare(fact_value, low, lambda a, b: a >= b) and _compare(
        fact_value, high, lambda a, b: a <= b
    )


def _text(fact_value: Any) -> str:
    if fact_value is None or fact_value is MISSING:
        return ""
    return str(fact_value)


def _starts_with(fact_value: Any, json_value: Any) -> bool:
    v = _text(fact_value)
    if not v:
        return False
    return v.startswith(str(json_value))


def _ends_with(fact_value: Any, json_value: Any) -> bool:
    v = _text(fact_value)
    if not v:
        return False
    return v.endswith(str(json_value))


DEFAULT_OPERATORS: Dict[str, OperatorFn] = {
    "equal": lambda a, b: a is not MISSING and a == b,
    "notEqual": lambda a, b: a is MISSING or a != b,
    "lessThan": lambda a, b: _compare(a, b, lambda x, y: x < y),
    "lessThanInclusive": lambda a, b: _compare(a, b, lambda x, y: x <= y),
    "greaterThan": lambda a, b: _compare(a, b, lambda x, y: x > y),
    "greaterThanInclusive": lambda a, b: _compare(a, b, lambda x, y: x >= y),
    "in": _in,
    "notIn": lambda a, b: not _in(a, b),
    "contains": _contains,
    "doesNotContain": lambda a, b: not _contains(a, b),
    "between": _between,
    "isNull": lambda a, _b: a is None,
    "isNotNull": lambda a, _b: a is not None,
    "isNil": lambda a, _b: a is None or a is MISSING,
    "isNotNil": lambda a, _b: a is not None and a is not MISSING,
    "startsWith": _starts_with,
    "endsWith": _ends_with,
}


@dataclass
class EngineRule:
    name: str
    conditions: TopLevelCondition
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RuleResult:
    name: str
    conditions: TopLevelCondition
    params: Dict[str, Any]
    result: bool


@dataclass
class EngineRunResult:
    success_results: List[RuleResult] = field(default_factory=list)
    failure_results: List[RuleResult] = field(default_factory=list)


class RuleEngine:
    def __init__(self) -> None:
        self.log = logging.getLogger(f"{__name__}.{self.__class__.__qualname__}")
        self.operators: Dict[str, OperatorFn] = dict(DEFAULT_OPERATORS)
        self.rules: List[EngineRule] = []

    def addOperator(self, name: str, fn: OperatorFn) -> None:
        self.operators[name] = fn

    def addRule(
        self,
        name: str,
        conditions: Union[TopLevelCondition, Dict[str, Any]],
        params: Dict[str, Any] = None,
    ) -> EngineRule:
        tree = parse_conditions(conditions)
        unknown = sorted(set(self._operators_of(tree)) - set(self.operators))
        if unknown:
            raise InvalidRuleException(f"Rule '{name}' uses unknown operators: {unknown}")
        rule = EngineRule(name=name, conditions=tree, params=dict(params or {}))
        self.rules.append(rule)
        self.log.debug("Registered rule %s", name)
        return rule

    def _operators_of(self, node: ConditionNode):
        if is_top_level_condition(node):
            for child in node.children:
                yield from self._operators_of(child)
        else:
            yield node.operator

    def evaluate(self, node: ConditionNode, facts: Mapping[str, Any]) -> bool:
        if is_top_level_condition(node):
            results = (self.evaluate(child, facts) for child in node.children)
            return all(results) if is_all_conditions(node) else any(results)
        return self._evaluate_leaf(node, facts)

    def _evaluate_leaf(self, leaf: ConditionLeaf, facts: Mapping[str, Any]) -> bool:
        fact_value = facts.get(leaf.fact, MISSING)
        json_value = leaf.value
        if leaf.value_fact is not None:
            json_value = facts.get(leaf.value_fact)
        return bool(self.operators[leaf.operator](fact_value, json_value))

    def run(self, facts: Mapping[str, Any]) -> EngineRunResult:
        outcome = EngineRunResult()
        for rule in self.rules:
            matched = self.evaluate(rule.conditions, facts)
            rule_result = RuleResult(
                name=rule.name, conditions=rule.conditions, params=rule.params, result=matched
            )
            if matched:
                outcome.success_results.append(rule_result)
            else:
                outcome.failure_results.append(rule_result)
        return outcome


def get_condition_values(
    condition: TopLevelCondition, facts: Mapping[str, Any]
) -> Dict[str, Any]:
    """Fact values a rule tree looks at, including facts referenced as values."""
    obj: Dict[str, Any] = {}
    for nest in condition.children:
        if is_top_level_condition(nest):
            obj.update(get_condition_values(nest, facts))
        else:
            obj[nest.fact] = facts.get(nest.fact)
            if nest.value_fact is not None:
                obj[nest.value_fact] = facts.get(nest.value_fact)
    return obj
