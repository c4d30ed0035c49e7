import logging
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from dbresource_core.exceptions import InvalidRuleException

log = logging.getLogger(__name__)


class ConditionLeaf(BaseModel):
    fact: str
    operator: str
    value: Any = None

    model_config = ConfigDict(extra="forbid")

    @property
    def value_fact(self) -> Optional[str]:
        """Name of the fact referenced by ``value`` ({"fact": "col"}), if any."""
        if isinstance(self.value, dict) and isinstance(self.value.get("fact"), str):
            return self.value["fact"]
        return None


class AllConditions(BaseModel):
    all: List["ConditionNode"]

    model_config = ConfigDict(extra="forbid")

    @property
    def logic_operator(self) -> Literal["AND", "OR"]:
        return "AND"

    @property
    def children(self) -> List["ConditionNode"]:
        return self.all


class AnyConditions(BaseModel):
    any: List["ConditionNode"]

    model_config = ConfigDict(extra="forbid")

    @property
    def logic_operator(self) -> Literal["AND", "OR"]:
        return "OR"

    @property
    def children(self) -> List["ConditionNode"]:
        return self.any


ConditionNode = Union[AllConditions, AnyConditions, ConditionLeaf]
TopLevelCondition = Union[AllConditions, AnyConditions]

AllConditions.model_rebuild()
AnyConditions.model_rebuild()

_TOP_LEVEL_ADAPTER = TypeAdapter(TopLevelCondition)


def is_all_conditions(item: Any) -> bool:
    return isinstance(item, AllConditions)


def is_any_conditions(item: Any) -> bool:
    return isinstance(item, AnyConditions)


def is_top_level_condition(item: Any) -> bool:
    return isinstance(item, (AllConditions, AnyConditions))


def parse_conditions(data: Union[Dict[str, Any], AllConditions, AnyConditions]) -> TopLevelCondition:
    """Validate a raw ``{"all": [...]}`` / ``{"any": [...]}`` mapping into a rule tree."""
    if is_top_level_condition(data):
        return data
    try:
        return _TOP_LEVEL_ADAPTER.validate_python(data)
    except ValidationError as e:
        log.debug("Rejected rule tree %r: %s", data, e)
        raise InvalidRuleException(
            f"Invalid rule tree: every node must be exactly one of all/any group or fact leaf ({e.error_count()} errors)"
        ) from e


class RuleError(BaseModel):
    column: str
    limit: int = Field(..., ge=0)

    # message templates, severity, etc. travel along untouched
    model_config = ConfigDict(extra="allow")


class TableRuleDetail(BaseModel):
    rule_name: str = Field(..., alias="ruleName")
    conditions: TopLevelCondition
    error: RuleError

    model_config = ConfigDict(populate_by_name=True)


class TableRule(BaseModel):
    table: str
    details: List[TableRuleDetail] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("details")
    def check_unique_rule_names(cls, details):
        names = [d.rule_name for d in details]
        duplicated = sorted({n for n in names if names.count(n) > 1})
        assert not duplicated, f"Rule names must be unique, duplicated: {duplicated}"
        return details
