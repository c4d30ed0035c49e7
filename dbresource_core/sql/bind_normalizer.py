"""
Rewrite named-parameter SQL (``:name``) into the placeholder style a driver
understands: positioned (``$1, $2, ...``) or simple (``?``).

Array-valued parameters expand into one placeholder per element; an empty
array renders ``null`` so ``IN (:ids)`` stays valid SQL.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional

from dbresource_core.exceptions import MissingBindParameterError

log = logging.getLogger(__name__)

# a colon not preceded by another colon (skips ::casts), then an identifier
NAMED_PARAMETER_PATTERN = re.compile(r"((?<!:):([a-zA-Z_$]\w*)\b)")

# quoted literals are matched first and kept, so markers inside them survive
COMMENT_PATTERN = re.compile(
    r"""('(?:[^']|'')*'|"(?:[^"]|"")*")"""
    r"|/\*.*?\*/"
    r"|([ \t])?(?:#|--)[ \t]+[^\n]*",
    re.DOTALL,
)
LINE_SEPARATOR_PATTERN = re.compile(r"\r?\n")

EMPTY_ARRAY_PLACEHOLDER = " null "


@dataclass
class QueryWithBindsResult:
    query: str
    binds: List[Any]


@dataclass
class BindParamPosition:
    first_position: int
    kind: Literal["single", "multiple"]
    num_of_binds: int


def _keep_literal(match: "re.Match[str]") -> str:
    if match.group(1) is not None:
        return match.group(1)
    return match.group(2) or ""


def strip_comment(query: str) -> str:
    return COMMENT_PATTERN.sub(_keep_literal, query)


def to_lines(query: str) -> List[str]:
    return LINE_SEPARATOR_PATTERN.split(query)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


class _ScanState:
    def __init__(self, bind_params: Optional[Mapping[str, Any]]) -> None:
        self.bind_params = bind_params
        self.missing_params: Dict[str, None] = {}  # ordered set

    def check_bind_param(self, name: str) -> bool:
        if self.bind_params is not None and name not in self.bind_params:
            self.missing_params[name] = None
            return False
        return True

    def is_array_param(self, name: str) -> bool:
        return self.bind_params is not None and _is_array(self.bind_params[name])

    def raise_for_missing(self) -> None:
        if self.missing_params:
            log.warning("Missing bind parameters: %s", list(self.missing_params))
            raise MissingBindParameterError(self.missing_params)


class _PositionedScanState(_ScanState):
    def __init__(self, bind_params: Optional[Mapping[str, Any]]) -> None:
        super().__init__(bind_params)
        self.position = 0
        self.name_with_pos: Dict[str, BindParamPosition] = {}

    def get_or_create_single_position(self, name: str) -> str:
        if name not in self.name_with_pos:
            self.position += 1
            self.name_with_pos[name] = BindParamPosition(
                first_position=self.position, kind="single", num_of_binds=1
            )
        return f"${self.name_with_pos[name].first_position}"

    def get_or_create_multiple_position(self, name: str) -> str:
        if name not in self.name_with_pos:
            num_of_binds = len(self.bind_params[name])
            if num_of_binds:
                self.position += 1
            self.name_with_pos[name] = BindParamPosition(
                first_position=self.position, kind="multiple", num_of_binds=num_of_binds
            )
            if num_of_binds > 1:
                self.position += num_of_binds - 1

        pos = self.name_with_pos[name]
        if pos.num_of_binds == 0:
            return EMPTY_ARRAY_PLACEHOLDER
        return ",".join(
            f"${j}" for j in range(pos.first_position, pos.first_position + pos.num_of_binds)
        )

    def replace(self, match: "re.Match[str]") -> str:
        name = match.group(2)
        ok = self.check_bind_param(name)
        if ok and self.is_array_param(name):
            return self.get_or_create_multiple_position(name)
        return self.get_or_create_single_position(name)

    def build_binds(self) -> List[Any]:
        binds: List[Any] = [None] * self.position
        if self.bind_params is None:
            return binds
        for name, pos in self.name_with_pos.items():
            value = self.bind_params[name]
            if pos.kind == "single":
                binds[pos.first_position - 1] = value
            else:
                for j in range(pos.num_of_binds):
                    binds[pos.first_position + j - 1] = value[j]
        return binds


class _SimpleScanState(_ScanState):
    def __init__(self, bind_params: Optional[Mapping[str, Any]]) -> None:
        super().__init__(bind_params)
        self.binds: List[Any] = []

    def replace(self, match: "re.Match[str]") -> str:
        name = match.group(2)
        ok = self.check_bind_param(name)
        if ok and self.is_array_param(name):
            values = list(self.bind_params[name])
            self.binds.extend(values)
            if not values:
                return EMPTY_ARRAY_PLACEHOLDER
            return ",".join("?" for _ in values)
        if ok and self.bind_params is not None:
            self.binds.append(self.bind_params[name])
        return "?"


def _rewrite(query: str, state) -> str:
    lines = to_lines(strip_comment(query))
    return "\n".join(NAMED_PARAMETER_PATTERN.sub(state.replace, line) for line in lines)


def normalize_positioned_parameters_query(
    query: str, bind_params: Optional[Mapping[str, Any]] = None
) -> QueryWithBindsResult:
    """
    Transform a named query into a positioned parameters query.

    ``select * from t where a = :a and b = :a`` becomes
    ``select * from t where a = $1 and b = $1`` with binds ``[a]``.
    """
    state = _PositionedScanState(bind_params)
    normalized = _rewrite(query, state)
    state.raise_for_missing()
    binds = state.build_binds()
    log.debug("Normalized %d named parameters into %d positions", len(state.name_with_pos), len(binds))
    return QueryWithBindsResult(query=normalized, binds=binds)


def normalize_simple_parameters_query(
    query: str, bind_params: Optional[Mapping[str, Any]] = None
) -> QueryWithBindsResult:
    """
    Transform a named query into a simple parameters query.

    Every occurrence becomes ``?`` and pushes its own bind value, so a name
    used twice is bound twice.
    """
    state = _SimpleScanState(bind_params)
    normalized = _rewrite(query, state)
    state.raise_for_missing()
    return QueryWithBindsResult(query=normalized, binds=state.binds)


def normalize_query(
    query: str,
    to_positioned_parameter: bool = False,
    bind_params: Optional[Mapping[str, Any]] = None,
) -> QueryWithBindsResult:
    if to_positioned_parameter:
        return normalize_positioned_parameters_query(query, bind_params)
    return normalize_simple_parameters_query(query, bind_params)
