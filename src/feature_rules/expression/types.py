"""
Expression Types
=================
Operator catalog, match expressions and the feature shapes they are
evaluated against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Collection, Mapping

from feature_rules.expression.errors import InvalidOperatorError


class MatchOp(str, Enum):
    """Operators accepted in a match expression."""

    ANY = "Any"
    IN = "In"
    NOT_IN = "NotIn"
    IN_REGEXP = "InRegexp"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"
    GT = "Gt"
    LT = "Lt"
    GT_LT = "GtLt"
    IS_TRUE = "IsTrue"
    IS_FALSE = "IsFalse"

    def __str__(self) -> str:
        return self.value


# Immutable catalog, shared by all evaluations
MATCH_OPS: frozenset[str] = frozenset(op.value for op in MatchOp)

# Operand count requirement per operator: exact count, or -1 for "one or more"
OP_ARITY: Mapping[MatchOp, int] = {
    MatchOp.ANY: 0,
    MatchOp.IN: -1,
    MatchOp.NOT_IN: -1,
    MatchOp.IN_REGEXP: -1,
    MatchOp.EXISTS: 0,
    MatchOp.DOES_NOT_EXIST: 0,
    MatchOp.GT: 1,
    MatchOp.LT: 1,
    MatchOp.GT_LT: 2,
    MatchOp.IS_TRUE: 0,
    MatchOp.IS_FALSE: 0,
}

# Operators usable when only the presence of a key is known
KEY_OPS: frozenset[MatchOp] = frozenset({MatchOp.ANY, MatchOp.EXISTS, MatchOp.DOES_NOT_EXIST})


def is_valid_operator(op: str | MatchOp) -> bool:
    """Check whether `op` is one of the catalog operators."""
    return str(op) in MATCH_OPS


def to_match_op(op: str | MatchOp, value: Collection[str] = ()) -> MatchOp:
    """Resolve an operator tag, raising InvalidOperatorError if unknown."""
    if not is_valid_operator(op):
        raise InvalidOperatorError(str(op), list(value))
    return MatchOp(str(op))


@dataclass(frozen=True)
class MatchExpression:
    """One (operator, operands) comparison."""

    op: MatchOp | str
    value: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept any sequence of operands but store an immutable tuple
        object.__setattr__(self, "value", tuple(self.value))

    def __str__(self) -> str:
        return f"{{op: {self.op}, value: {list(self.value)}}}"


# name -> expression, evaluated with AND semantics
MatchExpressionSet = Mapping[str, MatchExpression]

# One piece of match evidence: {"Name": ...} or {"Name": ..., "Value": ...}
MatchedElement = dict[str, str]


@dataclass
class InstanceFeature:
    """One repeated entity (e.g. a PCI device) as an attribute map."""

    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class Features:
    """All discovered features of a node, keyed by feature name."""

    flags: dict[str, set[str]] = field(default_factory=dict)
    attributes: dict[str, dict[str, str]] = field(default_factory=dict)
    instances: dict[str, list[InstanceFeature]] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.flags or name in self.attributes or name in self.instances

    @property
    def names(self) -> list[str]:
        return sorted(set(self.flags) | set(self.attributes) | set(self.instances))
