"""
Expression Evaluator
=====================
Evaluates a single MatchExpression against one candidate value.

Three entry points:
  - evaluate_match_expression        : against a value plus presence flag
  - evaluate_match_expression_keys   : against key existence only
  - evaluate_match_expression_values : against a name in a name→value map

An absent candidate never satisfies a value-based operator, and that is
a plain non-match rather than an error. Malformed expressions raise an
ExpressionError subclass.
"""

from __future__ import annotations

import re
from typing import Callable, Collection, Mapping, Sequence

from feature_rules.expression.errors import (
    ArityError,
    ExpressionError,
    InvalidOperatorForKeyMatchError,
    InvalidRangeError,
    InvalidRegexpError,
    NotANumberError,
    UnsupportedOperatorError,
)
from feature_rules.expression.types import (
    KEY_OPS,
    OP_ARITY,
    MatchExpression,
    MatchExpressionSet,
    MatchOp,
    to_match_op,
)
from feature_rules.utils.log import get_logger, trace_event

logger = get_logger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")

_ARITY_TEXT = {
    0: "be empty",
    -1: "be non-empty",
    1: "contain exactly one element",
    2: "contain exactly two elements",
}


# ── Operand helpers ────────────────────────────────────


def _check_arity(op: MatchOp, value: Sequence[str]) -> None:
    want = OP_ARITY[op]
    if want == -1:
        ok = len(value) > 0
    else:
        ok = len(value) == want
    if not ok:
        raise ArityError(str(op), value, _ARITY_TEXT[want])


def _atoi(text: str, op: MatchOp | None = None, value: Sequence[str] = ()) -> int:
    """Strict decimal integer parse: optional sign and ASCII digits only."""
    if not _INT_RE.fullmatch(text):
        raise NotANumberError(text, str(op) if op else "", value)
    return int(text)


def _parse_range(op: MatchOp, value: Sequence[str]) -> tuple[int, int]:
    lower = _atoi(value[0], op, value)
    upper = _atoi(value[1], op, value)
    if lower >= upper:
        raise InvalidRangeError(str(op), value)
    return lower, upper


def _compile_patterns(op: MatchOp, value: Sequence[str]) -> list[re.Pattern]:
    # All patterns are compiled before any is tried
    compiled = []
    for pattern in value:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise InvalidRegexpError(str(op), value, pattern, str(e)) from e
    return compiled


# ── Value operators ────────────────────────────────────


def _match_in(op: MatchOp, value: Sequence[str], candidate: str) -> bool:
    _check_arity(op, value)
    return candidate in value


def _match_not_in(op: MatchOp, value: Sequence[str], candidate: str) -> bool:
    _check_arity(op, value)
    return candidate not in value


def _match_in_regexp(op: MatchOp, value: Sequence[str], candidate: str) -> bool:
    _check_arity(op, value)
    return any(p.search(candidate) for p in _compile_patterns(op, value))


def _match_gt_or_lt(op: MatchOp, value: Sequence[str], candidate: str) -> bool:
    _check_arity(op, value)
    left = _atoi(candidate)
    right = _atoi(value[0], op, value)
    if op is MatchOp.GT:
        return left > right
    return left < right


def _match_gt_lt(op: MatchOp, value: Sequence[str], candidate: str) -> bool:
    _check_arity(op, value)
    v = _atoi(candidate)
    lower, upper = _parse_range(op, value)
    return lower < v < upper


def _match_is_true(op: MatchOp, value: Sequence[str], candidate: str) -> bool:
    _check_arity(op, value)
    return candidate == "true"


def _match_is_false(op: MatchOp, value: Sequence[str], candidate: str) -> bool:
    _check_arity(op, value)
    return candidate == "false"


# Every operator outside KEY_OPS must have an entry here
VALUE_EVALUATORS: Mapping[MatchOp, Callable[[MatchOp, Sequence[str], str], bool]] = {
    MatchOp.IN: _match_in,
    MatchOp.NOT_IN: _match_not_in,
    MatchOp.IN_REGEXP: _match_in_regexp,
    MatchOp.GT: _match_gt_or_lt,
    MatchOp.LT: _match_gt_or_lt,
    MatchOp.GT_LT: _match_gt_lt,
    MatchOp.IS_TRUE: _match_is_true,
    MatchOp.IS_FALSE: _match_is_false,
}


# ── Public API ─────────────────────────────────────────


def evaluate_match_expression(m: MatchExpression, present: bool, value: object = "") -> bool:
    """
    Evaluate the expression against a single input value.

    Args:
        m: The expression to evaluate.
        present: Whether the candidate exists at all.
        value: The candidate value (ignored for Any/Exists/DoesNotExist).

    Returns:
        True on match, False otherwise.

    Raises:
        ExpressionError: if the expression itself is invalid.
    """
    op = to_match_op(m.op, m.value)

    if op is MatchOp.ANY:
        _check_arity(op, m.value)
        return True
    if op is MatchOp.EXISTS:
        _check_arity(op, m.value)
        return present
    if op is MatchOp.DOES_NOT_EXIST:
        _check_arity(op, m.value)
        return not present

    if not present:
        return False

    evaluator = VALUE_EVALUATORS.get(op)
    if evaluator is None:
        raise UnsupportedOperatorError(str(op), m.value)
    return evaluator(op, m.value, str(value))


def evaluate_match_expression_keys(m: MatchExpression, name: str, keys: Collection[str]) -> bool:
    """Evaluate the expression against the existence of `name` in a set of keys."""
    op = to_match_op(m.op, m.value)
    if op not in KEY_OPS:
        raise InvalidOperatorForKeyMatchError(str(op), m.value)

    matched = evaluate_match_expression(m, name in keys, "")

    trace_event(
        logger,
        "matched keys",
        lambda: {"matchResult": matched, "matchKey": name, "matchOp": str(op)},
        inputs=lambda: {"inputKeys": sorted(keys)},
    )
    return matched


def evaluate_match_expression_values(m: MatchExpression, name: str, values: Mapping[str, str]) -> bool:
    """Evaluate the expression against the value of `name` in a name→value map."""
    present = name in values
    matched = evaluate_match_expression(m, present, values[name] if present else "")

    trace_event(
        logger,
        "matched values",
        lambda: {"matchResult": matched, "matchKey": name, "matchOp": str(m.op), "matchValue": list(m.value)},
        inputs=lambda: {"inputValues": dict(sorted(values.items()))},
    )
    return matched


# ── Static validation ──────────────────────────────────


def validate_match_expression(m: MatchExpression) -> None:
    """
    Check an expression without any candidate data.

    Verifies the operator, operand count, integer operands of the numeric
    operators, GtLt bound ordering and that every regexp compiles.

    Raises:
        ExpressionError: on the first problem found.
    """
    op = to_match_op(m.op, m.value)
    _check_arity(op, m.value)

    if op in (MatchOp.GT, MatchOp.LT):
        _atoi(m.value[0], op, m.value)
    elif op is MatchOp.GT_LT:
        _parse_range(op, m.value)
    elif op is MatchOp.IN_REGEXP:
        _compile_patterns(op, m.value)


def validate_match_expression_set(m: MatchExpressionSet, keys_only: bool = False) -> None:
    """
    Validate every expression of a set.

    With `keys_only`, operators that need a value are rejected too.
    The raised error's message is prefixed with the offending name.
    """
    for name in sorted(m):
        expr = m[name]
        try:
            validate_match_expression(expr)
            if keys_only and to_match_op(expr.op) not in KEY_OPS:
                raise InvalidOperatorForKeyMatchError(str(expr.op), expr.value)
        except ExpressionError as e:
            e.args = (f"{name}: {e}",)
            raise
