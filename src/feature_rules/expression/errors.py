"""
Expression Errors
==================
Validation errors raised while evaluating match expressions.

All of them are structural problems in the rule itself. None are
retryable, and a single bad expression aborts evaluation of the whole
enclosing set.
"""

from __future__ import annotations

from typing import Sequence


class ExpressionError(ValueError):
    """Base class for invalid match expressions."""

    def __init__(self, message: str, op: str = "", value: Sequence[str] = ()):
        self.op = op
        self.value = list(value)
        super().__init__(message)


class InvalidOperatorError(ExpressionError):
    """Operator is not in the catalog."""

    def __init__(self, op: str, value: Sequence[str] = ()):
        super().__init__(f"invalid Op {op!r}", op, value)


class ArityError(ExpressionError):
    """Wrong number of operands for the operator."""

    def __init__(self, op: str, value: Sequence[str], requirement: str):
        super().__init__(
            f"invalid expression, 'value' field must {requirement} for Op {op!r} (have {list(value)})",
            op,
            value,
        )


class NotANumberError(ExpressionError):
    """Operand or candidate value of a numeric operator is not an integer."""

    def __init__(self, text: str, op: str = "", value: Sequence[str] = ()):
        self.text = text
        msg = f"not a number {text!r}"
        if value:
            msg += f" in {{op: {op}, value: {list(value)}}}"
        super().__init__(msg, op, value)


class InvalidRegexpError(ExpressionError):
    """An InRegexp operand does not compile."""

    def __init__(self, op: str, value: Sequence[str], pattern: str, reason: str = ""):
        self.pattern = pattern
        msg = f"invalid expression, 'value' field must only contain valid regexps for Op {op!r} (have {list(value)})"
        if reason:
            msg += f": {pattern!r}: {reason}"
        super().__init__(msg, op, value)


class InvalidRangeError(ExpressionError):
    """GtLt bounds are not strictly ordered."""

    def __init__(self, op: str, value: Sequence[str]):
        super().__init__(
            f"invalid expression, value[0] must be less than value[1] for Op {op!r} (have {list(value)})",
            op,
            value,
        )


class UnsupportedOperatorError(ExpressionError):
    """Operator is valid but has no value evaluator."""

    def __init__(self, op: str, value: Sequence[str] = ()):
        super().__init__(f"unsupported Op {op!r}", op, value)


class InvalidOperatorForKeyMatchError(ExpressionError):
    """Operator cannot be used when only key existence is known."""

    def __init__(self, op: str, value: Sequence[str] = ()):
        super().__init__(f"invalid Op {op!r} when matching keys", op, value)
