"""Tests for the single-expression evaluator."""

import pytest

from feature_rules.expression.errors import (
    ArityError,
    ExpressionError,
    InvalidOperatorError,
    InvalidOperatorForKeyMatchError,
    InvalidRangeError,
    InvalidRegexpError,
    NotANumberError,
)
from feature_rules.expression.evaluator import (
    VALUE_EVALUATORS,
    evaluate_match_expression,
    evaluate_match_expression_keys,
    evaluate_match_expression_values,
    validate_match_expression,
    validate_match_expression_set,
)
from feature_rules.expression.types import KEY_OPS, MatchExpression, MatchOp, is_valid_operator


def _expr(op, *value):
    return MatchExpression(op=op, value=value)


# ── Operator catalog ─────────────────────────────────


def test_catalog_has_eleven_operators():
    assert len(MatchOp) == 11
    for op in ["Any", "In", "NotIn", "InRegexp", "Exists", "DoesNotExist",
               "Gt", "Lt", "GtLt", "IsTrue", "IsFalse"]:
        assert is_valid_operator(op)
        assert is_valid_operator(MatchOp(op))


def test_catalog_rejects_unknown_operators():
    assert not is_valid_operator("in")
    assert not is_valid_operator("Equals")
    assert not is_valid_operator("")


def test_every_operator_has_an_evaluator():
    """Value evaluators plus existence operators cover the whole catalog."""
    assert set(VALUE_EVALUATORS) | KEY_OPS == set(MatchOp)
    assert not set(VALUE_EVALUATORS) & KEY_OPS


def test_invalid_operator_rejected_before_anything_else():
    with pytest.raises(InvalidOperatorError) as exc:
        evaluate_match_expression(_expr("Bogus", "a"), False, "")
    assert exc.value.op == "Bogus"
    assert isinstance(exc.value, ExpressionError)


def test_expression_value_is_immutable_tuple():
    m = MatchExpression(op="In", value=["a", "b"])
    assert m.value == ("a", "b")
    with pytest.raises(AttributeError):
        m.op = "NotIn"


# ── Any / Exists / DoesNotExist ──────────────────────


@pytest.mark.parametrize("present", [True, False])
def test_any_always_matches(present):
    assert evaluate_match_expression(_expr(MatchOp.ANY), present, "whatever")


def test_any_rejects_operands():
    with pytest.raises(ArityError):
        evaluate_match_expression(_expr("Any", "x"), True, "x")


@pytest.mark.parametrize("present", [True, False])
def test_exists_and_does_not_exist_are_complements(present):
    exists = evaluate_match_expression(_expr("Exists"), present, "v")
    missing = evaluate_match_expression(_expr("DoesNotExist"), present, "v")
    assert exists == present
    assert missing != exists


@pytest.mark.parametrize("op", ["Exists", "DoesNotExist"])
def test_existence_ops_reject_operands(op):
    with pytest.raises(ArityError):
        evaluate_match_expression(_expr(op, "x"), True, "x")


# ── Absent candidates ────────────────────────────────


@pytest.mark.parametrize(
    "expr",
    [
        _expr("In", "a"),
        _expr("NotIn", "a"),
        _expr("InRegexp", "a"),
        _expr("Gt", "1"),
        _expr("Lt", "1"),
        _expr("GtLt", "1", "5"),
        _expr("IsTrue"),
        _expr("IsFalse"),
    ],
)
def test_absent_candidate_never_matches_value_ops(expr):
    assert evaluate_match_expression(expr, False, "") is False


# ── In / NotIn ───────────────────────────────────────


def test_in_matches_member():
    assert evaluate_match_expression(_expr("In", "a", "b"), True, "b")
    assert not evaluate_match_expression(_expr("In", "a", "b"), True, "c")


def test_in_is_exact_string_equality():
    assert not evaluate_match_expression(_expr("In", "abc"), True, "ab")
    assert not evaluate_match_expression(_expr("In", "A"), True, "a")


@pytest.mark.parametrize("candidate", ["a", "b", "c", ""])
def test_in_and_not_in_are_complements(candidate):
    operands = ("a", "b")
    in_result = evaluate_match_expression(MatchExpression("In", operands), True, candidate)
    not_in_result = evaluate_match_expression(MatchExpression("NotIn", operands), True, candidate)
    assert in_result != not_in_result


@pytest.mark.parametrize("op", ["In", "NotIn", "InRegexp"])
def test_list_ops_require_operands(op):
    with pytest.raises(ArityError):
        evaluate_match_expression(_expr(op), True, "a")


def test_non_string_candidate_is_stringified():
    assert evaluate_match_expression(_expr("In", "5"), True, 5)


# ── InRegexp ─────────────────────────────────────────


def test_in_regexp_is_search_match():
    assert evaluate_match_expression(_expr("InRegexp", "b"), True, "abc")
    assert evaluate_match_expression(_expr("InRegexp", "^x", "c$"), True, "abc")
    assert not evaluate_match_expression(_expr("InRegexp", "^b"), True, "abc")


def test_in_regexp_invalid_pattern_errors_even_if_another_matches():
    with pytest.raises(InvalidRegexpError):
        evaluate_match_expression(_expr("InRegexp", "a", "("), True, "a")


def test_in_regexp_invalid_pattern_errors_without_match():
    with pytest.raises(InvalidRegexpError) as exc:
        evaluate_match_expression(_expr("InRegexp", "^x", "["), True, "abc")
    assert exc.value.pattern == "["


# ── Gt / Lt / GtLt ───────────────────────────────────


def test_gt_lt_compare_integers_not_strings():
    assert evaluate_match_expression(_expr("Gt", "9"), True, "10")
    assert not evaluate_match_expression(_expr("Lt", "9"), True, "10")
    assert evaluate_match_expression(_expr("Lt", "10"), True, "-3")


def test_gt_lt_are_strict():
    assert not evaluate_match_expression(_expr("Gt", "4"), True, "4")
    assert not evaluate_match_expression(_expr("Lt", "4"), True, "4")


@pytest.mark.parametrize("op", ["Gt", "Lt"])
@pytest.mark.parametrize("operands", [(), ("1", "2")])
def test_gt_lt_need_exactly_one_operand(op, operands):
    with pytest.raises(ArityError):
        evaluate_match_expression(MatchExpression(op, operands), True, "1")


@pytest.mark.parametrize("candidate", ["abc", "1.5", " 5", "1_000", "0x10", ""])
def test_gt_rejects_non_integer_candidate(candidate):
    with pytest.raises(NotANumberError):
        evaluate_match_expression(_expr("Gt", "1"), True, candidate)


def test_gt_rejects_non_integer_operand():
    with pytest.raises(NotANumberError) as exc:
        evaluate_match_expression(_expr("Gt", "four"), True, "5")
    assert exc.value.text == "four"


def test_signed_integers_accepted():
    assert evaluate_match_expression(_expr("Gt", "-5"), True, "+2")


@pytest.mark.parametrize("candidate,expected", [("3", True), ("5", False), ("1", False), ("0", False)])
def test_gtlt_open_interval(candidate, expected):
    assert evaluate_match_expression(_expr("GtLt", "1", "5"), True, candidate) is expected


@pytest.mark.parametrize("operands", [("5", "1"), ("3", "3")])
def test_gtlt_bounds_must_be_ordered(operands):
    with pytest.raises(InvalidRangeError):
        evaluate_match_expression(MatchExpression("GtLt", operands), True, "3")


@pytest.mark.parametrize("operands", [("1",), ("1", "2", "3")])
def test_gtlt_needs_two_operands(operands):
    with pytest.raises(ArityError):
        evaluate_match_expression(MatchExpression("GtLt", operands), True, "3")


def test_gtlt_rejects_non_integer_bound():
    with pytest.raises(NotANumberError):
        evaluate_match_expression(_expr("GtLt", "1", "x"), True, "3")


# ── IsTrue / IsFalse ─────────────────────────────────


@pytest.mark.parametrize("candidate", ["True", "TRUE", "1", "yes", " true", ""])
def test_is_true_only_exact_literal(candidate):
    assert evaluate_match_expression(_expr("IsTrue"), True, "true")
    assert not evaluate_match_expression(_expr("IsTrue"), True, candidate)


def test_is_false_only_exact_literal():
    assert evaluate_match_expression(_expr("IsFalse"), True, "false")
    assert not evaluate_match_expression(_expr("IsFalse"), True, "False")
    assert not evaluate_match_expression(_expr("IsFalse"), True, "0")


@pytest.mark.parametrize("op", ["IsTrue", "IsFalse"])
def test_boolean_ops_reject_operands(op):
    with pytest.raises(ArityError):
        evaluate_match_expression(_expr(op, "true"), True, "true")


# ── Key / value lookups ──────────────────────────────


def test_keys_existence():
    keys = {"a", "b"}
    assert evaluate_match_expression_keys(_expr("Exists"), "a", keys)
    assert not evaluate_match_expression_keys(_expr("Exists"), "c", keys)
    assert evaluate_match_expression_keys(_expr("DoesNotExist"), "c", keys)
    assert evaluate_match_expression_keys(_expr("Any"), "c", keys)


@pytest.mark.parametrize("op", ["In", "NotIn", "InRegexp", "Gt", "Lt", "GtLt", "IsTrue", "IsFalse"])
def test_keys_reject_value_operators(op):
    with pytest.raises(InvalidOperatorForKeyMatchError):
        evaluate_match_expression_keys(_expr(op, "a"), "a", {"a"})


def test_keys_reject_unknown_operator_as_invalid():
    with pytest.raises(InvalidOperatorError):
        evaluate_match_expression_keys(_expr("Nope"), "a", {"a"})


def test_values_lookup():
    values = {"cores": "8", "ht": "true"}
    assert evaluate_match_expression_values(_expr("Gt", "4"), "cores", values)
    assert evaluate_match_expression_values(_expr("IsTrue"), "ht", values)
    assert not evaluate_match_expression_values(_expr("Gt", "4"), "sockets", values)
    assert evaluate_match_expression_values(_expr("DoesNotExist"), "sockets", values)


# ── Static validation ────────────────────────────────


@pytest.mark.parametrize(
    "expr",
    [
        _expr("Any"),
        _expr("In", "a"),
        _expr("InRegexp", "^a", "b+"),
        _expr("Gt", "-1"),
        _expr("GtLt", "1", "2"),
        _expr("IsFalse"),
    ],
)
def test_validate_accepts_well_formed(expr):
    validate_match_expression(expr)


@pytest.mark.parametrize(
    "expr,error",
    [
        (_expr("Equals", "a"), InvalidOperatorError),
        (_expr("Exists", "a"), ArityError),
        (_expr("In"), ArityError),
        (_expr("Lt", "x"), NotANumberError),
        (_expr("GtLt", "2", "1"), InvalidRangeError),
        (_expr("InRegexp", "(("), InvalidRegexpError),
    ],
)
def test_validate_rejects_malformed(expr, error):
    with pytest.raises(error):
        validate_match_expression(expr)


def test_validate_set_names_offending_key():
    with pytest.raises(NotANumberError, match="cores"):
        validate_match_expression_set({"a": _expr("Any"), "cores": _expr("Gt", "many")})


def test_validate_set_keys_only():
    validate_match_expression_set({"a": _expr("Exists")}, keys_only=True)
    with pytest.raises(InvalidOperatorForKeyMatchError):
        validate_match_expression_set({"a": _expr("In", "x")}, keys_only=True)
