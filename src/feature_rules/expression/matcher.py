"""
Feature Matcher
================
Applies match expressions across whole feature sets.

Name selectors (match_key_names, match_value_names,
match_instance_attribute_names) test one expression against every
*name* of a feature set and collect the names that match.

Set evaluators (match_get_keys, match_get_values, match_get_instances)
test a MatchExpressionSet, AND across its entries. Instances are
OR-ed: every instance that fully satisfies the set is returned, in
input order.
"""

from __future__ import annotations

from typing import Collection, Mapping, Sequence, Union

from feature_rules.expression.evaluator import (
    evaluate_match_expression,
    evaluate_match_expression_keys,
    evaluate_match_expression_values,
)
from feature_rules.expression.report import matched_names, sort_by_name
from feature_rules.expression.types import (
    InstanceFeature,
    MatchedElement,
    MatchExpression,
    MatchExpressionSet,
)
from feature_rules.utils.log import get_logger, trace_event

logger = get_logger(__name__)

Instance = Union[InstanceFeature, Mapping[str, str]]


def _attributes(instance: Instance) -> Mapping[str, str]:
    if isinstance(instance, InstanceFeature):
        return instance.attributes
    return instance


# ── Name selectors ─────────────────────────────────────


def match_key_names(m: MatchExpression, keys: Collection[str]) -> tuple[bool, list[MatchedElement]]:
    """Evaluate the expression against the names of a set of key features."""
    ret: list[MatchedElement] = []

    for k in keys:
        if evaluate_match_expression(m, True, k):
            ret.append({"Name": k})
    sort_by_name(ret)

    trace_event(
        logger,
        "matched (key) names",
        lambda: {"matchResult": ", ".join(matched_names(ret)), "matchOp": str(m.op), "matchValue": list(m.value)},
        inputs=lambda: {"inputKeys": sorted(keys)},
    )
    return len(ret) > 0, ret


def match_value_names(m: MatchExpression, values: Mapping[str, str]) -> tuple[bool, list[MatchedElement]]:
    """Evaluate the expression against the names of a set of value features."""
    ret: list[MatchedElement] = []

    for k, v in values.items():
        if evaluate_match_expression(m, True, k):
            ret.append({"Name": k, "Value": v})
    sort_by_name(ret)

    trace_event(
        logger,
        "matched (value) names",
        lambda: {"matchResult": ", ".join(matched_names(ret)), "matchOp": str(m.op), "matchValue": list(m.value)},
        inputs=lambda: {"inputValues": dict(sorted(values.items()))},
    )
    return len(ret) > 0, ret


def match_instance_attribute_names(m: MatchExpression, instances: Sequence[Instance]) -> list[MatchedElement]:
    """
    Evaluate the expression against the attribute names of each instance.

    Returns the attribute maps of every instance with at least one
    matching attribute name, in input order.
    """
    ret: list[MatchedElement] = []

    for instance in instances:
        attrs = _attributes(instance)
        matched, _ = match_value_names(m, attrs)
        if matched:
            ret.append(dict(attrs))
    return ret


# ── Set evaluators ─────────────────────────────────────


def match_keys(m: MatchExpressionSet, keys: Collection[str]) -> bool:
    """Evaluate the MatchExpressionSet against a set of keys."""
    matched, _ = match_get_keys(m, keys)
    return matched


def match_get_keys(m: MatchExpressionSet, keys: Collection[str]) -> tuple[bool, list[MatchedElement] | None]:
    """
    Evaluate the MatchExpressionSet against a set of keys.

    Returns all matched keys, or None if there was no match. An empty set
    matches with an empty list.
    """
    ret: list[MatchedElement] = []

    for name, expr in m.items():
        if not evaluate_match_expression_keys(expr, name, keys):
            return False, None
        ret.append({"Name": name})
    return True, sort_by_name(ret)


def match_values(m: MatchExpressionSet, values: Mapping[str, str]) -> bool:
    """Evaluate the MatchExpressionSet against a set of key-value pairs."""
    matched, _ = match_get_values(m, values)
    return matched


def match_get_values(
    m: MatchExpressionSet, values: Mapping[str, str]
) -> tuple[bool, list[MatchedElement] | None]:
    """
    Evaluate the MatchExpressionSet against a set of key-value pairs.

    Returns all matched key-value pairs, or None if there was no match.
    Names absent from `values` are reported with an empty value (only
    possible for Any and DoesNotExist).
    """
    ret: list[MatchedElement] = []

    for name, expr in m.items():
        if not evaluate_match_expression_values(expr, name, values):
            return False, None
        ret.append({"Name": name, "Value": values.get(name, "")})
    return True, sort_by_name(ret)


def match_instances(m: MatchExpressionSet, instances: Sequence[Instance]) -> bool:
    """Evaluate the MatchExpressionSet against a list of instance features."""
    return len(match_get_instances(m, instances)) > 0


def match_get_instances(m: MatchExpressionSet, instances: Sequence[Instance]) -> list[MatchedElement]:
    """
    Evaluate the MatchExpressionSet against each instance's attributes.

    Returns the attribute maps of all fully matching instances, in input
    order. An empty list means no instance matched.
    """
    ret: list[MatchedElement] = []

    for instance in instances:
        attrs = _attributes(instance)
        if match_values(m, attrs):
            ret.append(dict(attrs))
    return ret
