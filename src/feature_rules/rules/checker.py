"""
Rule Checker
=============
Evaluates rules against a node's discovered features.

Each matchFeatures term is dispatched by the shape of the feature it
names:
  - flags      → key evaluators (existence only)
  - attributes → value evaluators
  - instances  → instance evaluators (OR across instances)

The returned RuleResult explains the match: matched elements per
feature, sorted by name (instances keep their input order).
"""

from __future__ import annotations

from feature_rules.expression.errors import ExpressionError
from feature_rules.expression.matcher import (
    match_get_instances,
    match_get_keys,
    match_get_values,
    match_instance_attribute_names,
    match_key_names,
    match_value_names,
)
from feature_rules.expression.report import describe, sort_by_name
from feature_rules.expression.types import Features, MatchedElement
from feature_rules.rules.models import FeatureMatcherTerm, Rule, RuleResult
from feature_rules.utils.log import get_logger

logger = get_logger(__name__)


def _merge(a: list[MatchedElement], b: list[MatchedElement]) -> list[MatchedElement]:
    seen = {e["Name"] for e in a}
    return sort_by_name(a + [e for e in b if e["Name"] not in seen])


def evaluate_term(term: FeatureMatcherTerm, features: Features) -> tuple[bool, list[MatchedElement]]:
    """
    Evaluate one term against the feature it names.

    A feature absent from `features` does not match. With both matchName
    and matchExpressions, both must match; for instances the expressions
    are applied to the instances selected by matchName.
    """
    name = term.feature

    if name in features.flags:
        keys = features.flags[name]
        elements: list[MatchedElement] = []
        if term.match_name is not None:
            matched, elements = match_key_names(term.match_name, keys)
            if not matched:
                return False, []
        if term.match_expressions is not None:
            matched, found = match_get_keys(term.match_expressions, keys)
            if not matched:
                return False, []
            elements = _merge(elements, found)
        return True, elements

    if name in features.attributes:
        values = features.attributes[name]
        elements = []
        if term.match_name is not None:
            matched, elements = match_value_names(term.match_name, values)
            if not matched:
                return False, []
        if term.match_expressions is not None:
            matched, found = match_get_values(term.match_expressions, values)
            if not matched:
                return False, []
            elements = _merge(elements, found)
        return True, elements

    if name in features.instances:
        instances = [i.attributes for i in features.instances[name]]
        if term.match_name is not None:
            instances = match_instance_attribute_names(term.match_name, instances)
        if term.match_expressions is not None:
            instances = match_get_instances(term.match_expressions, instances)
        return len(instances) > 0, instances

    logger.debug("Feature %s not present, term does not match", name)
    return False, []


def _add_evidence(
    found: dict[str, list[MatchedElement]],
    feature: str,
    elements: list[MatchedElement],
    features: Features,
) -> None:
    """Fold one term's evidence into the per-feature lists."""
    current = found.get(feature, [])
    if feature in features.flags or feature in features.attributes:
        found[feature] = _merge(current, elements)
    else:
        # instance records keep input order
        found[feature] = current + [e for e in elements if e not in current]


def _evaluate_terms(
    terms: list[FeatureMatcherTerm], features: Features
) -> tuple[bool, dict[str, list[MatchedElement]]]:
    matched_features: dict[str, list[MatchedElement]] = {}
    for term in terms:
        matched, elements = evaluate_term(term, features)
        if not matched:
            return False, {}
        _add_evidence(matched_features, term.feature, elements, features)
    return True, matched_features


def evaluate_rule(rule: Rule, features: Features) -> RuleResult:
    """
    Evaluate a single rule.

    Raises:
        ExpressionError: if any expression of the rule is invalid.
    """
    result = RuleResult(rule_name=rule.name, labels=dict(rule.labels))

    matched, found = _evaluate_terms(rule.match_features, features)
    if not matched:
        logger.info("Rule %s: no match", rule.name)
        return result

    if rule.match_any:
        for group in rule.match_any:
            group_matched, group_found = _evaluate_terms(group.match_features, features)
            if group_matched:
                for feature, elements in group_found.items():
                    _add_evidence(found, feature, elements, features)
                break
        else:
            logger.info("Rule %s: no matchAny group matched", rule.name)
            return result

    result.matched = True
    result.matched_features = found
    logger.info(
        "Rule %s: MATCH (%s)",
        rule.name,
        "; ".join(f"{f}: {describe(e)}" for f, e in found.items()) or "no conditions",
    )
    return result


def check_rules(rules: list[Rule], features: Features) -> list[RuleResult]:
    """
    Evaluate every rule. A rule with an invalid expression is reported
    with its error and does not stop the remaining rules.
    """
    results = []
    for rule in rules:
        try:
            results.append(evaluate_rule(rule, features))
        except ExpressionError as e:
            logger.error("Rule %s: invalid expression: %s", rule.name, e)
            results.append(RuleResult(rule_name=rule.name, labels=dict(rule.labels), error=str(e)))
    return results
