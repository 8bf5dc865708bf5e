"""Rule data model."""

from __future__ import annotations

from dataclasses import dataclass, field

from feature_rules.expression.types import MatchedElement, MatchExpression, MatchExpressionSet


@dataclass
class FeatureMatcherTerm:
    """Conditions on one feature (flags, attributes or instances)."""

    feature: str
    match_expressions: MatchExpressionSet | None = None
    match_name: MatchExpression | None = None


@dataclass
class MatchAnyGroup:
    match_features: list[FeatureMatcherTerm] = field(default_factory=list)


@dataclass
class Rule:
    """
    A named rule: every matchFeatures term must match, and if matchAny
    is given at least one of its groups must match too.
    """

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    match_features: list[FeatureMatcherTerm] = field(default_factory=list)
    match_any: list[MatchAnyGroup] = field(default_factory=list)

    def expressions(self) -> list[tuple[str, str, MatchExpression]]:
        """All expressions of the rule as (feature, key, expression), for validation."""
        terms = list(self.match_features)
        for group in self.match_any:
            terms.extend(group.match_features)

        out = []
        for term in terms:
            if term.match_name is not None:
                out.append((term.feature, "<matchName>", term.match_name))
            for key, expr in (term.match_expressions or {}).items():
                out.append((term.feature, key, expr))
        return out


@dataclass
class RuleResult:
    """Outcome of evaluating one rule."""

    rule_name: str
    matched: bool = False
    labels: dict[str, str] = field(default_factory=dict)
    matched_features: dict[str, list[MatchedElement]] = field(default_factory=dict)
    error: str | None = None

    @property
    def status(self) -> str:
        if self.error:
            return "ERROR"
        return "MATCH" if self.matched else "NO MATCH"
