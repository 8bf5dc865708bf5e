"""Rules subpackage: rule model, YAML loading, rule checking."""

from feature_rules.rules.checker import check_rules, evaluate_rule
from feature_rules.rules.loader import load_features, load_rules

__all__ = ["check_rules", "evaluate_rule", "load_features", "load_rules"]
