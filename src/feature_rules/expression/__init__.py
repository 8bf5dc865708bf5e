"""Expression engine subpackage: operators, evaluation, set matching."""

from feature_rules.expression.errors import (
    ArityError,
    ExpressionError,
    InvalidOperatorError,
    InvalidOperatorForKeyMatchError,
    InvalidRangeError,
    InvalidRegexpError,
    NotANumberError,
    UnsupportedOperatorError,
)
from feature_rules.expression.evaluator import (
    evaluate_match_expression,
    evaluate_match_expression_keys,
    evaluate_match_expression_values,
    validate_match_expression,
    validate_match_expression_set,
)
from feature_rules.expression.matcher import (
    match_get_instances,
    match_get_keys,
    match_get_values,
    match_instance_attribute_names,
    match_instances,
    match_key_names,
    match_keys,
    match_value_names,
    match_values,
)
from feature_rules.expression.types import (
    Features,
    InstanceFeature,
    MatchedElement,
    MatchExpression,
    MatchExpressionSet,
    MatchOp,
    is_valid_operator,
)

__all__ = [
    "ArityError",
    "ExpressionError",
    "Features",
    "InstanceFeature",
    "InvalidOperatorError",
    "InvalidOperatorForKeyMatchError",
    "InvalidRangeError",
    "InvalidRegexpError",
    "MatchExpression",
    "MatchExpressionSet",
    "MatchOp",
    "MatchedElement",
    "NotANumberError",
    "UnsupportedOperatorError",
    "evaluate_match_expression",
    "evaluate_match_expression_keys",
    "evaluate_match_expression_values",
    "is_valid_operator",
    "match_get_instances",
    "match_get_keys",
    "match_get_values",
    "match_instance_attribute_names",
    "match_instances",
    "match_key_names",
    "match_keys",
    "match_value_names",
    "match_values",
    "validate_match_expression",
    "validate_match_expression_set",
]
