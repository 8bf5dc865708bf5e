"""
Rule Loader
=============
Loads feature rules and feature documents from YAML files.

Rule document:

    rules:
      - name: intel-nic
        labels:
          example.com/intel-nic: "true"
        matchFeatures:
          - feature: pci.device
            matchExpressions:
              vendor: {op: In, value: ["8086"]}
          - feature: cpu.cpuid
            matchName: {op: InRegexp, value: ["^AVX"]}
        matchAny:
          - matchFeatures: [...]

Feature document:

    flags:
      cpu.cpuid: [AVX, AVX2]
    attributes:
      kernel.version: {major: "5", minor: "15"}
    instances:
      pci.device:
        - {vendor: "8086", class: "0200"}

Decimal and version-like values must be quoted ("5.10"); an unquoted float
is rejected rather than silently rewritten.

Operators are not checked here; the expression engine rejects bad ones
when the rule is evaluated (or up front via `validate` in the CLI).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from feature_rules.config import get_settings
from feature_rules.expression.types import (
    Features,
    InstanceFeature,
    MatchExpression,
    MatchExpressionSet,
)
from feature_rules.rules.models import FeatureMatcherTerm, MatchAnyGroup, Rule
from feature_rules.utils.log import get_logger

logger = get_logger(__name__)

_rules_cache: dict[tuple[Path, frozenset[str]], list[Rule]] = {}


class RuleFormatError(ValueError):
    """A rule or feature document does not have the expected shape."""


def _to_str(v: Any) -> str:
    # YAML turns true/5 into bool/int; features and operands are strings
    if isinstance(v, bool):
        return "true" if v else "false"
    if v is None:
        return ""
    if isinstance(v, float):
        # 5.10 would silently become "5.1"
        raise RuleFormatError(f"unquoted number {v!r}: quote decimal and version-like values")
    return str(v)


# ── Expressions ───────────────────────────────────────


def parse_expression(raw: Any, where: str = "") -> MatchExpression:
    """Build a MatchExpression from {op: ..., value: [...]}."""
    if not isinstance(raw, dict) or "op" not in raw:
        raise RuleFormatError(f"{where}: expression must be a mapping with an 'op' key, got {raw!r}")

    value = raw.get("value", [])
    if value is None:
        value = []
    elif not isinstance(value, list):
        value = [value]

    return MatchExpression(op=_to_str(raw["op"]), value=tuple(_to_str(v) for v in value))


def parse_expression_set(raw: Any, where: str = "") -> MatchExpressionSet:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise RuleFormatError(f"{where}: matchExpressions must be a mapping, got {type(raw).__name__}")
    return {_to_str(name): parse_expression(expr, f"{where}.{name}") for name, expr in raw.items()}


# ── Rules ─────────────────────────────────────────────


def parse_term(raw: Any, where: str = "") -> FeatureMatcherTerm:
    if not isinstance(raw, dict) or not raw.get("feature"):
        raise RuleFormatError(f"{where}: term must be a mapping with a 'feature' key")
    if raw.get("matchExpressions") is None and raw.get("matchName") is None:
        raise RuleFormatError(f"{where}: term needs matchExpressions and/or matchName")

    feature = _to_str(raw["feature"])
    where = f"{where}[{feature}]"
    match_name = None
    if raw.get("matchName") is not None:
        match_name = parse_expression(raw["matchName"], f"{where}.matchName")

    expressions = None
    if raw.get("matchExpressions") is not None:
        expressions = parse_expression_set(raw["matchExpressions"], f"{where}.matchExpressions")

    return FeatureMatcherTerm(feature=feature, match_expressions=expressions, match_name=match_name)


def _parse_terms(raw: Any, where: str) -> list[FeatureMatcherTerm]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise RuleFormatError(f"{where}: matchFeatures must be a list")
    return [parse_term(t, f"{where}[{i}]") for i, t in enumerate(raw)]


def parse_rule(raw: Any, index: int = 0) -> Rule:
    if not isinstance(raw, dict):
        raise RuleFormatError(f"rules[{index}]: rule must be a mapping")
    name = _to_str(raw.get("name", f"rule-{index}"))

    labels = raw.get("labels") or {}
    if not isinstance(labels, dict):
        raise RuleFormatError(f"{name}: labels must be a mapping")

    match_any = []
    for i, group in enumerate(raw.get("matchAny") or []):
        if not isinstance(group, dict):
            raise RuleFormatError(f"{name}.matchAny[{i}]: must be a mapping with matchFeatures")
        match_any.append(MatchAnyGroup(_parse_terms(group.get("matchFeatures"), f"{name}.matchAny[{i}]")))

    return Rule(
        name=name,
        labels={_to_str(k): _to_str(v) for k, v in labels.items()},
        match_features=_parse_terms(raw.get("matchFeatures"), f"{name}.matchFeatures"),
        match_any=match_any,
    )


def load_rule_file(path: Path) -> list[Rule]:
    """Load every rule of one YAML rule document."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise RuleFormatError(f"{path}: top level must be a mapping with a 'rules' list")
    raw_rules = data.get("rules") or []
    if not isinstance(raw_rules, list):
        raise RuleFormatError(f"{path}: 'rules' must be a list")

    rules = [parse_rule(r, i) for i, r in enumerate(raw_rules)]
    logger.info("Loaded %d rules from %s", len(rules), path.name)
    return rules


def load_rules(rule_files: list[str] | None = None, rules_dir: Path | None = None) -> list[Rule]:
    """
    Load rules from YAML files.

    Args:
        rule_files: Specific rule files to load. Defaults to config list.
        rules_dir: Directory the files live in. Defaults to config value.

    Returns:
        Combined list of all rules from all files.
    """
    settings = get_settings()

    if rule_files is None:
        rule_files = settings.rules.rule_files
    if rules_dir is None:
        rules_dir = Path(settings.rules.rules_dir)

    cache_key = (rules_dir, frozenset(rule_files))
    if cache_key in _rules_cache:
        return _rules_cache[cache_key]

    all_rules: list[Rule] = []

    for filename in rule_files:
        rule_path = rules_dir / filename
        if not rule_path.exists():
            logger.warning("Rule file not found: %s", rule_path)
            continue
        all_rules.extend(load_rule_file(rule_path))

    _rules_cache[cache_key] = all_rules
    logger.info("Total rules loaded: %d", len(all_rules))
    return all_rules


# ── Features ──────────────────────────────────────────


def parse_features(data: Any) -> Features:
    """Build a Features object from a feature document mapping."""
    if data is None:
        return Features()
    if not isinstance(data, dict):
        raise RuleFormatError("feature document must be a mapping")

    features = Features()

    for name, keys in (data.get("flags") or {}).items():
        if isinstance(keys, dict):
            keys = list(keys)
        if not isinstance(keys, list):
            raise RuleFormatError(f"flags.{name}: must be a list of names")
        features.flags[_to_str(name)] = {_to_str(k) for k in keys}

    for name, values in (data.get("attributes") or {}).items():
        if not isinstance(values, dict):
            raise RuleFormatError(f"attributes.{name}: must be a mapping")
        features.attributes[_to_str(name)] = {_to_str(k): _to_str(v) for k, v in values.items()}

    for name, items in (data.get("instances") or {}).items():
        if not isinstance(items, list):
            raise RuleFormatError(f"instances.{name}: must be a list of attribute mappings")
        instances = []
        for i, attrs in enumerate(items):
            if not isinstance(attrs, dict):
                raise RuleFormatError(f"instances.{name}[{i}]: must be a mapping")
            instances.append(InstanceFeature({_to_str(k): _to_str(v) for k, v in attrs.items()}))
        features.instances[_to_str(name)] = instances

    return features


def load_features(path: Path) -> Features:
    """Load a feature document from YAML (JSON is valid YAML too)."""
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    features = parse_features(data)
    logger.info(
        "Loaded features from %s: %d flag, %d attribute, %d instance sets",
        path.name, len(features.flags), len(features.attributes), len(features.instances),
    )
    return features
