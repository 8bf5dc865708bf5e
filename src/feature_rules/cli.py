"""
Feature Rules CLI
==================
Command-line interface for evaluating feature rules.

Commands:
    match    : Evaluate rules against a feature document
    validate : Statically check every expression in a rule file
    ops      : List the supported operators
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from feature_rules.config import get_settings
from feature_rules.utils.log import get_logger, setup_logging, verbosity_to_level

logger = get_logger(__name__)
console = Console()


# ═══════════════════════════════════════════════════════
#  Root group
# ═══════════════════════════════════════════════════════
@click.group()
@click.version_option(version="0.1.0", prog_name="feature-rules")
@click.option(
    "--verbosity", "-v",
    type=click.IntRange(0, 4),
    default=None,
    help="Trace verbosity: 3 logs every match, 4 adds candidate inputs. Default: config.",
)
def main(verbosity: int | None):
    """Evaluate declarative feature-matching rules."""
    settings = get_settings()
    if verbosity is None:
        verbosity = settings.trace_verbosity

    level = verbosity_to_level(verbosity, default=settings.log_level)
    setup_logging(level, settings.log_file)


# ═══════════════════════════════════════════════════════
#  MATCH: evaluate rules against features
# ═══════════════════════════════════════════════════════
@main.command()
@click.argument("features_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--rules", "-r", "rules_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Rule document. Default: configured rule files.",
)
@click.option(
    "--format", "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default=None,
    help="Output format. Default: config.",
)
def match(features_file: Path, rules_file: Path | None, format: str | None):
    """Evaluate rules against the feature document FEATURES_FILE."""
    from feature_rules.rules.checker import check_rules
    from feature_rules.rules.loader import RuleFormatError, load_features, load_rule_file, load_rules

    settings = get_settings()
    fmt = (format or settings.output.format).lower()

    try:
        rules = load_rule_file(rules_file) if rules_file else load_rules()
        features = load_features(features_file)
    except RuleFormatError as e:
        console.print(f"[red]Invalid document:[/red] {escape(str(e))}")
        sys.exit(2)

    if not rules:
        console.print("[yellow]No rules to evaluate.[/yellow]")
        sys.exit(1)

    results = check_rules(rules, features)

    if fmt == "json":
        click.echo(json.dumps([_result_to_dict(r) for r in results], indent=2))
    else:
        _print_results_table(results)

    if any(r.error for r in results):
        sys.exit(1)


def _result_to_dict(r) -> dict:
    return {
        "rule": r.rule_name,
        "status": r.status,
        "labels": r.labels if r.matched else {},
        "matchedFeatures": r.matched_features,
        "error": r.error,
    }


def _print_results_table(results):
    """Display a rich summary table of results."""
    from feature_rules.expression.report import describe

    table = Table(title="Rule Evaluation", show_lines=True)
    table.add_column("Rule", style="bold")
    table.add_column("Result", justify="center")
    table.add_column("Labels", style="cyan")
    table.add_column("Matched", style="dim")

    for r in results:
        status_color = {
            "MATCH": "green",
            "NO MATCH": "yellow",
            "ERROR": "red",
        }.get(r.status, "dim")

        if r.error:
            detail = f"[red]{escape(r.error)}[/red]"
        else:
            detail = "\n".join(escape(f"{f}: {describe(e)}") for f, e in r.matched_features.items())

        table.add_row(
            r.rule_name,
            f"[{status_color}]{r.status}[/{status_color}]",
            "\n".join(f"{k}={v}" for k, v in r.labels.items()) if r.matched else "",
            detail,
        )

    console.print()
    console.print(table)
    n_match = sum(1 for r in results if r.matched)
    console.print(f"\n[bold]{n_match}/{len(results)}[/bold] rule(s) matched.\n")


# ═══════════════════════════════════════════════════════
#  VALIDATE: static expression checks
# ═══════════════════════════════════════════════════════
@main.command()
@click.argument("rules_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--features", "features_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Feature document; flag features then only accept Any/Exists/DoesNotExist.",
)
def validate(rules_file: Path, features_file: Path | None):
    """Check every expression in RULES_FILE without evaluating it."""
    from feature_rules.expression.errors import ExpressionError
    from feature_rules.expression.evaluator import validate_match_expression_set
    from feature_rules.rules.loader import RuleFormatError, load_features, load_rule_file

    try:
        rules = load_rule_file(rules_file)
        features = load_features(features_file) if features_file else None
    except RuleFormatError as e:
        console.print(f"[red]Invalid document:[/red] {escape(str(e))}")
        sys.exit(2)

    errors = []
    count = 0
    for rule in rules:
        for feature, key, expr in rule.expressions():
            count += 1
            # matchName tests names, so only set entries on flags are key matches
            keys_only = features is not None and feature in features.flags and key != "<matchName>"
            try:
                validate_match_expression_set({key: expr}, keys_only=keys_only)
            except ExpressionError as e:
                errors.append((rule.name, feature, key, e))

    if not errors:
        console.print(f"[bold green]OK.[/bold green] {count} expression(s) in {len(rules)} rule(s) are valid.")
        return

    table = Table(title="Invalid Expressions", show_lines=True)
    table.add_column("Rule", style="bold")
    table.add_column("Feature", style="cyan")
    table.add_column("Key")
    table.add_column("Error", style="red")
    table.add_column("Kind", style="dim", no_wrap=True)
    for rule_name, feature, key, e in errors:
        table.add_row(rule_name, feature, escape(key), escape(str(e)), type(e).__name__)

    console.print(table)
    console.print(f"\n[red]{len(errors)}[/red] of {count} expression(s) invalid.")
    sys.exit(1)


# ═══════════════════════════════════════════════════════
#  OPS: operator catalog
# ═══════════════════════════════════════════════════════
@main.command()
def ops():
    """List the supported operators and their operand requirements."""
    from feature_rules.expression.types import KEY_OPS, OP_ARITY, MatchOp

    arity_text = {-1: "1 or more", 0: "none", 1: "exactly 1", 2: "exactly 2"}

    table = Table(title="Operators")
    table.add_column("Op", style="bold")
    table.add_column("Operands", justify="center")
    table.add_column("Key match", justify="center")

    for op in MatchOp:
        table.add_row(op.value, arity_text[OP_ARITY[op]], "✓" if op in KEY_OPS else "")

    console.print(table)


if __name__ == "__main__":
    main()
