"""
Match Reporting
================
Ordering and formatting of matched elements.

Matched elements are always sorted by name so that repeated evaluations
of the same rule and data produce identical output.
"""

from __future__ import annotations

from typing import Iterable

from feature_rules.expression.types import MatchedElement


def sort_by_name(elements: list[MatchedElement]) -> list[MatchedElement]:
    """Sort matched elements in place, lexicographically by "Name"."""
    elements.sort(key=lambda e: e["Name"])
    return elements


def matched_names(elements: Iterable[MatchedElement]) -> list[str]:
    return [e["Name"] for e in elements]


def describe(elements: Iterable[MatchedElement]) -> str:
    """
    Human-readable one-line summary, e.g. "cpu.cores=8, vendor=8086".

    Instance records carry no "Name" and are shown whole, in input
    order: "{class=0200, vendor=8086}".
    """
    parts = []
    for e in elements:
        if "Name" not in e:
            parts.append("{" + ", ".join(f"{k}={v}" for k, v in e.items()) + "}")
        elif "Value" in e:
            parts.append(f"{e['Name']}={e['Value']}")
        else:
            parts.append(e["Name"])
    return ", ".join(parts)
