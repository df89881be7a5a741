"""
Selection Analyzer - diagnostics for baseline rule lists.

This module provides lightweight analysis of RuleList objects:
    - Per-sub-array baseline inventory
    - Selected baseline counts
    - Rules that never decide any baseline
    - Warning flags for selections that are probably mistakes

IMPORTANT: This does NOT modify the rule list or its observation.
It only produces read-only reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .codec import format_locator
from .selection import RuleList


@dataclass
class SelectionReport:
    """Analysis report for one rule list."""

    text: str
    total_rules: int = 0
    total_baselines: int = 0
    total_selected: int = 0

    # Keyed by 0-relative sub-array index
    baselines_per_subarray: Dict[int, int] = field(default_factory=dict)
    selected_per_subarray: Dict[int, int] = field(default_factory=dict)

    # How many baselines each rule decides (last-match-wins)
    decided_by_rule: List[int] = field(default_factory=list)
    inert_rules: List[int] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    @property
    def selected_fraction(self) -> float:
        if self.total_baselines == 0:
            return 0.0
        return self.total_selected / self.total_baselines

    def add_warning(self, msg: str) -> None:
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_selection(rules: RuleList) -> SelectionReport:
    """
    Perform analysis of a rule list against its observation.

    Checks for:
    - Selected and total baselines per sub-array
    - Rules whose every cited baseline is overridden by a later rule
    - Selections that select nothing or everything

    Returns a SelectionReport with counts and warnings.
    """
    ob = rules.observation
    rule_items = list(rules)
    report = SelectionReport(text=rules.to_text(), total_rules=len(rule_items))
    report.decided_by_rule = [0] * len(rule_items)

    for isub, sub in enumerate(ob.subarrays):
        selected = 0
        for base in sub.baselines:
            decider = None
            for index, rule in enumerate(rule_items):
                if rule.cites(isub, base.station_a, base.station_b):
                    decider = index
            if decider is None:
                continue
            report.decided_by_rule[decider] += 1
            if rule_items[decider].include:
                selected += 1
        report.baselines_per_subarray[isub] = sub.baseline_count
        report.selected_per_subarray[isub] = selected

    report.total_baselines = sum(report.baselines_per_subarray.values())
    report.total_selected = sum(report.selected_per_subarray.values())
    report.inert_rules = [i for i, n in enumerate(report.decided_by_rule) if n == 0]

    # Warning flags
    if report.total_selected == 0:
        report.add_warning("Selection selects no baselines")
    for index in report.inert_rules:
        rule = rule_items[index]
        sign = "+" if rule.include else "!"
        report.add_warning(
            f"Rule {index + 1} ({sign}{format_locator(ob, rule.spec)}) has no effect"
        )
    for isub, count in report.selected_per_subarray.items():
        if count == 0 and report.total_selected > 0:
            report.add_warning(f"No baselines selected in sub-array {isub + 1}")

    return report


__all__ = ["SelectionReport", "analyze_selection"]
