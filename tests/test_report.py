"""
Test selection diagnostics.

Validates counts, inert-rule detection and warning flags.
"""

from telspec.examples import build_example_observation
from telspec.report import analyze_selection
from telspec.selection import parse_rule_list


def test_counts_per_subarray():
    ob = build_example_observation()
    report = analyze_selection(parse_rule_list(ob, "1:br + 2:*"))

    assert report.text == "1:BR + 2:"
    assert report.total_rules == 2
    assert report.total_baselines == 50
    assert report.total_selected == 14
    assert report.baselines_per_subarray == {0: 45, 1: 5}
    assert report.selected_per_subarray == {0: 9, 1: 5}
    assert report.selected_fraction == 14 / 50
    assert report.warnings == []


def test_overridden_rule_is_inert():
    ob = build_example_observation()
    report = analyze_selection(parse_rule_list(ob, "1:br ! 1:* + 2:ef-jb"))

    assert report.decided_by_rule == [0, 45, 1]
    assert report.inert_rules == [0]
    assert "Rule 1 (+1:BR) has no effect" in report.warnings
    assert "No baselines selected in sub-array 1" in report.warnings


def test_selection_of_nothing():
    ob = build_example_observation()
    report = analyze_selection(parse_rule_list(ob, "!*"))

    assert report.total_selected == 0
    assert report.inert_rules == [0]
    assert "Selection selects no baselines" in report.warnings
