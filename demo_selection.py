"""
Demo: Decode a few specifications against the example observation,
walk their matches, and analyze a baseline selection.
"""

from telspec.codec import format_locator, parse_locator
from telspec.examples import build_example_observation
from telspec.locators import LocatorKind
from telspec.log import configure_logging
from telspec.materialize import materialize
from telspec.report import analyze_selection
from telspec.search import iter_matches
from telspec.selection import parse_rule_list


def print_report(report):
    """Pretty-print a SelectionReport."""
    print()
    print("=" * 70)
    print(f"SELECTION REPORT: {report.text}")
    print("=" * 70)
    print(f"  Rules:                 {report.total_rules}")
    print(f"  Baselines:             {report.total_baselines}")
    print(f"  Selected:              {report.total_selected} "
          f"({report.selected_fraction * 100:.1f}%)")
    for isub, total in report.baselines_per_subarray.items():
        print(f"    sub-array {isub + 1}: {report.selected_per_subarray[isub]}/{total}")
    if report.warnings:
        print("  Warnings:")
        for w in report.warnings:
            print(f"    - {w}")
    print()


def main():
    configure_logging()
    ob = build_example_observation()

    print("Closure triangles of telescope EF in sub-array 2:")
    spec = parse_locator(ob, LocatorKind.TRIANGLE, "2:ef")
    for match in iter_matches(ob, spec):
        legs = ", ".join(f"{'+' if leg.sign > 0 else '-'}{leg.baseline}" for leg in match.legs)
        print(f"  {format_locator(ob, match)}  legs: {legs}")

    text = "1:br + 2:* ! 1:br-fd"
    rules = parse_rule_list(ob, text)
    selection = materialize(rules)
    print()
    print(f"Selection '{rules.to_text()}':")
    for isub in range(selection.subarray_count):
        print(f"  sub-array {isub + 1}: {selection.for_subarray(isub).tolist()}")

    print_report(analyze_selection(parse_rule_list(ob, "1:br ! 1:* + 2:ef-jb")))


if __name__ == "__main__":
    main()
