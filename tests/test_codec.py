"""
Tests for the locator text codec.

Covers the user-facing grammar ("1:br-fd", "*", "2:ef"), name matching,
error reporting and the canonical encoder.
"""

import pytest

from telspec.codec import escape_name, format_locator, parse_locator, scan_locator
from telspec.errors import (
    AmbiguousName,
    EncodeBufferTooShort,
    SubarrayOutOfRange,
    TrailingInput,
    UnknownName,
)
from telspec.examples import build_example_observation
from telspec.locators import BaselineSpec, LocatorKind, StationSpec, TriangleSpec
from telspec.model import Observation, Subarray
from telspec.search import iter_matches


@pytest.fixture
def observation():
    return build_example_observation()


class TestParseLocator:

    def test_full_baseline(self, observation):
        spec = parse_locator(observation, LocatorKind.BASELINE, "1:br-fd")
        assert spec == BaselineSpec(fixed_count=3, subarray=0, station_a=0, station_b=1,
                                    baseline=0)

    def test_reversed_pair_keeps_order(self, observation):
        spec = parse_locator(observation, LocatorKind.BASELINE, "1:FD BR")
        assert (spec.station_a, spec.station_b) == (1, 0)
        assert spec.baseline == 0

    @pytest.mark.parametrize("kind", list(LocatorKind))
    def test_star_frees_everything(self, observation, kind):
        spec = parse_locator(observation, kind, "*")
        assert spec.fixed_count == 0

    def test_star_after_subarray(self, observation):
        spec = parse_locator(observation, LocatorKind.BASELINE, "2:*")
        assert spec.fixed_count == 1
        assert spec.subarray == 1

    def test_subarray_only(self, observation):
        spec = parse_locator(observation, LocatorKind.BASELINE, "2")
        assert (spec.fixed_count, spec.subarray) == (1, 1)

    def test_default_subarray(self, observation):
        spec = parse_locator(observation, LocatorKind.STATION, "jb", default_subarray=1)
        assert spec == StationSpec(fixed_count=2, subarray=1, station_a=1)

    def test_colon_uses_default_subarray(self, observation):
        spec = parse_locator(observation, LocatorKind.BASELINE, ":", default_subarray=1)
        assert (spec.fixed_count, spec.subarray) == (1, 1)

    def test_empty_text(self, observation):
        spec = parse_locator(observation, LocatorKind.TRIANGLE, "   ")
        assert spec.fixed_count == 0

    def test_triangle_resolves_legs(self, observation):
        spec = parse_locator(observation, LocatorKind.TRIANGLE, "2:ef on wb")
        assert spec.fixed_count == 4
        assert [leg.baseline for leg in spec.legs] == [1, 4, 2]

    def test_partial_triangle(self, observation):
        spec = parse_locator(observation, LocatorKind.TRIANGLE, "2:ef")
        assert spec == TriangleSpec(fixed_count=2, subarray=1, station_a=0)

    def test_unknown_name(self, observation):
        with pytest.raises(UnknownName) as exc_info:
            parse_locator(observation, LocatorKind.STATION, "1:xx")
        assert exc_info.value.name == "xx"

    def test_ambiguous_name(self):
        ob = Observation(subarrays=[Subarray.fully_connected(["ONSALA60", "ONSALA85", "ON"])])
        with pytest.raises(AmbiguousName) as exc_info:
            parse_locator(ob, LocatorKind.STATION, "onsala")
        assert exc_info.value.candidates == ["ONSALA60", "ONSALA85"]

    def test_exact_name_wins(self):
        ob = Observation(subarrays=[Subarray.fully_connected(["ONSALA60", "ON"])])
        spec = parse_locator(ob, LocatorKind.STATION, "on")
        assert spec.station_a == 1

    def test_trailing_input(self, observation):
        with pytest.raises(TrailingInput) as exc_info:
            parse_locator(observation, LocatorKind.BASELINE, "1:br-fd-hn")
        assert exc_info.value.remainder == "hn"

    def test_non_ascii_digit_is_a_name(self, observation):
        """Only 0-9 introduce a sub-array number; "²" is read as a station name."""
        with pytest.raises(UnknownName) as exc_info:
            parse_locator(observation, LocatorKind.BASELINE, "²:AA")
        assert exc_info.value.name == "²:AA"

    def test_subarray_out_of_range(self, observation):
        with pytest.raises(SubarrayOutOfRange):
            parse_locator(observation, LocatorKind.BASELINE, "3:br")
        with pytest.raises(SubarrayOutOfRange):
            parse_locator(observation, LocatorKind.BASELINE, "br", default_subarray=4)


class TestScanLocator:

    def test_stops_before_list_separator(self, observation):
        spec, end = scan_locator(observation, LocatorKind.BASELINE, "1:br + 2:ef")
        assert end == 4
        assert spec.fixed_count == 2

    def test_starts_at_position(self, observation):
        text = "1:br ! 2:ef-jb"
        spec, end = scan_locator(observation, LocatorKind.BASELINE, text, pos=6)
        assert (spec.subarray, spec.station_a, spec.station_b) == (1, 0, 1)
        assert end == len(text)


class TestFormatLocator:

    def test_free_locator(self, observation):
        assert format_locator(observation, BaselineSpec()) == "*"

    def test_baseline(self, observation):
        spec = BaselineSpec(fixed_count=3, subarray=1, station_a=3, station_b=2)
        assert format_locator(observation, spec) == "2:WB-ON"

    def test_subarray_only(self, observation):
        assert format_locator(observation, BaselineSpec(fixed_count=1, subarray=1)) == "2:"

    def test_fixref_writes_reference_fields(self, observation):
        spec = BaselineSpec(fixed_count=1, subarray=0, station_a=0, station_b=1)
        assert format_locator(observation, spec, nref=3, fixref=True) == "1:BR-FD"
        assert format_locator(observation, spec, nref=3) == "1:"

    def test_max_chars(self, observation):
        spec = BaselineSpec(fixed_count=3, subarray=0, station_a=0, station_b=1)
        with pytest.raises(EncodeBufferTooShort) as exc_info:
            format_locator(observation, spec, max_chars=5)
        assert exc_info.value.needed == 7
        assert format_locator(observation, spec, max_chars=7) == "1:BR-FD"

    def test_every_baseline_reads_back(self, observation):
        for match in iter_matches(observation, BaselineSpec()):
            spec = match.with_fixed(3)
            text = format_locator(observation, spec)
            assert parse_locator(observation, LocatorKind.BASELINE, text) == spec

    def test_awkward_names_read_back(self):
        ob = Observation(subarrays=[Subarray.fully_connected(["A-B", "C D", "*", "X!"])])
        for match in iter_matches(ob, TriangleSpec(fixed_count=1)):
            spec = match.with_fixed(4)
            text = format_locator(ob, spec)
            assert parse_locator(ob, LocatorKind.TRIANGLE, text) == spec


class TestEscapeName:

    def test_escapes(self):
        assert escape_name("A-B") == "A\\-B"
        assert escape_name("C D") == "C\\ D"
        assert escape_name("*") == "\\*"
        assert escape_name("BR") == "BR"
