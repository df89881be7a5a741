"""
Tests for the locator iterator.

These tests verify:
    - Enumeration order of baselines and triangles
    - FIND_FIRST / FIND_NEXT / SKIP_ operations and their limits
    - Fixed fields, nref/fixref and allref ordering relaxation
    - Rejection of malformed locators
"""

import logging

import pytest

from telspec.errors import (
    SearchStatus,
    StationOutOfRange,
    SubarrayOutOfRange,
    UnsupportedOperation,
)
from telspec.examples import build_example_observation
from telspec.locators import (
    BaselineSpec,
    FindOp,
    StationSpec,
    SubarraySpec,
    TriangleLeg,
    TriangleSpec,
)
from telspec.search import (
    find_baseline_spec,
    find_triangle,
    iter_matches,
    iterate,
    next_baseline,
    next_station,
    next_subarray,
    next_triangle,
)


@pytest.fixture
def observation():
    return build_example_observation()


class TestSubarraySearch:

    def test_iterates_every_subarray(self, observation):
        found = [s.subarray for s in iter_matches(observation, SubarraySpec())]
        assert found == [0, 1]

    def test_fixed_subarray_has_no_next(self, observation):
        spec = SubarraySpec(fixed_count=1, subarray=0)
        assert next_subarray(observation, FindOp.FIND_FIRST, spec) is SearchStatus.FOUND
        assert next_subarray(observation, FindOp.FIND_NEXT, spec) is SearchStatus.LIMIT_HIT
        assert spec.subarray == 0

    def test_skip_sub_releases_fixed_subarray(self, observation):
        spec = SubarraySpec(fixed_count=1, subarray=0)
        assert next_subarray(observation, FindOp.SKIP_SUB, spec) is SearchStatus.FOUND
        assert spec.subarray == 1
        assert spec.fixed_count == 0

    def test_unsupported_operation(self, observation):
        with pytest.raises(UnsupportedOperation):
            next_subarray(observation, FindOp.SKIP_TA, SubarraySpec())


class TestStationSearch:

    def test_iterates_every_station(self, observation):
        found = list(iter_matches(observation, StationSpec()))
        assert len(found) == 14
        assert (found[10].subarray, found[10].station_a) == (1, 0)

    def test_stations_of_one_subarray(self, observation):
        found = list(iter_matches(observation, StationSpec(fixed_count=1, subarray=1)))
        assert [s.station_a for s in found] == [0, 1, 2, 3]

    def test_backward_from_end(self, observation):
        spec = StationSpec(subarray=1)
        assert next_station(observation, FindOp.FIND_FIRST, spec, forward=False) \
            is SearchStatus.FOUND
        assert (spec.subarray, spec.station_a) == (1, 3)

    def test_skip_ta_clears_station_fixedness(self, observation):
        spec = StationSpec(fixed_count=2, subarray=0, station_a=4)
        assert next_station(observation, FindOp.SKIP_TA, spec) is SearchStatus.FOUND
        assert spec.station_a == 5
        assert spec.fixed_count == 1


class TestBaselineSearch:

    def test_ascending_order(self, observation):
        """Every baseline is visited once, in ascending (sub-array, baseline) order."""
        found = [(b.subarray, b.baseline) for b in iter_matches(observation, BaselineSpec())]
        assert len(found) == 50
        assert found == sorted(found)
        assert len(set(found)) == 50

    def test_backward_is_reverse_of_forward(self, observation):
        start = BaselineSpec(subarray=1)
        backward = [(b.subarray, b.baseline)
                    for b in iter_matches(observation, start, forward=False)]
        forward = [(b.subarray, b.baseline) for b in iter_matches(observation, BaselineSpec())]
        assert backward == list(reversed(forward))

    def test_skips_uncorrelated_pair(self, observation):
        found = [(b.station_a, b.station_b)
                 for b in iter_matches(observation, BaselineSpec(fixed_count=1, subarray=1))]
        assert found == [(0, 1), (0, 2), (0, 3), (1, 2), (2, 3)]

    def test_find_first_is_idempotent(self, observation):
        spec = BaselineSpec(fixed_count=2, subarray=0, station_a=3)
        assert next_baseline(observation, FindOp.FIND_FIRST, spec) is SearchStatus.FOUND
        first = spec.copy()
        assert next_baseline(observation, FindOp.FIND_FIRST, spec) is SearchStatus.FOUND
        assert spec == first

    def test_fully_fixed_pair(self, observation):
        """"BR-FD" matches exactly one baseline."""
        spec = BaselineSpec(fixed_count=3, subarray=0, station_a=0, station_b=1)
        assert next_baseline(observation, FindOp.FIND_FIRST, spec) is SearchStatus.FOUND
        assert spec.baseline == 0
        before = spec.copy()
        assert next_baseline(observation, FindOp.FIND_NEXT, spec) is SearchStatus.LIMIT_HIT
        assert spec == before

    @pytest.mark.parametrize("forward", [True, False])
    def test_fully_fixed_pair_in_reverse_order(self, observation, forward):
        spec = BaselineSpec(fixed_count=3, subarray=0, station_a=1, station_b=0)
        assert next_baseline(observation, FindOp.FIND_FIRST, spec, forward=forward) \
            is SearchStatus.FOUND
        assert spec.baseline == 0
        assert (spec.station_a, spec.station_b) == (1, 0)

    def test_fixed_station_keeps_ordering(self, observation):
        """Without allref, station_b stays above station_a."""
        spec = BaselineSpec(fixed_count=2, subarray=0, station_a=2)
        found = [b.station_b for b in iter_matches(observation, spec)]
        assert found == [3, 4, 5, 6, 7, 8, 9]

    def test_allref_relaxes_second_station(self, observation):
        spec = BaselineSpec(fixed_count=2, subarray=0, station_a=2)
        found = [b.station_b for b in iter_matches(observation, spec, nref=2, allref=True)]
        assert found == [0, 1, 3, 4, 5, 6, 7, 8, 9]

    def test_fixref_holds_reference_station(self, observation):
        """With fixref, nref fields stay fixed although fixed_count is lower."""
        spec = BaselineSpec(fixed_count=0, subarray=0, station_a=0, station_b=9)
        status = next_baseline(observation, FindOp.FIND_NEXT, spec, nref=2, fixref=True)
        assert status is SearchStatus.LIMIT_HIT
        status = next_baseline(observation, FindOp.FIND_NEXT, spec, nref=2)
        assert status is SearchStatus.FOUND
        assert (spec.station_a, spec.station_b) == (1, 2)
        assert spec.fixed_count == 0

    def test_skip_ta(self, observation):
        spec = BaselineSpec(subarray=0, station_a=0, station_b=1)
        assert next_baseline(observation, FindOp.SKIP_TA, spec) is SearchStatus.FOUND
        assert (spec.station_a, spec.station_b, spec.baseline) == (1, 2, 9)

    def test_skip_sub_moves_to_next_subarray(self, observation):
        spec = BaselineSpec(fixed_count=3, subarray=0, station_a=0, station_b=1)
        assert next_baseline(observation, FindOp.SKIP_SUB, spec) is SearchStatus.FOUND
        assert (spec.subarray, spec.station_a, spec.station_b) == (1, 0, 1)
        assert spec.fixed_count == 0

    def test_skip_sub_past_last_subarray(self, observation):
        spec = BaselineSpec(subarray=1, station_a=0, station_b=1, baseline=0)
        before = spec.copy()
        assert next_baseline(observation, FindOp.SKIP_SUB, spec) is SearchStatus.LIMIT_HIT
        assert spec == before

    def test_uncorrelated_fixed_pair(self, observation, caplog):
        spec = BaselineSpec(fixed_count=3, subarray=1, station_a=1, station_b=3)
        with caplog.at_level(logging.WARNING, logger="telspec.search"):
            status = next_baseline(observation, FindOp.FIND_FIRST, spec, report=True)
        assert status is SearchStatus.LIMIT_HIT
        assert "No baselines match 2:JB WB" in caplog.text

    def test_rejects_bad_subarray(self, observation):
        with pytest.raises(SubarrayOutOfRange):
            next_baseline(observation, FindOp.FIND_FIRST, BaselineSpec(subarray=5))

    def test_rejects_bad_fixed_station(self, observation):
        spec = BaselineSpec(fixed_count=2, subarray=1, station_a=7)
        with pytest.raises(StationOutOfRange):
            next_baseline(observation, FindOp.FIND_FIRST, spec)

    def test_rejects_skip_tc(self, observation):
        with pytest.raises(UnsupportedOperation):
            iterate(observation, FindOp.SKIP_TC, BaselineSpec())

    def test_find_baseline_spec(self, observation):
        spec = find_baseline_spec(observation, 2, 1, station_a=3, nref=2, allref=True)
        assert (spec.station_a, spec.station_b, spec.baseline) == (3, 0, 2)
        assert find_baseline_spec(observation, 3, 1, station_a=1, station_b=3) is None


class TestTriangleSearch:

    def test_counts(self, observation):
        assert len(list(iter_matches(observation, TriangleSpec(fixed_count=1, subarray=0)))) \
            == 120
        found = [(t.station_a, t.station_b, t.station_c)
                 for t in iter_matches(observation, TriangleSpec(fixed_count=1, subarray=1))]
        assert found == [(0, 1, 2), (0, 2, 3)]

    def test_backward(self, observation):
        found = [(t.station_a, t.station_b, t.station_c)
                 for t in iter_matches(observation, TriangleSpec(fixed_count=1, subarray=1),
                                       forward=False)]
        assert found == [(0, 2, 3), (0, 1, 2)]

    def test_leg_signs(self, observation):
        """WB-ON is stored as (WB, ON), so leg ON-WB is negative."""
        spec = find_triangle(observation, 4, 1, station_a=0, station_b=2, station_c=3)
        assert spec.legs == (
            TriangleLeg(baseline=1, sign=1),
            TriangleLeg(baseline=4, sign=-1),
            TriangleLeg(baseline=2, sign=-1),
        )

    def test_first_triangle_legs(self, observation):
        spec = find_triangle(observation, 1, 1)
        assert (spec.station_a, spec.station_b, spec.station_c) == (0, 1, 2)
        assert [(leg.baseline, leg.sign) for leg in spec.legs] == [(0, 1), (3, 1), (1, -1)]

    def test_incomplete_triangle_is_not_found(self, observation):
        assert find_triangle(observation, 4, 1, station_a=0, station_b=1, station_c=3) is None

    def test_skip_tb(self, observation):
        spec = TriangleSpec(subarray=0, station_a=0, station_b=1, station_c=2)
        assert next_triangle(observation, FindOp.SKIP_TB, spec) is SearchStatus.FOUND
        assert (spec.station_a, spec.station_b, spec.station_c) == (0, 2, 3)

    def test_allref_relaxes_third_station(self, observation):
        spec = TriangleSpec(fixed_count=3, subarray=1, station_a=0, station_b=2)
        found = [t.station_c for t in iter_matches(observation, spec, nref=3, allref=True)]
        assert found == [1, 3]
