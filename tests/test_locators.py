"""
Tests for locator value types.
"""

import pytest

from telspec.errors import InvalidFixedCount
from telspec.locators import (
    BaselineSpec,
    LocatorKind,
    StationSpec,
    SubarraySpec,
    TriangleSpec,
    default_locator,
)


class TestLocatorKind:

    def test_max_fixed(self):
        assert LocatorKind.SUBARRAY.max_fixed == 1
        assert LocatorKind.STATION.max_fixed == 2
        assert LocatorKind.BASELINE.max_fixed == 3
        assert LocatorKind.TRIANGLE.max_fixed == 4

    def test_labels(self):
        assert LocatorKind.STATION.label == "telescope"
        assert LocatorKind.TRIANGLE.label == "closure triangle"


class TestLocator:

    @pytest.mark.parametrize("kind, cls", [
        (LocatorKind.SUBARRAY, SubarraySpec),
        (LocatorKind.STATION, StationSpec),
        (LocatorKind.BASELINE, BaselineSpec),
        (LocatorKind.TRIANGLE, TriangleSpec),
    ])
    def test_default_locator(self, kind, cls):
        """Should create a free locator of the right class."""
        loc = default_locator(kind, subarray=1)
        assert isinstance(loc, cls)
        assert loc.fixed_count == 0
        assert loc.subarray == 1

    def test_rejects_fixed_count_above_kind(self):
        with pytest.raises(InvalidFixedCount) as exc_info:
            BaselineSpec(fixed_count=4)
        assert exc_info.value.maximum == 3

    def test_rejects_negative_fixed_count(self):
        with pytest.raises(InvalidFixedCount):
            StationSpec(fixed_count=-1)

    def test_fixed_stations(self):
        spec = TriangleSpec(fixed_count=3, station_a=4, station_b=2, station_c=7)
        assert spec.stations == (4, 2, 7)
        assert spec.fixed_stations == (4, 2)

    def test_copy_is_independent(self):
        spec = BaselineSpec(fixed_count=3, station_a=1, station_b=2)
        other = spec.copy()
        other.station_a = 5
        assert spec.station_a == 1
        assert other == BaselineSpec(fixed_count=3, station_a=5, station_b=2)

    def test_with_fixed(self):
        spec = BaselineSpec(fixed_count=0, station_a=1, station_b=2)
        assert spec.with_fixed(3).fixed_count == 3
        assert spec.fixed_count == 0
        with pytest.raises(InvalidFixedCount):
            spec.with_fixed(5)
