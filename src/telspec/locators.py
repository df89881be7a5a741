"""
Locator Types

A locator names a sub-array, a station, a baseline or a closure triangle
inside an observation, possibly only partially.

Every locator is an index tuple [subarray, station_a, station_b, station_c]
truncated to its kind, plus `fixed_count`: the number of leading fields
that were explicitly given. The remaining fields are free, and the
iterator in `telspec.search` is allowed to move them.

Examples (sub-array 1 holding stations BR, FD, HN):
    "*"          -> BaselineSpec(fixed_count=0)          any baseline
    "1:"         -> BaselineSpec(fixed_count=1)          any baseline of sub-array 1
    "1:BR"       -> BaselineSpec(fixed_count=2, a=BR)    any baseline of BR
    "1:BR-FD"    -> BaselineSpec(fixed_count=3, a=BR, b=FD)

ARCHITECTURAL RULE:
    Locators are small values, created fresh per query and copied freely.
    They are only checked against a real observation by the iterator.
"""

import copy
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import ClassVar, Optional, Tuple

from .errors import InvalidFixedCount


class LocatorKind(Enum):
    """
    The four locator shapes.

    The value of each member is the maximum fixed count of that kind:
    the sub-array plus the number of station fields.
    """

    SUBARRAY = 1
    STATION = 2
    BASELINE = 3
    TRIANGLE = 4

    @property
    def max_fixed(self) -> int:
        return self.value

    @property
    def station_fields(self) -> int:
        return self.value - 1

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]


_KIND_LABELS = {
    LocatorKind.SUBARRAY: "sub-array",
    LocatorKind.STATION: "telescope",
    LocatorKind.BASELINE: "baseline",
    LocatorKind.TRIANGLE: "closure triangle",
}


class FindOp(Enum):
    """
    Iterator operations.

    FIND_FIRST: re-derive all free fields from the edge of their range
    FIND_NEXT:  advance to the next match, excluding the current one
    SKIP_SUB:   move to the next/previous sub-array
    SKIP_TA:    move to the next/previous first station
    SKIP_TB:    move to the next/previous second station
    SKIP_TC:    move to the next/previous third station

    A SKIP_ operation clears the fixedness of the skipped field and of
    every field after it.
    """

    FIND_FIRST = "first"
    FIND_NEXT = "next"
    SKIP_SUB = "skip_sub"
    SKIP_TA = "skip_ta"
    SKIP_TB = "skip_tb"
    SKIP_TC = "skip_tc"


def check_fixed_count(fixed_count: int, kind: LocatorKind) -> None:
    if fixed_count < 0 or fixed_count > kind.max_fixed:
        raise InvalidFixedCount(fixed_count, kind.max_fixed)


@dataclass
class Locator:
    """
    Common shape of all locators.

    Properties:
        fixed_count:
            How many leading fields (sub-array first) were given
            explicitly rather than defaulted

        subarray:
            0-relative sub-array index. When it isn't fixed it is the
            sub-array that searches start from.
    """

    kind: ClassVar[LocatorKind]
    station_names: ClassVar[Tuple[str, ...]] = ()

    fixed_count: int = 0
    subarray: int = 0

    def __post_init__(self):
        check_fixed_count(self.fixed_count, self.kind)

    @property
    def stations(self) -> Tuple[int, ...]:
        """The station indices in positional order."""
        return tuple(getattr(self, name) for name in self.station_names)

    @property
    def fixed_stations(self) -> Tuple[int, ...]:
        """The station indices covered by fixed_count."""
        return self.stations[:max(self.fixed_count - 1, 0)]

    def copy(self) -> "Locator":
        return copy.deepcopy(self)

    def with_fixed(self, fixed_count: int) -> "Locator":
        """
        Return a copy with a different fixed prefix length.

        Raises:
            InvalidFixedCount: If fixed_count is outside 0..kind.max_fixed
        """
        check_fixed_count(fixed_count, self.kind)
        other = self.copy()
        other.fixed_count = fixed_count
        return other

    def assign(self, other: "Locator") -> None:
        """Overwrite every field of this locator with those of `other`."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))


@dataclass
class SubarraySpec(Locator):
    """Names a sub-array. fixed_count is 0 or 1."""

    kind: ClassVar[LocatorKind] = LocatorKind.SUBARRAY


@dataclass
class StationSpec(Locator):
    """Names a single station of a sub-array. fixed_count is 0..2."""

    kind: ClassVar[LocatorKind] = LocatorKind.STATION
    station_names: ClassVar[Tuple[str, ...]] = ("station_a",)

    station_a: int = 0


@dataclass
class BaselineSpec(Locator):
    """
    Names a baseline by its two stations. fixed_count is 0..3.

    `baseline` is the sub-array baseline index of (station_a, station_b),
    filled in once the pair has been resolved against an observation,
    otherwise None.
    """

    kind: ClassVar[LocatorKind] = LocatorKind.BASELINE
    station_names: ClassVar[Tuple[str, ...]] = ("station_a", "station_b")

    station_a: int = 0
    station_b: int = 0
    baseline: Optional[int] = None


@dataclass(frozen=True)
class TriangleLeg:
    """
    One baseline of a closure triangle.

    Properties:
        baseline: Sub-array baseline index of the leg
        sign: +1 if the baseline's own first station is the leg's first
              station in the traversal a->b->c->a, otherwise -1
    """

    baseline: int
    sign: int = 1


@dataclass
class TriangleSpec(Locator):
    """
    Names a closure triangle by its three stations. fixed_count is 0..4.

    `legs` holds the baselines a-b, b-c and c-a once a complete triangle
    has been resolved, and is empty before that.
    """

    kind: ClassVar[LocatorKind] = LocatorKind.TRIANGLE
    station_names: ClassVar[Tuple[str, ...]] = ("station_a", "station_b", "station_c")

    station_a: int = 0
    station_b: int = 0
    station_c: int = 0
    legs: Tuple[TriangleLeg, ...] = field(default_factory=tuple)


LOCATOR_TYPES = {
    LocatorKind.SUBARRAY: SubarraySpec,
    LocatorKind.STATION: StationSpec,
    LocatorKind.BASELINE: BaselineSpec,
    LocatorKind.TRIANGLE: TriangleSpec,
}


def default_locator(kind: LocatorKind, subarray: int = 0) -> Locator:
    """
    Create a fully free locator of a given kind.

    Args:
        kind: The locator shape
        subarray: The sub-array that searches should start from

    Returns:
        A new locator with fixed_count 0
    """
    return LOCATOR_TYPES[kind](fixed_count=0, subarray=subarray)


__all__ = [
    "LocatorKind",
    "FindOp",
    "Locator",
    "SubarraySpec",
    "StationSpec",
    "BaselineSpec",
    "TriangleLeg",
    "TriangleSpec",
    "LOCATOR_TYPES",
    "default_locator",
    "check_fixed_count",
]
