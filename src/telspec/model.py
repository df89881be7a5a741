"""
Observation Topology Objects

Defines the read-only structure that every locator is resolved against.

These are pure data classes representing:
    - Stations (named antennas)
    - Baselines (unordered station pairs)
    - Sub-arrays (stations plus the baselines correlated between them)
    - Observations (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about plotting or visibility storage
        - Are not modified by the search or selection layers
        - Are fully serializable
        - Represent topology, not data
"""

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Optional, Tuple

from .errors import (
    BaselineOutOfRange,
    StationOutOfRange,
    SubarrayOutOfRange,
    TopologyError,
)


@dataclass
class Station:
    """
    A single antenna of a sub-array.

    Properties:
        name: Display name, matched case-insensitively by the text codec
              (e.g. "BR", "FD", "MK")
    """

    name: str


@dataclass
class Baseline:
    """
    A correlated pair of stations.

    The order of (station_a, station_b) is the baseline's natural
    direction. It decides the sign of a closure-triangle leg but has
    no effect on lookup: find_baseline(a, b) == find_baseline(b, a).

    Properties:
        station_a: Index of the first station in the sub-array
        station_b: Index of the second station in the sub-array
    """

    station_a: int
    station_b: int


@dataclass
class Subarray:
    """
    A group of stations observed together, and the baselines between them.

    Not every station pair need be a baseline. Searches only ever report
    pairs that appear in `baselines`.

    INVARIANTS:
        - Baseline station indices are < len(stations)
        - No baseline joins a station to itself
        - No station pair appears twice
    """

    stations: List[Station] = field(default_factory=list)
    baselines: List[Baseline] = field(default_factory=list)

    def __post_init__(self):
        self._lookup: Dict[Tuple[int, int], int] = {}
        nstat = len(self.stations)
        for index, base in enumerate(self.baselines):
            a, b = base.station_a, base.station_b
            if not (0 <= a < nstat and 0 <= b < nstat):
                raise TopologyError(
                    f"Baseline {index} cites station outside 0-{nstat - 1}: ({a}, {b})"
                )
            if a == b:
                raise TopologyError(f"Baseline {index} joins station {a} to itself")
            key = (min(a, b), max(a, b))
            if key in self._lookup:
                raise TopologyError(
                    f"Baselines {self._lookup[key]} and {index} join the same stations"
                )
            self._lookup[key] = index

    @classmethod
    def fully_connected(cls, names: List[str]) -> "Subarray":
        """
        Build a sub-array with a baseline between every pair of stations.

        Baselines are ordered (0,1), (0,2), ..., (1,2), ... as an
        interferometer correlator conventionally numbers them.
        """
        stations = [Station(name=n) for n in names]
        baselines = [Baseline(a, b) for a, b in combinations(range(len(names)), 2)]
        return cls(stations=stations, baselines=baselines)

    @property
    def station_count(self) -> int:
        return len(self.stations)

    @property
    def baseline_count(self) -> int:
        return len(self.baselines)

    def find_baseline(self, station_a: int, station_b: int) -> Optional[int]:
        """
        Locate the baseline joining two stations.

        Args:
            station_a: Either station of the pair
            station_b: The other station

        Returns:
            Baseline index, or None if the stations are equal or uncorrelated
        """
        if station_a == station_b:
            return None
        return self._lookup.get((min(station_a, station_b), max(station_a, station_b)))


@dataclass
class Observation:
    """
    Root container for the topology of an observation.

    This is the topology provider consumed by every search, codec and
    selection function. Sub-arrays, stations and baselines are addressed
    by 0-relative index; sub-arrays are shown to users 1-relative.

    Properties:
        name:
            Observation identifier (source or project name)

        subarrays:
            Ordered sub-arrays

        metadata:
            Arbitrary key-value pairs (use sparingly)
    """

    name: str = ""
    subarrays: List[Subarray] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    def subarray_count(self) -> int:
        return len(self.subarrays)

    def get_subarray(self, isub: int) -> Subarray:
        """
        Retrieve a sub-array by index.

        Raises:
            SubarrayOutOfRange: If isub is not a valid index
        """
        if isub < 0 or isub >= len(self.subarrays):
            raise SubarrayOutOfRange(isub, len(self.subarrays))
        return self.subarrays[isub]

    def station_count(self, isub: int) -> int:
        return self.get_subarray(isub).station_count

    def station_name(self, isub: int, station: int) -> str:
        sub = self.get_subarray(isub)
        if station < 0 or station >= sub.station_count:
            raise StationOutOfRange(isub, station, sub.station_count)
        return sub.stations[station].name

    def baseline_count(self, isub: int) -> int:
        return self.get_subarray(isub).baseline_count

    def baseline_stations(self, isub: int, base: int) -> Tuple[int, int]:
        sub = self.get_subarray(isub)
        if base < 0 or base >= sub.baseline_count:
            raise BaselineOutOfRange(isub, base, sub.baseline_count)
        b = sub.baselines[base]
        return b.station_a, b.station_b

    def find_baseline(self, isub: int, station_a: int, station_b: int) -> Optional[int]:
        return self.get_subarray(isub).find_baseline(station_a, station_b)

    def total_baselines(self) -> int:
        return sum(sub.baseline_count for sub in self.subarrays)
