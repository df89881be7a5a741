"""
Locator Iterator

Advances a locator to the next (or previous) valid sub-array, station,
baseline or closure triangle of an observation.

Search model:
    A locator is an index tuple [subarray, a, b, c]. The first
    `fixed_count` fields (or `nref` fields, with fixref) are held
    fixed. The free fields are walked like the digits of an odometer,
    innermost first, and each enclosing free field restarts its inner
    fields whenever it changes. A tuple is accepted only when every
    station pair it implies is a real baseline of its sub-array.

Ordering:
    Unless relaxed with allref, a free station index is always greater
    than the station before it, so that A-B and B-A are never reported
    as different baselines. With allref, exactly the station field
    immediately after the nref-long reference prefix may take any value:
        baselines:  nref == 2 relaxes station_b
        triangles:  nref == 2 relaxes station_b, nref == 3 relaxes station_c

Results:
    SearchStatus.FOUND      - the locator was updated in place
    SearchStatus.LIMIT_HIT  - no further match without moving a fixed
                              field; the locator is unchanged
    Malformed locators raise a SpecificationError and are unchanged.
"""

import logging
from typing import Iterator, Optional

from .errors import (
    SearchStatus,
    StationOutOfRange,
    SubarrayOutOfRange,
    UnsupportedOperation,
)
from .locators import (
    BaselineSpec,
    FindOp,
    Locator,
    LocatorKind,
    StationSpec,
    SubarraySpec,
    TriangleLeg,
    TriangleSpec,
    check_fixed_count,
)
from .model import Observation

logger = logging.getLogger(__name__)


_OPERATIONS = {
    LocatorKind.SUBARRAY: (FindOp.FIND_FIRST, FindOp.FIND_NEXT, FindOp.SKIP_SUB),
    LocatorKind.STATION: (FindOp.FIND_FIRST, FindOp.FIND_NEXT, FindOp.SKIP_SUB,
                          FindOp.SKIP_TA),
    LocatorKind.BASELINE: (FindOp.FIND_FIRST, FindOp.FIND_NEXT, FindOp.SKIP_SUB,
                           FindOp.SKIP_TA, FindOp.SKIP_TB),
    LocatorKind.TRIANGLE: (FindOp.FIND_FIRST, FindOp.FIND_NEXT, FindOp.SKIP_SUB,
                           FindOp.SKIP_TA, FindOp.SKIP_TB, FindOp.SKIP_TC),
}


def _check_request(observation: Observation, op: FindOp, locator: Locator) -> None:
    """Reject operations and locators that can't be searched."""
    kind = locator.kind
    if op not in _OPERATIONS[kind]:
        raise UnsupportedOperation(f"{op.name} does not apply to a {kind.label} specification")
    check_fixed_count(locator.fixed_count, kind)
    nsub = observation.subarray_count()
    if locator.subarray < 0 or locator.subarray >= nsub:
        raise SubarrayOutOfRange(locator.subarray, nsub)
    nstat = observation.station_count(locator.subarray)
    for station in locator.fixed_stations:
        if station < 0 or station >= nstat:
            raise StationOutOfRange(locator.subarray, station, nstat)


def _held_fixed(locator: Locator, nref: Optional[int], fixref: bool) -> int:
    """The number of leading fields that the search may not move."""
    if nref is None:
        nref = locator.fixed_count
    return nref if fixref and nref > locator.fixed_count else locator.fixed_count


def _describe(observation: Observation, locator: Locator, count: int) -> str:
    """Render the first `count` fields of a locator for a message."""
    if count < 1:
        return ""
    text = f"{locator.subarray + 1}:"
    stations = observation.subarrays[locator.subarray].stations
    names = [stations[s].name if 0 <= s < len(stations) else f"#{s}"
             for s in locator.stations[:count - 1]]
    return text + " ".join(names)


def _report_failure(observation: Observation, op: FindOp, locator: Locator,
                    forward: bool) -> None:
    plural = {
        LocatorKind.SUBARRAY: "sub-arrays",
        LocatorKind.STATION: "telescopes",
        LocatorKind.BASELINE: "baselines",
        LocatorKind.TRIANGLE: "triangles",
    }[locator.kind]
    where = "beyond" if forward else "prior to"
    kind = locator.kind
    if op is FindOp.FIND_FIRST:
        if locator.fixed_count < 1:
            logger.warning("No %s found.", plural)
        else:
            logger.warning("No %s match %s.", plural,
                           _describe(observation, locator, locator.fixed_count))
    elif op is FindOp.SKIP_SUB:
        if kind is LocatorKind.SUBARRAY:
            logger.warning("No sub-arrays found %s sub-array %d.", where, locator.subarray + 1)
        else:
            logger.warning("No %s found in sub-arrays %s sub-array %d.", plural, where,
                           locator.subarray + 1)
    elif kind is LocatorKind.SUBARRAY:
        logger.warning("All sub-arrays processed.")
    else:
        # The skipped field, or the last field for FIND_NEXT.
        depth = {
            FindOp.SKIP_TA: 2,
            FindOp.SKIP_TB: 3,
            FindOp.SKIP_TC: 4,
        }.get(op, kind.max_fixed)
        container = {2: "telescope", 3: "baseline", 4: "triangle"}[depth]
        if depth == kind.max_fixed:
            logger.warning("No %s found %s %s %s.", plural, where, container,
                           _describe(observation, locator, depth))
        else:
            logger.warning("No %s found for %ss %s %s.", plural, container, where,
                           _describe(observation, locator, depth))


def next_subarray(observation: Observation, op: FindOp, spec: SubarraySpec,
                  forward: bool = True, nref: Optional[int] = None,
                  fixref: bool = False, report: bool = False) -> SearchStatus:
    """
    Step a sub-array specification.

    The sub-array index is held fixed if spec.fixed_count > 0, except by
    SKIP_SUB, which releases it.
    """
    _check_request(observation, op, spec)
    nfixed = _held_fixed(spec, nref, fixref)
    found = spec.copy()

    if op is FindOp.SKIP_SUB:
        found.fixed_count = nfixed = 0
    if op in (FindOp.SKIP_SUB, FindOp.FIND_NEXT):
        found.subarray += 1 if forward else -1

    if not (op is FindOp.FIND_NEXT and nfixed >= 1) and \
            0 <= found.subarray < observation.subarray_count():
        spec.assign(found)
        return SearchStatus.FOUND

    if report:
        _report_failure(observation, op, spec, forward)
    return SearchStatus.LIMIT_HIT


def next_station(observation: Observation, op: FindOp, spec: StationSpec,
                 forward: bool = True, nref: Optional[int] = None,
                 fixref: bool = False, report: bool = False) -> SearchStatus:
    """
    Step a station specification.

    The first nfixed indices of [subarray, station_a] are held fixed,
    while the rest are moved until a station is found.
    """
    _check_request(observation, op, spec)
    nfixed = _held_fixed(spec, nref, fixref)
    nstat = observation.station_count(spec.subarray)
    step = 1 if forward else -1
    found = spec.copy()
    ta = spec.station_a

    if op is FindOp.FIND_FIRST:
        if nfixed <= 1:
            ta = 0 if forward else nstat - 1
    elif op is FindOp.SKIP_SUB:
        found.fixed_count = nfixed = 0
        ta = nstat if forward else -1
    elif op is FindOp.SKIP_TA:
        nfixed = min(nfixed, 1)
        found.fixed_count = min(found.fixed_count, 1)
        ta += step
    else:
        ta += step

    if not (op is FindOp.FIND_NEXT and nfixed >= 2):
        isub = spec.subarray
        while 0 <= isub < observation.subarray_count():
            n = observation.station_count(isub)
            if isub != spec.subarray:
                ta = 0 if forward else n - 1
            if 0 <= ta < n:
                found.subarray = isub
                found.station_a = ta
                spec.assign(found)
                return SearchStatus.FOUND
            if nfixed >= 1:
                break
            isub += step

    if report:
        _report_failure(observation, op, spec, forward)
    return SearchStatus.LIMIT_HIT


def next_baseline(observation: Observation, op: FindOp, spec: BaselineSpec,
                  forward: bool = True, nref: Optional[int] = None,
                  allref: bool = False, fixref: bool = False,
                  report: bool = False) -> SearchStatus:
    """
    Step a baseline specification.

    Args:
        observation: The topology to search
        op: The operation to perform
        spec: The baseline specification, updated in place on success
        forward: Search towards higher indices if True
        nref: Length of the reference prefix (defaults to spec.fixed_count)
        allref: Let station_b range over every station when nref == 2
        fixref: Hold nref fields fixed when nref > spec.fixed_count
        report: Log a message when the search hits its limit

    Returns:
        SearchStatus.FOUND or SearchStatus.LIMIT_HIT

    Raises:
        SpecificationError: If spec is malformed or op does not apply
    """
    _check_request(observation, op, spec)
    if nref is None:
        nref = spec.fixed_count
    align_b = not (nref == 2 and allref)
    nfixed = _held_fixed(spec, nref, fixref)
    nstat = observation.station_count(spec.subarray)
    found = spec.copy()
    ta, tb = spec.station_a, spec.station_b

    if op is FindOp.FIND_FIRST:
        if forward:
            if nfixed <= 1:
                ta = 0
            if nfixed <= 2:
                tb = ta + 1 if align_b else 0
        else:
            if nfixed <= 2:
                tb = nstat - 1
            if nfixed <= 1:
                ta = tb - 1 if align_b else nstat - 1
    elif op is FindOp.SKIP_SUB:
        found.fixed_count = nfixed = 0
        ta = tb = nstat if forward else -1
    elif op is FindOp.SKIP_TA:
        nfixed = min(nfixed, 1)
        found.fixed_count = min(found.fixed_count, 1)
        tb = nstat if forward else -1
    else:
        if op is FindOp.SKIP_TB:
            nfixed = min(nfixed, 2)
            found.fixed_count = min(found.fixed_count, 2)
        if forward:
            tb = (ta if align_b and tb < ta else tb) + 1
        else:
            tb -= 1

    if not (op is FindOp.FIND_NEXT and nfixed >= 3):
        isub = spec.subarray
        nsub = observation.subarray_count()
        while 0 <= isub < nsub:
            sub = observation.subarrays[isub]
            n = sub.station_count
            if forward:
                if isub != spec.subarray:
                    ta = 0
                    tb = 1 if align_b else 0
                while ta < n:
                    while tb < n:
                        base = sub.find_baseline(ta, tb)
                        if base is not None:
                            return _end_baseline(spec, found, isub, ta, tb, base)
                        if nfixed >= 3:
                            break
                        tb += 1
                    if nfixed >= 2:
                        break
                    ta += 1
                    tb = ta + 1 if align_b else 0
            else:
                if isub != spec.subarray:
                    tb = n - 1
                    ta = tb - 1 if align_b else n - 1
                lower_b = ta if align_b and nfixed < 3 else -1
                while ta >= 0:
                    while tb > lower_b:
                        base = sub.find_baseline(ta, tb)
                        if base is not None:
                            return _end_baseline(spec, found, isub, ta, tb, base)
                        if nfixed >= 3:
                            break
                        tb -= 1
                    if nfixed >= 2:
                        break
                    ta -= 1
                    tb = n - 1
                    lower_b = ta if align_b else -1
            if nfixed >= 1:
                break
            isub += 1 if forward else -1

    if report:
        _report_failure(observation, op, spec, forward)
    return SearchStatus.LIMIT_HIT


def _end_baseline(spec: BaselineSpec, found: BaselineSpec, isub: int,
                  ta: int, tb: int, base: int) -> SearchStatus:
    found.subarray = isub
    found.station_a = ta
    found.station_b = tb
    found.baseline = base
    spec.assign(found)
    return SearchStatus.FOUND


def next_triangle(observation: Observation, op: FindOp, spec: TriangleSpec,
                  forward: bool = True, nref: Optional[int] = None,
                  allref: bool = False, fixref: bool = False,
                  report: bool = False) -> SearchStatus:
    """
    Step a closure triangle specification.

    A triangle is accepted when a-b, b-c and a-c are all baselines of
    its sub-array. On success spec.legs is filled in for the legs
    a-b, b-c and c-a. See next_baseline() for the arguments.
    """
    _check_request(observation, op, spec)
    if nref is None:
        nref = spec.fixed_count
    align_b = not (nref == 2 and allref)
    align_c = not (nref == 3 and allref)
    nfixed = _held_fixed(spec, nref, fixref)
    nstat = observation.station_count(spec.subarray)
    found = spec.copy()
    ta, tb, tc = spec.station_a, spec.station_b, spec.station_c

    if op is FindOp.FIND_FIRST:
        if forward:
            if nfixed <= 1:
                ta = 0
            if nfixed <= 2:
                tb = ta + 1 if align_b else 0
            if nfixed <= 3:
                tc = tb + 1 if align_c else 0
        else:
            if nfixed <= 3:
                tc = nstat - 1
            if nfixed <= 2:
                tb = tc - 1 if align_c else nstat - 1
            if nfixed <= 1:
                ta = tb - 1 if align_b else nstat - 1
    elif op is FindOp.SKIP_SUB:
        found.fixed_count = nfixed = 0
        ta = tb = tc = nstat if forward else -1
    elif op is FindOp.SKIP_TA:
        nfixed = min(nfixed, 1)
        found.fixed_count = min(found.fixed_count, 1)
        tb = tc = nstat if forward else -1
    elif op is FindOp.SKIP_TB:
        nfixed = min(nfixed, 2)
        found.fixed_count = min(found.fixed_count, 2)
        tc = nstat if forward else -1
    else:
        if op is FindOp.SKIP_TC:
            nfixed = min(nfixed, 3)
            found.fixed_count = min(found.fixed_count, 3)
        if forward:
            tc = (tb if align_c and tc < tb else tc) + 1
        else:
            tc -= 1

    if not (op is FindOp.FIND_NEXT and nfixed >= 4):
        isub = spec.subarray
        nsub = observation.subarray_count()
        while 0 <= isub < nsub:
            sub = observation.subarrays[isub]
            n = sub.station_count
            if forward:
                if isub != spec.subarray:
                    ta = 0
                    tb = 1 if align_b else 0
                    tc = tb + 1 if align_c else 0
                while ta < n:
                    while tb < n:
                        if sub.find_baseline(ta, tb) is not None:
                            while tc < n:
                                if sub.find_baseline(tb, tc) is not None and \
                                        sub.find_baseline(ta, tc) is not None:
                                    return _end_triangle(observation, spec, found, isub,
                                                         ta, tb, tc)
                                if nfixed >= 4:
                                    break
                                tc += 1
                        if nfixed >= 3:
                            break
                        tb += 1
                        tc = tb + 1 if align_c else 0
                    if nfixed >= 2:
                        break
                    ta += 1
                    tb = ta + 1 if align_b else 0
                    tc = tb + 1 if align_c else 0
            else:
                if isub != spec.subarray:
                    tc = n - 1
                    tb = tc - 1 if align_c else n - 1
                    ta = tb - 1 if align_b else n - 1
                while ta >= 0:
                    lower_b = ta if align_b and nfixed < 3 else -1
                    while tb > lower_b:
                        if sub.find_baseline(ta, tb) is not None:
                            lower_c = tb if align_c and nfixed < 4 else -1
                            while tc > lower_c:
                                if sub.find_baseline(tb, tc) is not None and \
                                        sub.find_baseline(ta, tc) is not None:
                                    return _end_triangle(observation, spec, found, isub,
                                                         ta, tb, tc)
                                if nfixed >= 4:
                                    break
                                tc -= 1
                        if nfixed >= 3:
                            break
                        tb -= 1
                        tc = n - 1
                    if nfixed >= 2:
                        break
                    ta -= 1
                    tc = n - 1
                    tb = tc - 1 if align_c else n - 1
            if nfixed >= 1:
                break
            isub += 1 if forward else -1

    if report:
        _report_failure(observation, op, spec, forward)
    return SearchStatus.LIMIT_HIT


def triangle_legs(observation: Observation, isub: int, ta: int, tb: int,
                  tc: int) -> Optional[tuple]:
    """
    Resolve the legs a-b, b-c and c-a of a triangle.

    Returns:
        A tuple of three TriangleLeg values, or None if any leg is
        not a baseline of the sub-array
    """
    sub = observation.get_subarray(isub)
    legs = []
    for first, second in ((ta, tb), (tb, tc), (tc, ta)):
        base = sub.find_baseline(first, second)
        if base is None:
            return None
        sign = 1 if sub.baselines[base].station_a == first else -1
        legs.append(TriangleLeg(baseline=base, sign=sign))
    return tuple(legs)


def _end_triangle(observation: Observation, spec: TriangleSpec, found: TriangleSpec,
                  isub: int, ta: int, tb: int, tc: int) -> SearchStatus:
    found.subarray = isub
    found.station_a = ta
    found.station_b = tb
    found.station_c = tc
    found.legs = triangle_legs(observation, isub, ta, tb, tc)
    spec.assign(found)
    return SearchStatus.FOUND


def iterate(observation: Observation, op: FindOp, locator: Locator,
            forward: bool = True, nref: Optional[int] = None,
            allref: bool = False, fixref: bool = False,
            report: bool = False) -> SearchStatus:
    """
    Step any kind of locator.

    allref is ignored for sub-array and station locators, which have no
    ordering constraint.
    """
    if isinstance(locator, SubarraySpec):
        return next_subarray(observation, op, locator, forward, nref, fixref, report)
    if isinstance(locator, StationSpec):
        return next_station(observation, op, locator, forward, nref, fixref, report)
    if isinstance(locator, BaselineSpec):
        return next_baseline(observation, op, locator, forward, nref, allref, fixref, report)
    if isinstance(locator, TriangleSpec):
        return next_triangle(observation, op, locator, forward, nref, allref, fixref, report)
    raise TypeError(f"Unsupported locator type: {type(locator)}")


def iter_matches(observation: Observation, locator: Locator, forward: bool = True,
                 nref: Optional[int] = None, allref: bool = False,
                 fixref: bool = False) -> Iterator[Locator]:
    """
    Yield every match of a locator in search order.

    The caller's locator is not modified; each yielded value is a copy.
    """
    cursor = locator.copy()
    op = FindOp.FIND_FIRST
    while iterate(observation, op, cursor, forward, nref, allref, fixref) is SearchStatus.FOUND:
        yield cursor.copy()
        op = FindOp.FIND_NEXT


def find_subarray(observation: Observation, fixed_count: int, subarray: int,
                  forward: bool = True, nref: Optional[int] = None,
                  fixref: bool = False, report: bool = False) -> Optional[SubarraySpec]:
    """Locate the first/last sub-array matching the given indices."""
    spec = SubarraySpec(fixed_count=fixed_count, subarray=subarray)
    if next_subarray(observation, FindOp.FIND_FIRST, spec, forward, nref, fixref,
                     report) is SearchStatus.FOUND:
        return spec
    return None


def find_station(observation: Observation, fixed_count: int, subarray: int,
                 station_a: int = 0, forward: bool = True, nref: Optional[int] = None,
                 fixref: bool = False, report: bool = False) -> Optional[StationSpec]:
    """Locate the first/last station matching the given indices."""
    spec = StationSpec(fixed_count=fixed_count, subarray=subarray, station_a=station_a)
    if next_station(observation, FindOp.FIND_FIRST, spec, forward, nref, fixref,
                    report) is SearchStatus.FOUND:
        return spec
    return None


def find_baseline_spec(observation: Observation, fixed_count: int, subarray: int,
                       station_a: int = 0, station_b: int = 0, forward: bool = True,
                       nref: Optional[int] = None, allref: bool = False,
                       fixref: bool = False, report: bool = False) -> Optional[BaselineSpec]:
    """Locate the first/last baseline matching the given indices."""
    spec = BaselineSpec(fixed_count=fixed_count, subarray=subarray,
                        station_a=station_a, station_b=station_b)
    if next_baseline(observation, FindOp.FIND_FIRST, spec, forward, nref, allref, fixref,
                     report) is SearchStatus.FOUND:
        return spec
    return None


def find_triangle(observation: Observation, fixed_count: int, subarray: int,
                  station_a: int = 0, station_b: int = 0, station_c: int = 0,
                  forward: bool = True, nref: Optional[int] = None,
                  allref: bool = False, fixref: bool = False,
                  report: bool = False) -> Optional[TriangleSpec]:
    """Locate the first/last closure triangle matching the given indices."""
    spec = TriangleSpec(fixed_count=fixed_count, subarray=subarray, station_a=station_a,
                        station_b=station_b, station_c=station_c)
    if next_triangle(observation, FindOp.FIND_FIRST, spec, forward, nref, allref, fixref,
                     report) is SearchStatus.FOUND:
        return spec
    return None


__all__ = [
    "next_subarray",
    "next_station",
    "next_baseline",
    "next_triangle",
    "triangle_legs",
    "iterate",
    "iter_matches",
    "find_subarray",
    "find_station",
    "find_baseline_spec",
    "find_triangle",
]
