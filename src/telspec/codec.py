"""
Locator Text Codec (user text <-> locators).

Converts the short specifications that users type into locators, and
locators back into canonical text.

Grammar:
    "*"                                  everything free
    [N ":"] name ["-" name]...           N is a 1-relative sub-array
    ":" name ...                         fix the default sub-array

Syntax Notes:
    - Names match the unique case-insensitive prefix of a station name
      in the chosen sub-array; an exact name wins over longer names
    - "\\" includes the following character in a name literally
    - Names are separated by whitespace and/or a single "-"
    - A name of "*" ends the list, leaving the remaining fields free
    - "+" and "!" end scanning (they separate rule-list entries)
"""

import logging
from typing import List, Optional, Tuple

from .errors import (
    AmbiguousName,
    EncodeBufferTooShort,
    StationOutOfRange,
    SubarrayOutOfRange,
    TrailingInput,
    UnknownName,
)
from .locators import (
    BaselineSpec,
    Locator,
    LocatorKind,
    TriangleSpec,
    default_locator,
)
from .model import Observation, Subarray
from .search import triangle_legs

logger = logging.getLogger(__name__)

_NAME_TERMINATORS = "-+!"
_LIST_SEPARATORS = "+!"


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _is_digit(ch: str) -> bool:
    # ASCII only; int() rejects other Unicode digits such as "²".
    return "0" <= ch <= "9"


def _scan_name(text: str, pos: int) -> int:
    """Return the index just past the station name that starts at pos."""
    end = pos
    while end < len(text):
        ch = text[end]
        if ch in _NAME_TERMINATORS or ch.isspace() or not ch.isprintable():
            break
        if ch == "\\":
            end += 1
        if end < len(text):
            end += 1
    return end


def _unescape(raw: str) -> str:
    chars = []
    i = 0
    while i < len(raw):
        if raw[i] == "\\":
            i += 1
        if i < len(raw):
            chars.append(raw[i])
        i += 1
    return "".join(chars)


def _match_station(sub: Subarray, name: str) -> int:
    """
    Find the one station whose name starts with `name`.

    Raises:
        AmbiguousName: If several stations match and none exactly
        UnknownName: If no station matches
    """
    wanted = name.lower()
    matches: List[int] = []
    for index, station in enumerate(sub.stations):
        candidate = station.name.lower()
        if candidate == wanted:
            return index
        if candidate.startswith(wanted):
            matches.append(index)
    if len(matches) > 1:
        raise AmbiguousName(name, [sub.stations[i].name for i in matches])
    if not matches:
        raise UnknownName(name)
    return matches[0]


def _resolve(observation: Observation, locator: Locator) -> None:
    """Fill in derived baseline indices of fully specified locators."""
    if locator.fixed_count < locator.kind.max_fixed:
        return
    if isinstance(locator, BaselineSpec):
        locator.baseline = observation.find_baseline(
            locator.subarray, locator.station_a, locator.station_b)
    elif isinstance(locator, TriangleSpec):
        legs = triangle_legs(observation, locator.subarray, locator.station_a,
                             locator.station_b, locator.station_c)
        locator.legs = legs or ()


def _scan(observation: Observation, kind: LocatorKind, text: str, pos: int,
          default_subarray: int) -> Tuple[Locator, int, int]:
    """
    Decode a locator starting at text[pos].

    Returns (locator, end, pos): `end` follows the last consumed
    component, `pos` follows any separators skipped after it.
    """
    nsub = observation.subarray_count()
    if default_subarray < 0 or default_subarray >= nsub:
        raise SubarrayOutOfRange(default_subarray, nsub)

    locator = default_locator(kind, default_subarray)
    end = pos
    finished = False

    pos = _skip_space(text, pos)
    if pos < len(text) and _is_digit(text[pos]):
        start = pos
        while pos < len(text) and _is_digit(text[pos]):
            pos += 1
        locator.fixed_count = 1
        locator.subarray = int(text[start:pos]) - 1
        end = pos
        pos = _skip_space(text, pos)
        if pos < len(text) and text[pos] == ":":
            pos += 1
            end = pos
            pos = _skip_space(text, pos)
        else:
            finished = True
    elif pos < len(text) and text[pos] == ":":
        locator.fixed_count = 1
        pos += 1
        end = pos
        pos = _skip_space(text, pos)

    if locator.subarray < 0 or locator.subarray >= nsub:
        raise SubarrayOutOfRange(locator.subarray, nsub)
    sub = observation.subarrays[locator.subarray]

    fields_left = list(locator.station_names)
    while not finished and pos < len(text):
        name_end = _scan_name(text, pos)
        raw = text[pos:name_end]
        if not raw:
            break
        if raw == "*":
            pos = _skip_space(text, name_end)
            end = pos
            break
        if not fields_left:
            break

        setattr(locator, fields_left.pop(0), _match_station(sub, _unescape(raw)))
        # Citing a station implicitly fixes the sub-array.
        if locator.fixed_count == 0:
            locator.fixed_count = 1
        locator.fixed_count += 1
        end = pos = name_end

        if pos >= len(text) or not (text[pos].isspace() or text[pos] == "-"):
            finished = True
        else:
            pos = _skip_space(text, pos)
            if pos < len(text) and text[pos] == "-":
                pos += 1
            pos = _skip_space(text, pos)
            if pos < len(text) and text[pos] in _LIST_SEPARATORS:
                finished = True

    _resolve(observation, locator)
    return locator, end, pos


def scan_locator(observation: Observation, kind: LocatorKind, text: str,
                 pos: int = 0, default_subarray: int = 0) -> Tuple[Locator, int]:
    """
    Decode a locator from the start of `text[pos:]`.

    Scanning stops after the last component of the locator, so that
    several locators can be read back-to-back (as in rule lists).

    Args:
        observation: The observation whose stations are named
        kind: The kind of locator to read
        text: The text to read from
        pos: Index of the first character to read
        default_subarray: Sub-array to use when none is given

    Returns:
        (locator, end) where end indexes the first unconsumed character

    Raises:
        SubarrayOutOfRange: If the default or given sub-array is invalid
        AmbiguousName: If a name matches several stations
        UnknownName: If a name matches no station
    """
    locator, end, _ = _scan(observation, kind, text, pos, default_subarray)
    return locator, end


def parse_locator(observation: Observation, kind: LocatorKind, text: str,
                  default_subarray: int = 0) -> Locator:
    """
    Decode a complete locator string.

    Raises:
        TrailingInput: If anything but whitespace follows the locator
        DecodeError / SubarrayOutOfRange: See scan_locator()
    """
    locator, _, pos = _scan(observation, kind, text, 0, default_subarray)
    rest = _skip_space(text, pos)
    if rest < len(text):
        raise TrailingInput(kind.label, text[rest:])
    logger.debug("Decoded %s '%s' -> %s", kind.label, text, locator)
    return locator


def escape_name(name: str) -> str:
    """Escape a station name so that scan_locator() reads it back unchanged."""
    if name == "*":
        return "\\*"
    out = []
    for ch in name:
        if ch in "\\-+!" or ch.isspace():
            out.append("\\")
        out.append(ch)
    return "".join(out)


def format_locator(observation: Observation, locator: Locator, nref: int = 0,
                   fixref: bool = False, max_chars: Optional[int] = None) -> str:
    """
    Write a locator in the form read by parse_locator().

    Args:
        observation: The observation that the locator refers to
        locator: The locator to write
        nref: With fixref, write this many leading fields if it exceeds
              locator.fixed_count
        fixref: See nref
        max_chars: Maximum length of the returned text (no limit if None)

    Returns:
        "*" for an empty locator, else "<sub>:<name>[-<name>...]"

    Raises:
        EncodeBufferTooShort: If the text would exceed max_chars
        SubarrayOutOfRange / StationOutOfRange: If an index is invalid
    """
    count = nref if fixref and nref > locator.fixed_count else locator.fixed_count
    count = min(count, locator.kind.max_fixed)

    if count <= 0:
        text = "*"
    else:
        nsub = observation.subarray_count()
        if locator.subarray < 0 or locator.subarray >= nsub:
            raise SubarrayOutOfRange(locator.subarray, nsub)
        sub = observation.subarrays[locator.subarray]
        names = []
        for station in locator.stations[:count - 1]:
            if station < 0 or station >= sub.station_count:
                raise StationOutOfRange(locator.subarray, station, sub.station_count)
            names.append(escape_name(sub.stations[station].name))
        text = f"{locator.subarray + 1}:" + "-".join(names)

    if max_chars is not None and len(text) > max_chars:
        raise EncodeBufferTooShort(len(text), max_chars)
    return text


__all__ = [
    "scan_locator",
    "parse_locator",
    "format_locator",
    "escape_name",
]
