"""
Errors raised by the telescope specification layer.

Every genuine fault derives from TelspecError and carries the offending
values as attributes, so callers can build their own messages.

Running out of matches while iterating is NOT an error. It is reported
through SearchStatus.LIMIT_HIT so that "no more baselines" can never be
confused with "your specification was invalid".
"""

from enum import Enum
from typing import List, Optional


class SearchStatus(Enum):
    """Outcome of a single iterator step."""
    FOUND = 0
    LIMIT_HIT = 1


class TelspecError(Exception):
    """Base class for all telspec errors."""
    pass


class TopologyError(TelspecError):
    """Raised when an observation topology is internally inconsistent."""
    pass


class SpecificationError(TelspecError):
    """Raised when a locator or index argument is malformed."""
    pass


class InvalidFixedCount(SpecificationError):
    """Raised when a locator's fixed count lies outside its kind's range."""

    def __init__(self, fixed_count: int, maximum: int):
        self.fixed_count = fixed_count
        self.maximum = maximum
        super().__init__(f"Can't handle fixed_count={fixed_count} (must lie in 0..{maximum})")


class SubarrayOutOfRange(SpecificationError):
    """Raised when a sub-array index does not exist in the observation."""

    def __init__(self, subarray: int, subarray_count: int):
        self.subarray = subarray
        self.subarray_count = subarray_count
        super().__init__(
            f"Sub-array {subarray + 1} out of range 1-{subarray_count}"
        )


class StationOutOfRange(SpecificationError):
    """Raised when a station index does not exist in its sub-array."""

    def __init__(self, subarray: int, station: int, station_count: int):
        self.subarray = subarray
        self.station = station
        self.station_count = station_count
        super().__init__(
            f"Station index {station} out of range 0-{station_count - 1} in sub-array {subarray + 1}"
        )


class BaselineOutOfRange(SpecificationError):
    """Raised when a baseline index does not exist in its sub-array."""

    def __init__(self, subarray: int, baseline: int, baseline_count: int):
        self.subarray = subarray
        self.baseline = baseline
        self.baseline_count = baseline_count
        super().__init__(
            f"Baseline index {baseline} out of range 0-{baseline_count - 1} in sub-array {subarray + 1}"
        )


class UnsupportedOperation(SpecificationError):
    """Raised when an iterator operation does not apply to a locator kind."""
    pass


class DecodeError(TelspecError):
    """Base class for locator text that can't be decoded."""
    pass


class AmbiguousName(DecodeError):
    """Raised when a station name prefix matches more than one station."""

    def __init__(self, name: str, candidates: List[str]):
        self.name = name
        self.candidates = list(candidates)
        listing = "\n".join(f"  {c}" for c in self.candidates)
        super().__init__(f"'{name}' is ambiguous with telescopes:\n{listing}")


class UnknownName(DecodeError):
    """Raised when a station name prefix matches no station."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No telescope name matches '{name}'.")


class TrailingInput(DecodeError):
    """Raised when characters follow a complete locator."""

    def __init__(self, kind_name: str, remainder: str):
        self.remainder = remainder
        super().__init__(f"Garbage follows {kind_name} specification (\"{remainder}\").")


class EncodeError(TelspecError):
    """Base class for locators that can't be written as text."""
    pass


class EncodeBufferTooShort(EncodeError):
    """Raised instead of silently returning a truncated string."""

    def __init__(self, needed: int, max_chars: int):
        self.needed = needed
        self.max_chars = max_chars
        super().__init__(f"Specification needs at least {needed} characters, limit is {max_chars}")


class AllocationFailure(TelspecError):
    """Raised when the rule-node pool has reached its size limit."""
    pass


class RuleListError(TelspecError):
    """Raised for rule-list misuse (empty lists, unknown handles)."""
    pass


class NoMatchingBaseline(RuleListError):
    """Raised when a rule would cite no baseline of the observation."""

    def __init__(self, text: Optional[str] = None):
        self.text = text
        super().__init__(f"No baselines match {text}." if text else "No baselines match.")


__all__ = [
    "SearchStatus",
    "TelspecError",
    "TopologyError",
    "SpecificationError",
    "InvalidFixedCount",
    "SubarrayOutOfRange",
    "StationOutOfRange",
    "BaselineOutOfRange",
    "UnsupportedOperation",
    "DecodeError",
    "AmbiguousName",
    "UnknownName",
    "TrailingInput",
    "EncodeError",
    "EncodeBufferTooShort",
    "AllocationFailure",
    "RuleListError",
    "NoMatchingBaseline",
]
