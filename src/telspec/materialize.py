"""
Materialized Baseline Selections

Expands a rule list into flat arrays of selected baseline indices, for
consumers that loop over the selection many times (plotting, averaging).

Layout:
    indices:  every selected baseline index, sub-array 0 first,
              ascending within each sub-array
    offsets:  offsets[i]:offsets[i + 1] is the slice of `indices`
              belonging to sub-array i (len(offsets) == nsub + 1)

A materialized selection is a snapshot; it does not follow later edits
of the rule list that produced it.
"""

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from .errors import SubarrayOutOfRange
from .selection import RuleList

logger = logging.getLogger(__name__)


@dataclass
class MaterializedSelection:
    """
    Selected baselines partitioned by sub-array.

    Properties:
        indices: int array of selected baseline indices
        offsets: int array of per-sub-array slice boundaries into indices
    """

    indices: np.ndarray
    offsets: np.ndarray

    @property
    def subarray_count(self) -> int:
        return len(self.offsets) - 1

    @property
    def counts(self) -> np.ndarray:
        """Number of selected baselines in each sub-array."""
        return np.diff(self.offsets)

    @property
    def total(self) -> int:
        return int(self.offsets[-1])

    def for_subarray(self, isub: int) -> np.ndarray:
        """
        Selected baseline indices of one sub-array.

        Raises:
            SubarrayOutOfRange: If isub is not a valid index
        """
        if isub < 0 or isub >= self.subarray_count:
            raise SubarrayOutOfRange(isub, self.subarray_count)
        return self.indices[self.offsets[isub]:self.offsets[isub + 1]]

    def contains(self, isub: int, base: int) -> bool:
        # Within a sub-array the indices are sorted.
        selected = self.for_subarray(isub)
        pos = np.searchsorted(selected, base)
        return bool(pos < len(selected) and selected[pos] == base)

    def pairs(self) -> List[tuple]:
        """Every selection as a (subarray, baseline) tuple, in order."""
        return [(isub, int(base)) for isub in range(self.subarray_count)
                for base in self.for_subarray(isub)]


def materialize(rules: RuleList) -> MaterializedSelection:
    """
    Evaluate a rule list against every baseline of its observation.

    Args:
        rules: The rule list to expand

    Returns:
        MaterializedSelection whose contents equal rules.evaluate()
        for every baseline
    """
    nsub = rules.observation.subarray_count()
    per_sub = [np.asarray(rules.selected_in(isub), dtype=np.int64) for isub in range(nsub)]
    counts = np.array([len(s) for s in per_sub], dtype=np.int64)
    offsets = np.zeros(nsub + 1, dtype=np.int64)
    np.cumsum(counts, out=offsets[1:])
    indices = np.concatenate(per_sub) if per_sub else np.zeros(0, dtype=np.int64)
    logger.debug("Materialized %d baselines from %d sub-arrays", int(offsets[-1]), nsub)
    return MaterializedSelection(indices=indices, offsets=offsets)


__all__ = ["MaterializedSelection", "materialize"]
