"""
Baseline Selection Lists

A rule list decides which baselines of an observation are "selected".
It is an ordered sequence of (baseline specification, include) rules:

    "1:BR + 2:* ! 1:BR-FD"

    rule 0: include every baseline of station BR in sub-array 1
    rule 1: include every baseline of sub-array 2
    rule 2: exclude baseline BR-FD of sub-array 1

Evaluation is last-match-wins: the include flag of the LAST rule that
cites a baseline decides it. Baselines cited by no rule are excluded.

Storage:
    Rule nodes live in a RulePool, a slab of slots with a free list.
    Lists link their nodes by slot index, keep a tail index for O(1)
    append, and return slots to the pool on removal. Handles returned
    by RuleList.append() are slot indices and stay valid until removed.

ARCHITECTURAL RULE:
    Mutating a rule list while another caller evaluates it is undefined.
    Callers sharing a list must serialize access themselves.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .codec import format_locator, scan_locator
from .errors import (
    AllocationFailure,
    EncodeBufferTooShort,
    NoMatchingBaseline,
    RuleListError,
    SearchStatus,
    TrailingInput,
)
from .locators import BaselineSpec, FindOp, LocatorKind
from .model import Observation
from .search import next_baseline

logger = logging.getLogger(__name__)

ALLOC_STEP = 20


@dataclass(frozen=True)
class BaselineRule:
    """
    One include/exclude entry of a rule list.

    Properties:
        spec: A validated baseline specification. Only its first
              spec.fixed_count fields take part in matching.
        include: True to select the baselines cited, False to deselect
    """

    spec: BaselineSpec
    include: bool = True

    def cites(self, isub: int, station_a: int, station_b: int) -> bool:
        """Report whether this rule's specification covers a baseline."""
        spec = self.spec
        if spec.fixed_count == 0:
            return True
        if isub != spec.subarray:
            return False
        if spec.fixed_count == 1:
            return True
        if spec.fixed_count == 2:
            return spec.station_a in (station_a, station_b)
        return (spec.station_a == station_a and spec.station_b == station_b) or \
            (spec.station_a == station_b and spec.station_b == station_a)


@dataclass
class _RuleNode:
    rule: Optional[BaselineRule] = None
    next: int = -1


class RulePool:
    """
    Slab allocator for rule nodes.

    Slots are created ALLOC_STEP at a time and recycled through a free
    list; they are never individually discarded.
    """

    def __init__(self, max_nodes: Optional[int] = None, step: int = ALLOC_STEP):
        self.max_nodes = max_nodes
        self.step = step
        self._nodes: List[_RuleNode] = []
        self._free: List[int] = []
        self.nused = 0

    @property
    def capacity(self) -> int:
        return len(self._nodes)

    def _grow(self) -> None:
        size = len(self._nodes)
        count = self.step
        if self.max_nodes is not None:
            count = min(count, self.max_nodes - size)
        if count <= 0:
            raise AllocationFailure(f"Rule pool exhausted ({size} nodes in use)")
        self._nodes.extend(_RuleNode() for _ in range(count))
        # Lowest slots are handed out first.
        self._free.extend(range(size + count - 1, size - 1, -1))
        logger.debug("Rule pool grown to %d nodes", len(self._nodes))

    def acquire(self, rule: BaselineRule) -> int:
        if not self._free:
            self._grow()
        index = self._free.pop()
        node = self._nodes[index]
        node.rule = rule
        node.next = -1
        self.nused += 1
        return index

    def release(self, index: int) -> None:
        node = self._nodes[index]
        node.rule = None
        node.next = -1
        self._free.append(index)
        self.nused -= 1

    def node(self, index: int) -> _RuleNode:
        return self._nodes[index]


class RuleList:
    """
    An ordered list of baseline rules for one observation.

    Args:
        observation: The observation that rules are validated against
        pool: Node pool to allocate from (a private pool if None)
        name: Optional label, used by RuleListGroup.get()
    """

    def __init__(self, observation: Observation, pool: Optional[RulePool] = None,
                 name: Optional[str] = None):
        self.observation = observation
        self.pool = pool if pool is not None else RulePool()
        self.name = name
        self._head = -1
        self._tail = -1
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[BaselineRule]:
        for _, rule in self.entries():
            yield rule

    def __repr__(self) -> str:
        return f"RuleList(name={self.name!r}, rules={self._count})"

    def entries(self) -> Iterator[Tuple[int, BaselineRule]]:
        """Yield (handle, rule) pairs in list order."""
        index = self._head
        while index >= 0:
            node = self.pool.node(index)
            yield index, node.rule
            index = node.next

    def _validate(self, spec: BaselineSpec) -> BaselineSpec:
        located = spec.copy()
        # A free rule cites every sub-array, so search all of them.
        if located.fixed_count == 0:
            located.subarray = 0
        status = next_baseline(self.observation, FindOp.FIND_FIRST, located, forward=True,
                               nref=located.fixed_count, allref=True, fixref=False,
                               report=True)
        if status is SearchStatus.LIMIT_HIT:
            raise NoMatchingBaseline(format_locator(self.observation, spec))
        return located

    def _link(self, rule: BaselineRule) -> int:
        index = self.pool.acquire(rule)
        if self._tail < 0:
            self._head = index
        else:
            self.pool.node(self._tail).next = index
        self._tail = index
        self._count += 1
        return index

    def append(self, spec: BaselineSpec, include: bool = True) -> int:
        """
        Append a rule after checking that it cites at least one baseline.

        Args:
            spec: Baseline specification (not modified)
            include: True for an inclusive rule, False for exclusive

        Returns:
            A handle that identifies the rule for remove()

        Raises:
            NoMatchingBaseline: If spec matches no baseline
            SpecificationError: If spec is malformed
            AllocationFailure: If the pool can't supply a node
        """
        handle = self._link(BaselineRule(self._validate(spec), include))
        logger.debug("Appended %s rule %s to %r", "include" if include else "exclude",
                     format_locator(self.observation, spec), self)
        return handle

    def remove(self, handle: int) -> None:
        """
        Unlink a rule and return its node to the pool.

        Raises:
            RuleListError: If handle is not a rule of this list
        """
        prev = -1
        index = self._head
        while index >= 0 and index != handle:
            prev = index
            index = self.pool.node(index).next
        if index < 0:
            raise RuleListError(f"Rule handle {handle} is not in {self!r}")
        following = self.pool.node(index).next
        if prev < 0:
            self._head = following
        else:
            self.pool.node(prev).next = following
        if self._tail == index:
            self._tail = prev
        self._count -= 1
        self.pool.release(index)

    def clear(self) -> None:
        """Remove every rule."""
        index = self._head
        while index >= 0:
            following = self.pool.node(index).next
            self.pool.release(index)
            index = following
        self._head = self._tail = -1
        self._count = 0

    def parse(self, text: str, pos: int = 0, partial: bool = False,
              default_subarray: int = 0) -> int:
        """
        Append the rules written in `text`.

        Either every rule of the text is appended or, on error, none is.

        Args:
            text: Rules such as "1:BR ! 1:BR-FD"
            pos: Index to start reading from
            partial: If True, stop at the first character that can't
                     start a rule instead of raising TrailingInput
            default_subarray: Sub-array used when a rule names none

        Returns:
            The index of the first unread character

        Raises:
            DecodeError: If the text can't be decoded
            NoMatchingBaseline: If a rule matches no baseline
        """
        pending, end = _scan_rules(self.observation, text, pos, partial, default_subarray)
        validated = [(self._validate(spec), include) for spec, include in pending]
        for spec, include in validated:
            self._link(BaselineRule(spec, include))
        logger.debug("Parsed %d rules into %r", len(validated), self)
        return end

    def _selects(self, isub: int, station_a: int, station_b: int) -> bool:
        include = False
        for rule in self:
            if rule.cites(isub, station_a, station_b):
                include = rule.include
        return include

    def evaluate(self, isub: int, base: int) -> bool:
        """
        Report whether a baseline is selected.

        Raises:
            SubarrayOutOfRange / BaselineOutOfRange: For invalid indices
        """
        station_a, station_b = self.observation.baseline_stations(isub, base)
        return self._selects(isub, station_a, station_b)

    def selected_in(self, isub: int) -> List[int]:
        """Indices of the selected baselines of one sub-array, ascending."""
        sub = self.observation.get_subarray(isub)
        return [base for base, b in enumerate(sub.baselines)
                if self._selects(isub, b.station_a, b.station_b)]

    def count_selected(self, subarray: Optional[int] = None) -> int:
        """Count selected baselines in one sub-array, or in all if None."""
        if subarray is not None:
            return len(self.selected_in(subarray))
        return sum(len(self.selected_in(isub))
                   for isub in range(self.observation.subarray_count()))

    def search_selected(self, subarray: int, baseline: int,
                        forward: bool = True) -> Optional[Tuple[int, int]]:
        """
        Find the next selected baseline after (or before) a given one.

        A negative start searches forward from the first baseline; a start
        beyond the last sub-array searches backward from the last one.

        Returns:
            (subarray, baseline) of the selected baseline, or None
        """
        ob = self.observation
        nsub = ob.subarray_count()
        if nsub == 0:
            return None

        if forward:
            if subarray < 0 or baseline < 0:
                isub, base = 0, 0
            else:
                isub, base = subarray, baseline + 1
            while isub < nsub:
                sub = ob.subarrays[isub]
                while base < sub.baseline_count:
                    b = sub.baselines[base]
                    if self._selects(isub, b.station_a, b.station_b):
                        return isub, base
                    base += 1
                isub += 1
                base = 0
        else:
            if subarray >= nsub:
                isub = nsub - 1
                base = ob.subarrays[isub].baseline_count - 1
            else:
                isub, base = subarray, baseline - 1
            while isub >= 0:
                sub = ob.subarrays[isub]
                base = min(base, sub.baseline_count - 1)
                while base >= 0:
                    b = sub.baselines[base]
                    if self._selects(isub, b.station_a, b.station_b):
                        return isub, base
                    base -= 1
                isub -= 1
                if isub >= 0:
                    base = ob.subarrays[isub].baseline_count - 1
        return None

    def to_text(self, max_chars: Optional[int] = None) -> str:
        return format_rule_list(self.observation, self, max_chars)


def _scan_rules(observation: Observation, text: str, pos: int, partial: bool,
                default_subarray: int) -> Tuple[List[Tuple[BaselineSpec, bool]], int]:
    """Decode signed baseline specifications without touching any list."""
    entries: List[Tuple[BaselineSpec, bool]] = []
    first = True
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        ch = text[pos] if pos < len(text) else ""
        if ch == "+":
            include = True
            pos += 1
        elif ch == "!":
            include = False
            pos += 1
        elif first:
            include = True
        elif ch == "":
            return entries, pos
        elif partial:
            return entries, pos
        else:
            raise TrailingInput("baseline selection", text[pos:])

        # "!X" means everything except X.
        if first and not include:
            entries.append((BaselineSpec(fixed_count=0, subarray=0), True))

        spec, pos = scan_locator(observation, LocatorKind.BASELINE, text, pos,
                                 default_subarray)
        entries.append((spec, include))
        first = False


def parse_rule_list(observation: Observation, text: str, pool: Optional[RulePool] = None,
                    name: Optional[str] = None) -> RuleList:
    """Build a new rule list from text. An empty text selects everything."""
    rules = RuleList(observation, pool=pool, name=name)
    rules.parse(text)
    return rules


def format_rule_list(observation: Observation, rules: RuleList,
                     max_chars: Optional[int] = None) -> str:
    """
    Write a rule list in the form read by RuleList.parse().

    Raises:
        EncodeBufferTooShort: If the text would exceed max_chars
    """
    parts = []
    for i, rule in enumerate(rules):
        if i > 0:
            parts.append(" + " if rule.include else " ! ")
        elif not rule.include:
            parts.append("!")
        parts.append(format_locator(observation, rule.spec))
    text = "".join(parts)
    if max_chars is not None and len(text) > max_chars:
        raise EncodeBufferTooShort(len(text), max_chars)
    return text


class RuleListGroup:
    """
    An ordered collection of rule lists sharing one node pool.

    Each member is applied separately by its consumer, e.g. one plot
    page per selection.
    """

    def __init__(self, observation: Observation, max_nodes: Optional[int] = None):
        self.observation = observation
        self.pool = RulePool(max_nodes=max_nodes)
        self._lists: List[RuleList] = []

    def __len__(self) -> int:
        return len(self._lists)

    def __iter__(self) -> Iterator[RuleList]:
        return iter(self._lists)

    def __getitem__(self, index: int) -> RuleList:
        return self._lists[index]

    def new_list(self, name: Optional[str] = None) -> RuleList:
        """Create an empty list that allocates from this group's pool."""
        return RuleList(self.observation, pool=self.pool, name=name)

    def add(self, rules: RuleList) -> RuleList:
        """
        Append a rule list to the group.

        Raises:
            RuleListError: If the list is empty or selects no baselines.
                A list such as "!*" is rejected although it has rules,
                since a member that selects nothing can't be displayed.
        """
        if len(rules) < 1:
            raise RuleListError("Empty baseline group.")
        if rules.count_selected() < 1:
            raise RuleListError(f"Baseline group '{rules.to_text()}' selects no baselines.")
        self._lists.append(rules)
        return rules

    def add_text(self, text: str, name: Optional[str] = None) -> RuleList:
        """Parse a rule list from text and append it to the group."""
        rules = self.new_list(name)
        try:
            rules.parse(text)
            return self.add(rules)
        except Exception:
            rules.clear()
            raise

    def get(self, name: str) -> Optional[RuleList]:
        for rules in self._lists:
            if rules.name == name:
                return rules
        return None

    def remove(self, rules: RuleList) -> None:
        """Remove a list from the group and return its nodes to the pool."""
        if rules not in self._lists:
            raise RuleListError(f"{rules!r} is not a member of this group")
        self._lists.remove(rules)
        rules.clear()

    def clear(self) -> None:
        for rules in self._lists:
            rules.clear()
        self._lists = []


__all__ = [
    "ALLOC_STEP",
    "BaselineRule",
    "RulePool",
    "RuleList",
    "RuleListGroup",
    "parse_rule_list",
    "format_rule_list",
]
