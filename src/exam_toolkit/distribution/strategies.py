"""
Module: distribution.strategies

Purpose:
    Map students to version indices under one of four policies and
    measure how evenly the versions were handed out.

Key Functions:
    - assign_versions(): Strategy dispatch returning (student, version index) pairs
    - calculate_balance_metrics(): Post-hoc DistributionReport

Key Classes:
    - DistributionStrategy: random / sequential / balanced / avoid-adjacent

Algorithm (per strategy):
    random          floor(rng * n) per student
    sequential      index mod n
    balanced        seeded shuffle, then contiguous blocks of base (+1 for the first remainder versions)
    avoid-adjacent  sort by seat, alternate between the first two versions

Used By:
    - distribution.engine: distribute()
"""

from __future__ import annotations

import functools
import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from exam_toolkit.assembly.scoring import spread
from exam_toolkit.common.thresholds import DISTRIBUTION
from exam_toolkit.core.models import Assignment, DistributionReport, Student
from exam_toolkit.core.utils.seeded_random import SeededRandom
from exam_toolkit.errors import ConfigurationError

logger = logging.getLogger(__name__)


class DistributionStrategy(str, Enum):
    """Version distribution policy."""
    RANDOM = "random"
    SEQUENTIAL = "sequential"
    BALANCED = "balanced"
    AVOID_ADJACENT = "avoid-adjacent"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | DistributionStrategy) -> DistributionStrategy:
        """
        Parse a strategy name ("avoid-adjacent", "avoid_adjacent", "avoidAdjacent").

        Raises:
            ConfigurationError: If the name is unknown
        """
        if isinstance(value, DistributionStrategy):
            return value
        key = str(value).strip().replace("-", "").replace("_", "").lower()
        for strategy in cls:
            if strategy.value.replace("-", "") == key:
                return strategy
        raise ConfigurationError(f"Unknown distribution strategy: {value!r}")


def assign_versions(
    students: Sequence[Student],
    num_versions: int,
    strategy: DistributionStrategy,
    rng: SeededRandom,
) -> List[Tuple[Student, int]]:
    """
    Pair every student with a version index in [0, num_versions).

    The returned order is the order the strategy visited students in
    (shuffled for balanced, seat order for avoid-adjacent).
    """
    if num_versions < 1:
        raise ConfigurationError("At least one version is required")

    if strategy is DistributionStrategy.RANDOM:
        return [(s, rng.randint_below(num_versions)) for s in students]

    if strategy is DistributionStrategy.SEQUENTIAL:
        return [(s, i % num_versions) for i, s in enumerate(students)]

    if strategy is DistributionStrategy.BALANCED:
        return _balanced(students, num_versions, rng)

    if strategy is DistributionStrategy.AVOID_ADJACENT:
        return _avoid_adjacent(students, num_versions)

    raise ConfigurationError(f"Unknown distribution strategy: {strategy!r}")


def calculate_balance_metrics(
    assignments: Sequence[Assignment],
    strategy: DistributionStrategy | str,
    version_labels: Optional[Sequence[str]] = None,
) -> DistributionReport:
    """
    Count students per version label.

    When version_labels is given, every label is reported (versions nobody
    received count as 0), so an unused version makes the run unbalanced.

    Example:
        >>> report = calculate_balance_metrics(assignments, "sequential", ["A", "B"])
        >>> report.version_counts
        {'A': 2, 'B': 1}
    """
    counts: Dict[str, int] = {label: 0 for label in (version_labels or ())}
    for assignment in assignments:
        counts[assignment.version_label] = counts.get(assignment.version_label, 0) + 1

    max_diff = spread(counts.values())
    return DistributionReport(
        strategy=str(strategy),
        version_counts=counts,
        max_diff=max_diff,
        is_balanced=max_diff <= DISTRIBUTION.balance_tolerance,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Strategies
# ─────────────────────────────────────────────────────────────────────────────

def _balanced(students: Sequence[Student], num_versions: int, rng: SeededRandom) -> List[Tuple[Student, int]]:
    shuffled = rng.shuffle(students)
    base, remainder = divmod(len(shuffled), num_versions)

    pairs: List[Tuple[Student, int]] = []
    position = 0
    for version_index in range(num_versions):
        count = base + (1 if version_index < remainder else 0)
        for student in shuffled[position:position + count]:
            pairs.append((student, version_index))
        position += count
    return pairs


def _compare_seats(a: Student, b: Student) -> int:
    # A student without a seat ties with everyone and keeps its place
    if not a.seat_number or not b.seat_number:
        return 0
    left, right = a.seat_number.casefold(), b.seat_number.casefold()
    if left == right:
        return (a.seat_number > b.seat_number) - (a.seat_number < b.seat_number)
    return (left > right) - (left < right)


def _avoid_adjacent(students: Sequence[Student], num_versions: int) -> List[Tuple[Student, int]]:
    alternating = min(num_versions, DISTRIBUTION.avoid_adjacent_max_versions)
    if num_versions > alternating:
        logger.warning(
            f"avoid-adjacent alternates between {alternating} of {num_versions} versions; "
            f"the remaining versions are not assigned"
        )
    ordered = sorted(students, key=functools.cmp_to_key(_compare_seats))
    return [(s, i % alternating) for i, s in enumerate(ordered)]
