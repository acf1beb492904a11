"""
Module: assembly.balancer

Purpose:
    Trim an existing question set so it follows target percentages by
    topic, difficulty or Bloom level, and check how far a set is from a
    topic distribution. Targets are percentages of the set being
    balanced, not of a separate target count.

Key Functions:
    - balance_by_topic(), balance_by_difficulty(), balance_by_bloom()
    - apply_comprehensive_balance(): Apply several criteria by priority
    - validate_balance(): Per-topic deviation against a tolerance

Dependencies:
    - exam_toolkit.core.models: Question, BloomLevel, Difficulty
    - assembly.config: AssemblyConstraints (the target percentages)

Used By:
    - exam_toolkit.cli: ``balance`` command
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Hashable, List, Mapping, Sequence, TypeVar

from exam_toolkit.common.labels import round_half_up
from exam_toolkit.common.thresholds import ASSEMBLY
from exam_toolkit.core.models import BloomLevel, Difficulty, Question
from exam_toolkit.errors import ConfigurationError

from .config import AssemblyConstraints

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


class BalancePriority(str, Enum):
    """Criterion applied first by apply_comprehensive_balance()."""
    TOPIC = "topic"
    DIFFICULTY = "difficulty"
    BLOOM = "bloom"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | BalancePriority) -> BalancePriority:
        if isinstance(value, BalancePriority):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(f"Unknown balance priority: {value!r}") from None


@dataclass(frozen=True)
class BalanceValidation:
    """
    Result of validate_balance().

    Attributes:
        is_balanced: Every topic within tolerance of its target
        deviations: topic -> absolute difference in percentage points
    """

    is_balanced: bool
    deviations: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"is_balanced": self.is_balanced, "deviations": dict(self.deviations)}


def balance_by_topic(questions: Sequence[Question], target_distribution: Mapping[str, float]) -> List[Question]:
    """
    Keep round(pct% of len(questions)) questions of each listed topic.

    Topics not listed are dropped. Within a topic the input order is kept.

    Example:
        >>> [q.topic for q in balance_by_topic(questions, {"Algebra": 75, "Geometry": 25})]
        ['Algebra', 'Algebra', 'Algebra', 'Geometry']
    """
    return _balance(questions, target_distribution, lambda q: q.topic)


def balance_by_difficulty(
    questions: Sequence[Question],
    target_distribution: Mapping[Difficulty | str, float],
) -> List[Question]:
    """Same as balance_by_topic() over difficulty bands ("medium"/"hard" accepted)."""
    targets = {Difficulty.parse(k): v for k, v in target_distribution.items()}
    return _balance(questions, targets, lambda q: q.difficulty)


def balance_by_bloom(
    questions: Sequence[Question],
    target_distribution: Mapping[BloomLevel | str, float],
) -> List[Question]:
    """Same as balance_by_topic() over Bloom levels."""
    targets = {BloomLevel.parse(k): v for k, v in target_distribution.items()}
    return _balance(questions, targets, lambda q: q.bloom_level)


def apply_comprehensive_balance(
    questions: Sequence[Question],
    constraints: AssemblyConstraints,
    priority: BalancePriority | str = BalancePriority.TOPIC,
) -> List[Question]:
    """
    Balance by several criteria in priority order.

    - topic: topic distribution, then Bloom distribution over the result
    - difficulty: difficulty distribution only
    - bloom: Bloom distribution only

    A criterion with an empty distribution is skipped.

    Raises:
        ConfigurationError: If priority is unknown
    """
    priority = BalancePriority.parse(priority)
    result = list(questions)

    if priority is BalancePriority.TOPIC:
        if constraints.topic_distribution:
            result = balance_by_topic(result, constraints.topic_distribution)
        if constraints.bloom_distribution:
            result = balance_by_bloom(result, constraints.bloom_distribution)
    elif priority is BalancePriority.DIFFICULTY:
        if constraints.difficulty_distribution:
            result = balance_by_difficulty(result, constraints.difficulty_distribution)
    elif constraints.bloom_distribution:
        result = balance_by_bloom(result, constraints.bloom_distribution)

    logger.info(f"Balanced {len(questions)} questions down to {len(result)} (priority={priority.value})")
    return result


def validate_balance(
    questions: Sequence[Question],
    target_distribution: Mapping[str, float],
    tolerance: float = ASSEMBLY.balance_tolerance,
) -> BalanceValidation:
    """
    Compare the topic percentages of a set with a target.

    A topic is out of balance when |target - actual| exceeds
    tolerance * target, so the allowed slack scales with the target.

    Example:
        >>> validate_balance(questions, {"Algebra": 50, "Geometry": 50}).is_balanced
        True
    """
    if tolerance < 0:
        raise ConfigurationError(f"tolerance must be non-negative: {tolerance}")

    actual = _topic_percentages(questions)
    deviations: Dict[str, float] = {}
    is_balanced = True
    for topic, target in target_distribution.items():
        deviation = abs(target - actual.get(topic, 0.0))
        deviations[topic] = deviation
        if deviation > tolerance * target:
            is_balanced = False

    if not is_balanced:
        logger.debug(f"Topic balance outside tolerance {tolerance}: {deviations}")
    return BalanceValidation(is_balanced=is_balanced, deviations=deviations)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _balance(
    questions: Sequence[Question],
    targets: Mapping[K, float],
    key: Callable[[Question], K],
) -> List[Question]:
    total = len(questions)
    balanced: List[Question] = []
    for category, percentage in targets.items():
        if percentage <= 0:
            continue
        wanted = round_half_up(percentage / 100 * total)
        balanced.extend([q for q in questions if key(q) == category][:wanted])
    return balanced


def _topic_percentages(questions: Sequence[Question]) -> Dict[str, float]:
    if not questions:
        return {}
    counts: Dict[str, int] = {}
    for q in questions:
        counts[q.topic] = counts.get(q.topic, 0) + 1
    return {topic: count / len(questions) * 100 for topic, count in counts.items()}
