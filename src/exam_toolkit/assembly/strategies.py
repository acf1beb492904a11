"""
Module: assembly.strategies

Purpose:
    Select a target-sized subset from a question pool under one of four
    strategies. A single pure dispatch: the result depends only on the
    pool, the config and the seed.

Key Functions:
    - select_questions(): Main entry point

Key Classes:
    - AssemblyMetadata: Scores, constraint verdict and warnings
    - AssemblyResult: Selected questions plus metadata

Algorithm (per strategy):
    random            Seeded shuffle of the whole pool, take the first N
    balanced          Even quota per topic, split evenly across Bloom levels
    constraintBased   Topic %, Bloom % within topic, difficulty % for shortfall
    topicProportional Quota per topic proportional to its share of the pool

Dependencies:
    - exam_toolkit.core.models: Question, QuestionPool, BloomLevel
    - exam_toolkit.core.utils.seeded_random: SeededRandom
    - assembly.scoring: coverage_score, balance_score

Used By:
    - exam_toolkit.controller: Batch pipeline
    - exam_toolkit.cli: ``assemble`` command
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from exam_toolkit.common.labels import round_half_up
from exam_toolkit.core.models import BloomLevel, Question, QuestionPool
from exam_toolkit.core.utils.seeded_random import SeededRandom
from exam_toolkit.errors import ConfigurationError

from .config import AssemblyConfig, AssemblyStrategy
from .scoring import balance_score, coverage_score

logger = logging.getLogger(__name__)

K = TypeVar("K")


@dataclass(frozen=True)
class AssemblyMetadata:
    """
    Quality report for a selection.

    Attributes:
        coverage_score: Topic/Bloom diversity
        balance_score: Evenness of the per-topic split in [0, 1]
        constraints_satisfied: True only when exactly target_count were selected
        warnings: Non-fatal problems (shortfall, fallback)
    """

    coverage_score: float
    balance_score: float
    constraints_satisfied: bool
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "coverage_score": self.coverage_score,
            "balance_score": self.balance_score,
            "constraints_satisfied": self.constraints_satisfied,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class AssemblyResult:
    """
    Result of select_questions().

    Attributes:
        selected: Selected questions in selection order
        strategy: Strategy that produced the selection (balanced after a fallback)
        target_count: Requested size
        metadata: Scores and warnings
    """

    selected: Tuple[Question, ...]
    strategy: AssemblyStrategy
    target_count: int
    metadata: AssemblyMetadata

    @property
    def question_ids(self) -> Tuple[str, ...]:
        return tuple(q.id for q in self.selected)

    @property
    def shortfall(self) -> int:
        return max(0, self.target_count - len(self.selected))

    @property
    def warnings(self) -> Tuple[str, ...]:
        return self.metadata.warnings

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "target_count": self.target_count,
            "selected": [q.id for q in self.selected],
            "metadata": self.metadata.to_dict(),
        }

    def __repr__(self) -> str:
        return (
            f"AssemblyResult({self.strategy.value}, "
            f"selected={len(self.selected)}/{self.target_count}, "
            f"warnings={len(self.metadata.warnings)})"
        )


def select_questions(
    pool: QuestionPool | Sequence[Question],
    config: AssemblyConfig,
    *,
    rng: Optional[SeededRandom] = None,
) -> AssemblyResult:
    """
    Select questions from a pool.

    Args:
        pool: Questions to choose from (read-only)
        config: Strategy, target count, seed and constraints
        rng: Random source; defaults to one built from config.seed, or
            from the current time when no seed was given

    Returns:
        AssemblyResult with the selection and its metadata

    Raises:
        ConfigurationError: If the strategy is unknown

    Invariants:
        - len(result.selected) <= config.target_count
        - No question appears twice; no question is fabricated
        - A shortfall always produces a warning

    Example:
        >>> result = select_questions(pool, AssemblyConfig("balanced", 20))
        >>> result.metadata.constraints_satisfied
        True
    """
    if not isinstance(pool, QuestionPool):
        pool = QuestionPool.of(pool)
    if rng is None:
        rng = SeededRandom(config.seed) if config.seed is not None else SeededRandom.from_time()

    strategy = AssemblyStrategy.parse(config.strategy)
    handler = _STRATEGIES.get(strategy)
    if handler is None:
        raise ConfigurationError(f"Unknown strategy: {config.strategy!r}")

    result = handler(pool, config, rng)

    logger.info(
        f"Selected {len(result.selected)}/{config.target_count} questions "
        f"from pool of {len(pool)} using {result.strategy.value} strategy"
    )
    for warning in result.metadata.warnings:
        logger.warning(warning)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Strategies
# ─────────────────────────────────────────────────────────────────────────────

def _random_strategy(pool: QuestionPool, config: AssemblyConfig, rng: SeededRandom) -> AssemblyResult:
    shuffled = rng.shuffle(pool.questions)
    selected = shuffled[:config.target_count]
    warnings = []
    if len(selected) < config.target_count:
        warnings.append(
            f"Not enough questions in pool: {len(selected)} available, target was {config.target_count}"
        )
    return _build_result(selected, AssemblyStrategy.RANDOM, config.target_count, warnings)


def _balanced_strategy(pool: QuestionPool, config: AssemblyConfig, rng: SeededRandom) -> AssemblyResult:
    target = config.target_count
    selected: List[Question] = []
    warnings: List[str] = []

    topic_groups = _group_by(pool.questions, lambda q: q.topic)
    if topic_groups:
        per_topic = math.ceil(target / len(topic_groups))
        per_bloom = math.ceil(per_topic / len(BloomLevel.ordered()))

        for topic, topic_questions in topic_groups.items():
            for level in BloomLevel.ordered():
                level_questions = [q for q in topic_questions if q.bloom_level is level]
                selected.extend(level_questions[:per_bloom])
                if len(selected) >= target:
                    break
            if len(selected) >= target:
                break

    final = selected[:target]
    if len(final) < target:
        warnings.append(f"Only {len(final)} questions available, target was {target}")
    return _build_result(final, AssemblyStrategy.BALANCED, target, warnings)


def _constraint_based_strategy(pool: QuestionPool, config: AssemblyConfig, rng: SeededRandom) -> AssemblyResult:
    constraints = config.constraints
    if constraints is None or constraints.is_empty:
        fallback = "No constraints specified, falling back to balanced strategy"
        result = _balanced_strategy(pool, config, rng)
        return _with_warnings(result, (fallback,) + result.metadata.warnings)

    target = config.target_count
    selected: List[Question] = []
    warnings: List[str] = []

    if constraints.topic_distribution:
        for topic, percentage in constraints.topic_distribution.items():
            target_for_topic = round_half_up(percentage / 100 * target)
            topic_questions = [q for q in pool if q.topic == topic]
            if not topic_questions:
                warnings.append(f"No questions available for topic {topic!r}")
                continue
            if constraints.bloom_distribution:
                selected.extend(
                    _allocate(topic_questions, target_for_topic, constraints.bloom_distribution, lambda q: q.bloom_level)
                )
            else:
                selected.extend(topic_questions[:target_for_topic])
    elif constraints.bloom_distribution:
        selected.extend(
            _allocate(pool.questions, target, constraints.bloom_distribution, lambda q: q.bloom_level)
        )

    selected = _dedupe(selected)

    if len(selected) < target and constraints.difficulty_distribution:
        remaining = target - len(selected)
        selected_ids = {q.id for q in selected}
        remaining_pool = [q for q in pool if q.id not in selected_ids]
        selected.extend(
            _allocate(remaining_pool, remaining, constraints.difficulty_distribution, lambda q: q.difficulty)
        )

    final = selected[:target]
    if len(final) < target:
        warnings.append(f"Constraints could only produce {len(final)} questions, target was {target}")
    return _build_result(final, AssemblyStrategy.CONSTRAINT_BASED, target, warnings)


def _topic_proportional_strategy(pool: QuestionPool, config: AssemblyConfig, rng: SeededRandom) -> AssemblyResult:
    target = config.target_count
    selected: List[Question] = []
    warnings: List[str] = []

    total = len(pool)
    for topic, questions in _group_by(pool.questions, lambda q: q.topic).items():
        target_for_topic = round_half_up(len(questions) / total * target)
        selected.extend(questions[:target_for_topic])

    final = selected[:target]
    if len(final) < target:
        warnings.append(f"Topic-proportional allocation produced {len(final)} questions, target was {target}")
    return _build_result(final, AssemblyStrategy.TOPIC_PROPORTIONAL, target, warnings)


_STRATEGIES: Dict[AssemblyStrategy, Callable[[QuestionPool, AssemblyConfig, SeededRandom], AssemblyResult]] = {
    AssemblyStrategy.RANDOM: _random_strategy,
    AssemblyStrategy.BALANCED: _balanced_strategy,
    AssemblyStrategy.CONSTRAINT_BASED: _constraint_based_strategy,
    AssemblyStrategy.TOPIC_PROPORTIONAL: _topic_proportional_strategy,
}


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _group_by(questions: Sequence[Question], key: Callable[[Question], K]) -> Dict[K, List[Question]]:
    """Group keeping first-seen key order and pool order within groups."""
    groups: Dict[K, List[Question]] = {}
    for q in questions:
        groups.setdefault(key(q), []).append(q)
    return groups


def _allocate(
    questions: Sequence[Question],
    count: int,
    distribution: Mapping[K, float],
    key: Callable[[Question], K],
) -> List[Question]:
    """Take round(pct% of count) questions per category, truncated to count."""
    chosen: List[Question] = []
    for category, percentage in distribution.items():
        if percentage <= 0:
            continue
        wanted = round_half_up(percentage / 100 * count)
        matching = [q for q in questions if key(q) == category]
        chosen.extend(matching[:wanted])
    return chosen[:count]


def _dedupe(questions: Sequence[Question]) -> List[Question]:
    seen: set[str] = set()
    unique = []
    for q in questions:
        if q.id not in seen:
            seen.add(q.id)
            unique.append(q)
    return unique


def _build_result(
    selected: Sequence[Question],
    strategy: AssemblyStrategy,
    target: int,
    warnings: Sequence[str],
) -> AssemblyResult:
    selected = tuple(selected)
    metadata = AssemblyMetadata(
        coverage_score=coverage_score(selected),
        balance_score=balance_score(selected),
        constraints_satisfied=len(selected) == target,
        warnings=tuple(warnings),
    )
    return AssemblyResult(selected=selected, strategy=strategy, target_count=target, metadata=metadata)


def _with_warnings(result: AssemblyResult, warnings: Tuple[str, ...]) -> AssemblyResult:
    metadata = AssemblyMetadata(
        coverage_score=result.metadata.coverage_score,
        balance_score=result.metadata.balance_score,
        constraints_satisfied=result.metadata.constraints_satisfied,
        warnings=warnings,
    )
    return AssemblyResult(
        selected=result.selected,
        strategy=result.strategy,
        target_count=result.target_count,
        metadata=metadata,
    )
