"""
Module: assembly.length

Purpose:
    Recommend a test length from learning hours, topic count, Bloom-level
    diversity and a target coverage, with shorter/longer/balanced
    alternatives. Rules of thumb live in common.thresholds.LENGTH.

Key Functions:
    - optimize_length(): Recommended length with reasoning and alternatives
    - marginal_gain(): Coverage gain from adding questions to a selection

Key Classes:
    - LengthOptimizerConfig: Inputs (validated)
    - OptimalLength, LengthOption, MarginalGain: Outputs

Used By:
    - exam_toolkit.cli: ``length`` command
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from exam_toolkit.common.thresholds import LENGTH
from exam_toolkit.core.models import Question
from exam_toolkit.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LengthOptimizerConfig:
    """
    Inputs for optimize_length().

    Attributes:
        learning_hours: Instruction hours the test covers
        target_coverage: Share of topics to cover, 0..1
        available_questions: Pool size (caps the recommendation)
        bloom_levels: Bloom levels the test should exercise
        topics: Topics the test should cover
    """

    learning_hours: float
    target_coverage: float
    available_questions: int
    bloom_levels: Tuple[str, ...] = ()
    topics: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.learning_hours < 0:
            raise ConfigurationError(f"learning_hours must be >= 0: {self.learning_hours}")
        if not 0 <= self.target_coverage <= 1:
            raise ConfigurationError(f"target_coverage must be within 0-1: {self.target_coverage}")
        if self.available_questions < 0:
            raise ConfigurationError(f"available_questions must be >= 0: {self.available_questions}")
        object.__setattr__(self, "bloom_levels", tuple(self.bloom_levels))
        object.__setattr__(self, "topics", tuple(self.topics))


@dataclass(frozen=True)
class LengthOption:
    """An alternative test length with its trade-offs."""

    name: str
    length: int
    coverage: float
    time: int
    pros: Tuple[str, ...] = ()
    cons: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "length": self.length,
            "coverage": self.coverage,
            "time": self.time,
            "pros": list(self.pros),
            "cons": list(self.cons),
        }


@dataclass(frozen=True)
class OptimalLength:
    """
    Recommendation from optimize_length().

    Attributes:
        recommended_length: Question count, capped by the pool size
        reasoning: One line per rule applied
        coverage_estimate: Estimated topic coverage, 0..1
        time_estimate: Minutes
        alternatives: shorter, longer and balanced options
    """

    recommended_length: int
    reasoning: Tuple[str, ...]
    coverage_estimate: float
    time_estimate: int
    alternatives: Tuple[LengthOption, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "recommended_length": self.recommended_length,
            "reasoning": list(self.reasoning),
            "coverage_estimate": self.coverage_estimate,
            "time_estimate": self.time_estimate,
            "alternatives": [a.to_dict() for a in self.alternatives],
        }


@dataclass(frozen=True)
class MarginalGain:
    gain: float
    recommendation: str


def optimize_length(config: LengthOptimizerConfig) -> OptimalLength:
    """
    Recommend a test length.

    Rules:
        1. base = ceil(hours * 1.5)
        2. min_coverage = 2 questions per topic
        3. bloom_adjusted = base * 1.2 when 4+ Bloom levels are targeted
        4. coverage_adjusted = base * target_coverage * 1.3
        recommended = max(min(base, bloom_adjusted, coverage_adjusted), min_coverage),
        then capped by available_questions.

    Example:
        >>> result = optimize_length(LengthOptimizerConfig(10, 0.8, 100, topics=("a", "b")))
        >>> result.recommended_length
        15
    """
    reasoning: List[str] = []
    topic_count = len(config.topics)

    base = math.ceil(config.learning_hours * LENGTH.questions_per_learning_hour)
    reasoning.append(f"Based on {config.learning_hours:g} learning hours, base recommendation: {base} questions")

    min_coverage = math.ceil(topic_count * LENGTH.min_questions_per_topic)
    reasoning.append(f"To cover {topic_count} topics adequately: minimum {min_coverage} questions")

    diverse = len(config.bloom_levels) >= LENGTH.diverse_bloom_level_count
    bloom_adjusted = math.ceil(base * (LENGTH.diverse_bloom_multiplier if diverse else 1.0))
    if diverse:
        reasoning.append(f"Diverse Bloom levels require +20% questions: {bloom_adjusted} questions")

    coverage_adjusted = math.ceil(base * config.target_coverage * LENGTH.coverage_multiplier)
    reasoning.append(f"Target coverage {config.target_coverage * 100:.0f}% suggests: {coverage_adjusted} questions")

    recommended = max(min(base, bloom_adjusted, coverage_adjusted), min_coverage)
    final = min(recommended, config.available_questions)
    if final < recommended:
        reasoning.append(f"Limited to {final} questions due to available pool")

    logger.debug(f"Length recommendation: {final} (uncapped {recommended})")

    return OptimalLength(
        recommended_length=final,
        reasoning=tuple(reasoning),
        coverage_estimate=_coverage(final, topic_count, 0.8),
        time_estimate=math.ceil(final * LENGTH.minutes_per_question),
        alternatives=_alternatives(config, final),
    )


def marginal_gain(topics: Sequence[str], existing_questions: Iterable[Question]) -> MarginalGain:
    """
    Coverage gain from adding more questions to an existing selection.

    Once every topic is covered the gain is a flat 0.05 (diminishing returns).
    """
    covered = len({q.topic for q in existing_questions})
    remaining = len(topics) - covered

    if remaining <= 0:
        return MarginalGain(
            gain=LENGTH.full_coverage_marginal_gain,
            recommendation="All topics covered. Additional questions provide minimal coverage gain.",
        )

    gain = remaining / len(topics)
    if gain > 0.2:
        recommendation = f"Adding questions could cover {remaining} more topics (+{gain * 100:.0f}% coverage)"
    else:
        recommendation = "Most topics covered. Adding more questions has diminishing returns."
    return MarginalGain(gain=gain, recommendation=recommendation)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _coverage(length: int, topic_count: int, factor: float) -> float:
    # No topics means nothing is left uncovered
    if topic_count == 0:
        return 1.0
    return min(length / (topic_count * LENGTH.min_questions_per_topic) * factor, 1.0)


def _alternatives(config: LengthOptimizerConfig, recommended: int) -> Tuple[LengthOption, ...]:
    topic_count = len(config.topics)
    minutes = LENGTH.minutes_per_question

    shorter = max(math.floor(recommended * LENGTH.shorter_ratio), LENGTH.min_alternative_length)
    longer = min(math.ceil(recommended * LENGTH.longer_ratio), config.available_questions)

    return (
        LengthOption(
            name="shorter",
            length=shorter,
            coverage=_coverage(shorter, topic_count, 0.8),
            time=shorter * minutes,
            pros=("Faster completion", "Lower student fatigue", "Easier to grade"),
            cons=("Lower topic coverage", "Less comprehensive assessment"),
        ),
        LengthOption(
            name="longer",
            length=longer,
            coverage=_coverage(longer, topic_count, 0.9),
            time=longer * minutes,
            pros=("Comprehensive coverage", "Better reliability", "More data points"),
            cons=("Longer test time", "Higher student fatigue", "More grading work"),
        ),
        LengthOption(
            name="balanced",
            length=recommended,
            coverage=_coverage(recommended, topic_count, 0.85),
            time=recommended * minutes,
            pros=("Optimal balance", "Good coverage", "Reasonable duration"),
            cons=("May need adjustment based on class level",),
        ),
    )
