"""
Module: assembly.config

Purpose:
    Configuration dataclasses for question selection. Immutable
    configuration with validation on construction; strategy names are
    parsed at the boundary into a closed enum.

Key Classes:
    - AssemblyStrategy: random / balanced / constraintBased / topicProportional
    - AssemblyConstraints: Topic, Bloom and difficulty percentages
    - AssemblyConfig: Main configuration for select_questions()

Dependencies:
    - dataclasses (std)
    - exam_toolkit.core.models: BloomLevel, Difficulty

Used By:
    - assembly.strategies: Strategy dispatch
    - exam_toolkit.config: BuildConfig
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional

from exam_toolkit.core.models import BloomLevel, Difficulty
from exam_toolkit.errors import ConfigurationError


class AssemblyStrategy(str, Enum):
    """Selection strategy."""
    RANDOM = "random"
    BALANCED = "balanced"
    CONSTRAINT_BASED = "constraintBased"
    TOPIC_PROPORTIONAL = "topicProportional"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | AssemblyStrategy) -> AssemblyStrategy:
        """
        Parse a strategy name.

        Accepts the canonical camelCase values and snake/kebab case
        ("constraint_based", "topic-proportional").

        Raises:
            ConfigurationError: If the name is unknown
        """
        if isinstance(value, AssemblyStrategy):
            return value
        key = str(value).strip().replace("-", "").replace("_", "").lower()
        for strategy in cls:
            if strategy.value.lower() == key:
                return strategy
        raise ConfigurationError(f"Unknown strategy: {value!r}")


def _check_percentages(name: str, values: Mapping[object, float]) -> None:
    for key, pct in values.items():
        if pct < 0 or pct > 100:
            raise ConfigurationError(f"{name}[{key}] must be within 0-100: {pct}")


@dataclass(frozen=True)
class AssemblyConstraints:
    """
    Target distributions (percent of target_count) for constraint-based selection.

    Attributes:
        topic_distribution: topic -> percent
        bloom_distribution: Bloom level -> percent (applied within each topic)
        difficulty_distribution: difficulty -> percent (fills any shortfall)

    Example:
        >>> c = AssemblyConstraints.from_dict({"topicDistribution": {"Algebra": 60}})
        >>> c.topic_distribution
        {'Algebra': 60.0}
    """

    topic_distribution: Dict[str, float] = field(default_factory=dict)
    bloom_distribution: Dict[BloomLevel, float] = field(default_factory=dict)
    difficulty_distribution: Dict[Difficulty, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_percentages("topic_distribution", self.topic_distribution)
        _check_percentages("bloom_distribution", self.bloom_distribution)
        _check_percentages("difficulty_distribution", self.difficulty_distribution)

    @property
    def is_empty(self) -> bool:
        return not (self.topic_distribution or self.bloom_distribution or self.difficulty_distribution)

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, float]]) -> AssemblyConstraints:
        """Build from snake_case or camelCase keys; level/difficulty names are parsed."""
        topics = data.get("topic_distribution", data.get("topicDistribution")) or {}
        blooms = data.get("bloom_distribution", data.get("bloomDistribution")) or {}
        diffs = data.get("difficulty_distribution", data.get("difficultyDistribution")) or {}
        try:
            return cls(
                topic_distribution={str(k): float(v) for k, v in topics.items()},
                bloom_distribution={BloomLevel.parse(k): float(v) for k, v in blooms.items()},
                difficulty_distribution={Difficulty.parse(k): float(v) for k, v in diffs.items()},
            )
        except ValueError as e:
            if isinstance(e, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid constraints: {e}") from e

    def to_dict(self) -> dict:
        return {
            "topic_distribution": dict(self.topic_distribution),
            "bloom_distribution": {k.value: v for k, v in self.bloom_distribution.items()},
            "difficulty_distribution": {k.value: v for k, v in self.difficulty_distribution.items()},
        }


@dataclass(frozen=True)
class AssemblyConfig:
    """
    Configuration for question selection (immutable).

    Attributes:
        strategy: Selection strategy
        target_count: Number of questions wanted
        seed: Seed for strategies that shuffle (random)
        constraints: Distributions for the constraint-based strategy

    Invariants:
        - target_count > 0
        - strategy is an AssemblyStrategy (strings are parsed)

    Example:
        >>> config = AssemblyConfig(strategy="balanced", target_count=20)
        >>> config.strategy
        <AssemblyStrategy.BALANCED: 'balanced'>
    """

    strategy: AssemblyStrategy
    target_count: int
    seed: Optional[str] = None
    constraints: Optional[AssemblyConstraints] = None

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        object.__setattr__(self, "strategy", AssemblyStrategy.parse(self.strategy))
        if self.target_count <= 0:
            raise ConfigurationError(f"target_count must be positive: {self.target_count}")
