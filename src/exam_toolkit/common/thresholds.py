"""Centralized threshold and magic number configuration.

This module contains the ratios, tolerances and rule-of-thumb constants
used by assembly, form generation and distribution. Having these in one
place makes tuning easier and documents what each value controls.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AssemblyThresholds:
    """Constants for question selection scoring."""

    # Coverage score weights
    coverage_topic_weight: float = 0.6  # Weight of each distinct topic
    coverage_bloom_weight: float = 0.4  # Weight of each distinct Bloom level
    coverage_normalizer: float = 10.0  # Category count used to normalize coverage

    # Balancing and greedy assembly
    balance_tolerance: float = 0.1  # Allowed deviation as a share of each target percentage
    constraint_satisfied_at: float = 0.8  # Satisfaction at or above this counts as met
    default_question_minutes: float = 2.0  # Used when a question has no estimated_time
    default_time_limit_minutes: float = 60.0
    default_easy_share: float = 0.3
    default_average_share: float = 0.5
    default_difficult_share: float = 0.2


@dataclass(frozen=True)
class FormThresholds:
    """Constants for parallel forms and version balance."""

    max_identical_position_ratio: float = 0.2  # Max share of positions shared with previous form
    max_difficulty_deviation: float = 0.3  # Avg difficulty drift allowed vs form A
    max_category_spread: int = 2  # Max per-category count spread across versions


@dataclass(frozen=True)
class DistributionThresholds:
    """Constants for distribution balance."""

    balance_tolerance: int = 2  # max_diff at or below this counts as balanced
    avoid_adjacent_max_versions: int = 2  # Avoid-adjacent alternates between this many versions


@dataclass(frozen=True)
class LengthThresholds:
    """Rules of thumb for test length recommendation."""

    questions_per_learning_hour: float = 1.5
    min_questions_per_topic: int = 2
    diverse_bloom_level_count: int = 4  # Bloom levels at or above this need more items
    diverse_bloom_multiplier: float = 1.2
    coverage_multiplier: float = 1.3
    minutes_per_question: int = 2
    shorter_ratio: float = 0.75
    longer_ratio: float = 1.25
    min_alternative_length: int = 10
    full_coverage_marginal_gain: float = 0.05  # Reported once every topic is covered


ASSEMBLY = AssemblyThresholds()
FORMS = FormThresholds()
DISTRIBUTION = DistributionThresholds()
LENGTH = LengthThresholds()
