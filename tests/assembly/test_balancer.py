"""
Unit Tests for the Question Balancer

Tests for per-criterion balancing, priority-ordered balancing and the
topic balance check.
"""

import pytest

from exam_toolkit.assembly import (
    AssemblyConstraints,
    BalancePriority,
    apply_comprehensive_balance,
    balance_by_bloom,
    balance_by_difficulty,
    balance_by_topic,
    validate_balance,
)
from exam_toolkit.core.models import BloomLevel, Difficulty
from exam_toolkit.errors import ConfigurationError


def _ids(questions):
    return [q.id for q in questions]


class TestBalanceByCriterion:
    """Tests for balance_by_topic / difficulty / bloom."""

    def test_topic_when_percentages_given_then_keeps_share_in_input_order(self, pool_factory):
        # Arrange
        questions = list(pool_factory(["Algebra"], 6)) + list(pool_factory(["Geometry"], 2))

        # Act
        balanced = balance_by_topic(questions, {"Algebra": 50, "Geometry": 25})

        # Assert
        assert _ids(balanced) == ["alg-0", "alg-1", "alg-2", "alg-3", "geo-0", "geo-1"]

    def test_topic_when_category_short_then_takes_what_exists(self, sample_pool):
        balanced = balance_by_topic(list(sample_pool), {"Algebra": 50, "Geometry": 25})

        assert sum(q.topic == "Algebra" for q in balanced) == 12
        assert sum(q.topic == "Geometry" for q in balanced) == 9
        assert all(q.topic != "Statistics" for q in balanced)

    def test_difficulty_when_aliases_used_then_parsed_and_zero_skipped(self, sample_pool):
        balanced = balance_by_difficulty(list(sample_pool), {"easy": 50, "medium": 25, "hard": 0})

        assert sum(q.difficulty is Difficulty.EASY for q in balanced) == 12
        assert sum(q.difficulty is Difficulty.AVERAGE for q in balanced) == 9
        assert all(q.difficulty is not Difficulty.DIFFICULT for q in balanced)

    def test_bloom_when_share_rounds_then_half_up(self, sample_pool):
        # 10% of 36 is 3.6 -> 4
        balanced = balance_by_bloom(list(sample_pool), {"remember": 10})

        assert _ids(balanced) == ["alg-0", "alg-6", "geo-0", "geo-6"]


class TestApplyComprehensiveBalance:
    """Tests for priority-ordered balancing."""

    def test_apply_when_topic_priority_then_topic_then_bloom(self, sample_pool):
        # Arrange
        constraints = AssemblyConstraints(
            topic_distribution={"Algebra": 50, "Geometry": 50},
            bloom_distribution={BloomLevel.REMEMBERING: 50, BloomLevel.UNDERSTANDING: 50},
        )

        # Act
        balanced = apply_comprehensive_balance(list(sample_pool), constraints)

        # Assert
        assert _ids(balanced) == ["alg-0", "alg-6", "geo-0", "geo-6", "alg-1", "alg-7", "geo-1", "geo-7"]

    def test_apply_when_difficulty_priority_then_topic_ignored(self, sample_pool):
        constraints = AssemblyConstraints(
            topic_distribution={"Algebra": 100},
            difficulty_distribution={Difficulty.EASY: 100},
        )

        balanced = apply_comprehensive_balance(list(sample_pool), constraints, priority="difficulty")

        assert len(balanced) == 12
        assert {q.topic for q in balanced} == {"Algebra", "Geometry", "Statistics"}
        assert all(q.difficulty is Difficulty.EASY for q in balanced)

    def test_apply_when_distribution_empty_then_questions_unchanged(self, sample_pool):
        balanced = apply_comprehensive_balance(list(sample_pool), AssemblyConstraints(), BalancePriority.BLOOM)

        assert _ids(balanced) == _ids(sample_pool)

    def test_apply_when_priority_unknown_then_raises(self, sample_pool):
        with pytest.raises(ConfigurationError, match="balance priority"):
            apply_comprehensive_balance(list(sample_pool), AssemblyConstraints(), "standards")


class TestValidateBalance:
    """Tests for validate_balance."""

    def test_validate_when_exact_then_balanced(self, pool_factory):
        questions = list(pool_factory(["Algebra"], 3)) + list(pool_factory(["Geometry"], 2))

        validation = validate_balance(questions, {"Algebra": 60, "Geometry": 40})

        assert validation.is_balanced is True
        assert validation.deviations == {"Algebra": pytest.approx(0.0), "Geometry": pytest.approx(0.0)}

    def test_validate_when_off_by_twenty_then_depends_on_tolerance(self, pool_factory):
        # Arrange: 80/20 against 60/40
        questions = list(pool_factory(["Algebra"], 4)) + list(pool_factory(["Geometry"], 1))
        target = {"Algebra": 60, "Geometry": 40}

        # Act
        strict = validate_balance(questions, target)
        loose = validate_balance(questions, target, tolerance=0.6)

        # Assert
        assert strict.is_balanced is False
        assert strict.deviations["Geometry"] == pytest.approx(20.0)
        assert loose.is_balanced is True

    def test_validate_when_topic_missing_then_full_target_deviation(self, sample_pool):
        validation = validate_balance(list(sample_pool), {"Calculus": 10})

        assert validation.is_balanced is False
        assert validation.deviations == {"Calculus": 10}

    def test_validate_when_tolerance_negative_then_raises(self, sample_pool):
        with pytest.raises(ConfigurationError, match="tolerance"):
            validate_balance(list(sample_pool), {"Algebra": 50}, tolerance=-0.1)
