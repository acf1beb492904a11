"""
Unit Tests for Test Length Recommendation
"""

import pytest

from exam_toolkit.assembly import LengthOptimizerConfig, marginal_gain, optimize_length
from exam_toolkit.errors import ConfigurationError

TEN_TOPICS = tuple(f"topic-{i}" for i in range(10))


class TestOptimizeLength:
    """Tests for optimize_length function."""

    def test_optimize_when_few_topics_then_base_from_hours(self):
        # Act
        result = optimize_length(LengthOptimizerConfig(10, 0.8, 100, topics=("Algebra", "Geometry")))

        # Assert
        assert result.recommended_length == 15
        assert result.time_estimate == 30
        assert result.coverage_estimate == pytest.approx(1.0)
        assert result.reasoning[0].startswith("Based on 10 learning hours")

    def test_optimize_when_many_topics_then_topic_minimum_wins(self):
        result = optimize_length(LengthOptimizerConfig(10, 0.8, 100, topics=TEN_TOPICS))

        assert result.recommended_length == 20
        assert result.coverage_estimate == pytest.approx(0.8)

    def test_optimize_when_called_then_shorter_longer_balanced_alternatives(self):
        # Act
        result = optimize_length(LengthOptimizerConfig(10, 0.8, 100, topics=TEN_TOPICS))

        # Assert
        by_name = {option.name: option for option in result.alternatives}
        assert [option.name for option in result.alternatives] == ["shorter", "longer", "balanced"]
        assert by_name["shorter"].length == 15
        assert by_name["longer"].length == 25
        assert by_name["balanced"].length == 20
        assert by_name["longer"].time == 50

    def test_optimize_when_pool_small_then_capped_with_reason(self):
        # Act
        result = optimize_length(LengthOptimizerConfig(10, 0.8, 12, topics=TEN_TOPICS))

        # Assert
        assert result.recommended_length == 12
        assert "Limited to 12 questions due to available pool" in result.reasoning
        lengths = {option.name: option.length for option in result.alternatives}
        assert lengths == {"shorter": 10, "longer": 12, "balanced": 12}

    def test_optimize_when_diverse_bloom_levels_then_noted_in_reasoning(self):
        config = LengthOptimizerConfig(
            10, 1.0, 100,
            bloom_levels=("remembering", "applying", "analyzing", "creating"),
            topics=("Algebra",),
        )

        result = optimize_length(config)

        assert result.recommended_length == 15
        assert any("+20%" in line for line in result.reasoning)

    def test_config_when_coverage_out_of_range_then_raises(self):
        with pytest.raises(ConfigurationError, match="target_coverage"):
            LengthOptimizerConfig(10, 1.5, 100)

    def test_to_dict_when_called_then_alternatives_serialized(self):
        data = optimize_length(LengthOptimizerConfig(4, 0.5, 50)).to_dict()

        assert data["recommended_length"] == 4
        assert len(data["alternatives"]) == 3


class TestMarginalGain:
    """Tests for marginal_gain function."""

    def test_marginal_gain_when_one_of_four_topics_covered_then_three_quarters(self, question_factory):
        # Act
        gain = marginal_gain(["A", "B", "C", "D"], [question_factory("q1", topic="A")])

        # Assert
        assert gain.gain == pytest.approx(0.75)
        assert "3 more topics" in gain.recommendation

    def test_marginal_gain_when_all_topics_covered_then_flat_gain(self, question_factory):
        existing = [question_factory("q1", topic="A"), question_factory("q2", topic="B")]

        gain = marginal_gain(["A", "B"], existing)

        assert gain.gain == pytest.approx(0.05)
        assert gain.recommendation.startswith("All topics covered")
