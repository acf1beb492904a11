"""
Unit Tests for Parallel Forms

Tests for generate_forms, generate_disjoint_forms, identical_positions and
validate_equivalence.
"""

import pytest

from exam_toolkit.core.models import Form, FormMetadata
from exam_toolkit.errors import ConfigurationError
from exam_toolkit.assembly import SolverConstraint
from exam_toolkit.forms import (
    generate_disjoint_forms,
    generate_forms,
    identical_positions,
    validate_equivalence,
)


@pytest.fixture
def subset(sample_pool):
    """First 20 questions of the sample pool."""
    return list(sample_pool.questions[:20])


class TestGenerateForms:
    """Tests for generate_forms function."""

    def test_generate_when_same_seed_then_same_orders(self, subset):
        first = generate_forms(subset, 3, "exam-1")
        second = generate_forms(subset, 3, "exam-1")

        assert [f.question_order for f in first] == [f.question_order for f in second]

    def test_generate_when_different_seed_then_different_orders(self, subset):
        first = generate_forms(subset, 2, "exam-1")
        second = generate_forms(subset, 2, "exam-2")

        assert [f.question_order for f in first] != [f.question_order for f in second]

    def test_generate_when_called_then_each_form_is_permutation(self, subset):
        # Arrange
        expected = sorted(q.id for q in subset)

        # Act
        forms = generate_forms(subset, 4, "exam-1")

        # Assert
        for form in forms:
            assert sorted(form.question_order) == expected

    def test_generate_when_called_then_labels_seeds_and_ids(self, subset):
        forms = generate_forms(subset, 3, "exam-1")

        assert [f.version_label for f in forms] == ["A", "B", "C"]
        assert [f.shuffle_seed for f in forms] == ["exam-1-form-0", "exam-1-form-1", "exam-1-form-2"]
        assert [f.form_id for f in forms] == ["form-0", "form-1", "form-2"]

    @pytest.mark.parametrize("seed", ["exam-1", "exam-2", "midterm"])
    def test_generate_when_preventing_overlap_then_at_most_twenty_percent_shared(self, subset, seed):
        # Act
        forms = generate_forms(subset, 5, seed)

        # Assert
        for previous, current in zip(forms, forms[1:]):
            assert identical_positions(previous.question_order, current.question_order) <= 4

    def test_generate_when_prevention_disabled_then_first_form_unchanged(self, subset):
        adjusted = generate_forms(subset, 2, "exam-1")
        plain = generate_forms(subset, 2, "exam-1", prevent_identical_positions=False)

        assert adjusted[0].question_order == plain[0].question_order

    def test_generate_when_single_question_then_every_form_identical(self, question_factory):
        forms = generate_forms([question_factory("only")], 3, "exam-1")

        assert [f.question_order for f in forms] == [("only",)] * 3

    def test_generate_when_num_forms_zero_then_raises(self, subset):
        with pytest.raises(ConfigurationError, match="num_forms"):
            generate_forms(subset, 0, "exam-1")

    def test_generate_when_duplicate_ids_then_raises(self, question_factory):
        q = question_factory("q1")

        with pytest.raises(ConfigurationError, match="duplicate"):
            generate_forms([q, q], 2, "exam-1")


class TestIdenticalPositions:
    """Tests for identical_positions function."""

    def test_identical_positions_when_partial_overlap_then_counts_matches(self):
        assert identical_positions(["a", "b", "c", "d"], ["a", "c", "b", "d"]) == 2


class TestValidateEquivalence:
    """Tests for validate_equivalence function."""

    def test_validate_when_forms_of_same_subset_then_equivalent(self, subset):
        report = validate_equivalence(generate_forms(subset, 3, "exam-1"))

        assert report.are_equivalent is True
        assert report.issues == ()

    def test_validate_when_difficulty_and_coverage_drift_then_reports_issues(self):
        # Arrange
        form_a = Form("A", ("q1", "q2"), "s-form-0", FormMetadata(1.0, {}, ("Algebra", "Geometry")))
        form_b = Form("B", ("q3", "q4"), "s-form-1", FormMetadata(2.0, {}, ("Algebra",)))

        # Act
        report = validate_equivalence([form_a, form_b])

        # Assert
        assert report.are_equivalent is False
        assert report.issues == (
            "Form B difficulty varies significantly (1.00)",
            "Form B has different topic coverage",
        )

    def test_validate_when_single_form_then_equivalent(self, subset):
        assert validate_equivalence(generate_forms(subset, 1, "exam-1")).are_equivalent is True


class TestGenerateDisjointForms:
    """Tests for generate_disjoint_forms function."""

    @pytest.fixture
    def two_per_topic(self):
        return [SolverConstraint(
            "topic_coverage",
            config={"distribution": {"Algebra": 2, "Geometry": 2, "Statistics": 2}},
        )]

    def test_generate_when_pool_large_enough_then_forms_share_no_questions(self, sample_pool, two_per_topic):
        # Act
        result = generate_disjoint_forms(sample_pool, two_per_topic, target_length=6, num_forms=3, seed="exam-1")

        # Assert
        orders = [set(f.question_order) for f in result.forms]
        assert [f.version_label for f in result.forms] == ["A", "B", "C"]
        assert not (orders[0] & orders[1] or orders[0] & orders[2] or orders[1] & orders[2])
        assert orders[0] == {"alg-0", "alg-1", "geo-0", "geo-1", "sta-0", "sta-1"}
        assert orders[1] == {"alg-2", "alg-3", "geo-2", "geo-3", "sta-2", "sta-3"}
        assert all(a.metrics.topic_coverage == {"Algebra": 2, "Geometry": 2, "Statistics": 2}
                   for a in result.assemblies)
        assert set(result.equivalence) == {"A-B", "A-C", "B-C"}
        assert all(0.0 <= v <= 1.0 for v in result.equivalence.values())
        assert result.warnings == ()

    def test_generate_when_same_seed_then_same_orders(self, sample_pool, two_per_topic):
        first = generate_disjoint_forms(sample_pool, two_per_topic, 6, 2, seed="exam-1")
        second = generate_disjoint_forms(sample_pool, two_per_topic, 6, 2, seed="exam-1")

        assert [f.question_order for f in first.forms] == [f.question_order for f in second.forms]
        assert [f.shuffle_seed for f in first.forms] == ["exam-1-form-0", "exam-1-form-1"]

    def test_generate_when_pool_runs_out_then_stops_with_warning(self, sample_pool, two_per_topic):
        result = generate_disjoint_forms(sample_pool, two_per_topic, target_length=6, num_forms=7, seed="s")

        assert len(result.forms) == 6
        assert result.warnings == ("Not enough questions for form G: 0 left, 6 needed",)

    @pytest.mark.parametrize("target_length, num_forms", [(0, 2), (5, 0)])
    def test_generate_when_counts_not_positive_then_raises(self, sample_pool, target_length, num_forms):
        with pytest.raises(ConfigurationError):
            generate_disjoint_forms(sample_pool, [], target_length, num_forms)
