"""
Unit Tests for Form and Version Models
"""

import pytest

from exam_toolkit.core.models import (
    BloomLevel,
    Difficulty,
    Form,
    FormMetadata,
    Version,
    VersionItem,
)


class TestFormMetadata:
    """Tests for FormMetadata.from_questions."""

    def test_from_questions_when_mixed_then_computes_stats(self, question_factory):
        # Arrange
        questions = [
            question_factory("q1", topic="B", bloom=BloomLevel.APPLYING, difficulty=Difficulty.EASY),
            question_factory("q2", topic="A", bloom=BloomLevel.APPLYING, difficulty=Difficulty.DIFFICULT),
            question_factory("q3", topic="B", bloom=BloomLevel.CREATING, difficulty=Difficulty.AVERAGE),
            question_factory("q4", topic="C", bloom=BloomLevel.APPLYING, difficulty=Difficulty.AVERAGE),
        ]

        # Act
        metadata = FormMetadata.from_questions(questions)

        # Assert
        assert metadata.avg_difficulty == pytest.approx(2.0)
        assert metadata.bloom_distribution == {"applying": 75.0, "creating": 25.0}
        assert metadata.topic_coverage == ("B", "A", "C")

    def test_from_questions_when_empty_then_zeros(self):
        metadata = FormMetadata.from_questions([])

        assert metadata.avg_difficulty == 0.0
        assert metadata.topic_coverage == ()


class TestForm:
    """Tests for Form dataclass."""

    def test_init_when_order_repeats_id_then_raises(self):
        with pytest.raises(ValueError, match="repeats"):
            Form("A", ("q1", "q1"), "s-form-0", FormMetadata(0.0, {}, ()))

    def test_from_dict_when_round_tripped_then_equal(self):
        form = Form("B", ("q2", "q1"), "s-form-1", FormMetadata(1.5, {"applying": 100.0}, ("T",)), "form-1")

        assert Form.from_dict(form.to_dict()) == form


class TestVersion:
    """Tests for Version dataclass."""

    @pytest.fixture
    def form(self) -> Form:
        return Form("A", ("q1", "q2"), "s-form-0", FormMetadata(1.0, {}, ("Algebra",)))

    def test_init_when_answer_key_positions_mismatch_then_raises(self, form, question_factory):
        items = (VersionItem(1, question_factory("q1")), VersionItem(2, question_factory("q2")))

        with pytest.raises(ValueError, match="answer key"):
            Version(form=form, version_number=1, items=items, answer_key={"1": "C"})

    def test_init_when_items_out_of_form_order_then_raises(self, form, question_factory):
        items = (VersionItem(1, question_factory("q2")), VersionItem(2, question_factory("q1")))

        with pytest.raises(ValueError, match="form order"):
            Version(form=form, version_number=1, items=items, answer_key={"1": "C", "2": "C"})

    def test_total_points_when_items_then_sums_points(self, form, question_factory):
        # Arrange
        items = (
            VersionItem(1, question_factory("q1", points=2)),
            VersionItem(2, question_factory("q2", points=3.5)),
        )

        # Act
        version = Version(form=form, version_number=1, items=items, answer_key={"1": "C", "2": "C"})

        # Assert
        assert version.total_points == 5.5
        assert version.version_label == "A"
        assert version.to_dict()["answer_key"] == {"1": "C", "2": "C"}
