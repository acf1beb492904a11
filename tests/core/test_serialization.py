"""
Unit Tests for Serialization Utilities

Tests for pool / roster / raw record loading and JSON rendering.
"""

import json
import pytest
from pathlib import Path

from exam_toolkit.core.models import BloomLevel, Difficulty, Question, QuestionType
from exam_toolkit.core.schemas.validator import ValidationError
from exam_toolkit.core.utils.serialization import (
    deserialize_pool,
    load_mapping,
    load_pool,
    load_records,
    load_students,
    to_json,
)


def _records(pool):
    return [q.to_dict() for q in pool]


class TestLoadPool:
    """Tests for load_pool function."""

    def test_load_pool_when_json_list_then_returns_pool_in_order(self, tmp_path: Path, sample_pool):
        # Arrange
        path = tmp_path / "pool.json"
        path.write_text(json.dumps(_records(sample_pool)))

        # Act
        pool = load_pool(path)

        # Assert
        assert pool.ids == sample_pool.ids

    def test_load_pool_when_wrapped_object_then_reads_questions_key(self, tmp_path: Path, sample_pool):
        path = tmp_path / "pool.json"
        path.write_text(json.dumps({"questions": _records(sample_pool)[:5]}))

        pool = load_pool(path)

        assert len(pool) == 5

    def test_load_pool_when_jsonl_then_reads_one_question_per_line(self, tmp_path: Path, sample_pool):
        path = tmp_path / "pool.jsonl"
        lines = [json.dumps(r) for r in _records(sample_pool)[:3]]
        path.write_text("\n".join(lines) + "\n\n")

        pool = load_pool(path)

        assert pool.ids == sample_pool.ids[:3]

    def test_load_pool_when_invalid_json_then_raises_validation_error(self, tmp_path: Path):
        path = tmp_path / "pool.json"
        path.write_text("{not json")

        with pytest.raises(ValidationError, match="Invalid JSON"):
            load_pool(path)

    def test_load_pool_when_object_without_list_then_raises(self, tmp_path: Path):
        path = tmp_path / "pool.json"
        path.write_text(json.dumps({"items": []}))

        with pytest.raises(ValidationError, match="questions"):
            load_pool(path)


class TestDeserializePool:
    """Tests for deserialize_pool function."""

    def test_deserialize_when_aliases_used_then_parses_enums(self):
        # Arrange
        record = {
            "id": "q1",
            "topic": "Physics",
            "bloomLevel": "Analyse",
            "difficulty": "hard",
            "questionType": "Multiple Choice",
            "question_text": "Which is a vector?",
            "choices": {"A": "Mass", "B": "Velocity"},
            "correctAnswer": "B",
        }

        # Act
        pool = deserialize_pool([record])

        # Assert
        question = pool[0]
        assert question.bloom_level is BloomLevel.ANALYZING
        assert question.difficulty is Difficulty.DIFFICULT
        assert question.question_type is QuestionType.MULTIPLE_CHOICE
        assert question.text == "Which is a vector?"
        assert question.correct_text == "Velocity"

    def test_deserialize_when_round_tripped_then_equal(self, capital_question):
        pool = deserialize_pool([capital_question.to_dict()])

        assert pool[0] == capital_question


class TestLoadStudents:
    """Tests for load_students function."""

    def test_load_students_when_seat_number_camel_case_then_parsed(self, tmp_path: Path):
        path = tmp_path / "students.json"
        path.write_text(json.dumps({"students": [
            {"id": "s1", "name": "Ada", "seatNumber": 12},
            {"id": "s2", "name": "Alan"},
        ]}))

        students = load_students(path)

        assert [s.seat_number for s in students] == ["12", None]

    def test_load_students_when_record_missing_id_then_raises(self, tmp_path: Path):
        path = tmp_path / "students.json"
        path.write_text(json.dumps([{"name": "Nobody"}]))

        with pytest.raises(ValidationError):
            load_students(path)


class TestLoadRecordsAndMapping:
    """Tests for load_records and load_mapping."""

    def test_load_records_when_wrapped_then_raw_dicts(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"constraints": [{"type": "time_limit"}]}), encoding="utf-8")

        assert load_records(path, collection_key="constraints") == [{"type": "time_limit"}]

    def test_load_records_when_entry_not_object_then_raises_with_index(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([{"type": "time_limit"}, "bloom"]), encoding="utf-8")

        with pytest.raises(ValidationError) as exc_info:
            load_records(path, collection_key="constraints")

        assert exc_info.value.path == "rules.json[1]"

    def test_load_mapping_when_object_then_returned(self, tmp_path):
        path = tmp_path / "constraints.json"
        path.write_text(json.dumps({"topicDistribution": {"Algebra": 60}}), encoding="utf-8")

        assert load_mapping(path) == {"topicDistribution": {"Algebra": 60}}

    @pytest.mark.parametrize("text", ["[1, 2]", "{not json"])
    def test_load_mapping_when_not_an_object_then_raises(self, tmp_path, text):
        path = tmp_path / "constraints.json"
        path.write_text(text, encoding="utf-8")

        with pytest.raises(ValidationError):
            load_mapping(path)

class TestToJson:
    """Tests for to_json function."""

    def test_to_json_when_list_of_models_then_uses_to_dict(self, capital_question):
        data = json.loads(to_json([capital_question]))

        assert data[0]["id"] == "geo-capital"
        assert data[0]["choices"]["B"] == "Paris"
