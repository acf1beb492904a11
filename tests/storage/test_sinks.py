"""
Unit Tests for Persistence Sinks

Tests for RecordBatch, InMemorySink and JsonlSink, including security events.
"""

import json
from datetime import datetime, timezone

import pytest

from exam_toolkit.core.models import Assignment, DistributionLog, DistributionReport, SecurityEvent
from exam_toolkit.storage import InMemorySink, JsonlSink, PersistenceSink, RecordBatch

AT = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def _assignment(student_id, label="A"):
    return Assignment(
        student_id=student_id,
        student_name=f"Student {student_id}",
        version_id=f"version-{label}",
        version_label=label,
        seat_number=None,
        assigned_at=AT,
    )


def _log():
    report = DistributionReport("sequential", {"A": 2}, 0, True)
    return DistributionLog("sequential", 1, 2, report, AT, seed="s")


class Unserializable:
    """Record whose dict cannot be encoded as JSON."""

    def to_dict(self):
        return {"payload": object()}


class TestRecordBatch:
    """Tests for RecordBatch dataclass."""

    def test_records_when_mixed_then_tagged_in_kind_order(self):
        # Arrange
        batch = RecordBatch(assignments=(_assignment("s1"), _assignment("s2")), logs=(_log(),))

        # Act
        records = list(batch.records())

        # Assert
        assert [r["kind"] for r in records] == ["assignment", "assignment", "distribution_log"]
        assert records[0]["student_id"] == "s1"
        assert len(batch) == 3

    def test_is_empty_when_default_then_true(self):
        assert RecordBatch().is_empty is True

    def test_records_when_security_event_then_tagged_last(self):
        # Arrange
        event = SecurityEvent("export", "exam-1", severity="warning", occurred_at=AT)
        batch = RecordBatch(security_events=(event,), logs=(_log(),))

        # Act
        records = list(batch.records())

        # Assert
        assert [r["kind"] for r in records] == ["distribution_log", "security_event"]
        assert records[1]["action"] == "security_export"
        assert records[1]["severity"] == "warning"
        assert len(batch) == 2


class TestInMemorySink:
    """Tests for InMemorySink."""

    def test_write_batch_when_called_then_batches_kept_in_order(self):
        sink = InMemorySink()
        first, second = RecordBatch(logs=(_log(),)), RecordBatch()

        sink.write_batch(first)
        sink.write_batch(second)

        assert sink.batches == (first, second)
        assert isinstance(sink, PersistenceSink)


class TestJsonlSink:
    """Tests for JsonlSink."""

    def test_write_batch_when_called_then_one_line_per_record(self, tmp_path):
        # Arrange
        path = tmp_path / "audit" / "records.jsonl"
        sink = JsonlSink(path)

        # Act
        sink.write_batch(RecordBatch(assignments=(_assignment("s1"),), logs=(_log(),)))

        # Assert
        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[1])["settings"]["seed"] == "s"

    def test_write_batch_when_called_twice_then_appends(self, tmp_path):
        sink = JsonlSink(tmp_path / "records.jsonl")

        sink.write_batch(RecordBatch(assignments=(_assignment("s1"),)))
        sink.write_batch(RecordBatch(assignments=(_assignment("s2"),)))

        assert [r["student_id"] for r in sink.read_records()] == ["s1", "s2"]

    def test_write_batch_when_record_unserializable_then_nothing_written(self, tmp_path):
        # Arrange
        path = tmp_path / "records.jsonl"
        sink = JsonlSink(path)
        batch = RecordBatch(assignments=(_assignment("s1"), Unserializable()))

        # Act
        with pytest.raises(TypeError):
            sink.write_batch(batch)

        # Assert
        assert not path.exists()

    def test_read_records_when_nothing_written_then_empty(self, tmp_path):
        assert JsonlSink(tmp_path / "records.jsonl").read_records() == []
