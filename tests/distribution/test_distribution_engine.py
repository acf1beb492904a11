"""
Unit Tests for the Distribution Engine

Tests for distribute validation, audit logging and persistence.
"""

from datetime import datetime, timezone

import pytest

from exam_toolkit.core.models import Student
from exam_toolkit.distribution import distribute
from exam_toolkit.errors import ConfigurationError
from exam_toolkit.storage import InMemorySink

FIXED = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


class FailingSink:
    """Sink whose storage is unavailable."""

    def write_batch(self, batch):
        raise OSError("disk full")


class TestDistributeValidation:
    """Tests for distribute input validation."""

    def test_distribute_when_no_students_then_raises(self):
        with pytest.raises(ConfigurationError, match="No students"):
            distribute([], ["v1"], ["A"], "balanced")

    def test_distribute_when_no_versions_then_raises(self, students):
        with pytest.raises(ConfigurationError, match="No test versions found"):
            distribute(students, [], [], "balanced")

    def test_distribute_when_ids_and_labels_differ_then_raises(self, students):
        with pytest.raises(ConfigurationError, match="differ in length"):
            distribute(students, ["v1", "v2"], ["A"], "balanced")

    def test_distribute_when_duplicate_student_then_raises(self):
        roster = [Student("s1"), Student("s1")]

        with pytest.raises(ConfigurationError, match="Duplicate student id: s1"):
            distribute(roster, ["v1"], ["A"], "sequential")

    def test_distribute_when_unknown_strategy_then_raises(self, students):
        with pytest.raises(ConfigurationError):
            distribute(students, ["v1"], ["A"], "alphabetical")


class TestDistributeResult:
    """Tests for distribute outputs."""

    def test_distribute_when_clock_given_then_single_timestamp(self, students):
        # Act
        result = distribute(students, ["v1", "v2"], ["A", "B"], "sequential", clock=lambda: FIXED)

        # Assert
        assert {a.assigned_at for a in result.assignments} == {FIXED}
        assert result.log.created_at == FIXED

    def test_distribute_when_seed_given_then_recorded_in_log(self, students):
        result = distribute(
            students, ["v1", "v2"], ["A", "B"], "balanced",
            seed="room-12", actor="proctor-1", parent_test_id="exam-2024",
        )

        settings = result.log.to_dict()["settings"]
        assert settings["seed"] == "room-12"
        assert settings["balance_metrics"]["is_balanced"] is True
        assert result.log.distributed_by == "proctor-1"
        assert result.log.parent_test_id == "exam-2024"
        assert result.log.total_students == 23

    def test_distribute_when_no_seed_then_generated_seed_recorded(self, students):
        result = distribute(students, ["v1"], ["A"], "random")

        assert result.log.seed.isdigit()

    def test_distribute_when_assigned_then_ids_follow_labels(self, students):
        result = distribute(students, ["v1", "v2"], ["A", "B"], "sequential")

        assert {(a.version_label, a.version_id) for a in result.assignments} == {("A", "v1"), ("B", "v2")}
        assert result.assignments[0].seat_number == "S01"


class TestDistributePersistence:
    """Tests for distribute sink handling."""

    def test_distribute_when_sink_given_then_single_batch_with_log(self, students):
        # Arrange
        sink = InMemorySink()

        # Act
        result = distribute(students, ["v1", "v2"], ["A", "B"], "balanced", seed="s", sink=sink)

        # Assert
        assert len(sink.batches) == 1
        batch = sink.batches[0]
        assert batch.assignments == result.assignments
        assert batch.logs == (result.log,)
        kinds = [record["kind"] for record in sink.records()]
        assert kinds.count("assignment") == 23
        assert kinds[-1] == "distribution_log"

    def test_distribute_when_sink_fails_then_error_propagates(self, students, caplog):
        with pytest.raises(OSError, match="disk full"):
            distribute(students, ["v1"], ["A"], "sequential", sink=FailingSink())

        assert "Failed to persist distribution" in caplog.text
