"""
Module: distribution.engine

Purpose:
    Assign versions to students, compute balance metrics after the fact
    and optionally persist the assignments with an audit log entry.

Key Functions:
    - distribute(): Main entry point

Key Classes:
    - DistributionResult: Assignments, report and audit log

Dependencies:
    - distribution.strategies: assign_versions, calculate_balance_metrics
    - exam_toolkit.storage: RecordBatch, PersistenceSink

Used By:
    - exam_toolkit.cli: ``distribute`` command
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, Tuple

from exam_toolkit.core.models import Assignment, DistributionLog, DistributionReport, Student
from exam_toolkit.core.utils.seeded_random import SeededRandom, default_seed
from exam_toolkit.errors import ConfigurationError
from exam_toolkit.storage import PersistenceSink, RecordBatch

from .strategies import DistributionStrategy, assign_versions, calculate_balance_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistributionResult:
    """
    Outcome of distribute().

    Attributes:
        assignments: One per student, in strategy visiting order
        report: Balance metrics
        log: Audit entry (persisted with the assignments when a sink is given)
    """

    assignments: Tuple[Assignment, ...]
    report: DistributionReport
    log: DistributionLog

    def by_student(self) -> dict:
        """Student id -> version label."""
        return {a.student_id: a.version_label for a in self.assignments}

    def to_dict(self) -> dict:
        return {
            "assignments": [a.to_dict() for a in self.assignments],
            "report": self.report.to_dict(),
            "log": self.log.to_dict(),
        }


def distribute(
    students: Sequence[Student],
    version_ids: Sequence[str],
    version_labels: Sequence[str],
    strategy: DistributionStrategy | str,
    seed: Optional[str] = None,
    *,
    sink: Optional[PersistenceSink] = None,
    actor: Optional[str] = None,
    parent_test_id: Optional[str] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> DistributionResult:
    """
    Assign each student one version.

    Args:
        students: Test-takers (ids must be unique)
        version_ids: Version ids, parallel to version_labels
        version_labels: Version labels ("A", "B", ...)
        strategy: Distribution policy (name or enum)
        seed: Seed for random/balanced; time-based when None
        sink: Where to persist assignments and the log (optional)
        actor: Who ran the distribution (audit)
        parent_test_id: Test the versions belong to (audit)
        clock: Timestamp source, defaults to UTC now

    Returns:
        DistributionResult

    Raises:
        ConfigurationError: No students, no versions, mismatched id/label
            lists, duplicate student ids or an unknown strategy
        Exception: Whatever the sink raises, unchanged

    Example:
        >>> result = distribute(students, ["v1", "v2"], ["A", "B"], "sequential")
        >>> result.report.is_balanced
        True
    """
    strategy = DistributionStrategy.parse(strategy)
    _validate_inputs(students, version_ids, version_labels)

    seed = seed if seed is not None else default_seed()
    now = (clock or _utc_now)()

    pairs = assign_versions(students, len(version_ids), strategy, SeededRandom(seed))
    assignments = tuple(
        Assignment(
            student_id=student.id,
            student_name=student.name,
            version_id=version_ids[index],
            version_label=version_labels[index],
            seat_number=student.seat_number,
            assigned_at=now,
        )
        for student, index in pairs
    )

    # Every generated version is counted, so a version nobody received (avoid-adjacent
    # with more than two versions) makes the run unbalanced
    report = calculate_balance_metrics(assignments, strategy, version_labels)
    log = DistributionLog(
        strategy=strategy.value,
        total_versions=len(version_ids),
        total_students=len(students),
        report=report,
        created_at=now,
        parent_test_id=parent_test_id,
        distributed_by=actor,
        seed=seed,
    )

    logger.info(
        f"Distributed {len(version_ids)} versions to {len(students)} students "
        f"({strategy.value}, max_diff={report.max_diff})"
    )
    if not report.is_balanced:
        logger.warning(f"Distribution is unbalanced: {report.version_counts}")

    if sink is not None:
        try:
            sink.write_batch(RecordBatch(assignments=assignments, logs=(log,)))
        except Exception as e:
            logger.error(f"Failed to persist distribution: {e}")
            raise

    return DistributionResult(assignments=assignments, report=report, log=log)


def _validate_inputs(
    students: Sequence[Student],
    version_ids: Sequence[str],
    version_labels: Sequence[str],
) -> None:
    if not students:
        raise ConfigurationError("No students to distribute to")
    if not version_ids:
        raise ConfigurationError("No test versions found")
    if len(version_ids) != len(version_labels):
        raise ConfigurationError(
            f"version_ids ({len(version_ids)}) and version_labels ({len(version_labels)}) differ in length"
        )
    seen: set[str] = set()
    for student in students:
        if student.id in seen:
            raise ConfigurationError(f"Duplicate student id: {student.id}")
        seen.add(student.id)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
