"""
Module: distribution

Purpose:
    Provides the records produced when versions are handed out to
    test-takers: Student inputs, Assignment outputs, the post-hoc
    DistributionReport and the DistributionLog audit entry.

Key Classes:
    - Student: Test-taker with optional seat number
    - Assignment: One student -> one version
    - DistributionReport: Version counts and balance verdict
    - DistributionLog: Audit record persisted with a distribution run

Dependencies:
    - dataclasses (std)
    - datetime (std)

Used By:
    - exam_toolkit.distribution: Strategies and engine
    - exam_toolkit.storage: Persistence batches
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


@dataclass(frozen=True)
class Student:
    """Test-taker entry (id, display name, optional seat)."""

    id: str
    name: str = ""
    seat_number: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Student id must be non-empty")

    @classmethod
    def from_dict(cls, data: dict) -> Student:
        seat = data.get("seat_number", data.get("seatNumber"))
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            seat_number=str(seat) if seat not in (None, "") else None,
        )

    def to_dict(self) -> dict:
        d = {"id": self.id, "name": self.name}
        if self.seat_number is not None:
            d["seat_number"] = self.seat_number
        return d


@dataclass(frozen=True)
class Assignment:
    """
    A version handed to one student (immutable).

    Attributes:
        student_id: Student id
        student_name: Student display name
        version_id: Id of the assigned version
        version_label: Label of the assigned version
        seat_number: Seat, when known
        assigned_at: Assignment time
    """

    student_id: str
    student_name: str
    version_id: str
    version_label: str
    seat_number: Optional[str]
    assigned_at: datetime

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "student_name": self.student_name,
            "version_id": self.version_id,
            "version_label": self.version_label,
            "seat_number": self.seat_number,
            "assigned_at": self.assigned_at.isoformat(),
        }


@dataclass(frozen=True)
class DistributionReport:
    """
    Balance metrics of a finished distribution.

    Attributes:
        strategy: Strategy value used ("balanced", ...)
        version_counts: version label -> number of students
        max_diff: Largest count minus smallest count
        is_balanced: max_diff within the balance tolerance

    Example:
        >>> report = DistributionReport("sequential", {"A": 2, "B": 1}, 1, True)
        >>> report.total_students
        3
    """

    strategy: str
    version_counts: Dict[str, int]
    max_diff: int
    is_balanced: bool

    @property
    def total_students(self) -> int:
        return sum(self.version_counts.values())

    @classmethod
    def from_dict(cls, data: dict) -> DistributionReport:
        return cls(
            strategy=str(data.get("strategy", "")),
            version_counts={str(k): int(v) for k, v in (data.get("version_counts") or {}).items()},
            max_diff=int(data.get("max_diff", 0)),
            is_balanced=bool(data.get("is_balanced", False)),
        )

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "version_counts": dict(self.version_counts),
            "max_diff": self.max_diff,
            "is_balanced": self.is_balanced,
        }


@dataclass(frozen=True)
class DistributionLog:
    """Audit entry written alongside the assignments of one run."""

    strategy: str
    total_versions: int
    total_students: int
    report: DistributionReport
    created_at: datetime
    parent_test_id: Optional[str] = None
    distributed_by: Optional[str] = None
    seed: Optional[str] = None
    settings: Dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "parent_test_id": self.parent_test_id,
            "distribution_strategy": self.strategy,
            "total_versions": self.total_versions,
            "total_students": self.total_students,
            "distributed_by": self.distributed_by,
            "created_at": self.created_at.isoformat(),
            "settings": {
                "seed": self.seed,
                "balance_metrics": self.report.to_dict(),
                **self.settings,
            },
        }
