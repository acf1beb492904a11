"""
Module: forms

Purpose:
    Provides Form and Version dataclasses. A Form is one ordering of a
    fixed question subset; a Version extends a Form with relabelled
    answer choices and a position-indexed answer key.

Key Classes:
    - FormMetadata: avg difficulty, Bloom %, topic coverage
    - Form: Question ordering with its shuffle seed
    - VersionItem: One question at one position of a version
    - Version: Answer-bearing form

Dependencies:
    - dataclasses (std)
    - .questions.Question

Used By:
    - exam_toolkit.forms.parallel: Form generation
    - exam_toolkit.forms.versions: Version generation
    - exam_toolkit.storage: Persistence batches
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, Optional, Sequence, Tuple

from .questions import Question


@dataclass(frozen=True)
class FormMetadata:
    """
    Summary statistics of a form, computed after shuffling.

    Attributes:
        avg_difficulty: Mean of 1/2/3 difficulty scores
        bloom_distribution: Bloom level value -> percentage of items
        topic_coverage: Distinct topics in first-seen order
    """

    avg_difficulty: float
    bloom_distribution: Dict[str, float]
    topic_coverage: Tuple[str, ...]

    @classmethod
    def from_questions(cls, questions: Sequence[Question]) -> FormMetadata:
        """Compute metadata for an ordered question list (empty list -> zeros)."""
        total = len(questions)
        if total == 0:
            return cls(avg_difficulty=0.0, bloom_distribution={}, topic_coverage=())

        avg = sum(q.difficulty.score for q in questions) / total

        counts: Dict[str, int] = {}
        for q in questions:
            counts[q.bloom_level.value] = counts.get(q.bloom_level.value, 0) + 1
        distribution = {level: count / total * 100 for level, count in counts.items()}

        topics = tuple(dict.fromkeys(q.topic for q in questions))
        return cls(avg_difficulty=avg, bloom_distribution=distribution, topic_coverage=topics)

    def to_dict(self) -> dict:
        return {
            "avg_difficulty": self.avg_difficulty,
            "bloom_distribution": dict(self.bloom_distribution),
            "topic_coverage": list(self.topic_coverage),
        }

    @classmethod
    def from_dict(cls, data: dict) -> FormMetadata:
        return cls(
            avg_difficulty=float(data["avg_difficulty"]),
            bloom_distribution=dict(data.get("bloom_distribution", {})),
            topic_coverage=tuple(data.get("topic_coverage", [])),
        )


@dataclass(frozen=True)
class Form:
    """
    One ordering of the selected subset (immutable).

    Attributes:
        version_label: "A", "B", ...
        question_order: Question ids in presentation order
        shuffle_seed: Seed that reproduces this order
        metadata: Statistics computed after shuffling
        form_id: Stable id like "form-0"

    Invariants:
        - No id repeats in question_order
    """

    version_label: str
    question_order: Tuple[str, ...]
    shuffle_seed: str
    metadata: FormMetadata
    form_id: str = ""

    def __post_init__(self) -> None:
        if len(set(self.question_order)) != len(self.question_order):
            raise ValueError(f"Form {self.version_label} repeats a question id")

    @property
    def length(self) -> int:
        return len(self.question_order)

    def to_dict(self) -> dict:
        return {
            "form_id": self.form_id,
            "version_label": self.version_label,
            "question_order": list(self.question_order),
            "shuffle_seed": self.shuffle_seed,
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Form:
        return cls(
            version_label=data["version_label"],
            question_order=tuple(data["question_order"]),
            shuffle_seed=data["shuffle_seed"],
            metadata=FormMetadata.from_dict(data["metadata"]),
            form_id=data.get("form_id", ""),
        )


@dataclass(frozen=True)
class VersionItem:
    """
    A question placed at a position of a version.

    Attributes:
        position: 1-based position
        question: Question as presented (choices possibly relabelled)
        original_correct_answer: Correct label before relabelling
    """

    position: int
    question: Question
    original_correct_answer: Optional[str] = None

    @property
    def correct_answer(self) -> str:
        return self.question.correct_answer or ""

    def to_dict(self) -> dict:
        d = {
            "position": self.position,
            "question": self.question.to_dict(),
        }
        if self.original_correct_answer is not None:
            d["original_correct_answer"] = self.original_correct_answer
        return d


@dataclass(frozen=True)
class Version:
    """
    Answer-bearing form (immutable).

    Attributes:
        form: The ordering this version was built from
        version_number: 1-based number
        items: Questions in presentation order
        answer_key: "1".."N" -> correct label (or answer text for non-MCQ)
        version_id: Optional id assigned by the caller/persistence

    Invariants:
        - answer_key keys are exactly "1".."N"
        - items follow form.question_order
    """

    form: Form
    version_number: int
    items: Tuple[VersionItem, ...]
    answer_key: Dict[str, str] = field(default_factory=dict)
    version_id: str = ""

    def __post_init__(self) -> None:
        expected = {str(i) for i in range(1, len(self.items) + 1)}
        if set(self.answer_key) != expected:
            raise ValueError(
                f"Version {self.form.version_label} answer key positions "
                f"{sorted(self.answer_key, key=int)} do not match {len(self.items)} items"
            )
        if tuple(item.question.id for item in self.items) != self.form.question_order:
            raise ValueError(f"Version {self.form.version_label} items do not follow its form order")

    @property
    def version_label(self) -> str:
        return self.form.version_label

    @property
    def question_order(self) -> Tuple[str, ...]:
        return self.form.question_order

    @property
    def shuffle_seed(self) -> str:
        return self.form.shuffle_seed

    @property
    def questions(self) -> Tuple[Question, ...]:
        return tuple(item.question for item in self.items)

    @cached_property
    def total_points(self) -> float:
        """Sum of item points, always calculated."""
        return sum(item.question.points for item in self.items)

    def to_dict(self) -> dict:
        return {
            "version_id": self.version_id,
            "version_number": self.version_number,
            "version_label": self.version_label,
            "shuffle_seed": self.shuffle_seed,
            "question_order": list(self.question_order),
            "metadata": self.form.metadata.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "answer_key": dict(self.answer_key),
            "total_points": self.total_points,
        }

    def __repr__(self) -> str:
        return (
            f"Version({self.version_label}, items={len(self.items)}, "
            f"points={self.total_points})"
        )
