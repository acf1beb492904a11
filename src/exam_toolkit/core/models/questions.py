"""
Module: questions

Purpose:
    Provides the Question dataclass and its classification enums - the
    main data structure consumed by assembly, forms and versions. Also
    provides QuestionPool, the immutable snapshot a single assembly or
    generation call works from.

Key Classes:
    - BloomLevel: Six ordered cognitive-demand levels
    - Difficulty: easy / average / difficult with a 1/2/3 score
    - QuestionType: Closed set of question formats
    - Question: Frozen question record
    - QuestionPool: Ordered, duplicate-free tuple of questions

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - exam_toolkit.assembly: Selection strategies
    - exam_toolkit.forms: Parallel forms and versions
    - exam_toolkit.core.utils.serialization: Pool loading
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Tuple


class BloomLevel(str, Enum):
    """Bloom's taxonomy level, in ascending cognitive demand."""
    REMEMBERING = "remembering"
    UNDERSTANDING = "understanding"
    APPLYING = "applying"
    ANALYZING = "analyzing"
    EVALUATING = "evaluating"
    CREATING = "creating"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """1-based position in the taxonomy (remembering=1 ... creating=6)."""
        return _BLOOM_ORDER.index(self) + 1

    @classmethod
    def ordered(cls) -> Tuple[BloomLevel, ...]:
        """All levels in canonical order."""
        return _BLOOM_ORDER

    @classmethod
    def parse(cls, value: str | BloomLevel) -> BloomLevel:
        """
        Parse a Bloom level name, tolerating case and common aliases.

        Example:
            >>> BloomLevel.parse("Remember")
            <BloomLevel.REMEMBERING: 'remembering'>
        """
        if isinstance(value, BloomLevel):
            return value
        key = str(value).strip().lower()
        if key in _BLOOM_ALIASES:
            return _BLOOM_ALIASES[key]
        raise ValueError(f"Unknown Bloom level: {value!r}")


_BLOOM_ORDER: Tuple[BloomLevel, ...] = tuple(BloomLevel)
_BLOOM_ALIASES: Dict[str, BloomLevel] = {level.value: level for level in BloomLevel}
_BLOOM_ALIASES.update({
    "remember": BloomLevel.REMEMBERING,
    "knowledge": BloomLevel.REMEMBERING,
    "understand": BloomLevel.UNDERSTANDING,
    "comprehension": BloomLevel.UNDERSTANDING,
    "apply": BloomLevel.APPLYING,
    "application": BloomLevel.APPLYING,
    "analyze": BloomLevel.ANALYZING,
    "analyse": BloomLevel.ANALYZING,
    "analysing": BloomLevel.ANALYZING,
    "analysis": BloomLevel.ANALYZING,
    "evaluate": BloomLevel.EVALUATING,
    "evaluation": BloomLevel.EVALUATING,
    "create": BloomLevel.CREATING,
    "synthesis": BloomLevel.CREATING,
})


class Difficulty(str, Enum):
    """Difficulty band of a question."""
    EASY = "easy"
    AVERAGE = "average"
    DIFFICULT = "difficult"

    def __str__(self) -> str:
        return self.value

    @property
    def score(self) -> int:
        """Numeric score used for average difficulty (1, 2, 3)."""
        return {Difficulty.EASY: 1, Difficulty.AVERAGE: 2, Difficulty.DIFFICULT: 3}[self]

    @classmethod
    def parse(cls, value: str | Difficulty) -> Difficulty:
        """Parse a difficulty name; "medium" and "hard" are accepted aliases."""
        if isinstance(value, Difficulty):
            return value
        key = str(value).strip().lower()
        aliases = {"medium": cls.AVERAGE, "moderate": cls.AVERAGE, "hard": cls.DIFFICULT}
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown difficulty: {value!r}") from None


class QuestionType(str, Enum):
    """Question format. Only MULTIPLE_CHOICE carries choices."""
    MULTIPLE_CHOICE = "mcq"
    TRUE_FALSE = "true_false"
    FILL_BLANK = "fill_blank"
    SHORT_ANSWER = "short_answer"
    ESSAY = "essay"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | QuestionType) -> QuestionType:
        """Parse a question type; accepts "multiple_choice" and "Multiple Choice"."""
        if isinstance(value, QuestionType):
            return value
        key = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        if key in ("multiple_choice", "mc"):
            return cls.MULTIPLE_CHOICE
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown question type: {value!r}") from None


@dataclass(frozen=True)
class Question:
    """
    Complete question record (immutable).

    Attributes:
        id: Unique identifier within a pool
        topic: Topic label
        bloom_level: Cognitive level
        difficulty: Difficulty band
        question_type: Question format
        text: Question stem
        choices: Label -> choice text (multiple choice only)
        correct_answer: Correct label for MCQ, free text otherwise
        points: Point value
        estimated_time: Minutes to answer, None when unknown

    Invariants:
        - id is non-empty
        - points >= 0 and estimated_time >= 0 when given
        - MCQ: choices non-empty and correct_answer is a key of choices

    Example:
        >>> q = Question(
        ...     id="q1", topic="Geography", bloom_level=BloomLevel.REMEMBERING,
        ...     difficulty=Difficulty.EASY, question_type=QuestionType.MULTIPLE_CHOICE,
        ...     text="Capital of France?", choices={"A": "Rome", "B": "Paris"},
        ...     correct_answer="B",
        ... )
        >>> q.correct_text
        'Paris'
    """

    id: str
    topic: str
    bloom_level: BloomLevel
    difficulty: Difficulty
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    text: str = ""
    choices: Dict[str, str] = field(default_factory=dict)
    correct_answer: Optional[str] = None
    points: float = 1.0
    estimated_time: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate question on construction."""
        if not self.id:
            raise ValueError("Question id must be non-empty")
        if self.points < 0:
            raise ValueError(f"points must be non-negative: {self.points} (question {self.id})")
        if self.estimated_time is not None and self.estimated_time < 0:
            raise ValueError(f"estimated_time must be non-negative: {self.estimated_time} (question {self.id})")
        if self.is_multiple_choice:
            if not self.choices:
                raise ValueError(f"Multiple choice question {self.id} has no choices")
            if self.correct_answer not in self.choices:
                raise ValueError(
                    f"correct_answer {self.correct_answer!r} is not a choice label "
                    f"of question {self.id}: {sorted(self.choices)}"
                )

    @property
    def is_multiple_choice(self) -> bool:
        return self.question_type is QuestionType.MULTIPLE_CHOICE

    @property
    def correct_text(self) -> Optional[str]:
        """Text of the correct choice (MCQ only)."""
        if not self.is_multiple_choice:
            return None
        return self.choices.get(self.correct_answer or "")

    def with_choices(self, choices: Dict[str, str], correct_answer: str) -> Question:
        """Return a copy with relabelled choices; the original is untouched."""
        return replace(self, choices=dict(choices), correct_answer=correct_answer)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON storage."""
        d = {
            "id": self.id,
            "topic": self.topic,
            "bloom_level": self.bloom_level.value,
            "difficulty": self.difficulty.value,
            "question_type": self.question_type.value,
            "text": self.text,
            "points": self.points,
        }
        if self.choices:
            d["choices"] = dict(self.choices)
        if self.correct_answer is not None:
            d["correct_answer"] = self.correct_answer
        if self.estimated_time is not None:
            d["estimated_time"] = self.estimated_time
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        """
        Deserialize from dictionary.

        Accepts both ``bloom_level`` and ``bloomLevel`` style keys so
        records exported by the question repository load unchanged.
        """
        return cls(
            id=str(data["id"]),
            topic=str(data["topic"]),
            bloom_level=BloomLevel.parse(data.get("bloom_level", data.get("bloomLevel"))),
            difficulty=Difficulty.parse(data["difficulty"]),
            question_type=QuestionType.parse(
                data.get("question_type", data.get("questionType", "mcq"))
            ),
            text=data.get("text", data.get("question_text", "")),
            choices=dict(data.get("choices") or {}),
            correct_answer=data.get("correct_answer", data.get("correctAnswer")),
            points=float(data.get("points", 1)),
            estimated_time=_optional_float(data.get("estimated_time", data.get("estimatedTime"))),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return (
            f"Question({self.id!r}, topic={self.topic!r}, "
            f"bloom={self.bloom_level.value}, difficulty={self.difficulty.value})"
        )


@dataclass(frozen=True)
class QuestionPool:
    """
    Ordered snapshot of questions (immutable).

    Attributes:
        questions: Tuple of questions in repository order

    Invariants:
        - No duplicate question ids
    """

    questions: Tuple[Question, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for question in self.questions:
            if question.id in seen:
                raise ValueError(f"Duplicate question id in pool: {question.id}")
            seen.add(question.id)

    @classmethod
    def of(cls, questions: Iterable[Question]) -> QuestionPool:
        return cls(tuple(questions))

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def __len__(self) -> int:
        return len(self.questions)

    def __getitem__(self, index: int) -> Question:
        return self.questions[index]

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(q.id for q in self.questions)

    @property
    def topics(self) -> Tuple[str, ...]:
        """Distinct topics in first-seen order."""
        return tuple(dict.fromkeys(q.topic for q in self.questions))

    def get(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def filter(
        self,
        *,
        topics: Optional[Iterable[str]] = None,
        bloom_levels: Optional[Iterable[BloomLevel]] = None,
        difficulties: Optional[Iterable[Difficulty]] = None,
    ) -> QuestionPool:
        """Return a sub-pool keeping order; None means no filter for that field."""
        topic_set = set(topics) if topics is not None else None
        bloom_set = set(bloom_levels) if bloom_levels is not None else None
        diff_set = set(difficulties) if difficulties is not None else None
        return QuestionPool(tuple(
            q for q in self.questions
            if (topic_set is None or q.topic in topic_set)
            and (bloom_set is None or q.bloom_level in bloom_set)
            and (diff_set is None or q.difficulty in diff_set)
        ))


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)
