import pytest
import sys
from pathlib import Path
from typing import Callable, List, Sequence

# Add src to sys.path so we can import exam_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from exam_toolkit.core.models import (  # noqa: E402
    BloomLevel,
    Difficulty,
    Question,
    QuestionPool,
    QuestionType,
    Student,
)

DIFFICULTIES = (Difficulty.EASY, Difficulty.AVERAGE, Difficulty.DIFFICULT)


def make_question(
    qid: str,
    topic: str = "Algebra",
    bloom: BloomLevel = BloomLevel.REMEMBERING,
    difficulty: Difficulty = Difficulty.EASY,
    *,
    mcq: bool = True,
    points: float = 1.0,
) -> Question:
    """Build a question; MCQ questions get four choices with C correct."""
    if mcq:
        return Question(
            id=qid,
            topic=topic,
            bloom_level=bloom,
            difficulty=difficulty,
            question_type=QuestionType.MULTIPLE_CHOICE,
            text=f"Question {qid}?",
            choices={"A": f"{qid}-w1", "B": f"{qid}-w2", "C": f"{qid}-right", "D": f"{qid}-w3"},
            correct_answer="C",
            points=points,
        )
    return Question(
        id=qid,
        topic=topic,
        bloom_level=bloom,
        difficulty=difficulty,
        question_type=QuestionType.SHORT_ANSWER,
        text=f"Explain {qid}.",
        correct_answer=f"answer to {qid}",
        points=points,
    )


def make_pool(topics: Sequence[str], per_topic: int) -> QuestionPool:
    """
    Pool with ``per_topic`` questions per topic.

    Within a topic, Bloom levels and difficulties cycle in canonical order,
    so every topic has the same mix.
    """
    levels = BloomLevel.ordered()
    questions: List[Question] = []
    for topic in topics:
        for i in range(per_topic):
            questions.append(make_question(
                f"{topic[:3].lower()}-{i}",
                topic=topic,
                bloom=levels[i % len(levels)],
                difficulty=DIFFICULTIES[i % len(DIFFICULTIES)],
            ))
    return QuestionPool.of(questions)


# Common test fixtures
@pytest.fixture
def question_factory() -> Callable[..., Question]:
    """Return the question builder."""
    return make_question


@pytest.fixture
def pool_factory() -> Callable[[Sequence[str], int], QuestionPool]:
    """Return the pool builder."""
    return make_pool


@pytest.fixture
def sample_pool() -> QuestionPool:
    """Three topics with twelve questions each (36 total)."""
    return make_pool(["Algebra", "Geometry", "Statistics"], 12)


@pytest.fixture
def capital_question() -> Question:
    """MCQ whose correct answer text is 'Paris'."""
    return Question(
        id="geo-capital",
        topic="Geography",
        bloom_level=BloomLevel.REMEMBERING,
        difficulty=Difficulty.EASY,
        text="What is the capital of France?",
        choices={"A": "Rome", "B": "Paris", "C": "Madrid", "D": "Berlin"},
        correct_answer="B",
    )


@pytest.fixture
def students() -> List[Student]:
    """23 students with zero-padded seats S01..S23."""
    return [Student(id=f"stu-{i:02d}", name=f"Student {i}", seat_number=f"S{i:02d}") for i in range(1, 24)]
