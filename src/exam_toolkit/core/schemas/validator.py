"""
Schema Validation Utilities

Validates raw question and student records at the boundary, before they
become frozen models. The repository hands over untyped dicts; anything
that reaches assembly or forms has already passed these checks.

- `validate_question()` checks one question dict
- `validate_pool()` checks a list of question dicts (including duplicate ids)
- `validate_student()` checks one student dict
- Fail fast with `ValidationError` naming the offending path
"""

from __future__ import annotations

from typing import Any, Iterable

from exam_toolkit.core.models.questions import BloomLevel, Difficulty, QuestionType
from exam_toolkit.errors import ExamToolkitError


class ValidationError(ExamToolkitError):
    """Raised when a record fails boundary validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def validate_question(data: dict[str, Any], *, path: str = "") -> None:
    """
    Validate a question record.

    Args:
        data: Question dictionary
        path: Location prefix used in error messages (e.g. "[3]")

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Question record must be an object, got {type(data).__name__}", path=path)

    bloom_key = "bloom_level" if "bloom_level" in data else "bloomLevel"
    required = ["id", "topic", bloom_key, "difficulty"]
    missing = [f for f in required if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )

    try:
        BloomLevel.parse(data[bloom_key])
    except ValueError as e:
        raise ValidationError(str(e), path=f"{path}.{bloom_key}") from e

    try:
        Difficulty.parse(data["difficulty"])
    except ValueError as e:
        raise ValidationError(str(e), path=f"{path}.difficulty") from e

    type_key = "question_type" if "question_type" in data else "questionType"
    try:
        question_type = QuestionType.parse(data.get(type_key, "mcq"))
    except ValueError as e:
        raise ValidationError(str(e), path=f"{path}.{type_key}") from e

    points = data.get("points", 1)
    if not isinstance(points, (int, float)) or isinstance(points, bool) or points < 0:
        raise ValidationError(f"Invalid points: {points!r} (must be a non-negative number)", path=f"{path}.points")

    time_key = "estimated_time" if "estimated_time" in data else "estimatedTime"
    minutes = data.get(time_key)
    if minutes is not None and (not isinstance(minutes, (int, float)) or isinstance(minutes, bool) or minutes < 0):
        raise ValidationError(f"Invalid estimated_time: {minutes!r} (must be a non-negative number)", path=f"{path}.{time_key}")

    if question_type is QuestionType.MULTIPLE_CHOICE:
        choices = data.get("choices")
        if not isinstance(choices, dict) or not choices:
            raise ValidationError(
                f"Multiple choice question {data['id']!r} needs a non-empty choices object",
                path=f"{path}.choices",
            )
        for label, text in choices.items():
            if not isinstance(text, str):
                raise ValidationError(f"Choice {label!r} text must be a string", path=f"{path}.choices.{label}")
        answer_key = "correct_answer" if "correct_answer" in data else "correctAnswer"
        answer = data.get(answer_key)
        if answer not in choices:
            raise ValidationError(
                f"correct_answer {answer!r} is not one of {sorted(choices)}",
                path=f"{path}.{answer_key}",
            )


def validate_pool(records: Iterable[dict[str, Any]]) -> None:
    """
    Validate a list of question records, collecting every problem.

    Raises:
        ValidationError: With one entry in ``errors`` per bad record
    """
    errors: list[str] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        path = f"[{index}]"
        try:
            validate_question(record, path=path)
        except ValidationError as e:
            errors.append(f"{e.path or path}: {e}")
            continue
        qid = str(record["id"])
        if qid in seen:
            errors.append(f"{path}.id: Duplicate question id {qid!r}")
        seen.add(qid)

    if errors:
        raise ValidationError(
            f"{len(errors)} invalid question record(s): {errors[0]}",
            path="",
            errors=errors,
        )


def validate_student(data: dict[str, Any], *, path: str = "") -> None:
    """Validate a student record (needs a non-empty id)."""
    if not isinstance(data, dict):
        raise ValidationError(f"Student record must be an object, got {type(data).__name__}", path=path)
    if data.get("id") in (None, ""):
        raise ValidationError("Missing required fields: ['id']", path=path, errors=["Missing field: id"])
