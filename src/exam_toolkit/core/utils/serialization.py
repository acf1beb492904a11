"""
Serialization Utilities

JSON / JSONL adapters between the question repository's exports and the
frozen models. This is the boundary: records are validated here and only
typed models travel further.

- `deserialize_pool()` validates then builds a QuestionPool
- `load_pool()` reads a .json (list or {"questions": [...]}) or .jsonl file
- `load_students()` reads a student roster
- `load_records()` / `load_mapping()` read raw records and single JSON objects
- `to_json()` renders any model with ``to_dict()`` (or list of them)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List

from ..models.distribution import Student
from ..models.questions import Question, QuestionPool
from ..schemas.validator import ValidationError, validate_pool, validate_student

logger = logging.getLogger(__name__)


def deserialize_pool(records: Iterable[dict[str, Any]], *, validate: bool = True) -> QuestionPool:
    """
    Build a QuestionPool from raw records.

    Args:
        records: Question dictionaries in repository order
        validate: Whether to run boundary validation first

    Raises:
        ValidationError: If validate=True and any record is invalid
    """
    records = list(records)
    if validate:
        validate_pool(records)
    return QuestionPool(tuple(Question.from_dict(r) for r in records))


def load_pool(path: Path) -> QuestionPool:
    """
    Load a question pool from disk.

    Supports a JSON list, a JSON object with a ``questions`` list, or
    JSON Lines (one question per line).
    """
    records = _read_records(path, collection_key="questions")
    pool = deserialize_pool(records)
    logger.info(f"Loaded {len(pool)} questions from {path.name}")
    return pool


def load_students(path: Path) -> List[Student]:
    """Load a student roster (same container formats as load_pool)."""
    records = _read_records(path, collection_key="students")
    for index, record in enumerate(records):
        validate_student(record, path=f"[{index}]")
    students = [Student.from_dict(r) for r in records]
    logger.info(f"Loaded {len(students)} students from {path.name}")
    return students


def load_records(path: Path, *, collection_key: str) -> list[dict[str, Any]]:
    """Read raw records (same container formats as load_pool) without building models."""
    records = _read_records(path, collection_key=collection_key)
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValidationError(f"Record must be an object, got {type(record).__name__}", path=f"{path.name}[{index}]")
    return records


def load_mapping(path: Path) -> dict[str, Any]:
    """Read a single JSON object, e.g. a constraints file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path.name}: {e}", path=path.name) from e
    if not isinstance(payload, dict):
        raise ValidationError(f"{path.name} must contain a JSON object", path=path.name)
    return payload


def _read_records(path: Path, *, collection_key: str) -> list[dict[str, Any]]:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".jsonl":
        records = []
        for line_no, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid JSON on line {line_no}: {e}", path=f"{path.name}:{line_no}") from e
        return records

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path.name}: {e}", path=path.name) from e

    if isinstance(payload, dict):
        payload = payload.get(collection_key)
    if not isinstance(payload, list):
        raise ValidationError(
            f"{path.name} must contain a list or an object with a '{collection_key}' list",
            path=path.name,
        )
    return payload


def to_json(value: Any, *, indent: int | None = 2) -> str:
    """Serialize a model, a list of models, or plain data to JSON."""
    return json.dumps(_to_plain(value), indent=indent, ensure_ascii=False)


def _to_plain(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value
