"""
Module: assembly.solver

Purpose:
    Greedy, constraint-driven test assembly. Each constraint scores a
    candidate selection with a satisfaction value (1.0 is a perfect
    match); the selection score is the priority-weighted sum. Questions
    are added one at a time, always the one that raises the score most.

Key Functions:
    - assemble_greedy(): Build one test of target_length questions
    - evaluate_constraint(): Satisfaction of one constraint
    - form_equivalence(): Similarity of two assembled tests in [0, 1]

Key Classes:
    - ConstraintType: What a constraint measures
    - SolverConstraint: Type, priority and type-specific config
    - SolverResult: Selection, score, per-constraint verdict and metrics

Constraint configs:
    topic_coverage       {"distribution": {topic: question count}}
    difficulty_balance   {"distribution": {difficulty: share 0-1}}
    bloom_distribution   {"distribution": {bloom level: question count}}
    time_limit           {"max_time": minutes}
    point_distribution   {"target_points": total points}
    standards_alignment  not scored (questions carry no standards)

Dependencies:
    - exam_toolkit.core.models: Question
    - exam_toolkit.common.thresholds: ASSEMBLY defaults

Used By:
    - forms.parallel: generate_disjoint_forms()
    - exam_toolkit.cli: ``solve`` command
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from exam_toolkit.common.thresholds import ASSEMBLY
from exam_toolkit.core.models import BloomLevel, Difficulty, Question, QuestionPool
from exam_toolkit.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConstraintType(str, Enum):
    """Dimension a solver constraint measures."""
    TOPIC_COVERAGE = "topic_coverage"
    DIFFICULTY_BALANCE = "difficulty_balance"
    BLOOM_DISTRIBUTION = "bloom_distribution"
    TIME_LIMIT = "time_limit"
    POINT_DISTRIBUTION = "point_distribution"
    STANDARDS_ALIGNMENT = "standards_alignment"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | ConstraintType) -> ConstraintType:
        """Parse snake, kebab or camel case ("time-limit", "timeLimit")."""
        if isinstance(value, ConstraintType):
            return value
        key = str(value).strip().replace("-", "").replace("_", "").lower()
        for member in cls:
            if member.value.replace("_", "") == key:
                return member
        raise ConfigurationError(f"Unknown constraint type: {value!r}")


@dataclass(frozen=True)
class SolverConstraint:
    """
    One weighted goal for greedy assembly.

    Attributes:
        type: What is measured
        priority: Weight of this constraint's satisfaction (>= 0)
        config: Type-specific settings (see module docstring)
        is_required: Informational flag carried through to callers

    Example:
        >>> SolverConstraint.from_dict({"type": "time_limit", "priority": 2, "config": {"maxTime": 30}}).config
        {'max_time': 30}
    """

    type: ConstraintType
    priority: float = 1.0
    config: Dict[str, Any] = field(default_factory=dict)
    is_required: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ConstraintType.parse(self.type))
        if self.priority < 0:
            raise ConfigurationError(f"priority must be non-negative: {self.priority}")
        object.__setattr__(self, "config", dict(self.config))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SolverConstraint:
        """Build from a record; camelCase config keys are converted to snake_case."""
        if "type" not in data:
            raise ConfigurationError(f"Constraint record has no type: {dict(data)}")
        config = {_snake(k): v for k, v in (data.get("config") or {}).items()}
        try:
            priority = float(data.get("priority", 1))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid priority: {data.get('priority')!r}") from e
        return cls(
            type=data["type"],
            priority=priority,
            config=config,
            is_required=bool(data.get("is_required", data.get("isRequired", False))),
        )

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "priority": self.priority,
            "config": dict(self.config),
            "is_required": self.is_required,
        }


@dataclass(frozen=True)
class SolverMetrics:
    """Counts and totals of an assembled test."""

    topic_coverage: Dict[str, int]
    difficulty_distribution: Dict[str, int]
    bloom_distribution: Dict[str, int]
    total_time: float
    total_points: float

    @classmethod
    def of(cls, questions: Sequence[Question]) -> SolverMetrics:
        return cls(
            topic_coverage=dict(Counter(q.topic for q in questions)),
            difficulty_distribution=dict(Counter(q.difficulty.value for q in questions)),
            bloom_distribution=dict(Counter(q.bloom_level.value for q in questions)),
            total_time=_total_time(questions),
            total_points=sum(q.points for q in questions),
        )

    def to_dict(self) -> dict:
        return {
            "topic_coverage": dict(self.topic_coverage),
            "difficulty_distribution": dict(self.difficulty_distribution),
            "bloom_distribution": dict(self.bloom_distribution),
            "total_time": self.total_time,
            "total_points": self.total_points,
        }


@dataclass(frozen=True)
class SolverResult:
    """
    Result of assemble_greedy().

    Attributes:
        selected: Questions in the order they were picked
        score: Weighted score of the final selection
        constraints_satisfied: constraint type -> satisfaction >= 0.8
        metrics: Counts and totals of the selection
        warnings: Non-fatal problems (pool exhausted, unscored constraints)
    """

    selected: Tuple[Question, ...]
    score: float
    constraints_satisfied: Dict[str, bool]
    metrics: SolverMetrics
    warnings: Tuple[str, ...] = ()

    @property
    def question_ids(self) -> Tuple[str, ...]:
        return tuple(q.id for q in self.selected)

    def to_dict(self) -> dict:
        return {
            "selected": list(self.question_ids),
            "score": self.score,
            "constraints_satisfied": dict(self.constraints_satisfied),
            "metrics": self.metrics.to_dict(),
            "warnings": list(self.warnings),
        }


def assemble_greedy(
    pool: QuestionPool | Sequence[Question],
    constraints: Sequence[SolverConstraint],
    target_length: int,
) -> SolverResult:
    """
    Assemble a test by greedy constraint satisfaction.

    Each step tries every remaining question and keeps the one giving the
    highest weighted score; ties go to the question earlier in the pool,
    so the result is deterministic.

    Args:
        pool: Candidate questions (read-only)
        constraints: Weighted goals; evaluated in descending priority
        target_length: Number of questions wanted (> 0)

    Returns:
        SolverResult; fewer than target_length questions only when the
        pool runs out

    Raises:
        ConfigurationError: If target_length < 1
    """
    if target_length < 1:
        raise ConfigurationError(f"target_length must be positive: {target_length}")

    ordered = sorted(constraints, key=lambda c: c.priority, reverse=True)
    remaining: List[Question] = list(pool)
    selected: List[Question] = []
    score = 0.0
    warnings: List[str] = []

    while len(selected) < target_length and remaining:
        best_index = 0
        best_score = float("-inf")
        for index, question in enumerate(remaining):
            candidate = evaluate_selection(selected + [question], ordered)
            if candidate > best_score:
                best_index, best_score = index, candidate
        selected.append(remaining.pop(best_index))
        score = best_score

    if len(selected) < target_length:
        warnings.append(f"Pool exhausted: selected {len(selected)} of {target_length} questions")
    if any(c.type is ConstraintType.STANDARDS_ALIGNMENT for c in ordered):
        warnings.append("standards_alignment is not scored; questions carry no standards")

    satisfied = {
        c.type.value: evaluate_constraint(selected, c) >= ASSEMBLY.constraint_satisfied_at
        for c in ordered
    }
    for warning in warnings:
        logger.warning(warning)
    logger.info(f"Greedy assembly picked {len(selected)}/{target_length} questions (score={score:.3f})")

    return SolverResult(
        selected=tuple(selected),
        score=score,
        constraints_satisfied=satisfied,
        metrics=SolverMetrics.of(selected),
        warnings=tuple(warnings),
    )


def evaluate_selection(selected: Sequence[Question], constraints: Sequence[SolverConstraint]) -> float:
    """Sum of satisfaction * priority over all constraints."""
    return sum(evaluate_constraint(selected, c) * c.priority for c in constraints)


def evaluate_constraint(selected: Sequence[Question], constraint: SolverConstraint) -> float:
    """
    Satisfaction of one constraint by a selection.

    An empty selection satisfies nothing (0.0).

    Example:
        >>> evaluate_constraint(questions, SolverConstraint("time_limit", config={"max_time": 60}))
        1.0
    """
    if not selected:
        return 0.0
    evaluator = _EVALUATORS.get(constraint.type)
    if evaluator is None:
        return 0.0
    return evaluator(selected, constraint.config)


def form_equivalence(a: SolverMetrics, b: SolverMetrics) -> float:
    """
    Similarity of two assembled tests in [0, 1].

    Mean of the difficulty-distribution similarity, the Bloom-distribution
    similarity and the ratio of the shorter to the longer total time.
    """
    if max(a.total_time, b.total_time) > 0:
        time_ratio = min(a.total_time, b.total_time) / max(a.total_time, b.total_time)
    else:
        time_ratio = 1.0
    return (
        _compare_distributions(a.difficulty_distribution, b.difficulty_distribution)
        + _compare_distributions(a.bloom_distribution, b.bloom_distribution)
        + time_ratio
    ) / 3


# ─────────────────────────────────────────────────────────────────────────────
# Evaluators
# ─────────────────────────────────────────────────────────────────────────────

def _topic_coverage(selected: Sequence[Question], config: Mapping[str, Any]) -> float:
    targets: Mapping[str, float] = config.get("distribution") or {}
    if not targets:
        return 0.0
    counts = Counter(q.topic for q in selected)
    total = 0.0
    for topic, target in targets.items():
        actual = counts.get(topic, 0)
        if target <= 0:
            total += 1.0 if actual == 0 else 0.0
        else:
            total += max(0.0, 1 - abs(actual - target) / target)
    return total / len(targets)


def _difficulty_balance(selected: Sequence[Question], config: Mapping[str, Any]) -> float:
    shares = {
        Difficulty.EASY: ASSEMBLY.default_easy_share,
        Difficulty.AVERAGE: ASSEMBLY.default_average_share,
        Difficulty.DIFFICULT: ASSEMBLY.default_difficult_share,
    }
    shares.update({Difficulty.parse(k): float(v) for k, v in (config.get("distribution") or {}).items()})
    counts = Counter(q.difficulty for q in selected)
    error = sum(abs(counts.get(band, 0) / len(selected) - share) for band, share in shares.items())
    return 1 - error / len(shares)


def _bloom_distribution(selected: Sequence[Question], config: Mapping[str, Any]) -> float:
    targets = {BloomLevel.parse(k): float(v) for k, v in (config.get("distribution") or {}).items()}
    if not targets:
        return 0.0
    counts = Counter(q.bloom_level for q in selected)
    total_diff = sum(abs(counts.get(level, 0) - target) for level, target in targets.items())
    return max(0.0, 1 - total_diff / (len(selected) * len(targets)))


def _time_limit(selected: Sequence[Question], config: Mapping[str, Any]) -> float:
    max_time = float(config.get("max_time") or ASSEMBLY.default_time_limit_minutes)
    total = _total_time(selected)
    return 1.0 if total <= max_time else max_time / total


def _point_distribution(selected: Sequence[Question], config: Mapping[str, Any]) -> float:
    target = float(config.get("target_points") or len(selected))
    total = sum(q.points for q in selected)
    return 1 - abs(total - target) / target


_EVALUATORS = {
    ConstraintType.TOPIC_COVERAGE: _topic_coverage,
    ConstraintType.DIFFICULTY_BALANCE: _difficulty_balance,
    ConstraintType.BLOOM_DISTRIBUTION: _bloom_distribution,
    ConstraintType.TIME_LIMIT: _time_limit,
    ConstraintType.POINT_DISTRIBUTION: _point_distribution,
}


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _total_time(questions: Sequence[Question]) -> float:
    return sum(
        q.estimated_time if q.estimated_time is not None else ASSEMBLY.default_question_minutes
        for q in questions
    )


def _compare_distributions(a: Mapping[str, int], b: Mapping[str, int]) -> float:
    largest = max(sum(a.values()), sum(b.values()))
    if largest == 0:
        return 1.0
    keys = set(a) | set(b)
    total_diff = sum(abs(a.get(k, 0) - b.get(k, 0)) for k in keys)
    return 1 - total_diff / (largest * 2)


def _snake(key: str) -> str:
    out = []
    for ch in str(key):
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")
