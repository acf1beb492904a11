"""
Module: forms.versions

Purpose:
    Turn parallel forms into answer-bearing versions. Question order comes
    from forms.parallel; multiple-choice options are reshuffled per
    position with their own seed and relabelled A, B, C, ... so the answer
    key follows the correct answer's text, not its original letter.

Key Functions:
    - generate_versions(): Versions plus an optional balance report
    - shuffle_choices(): Seeded relabelling of one question's choices
    - validate_version_balance(): Per-category count spread across versions

Key Classes:
    - VersionGenerationConfig: Options (validated)
    - VersionSet: Generated versions and their balance report
    - VersionBalanceReport: Warnings and per-category metrics

Dependencies:
    - concurrent.futures (std): One task per version index
    - forms.parallel: generate_forms
    - assembly.scoring: spread

Used By:
    - exam_toolkit.controller: Batch pipeline
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from exam_toolkit.assembly.scoring import spread
from exam_toolkit.common.labels import index_to_label
from exam_toolkit.common.thresholds import FORMS
from exam_toolkit.core.models import Form, FormMetadata, Question, Version, VersionItem
from exam_toolkit.core.utils.seeded_random import SeededRandom, default_seed
from exam_toolkit.errors import ConfigurationError

from .parallel import form_seed, generate_forms

logger = logging.getLogger(__name__)

_CATEGORY_NAMES = {
    "bloom_level": "Bloom level",
    "difficulty": "Difficulty",
    "topic": "Topic",
}


@dataclass(frozen=True)
class VersionGenerationConfig:
    """
    Options for generate_versions().

    Attributes:
        num_versions: Number of versions (>= 1)
        seed: Base seed; a time-based seed is chosen when None
        shuffle_questions: Reorder questions per version
        shuffle_choices: Reshuffle multiple-choice options per position
        prevent_identical_positions: Limit overlap between consecutive forms
        balance_distributions: Compute a VersionBalanceReport
        max_workers: Thread pool size (None lets the executor decide)
    """

    num_versions: int
    seed: Optional[str] = None
    shuffle_questions: bool = True
    shuffle_choices: bool = True
    prevent_identical_positions: bool = True
    balance_distributions: bool = True
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.num_versions < 1:
            raise ConfigurationError(f"num_versions must be at least 1: {self.num_versions}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be positive: {self.max_workers}")


@dataclass(frozen=True)
class VersionBalanceReport:
    """
    Spread of category counts across versions.

    Attributes:
        is_balanced: No category spread exceeds the tolerance
        warnings: One line per unbalanced category value
        metrics: category -> value -> per-version counts (missing counts as 0)
    """

    is_balanced: bool
    warnings: Tuple[str, ...] = ()
    metrics: Dict[str, Dict[str, List[int]]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "is_balanced": self.is_balanced,
            "warnings": list(self.warnings),
            "metrics": {k: {v: list(c) for v, c in m.items()} for k, m in self.metrics.items()},
        }


@dataclass(frozen=True)
class VersionSet:
    """Versions of one generation run, in label order."""

    versions: Tuple[Version, ...]
    seed: str
    balance: Optional[VersionBalanceReport] = None

    def __iter__(self):
        return iter(self.versions)

    def __len__(self) -> int:
        return len(self.versions)

    def __getitem__(self, index: int) -> Version:
        return self.versions[index]

    @property
    def forms(self) -> Tuple[Form, ...]:
        return tuple(v.form for v in self.versions)

    def answer_keys(self) -> Dict[str, Dict[str, str]]:
        """Version label -> answer key."""
        return {v.version_label: dict(v.answer_key) for v in self.versions}


def generate_versions(
    subset: Sequence[Question],
    config: VersionGenerationConfig,
    *,
    on_version: Optional[Callable[[Version], None]] = None,
) -> VersionSet:
    """
    Generate answer-bearing versions of a question subset.

    Args:
        subset: Selected questions
        config: Generation options
        on_version: Called with each finished version, in label order; an
            exception it raises aborts generation

    Returns:
        VersionSet with versions A, B, C, ... in label order

    Raises:
        ConfigurationError: If the subset repeats a question id

    Example:
        >>> result = generate_versions(subset, VersionGenerationConfig(3, seed="midterm"))
        >>> [v.version_label for v in result]
        ['A', 'B', 'C']
    """
    seed = config.seed if config.seed is not None else default_seed()
    subset = list(subset)

    if config.shuffle_questions:
        forms = generate_forms(subset, config.num_versions, seed, config.prevent_identical_positions)
    else:
        forms = _unshuffled_forms(subset, config.num_versions, seed)

    by_id = {q.id: q for q in subset}

    # Versions are independent once their forms exist
    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        futures = [
            executor.submit(_build_version, form, index + 1, by_id, config.shuffle_choices)
            for index, form in enumerate(forms)
        ]
        built: List[Version] = []
        try:
            for future in futures:
                version = future.result()
                if on_version is not None:
                    on_version(version)
                built.append(version)
        except Exception:
            # Drop versions not yet started instead of waiting for them
            executor.shutdown(wait=False, cancel_futures=True)
            raise
    versions = tuple(built)

    balance = validate_version_balance(versions) if config.balance_distributions else None
    if balance is not None and not balance.is_balanced:
        for warning in balance.warnings:
            logger.warning(f"Version balance: {warning}")

    logger.info(f"Generated {len(versions)} versions of {len(subset)} questions (seed={seed})")
    return VersionSet(versions=versions, seed=seed, balance=balance)


def shuffle_choices(question: Question, seed: str) -> Tuple[Question, str]:
    """
    Shuffle a multiple-choice question's options and relabel them A, B, C, ...

    Returns:
        (question with new choices, new correct label). Non-MCQ questions
        are returned unchanged with their correct answer ("" when absent).

    Example:
        >>> q2, answer = shuffle_choices(q, "v1-choices-0")
        >>> q2.choices[answer] == q.correct_text
        True
    """
    if not question.is_multiple_choice or not question.choices:
        return question, question.correct_answer or ""

    entries = list(question.choices.items())
    shuffled = SeededRandom(seed).shuffle(entries)

    new_choices: Dict[str, str] = {}
    new_correct = ""
    for index, (old_label, text) in enumerate(shuffled):
        label = index_to_label(index)
        new_choices[label] = text
        if old_label == question.correct_answer:
            new_correct = label

    return question.with_choices(new_choices, new_correct), new_correct


def validate_version_balance(versions: Sequence[Version]) -> VersionBalanceReport:
    """
    Check that every category value appears a similar number of times per version.

    A value whose per-version counts spread by more than 2 yields a warning
    such as 'Topic "Algebra" varies by 3 questions across versions'.
    """
    metrics: Dict[str, Dict[str, List[int]]] = {name: {} for name in _CATEGORY_NAMES}

    for index, version in enumerate(versions):
        for question in version.questions:
            values = {
                "bloom_level": question.bloom_level.value,
                "difficulty": question.difficulty.value,
                "topic": question.topic,
            }
            for category, value in values.items():
                counts = metrics[category].setdefault(value, [0] * len(versions))
                counts[index] += 1

    warnings: List[str] = []
    for category, values in metrics.items():
        for value, counts in values.items():
            diff = spread(counts)
            if diff > FORMS.max_category_spread:
                warnings.append(
                    f'{_CATEGORY_NAMES[category]} "{value}" varies by {diff} questions across versions'
                )

    return VersionBalanceReport(is_balanced=not warnings, warnings=tuple(warnings), metrics=metrics)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _unshuffled_forms(subset: Sequence[Question], num_versions: int, seed: str) -> List[Form]:
    order = tuple(q.id for q in subset)
    if len(set(order)) != len(order):
        raise ConfigurationError("Subset contains duplicate question ids")
    metadata = FormMetadata.from_questions(subset)
    return [
        Form(
            version_label=index_to_label(i),
            question_order=order,
            shuffle_seed=form_seed(seed, i),
            metadata=metadata,
            form_id=f"form-{i}",
        )
        for i in range(num_versions)
    ]


def _build_version(
    form: Form,
    version_number: int,
    by_id: Dict[str, Question],
    relabel_choices: bool,
) -> Version:
    items: List[VersionItem] = []
    answer_key: Dict[str, str] = {}

    for index, question_id in enumerate(form.question_order):
        original = by_id[question_id]
        if relabel_choices:
            question, answer = shuffle_choices(original, f"{form.shuffle_seed}-choices-{index}")
        else:
            question, answer = original, original.correct_answer or ""

        items.append(VersionItem(
            position=index + 1,
            question=question,
            original_correct_answer=original.correct_answer,
        ))
        answer_key[str(index + 1)] = answer

    logger.debug(f"Built version {form.version_label} with {len(items)} items")
    return Version(
        form=form,
        version_number=version_number,
        items=tuple(items),
        answer_key=answer_key,
        version_id=f"version-{form.version_label}",
    )
