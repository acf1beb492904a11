"""
Module: forms.parallel

Purpose:
    Produce N equivalent orderings (forms) of a fixed question subset.
    Each form is a seeded Fisher-Yates shuffle; consecutive forms are
    nudged apart so that no more than 20% of positions hold the same
    question as the previous form (best effort).

Key Functions:
    - generate_forms(): Seeded forms A, B, C, ...
    - generate_disjoint_forms(): Forms with no question in common
    - validate_equivalence(): Advisory difficulty / coverage comparison
    - identical_positions(): Count positions two orders share

Dependencies:
    - exam_toolkit.core.utils.seeded_random: SeededRandom
    - exam_toolkit.common.thresholds: FORMS
    - exam_toolkit.assembly.solver: Greedy assembly of disjoint forms

Used By:
    - forms.versions: Question order of each version
    - exam_toolkit.cli: ``solve --forms`` command
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, MutableSequence, Optional, Sequence, Tuple

from exam_toolkit.assembly.solver import SolverConstraint, SolverResult, assemble_greedy, form_equivalence
from exam_toolkit.common.labels import index_to_label
from exam_toolkit.common.thresholds import FORMS
from exam_toolkit.core.models import Form, FormMetadata, Question
from exam_toolkit.core.utils.seeded_random import SeededRandom, default_seed
from exam_toolkit.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EquivalenceReport:
    """Advisory comparison of every form against form A."""

    are_equivalent: bool
    issues: Tuple[str, ...] = ()


def form_seed(seed: str, index: int) -> str:
    """Seed of the form at ``index`` (0-based)."""
    return f"{seed}-form-{index}"


def generate_forms(
    subset: Sequence[Question],
    num_forms: int,
    seed: str,
    prevent_identical_positions: bool = True,
) -> List[Form]:
    """
    Generate parallel forms of a question subset.

    Args:
        subset: Questions every form contains
        num_forms: Number of forms (>= 1)
        seed: Base seed; form i uses "{seed}-form-{i}"
        prevent_identical_positions: Reduce overlap with the previous form

    Returns:
        Forms labelled A, B, C, ... (AA, AB, ... after Z)

    Raises:
        ConfigurationError: If num_forms < 1 or the subset repeats an id

    Example:
        >>> forms = generate_forms(questions, 3, seed="exam-2024")
        >>> [f.version_label for f in forms]
        ['A', 'B', 'C']
    """
    if num_forms < 1:
        raise ConfigurationError(f"num_forms must be at least 1: {num_forms}")
    ids = [q.id for q in subset]
    if len(set(ids)) != len(ids):
        raise ConfigurationError("Subset contains duplicate question ids")

    forms: List[Form] = []
    for i in range(num_forms):
        seed_i = form_seed(seed, i)
        rng = SeededRandom(seed_i)
        shuffled = rng.shuffle(subset)

        if prevent_identical_positions and i > 0:
            _adjust_for_diversity(shuffled, forms[i - 1].question_order, rng)

        forms.append(Form(
            version_label=index_to_label(i),
            question_order=tuple(q.id for q in shuffled),
            shuffle_seed=seed_i,
            metadata=FormMetadata.from_questions(shuffled),
            form_id=f"form-{i}",
        ))

    logger.info(f"Generated {num_forms} forms of {len(subset)} questions (seed={seed})")
    return forms


@dataclass(frozen=True)
class DisjointForms:
    """
    Result of generate_disjoint_forms().

    Attributes:
        forms: Forms A, B, ... with no question in common
        assemblies: Greedy assembly behind each form, same order
        equivalence: "A-B" -> similarity in [0, 1] for every pair of forms
        warnings: Forms that could not be built for lack of questions
    """

    forms: Tuple[Form, ...]
    assemblies: Tuple[SolverResult, ...]
    equivalence: Dict[str, float] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "forms": [f.to_dict() for f in self.forms],
            "assemblies": [a.to_dict() for a in self.assemblies],
            "equivalence": dict(self.equivalence),
            "warnings": list(self.warnings),
        }


def generate_disjoint_forms(
    pool: Sequence[Question],
    constraints: Sequence[SolverConstraint],
    target_length: int,
    num_forms: int,
    seed: Optional[str] = None,
) -> DisjointForms:
    """
    Build forms that share no questions, each assembled greedily.

    Form i is assembled from the questions no earlier form used, then put
    in a seeded order. Generation stops early, with a warning, once fewer
    than target_length questions are left.

    Raises:
        ConfigurationError: If num_forms < 1 or target_length < 1

    Example:
        >>> result = generate_disjoint_forms(pool, rules, target_length=5, num_forms=2, seed="s")
        >>> set(result.forms[0].question_order) & set(result.forms[1].question_order)
        set()
    """
    if num_forms < 1:
        raise ConfigurationError(f"num_forms must be at least 1: {num_forms}")
    if target_length < 1:
        raise ConfigurationError(f"target_length must be positive: {target_length}")
    seed = seed if seed is not None else default_seed()

    used: set[str] = set()
    forms: List[Form] = []
    assemblies: List[SolverResult] = []
    warnings: List[str] = []

    for i in range(num_forms):
        label = index_to_label(i)
        available = [q for q in pool if q.id not in used]
        if len(available) < target_length:
            warnings.append(
                f"Not enough questions for form {label}: {len(available)} left, {target_length} needed"
            )
            break

        assembly = assemble_greedy(available, constraints, target_length)
        used.update(assembly.question_ids)

        seed_i = form_seed(seed, i)
        ordered = SeededRandom(seed_i).shuffle(assembly.selected)
        forms.append(Form(
            version_label=label,
            question_order=tuple(q.id for q in ordered),
            shuffle_seed=seed_i,
            metadata=FormMetadata.from_questions(ordered),
            form_id=f"form-{i}",
        ))
        assemblies.append(assembly)

    equivalence: Dict[str, float] = {}
    for i in range(len(assemblies)):
        for j in range(i + 1, len(assemblies)):
            score = form_equivalence(assemblies[i].metrics, assemblies[j].metrics)
            equivalence[f"{forms[i].version_label}-{forms[j].version_label}"] = score
            logger.debug(f"Forms {forms[i].version_label} and {forms[j].version_label} equivalence: {score:.2f}")

    for warning in warnings:
        logger.warning(warning)
    logger.info(f"Generated {len(forms)} disjoint forms of {target_length} questions (seed={seed})")
    return DisjointForms(
        forms=tuple(forms),
        assemblies=tuple(assemblies),
        equivalence=equivalence,
        warnings=tuple(warnings),
    )


def identical_positions(a: Sequence[str], b: Sequence[str]) -> int:
    """Number of positions holding the same id in both orders."""
    return sum(1 for x, y in zip(a, b) if x == y)


def validate_equivalence(forms: Sequence[Form]) -> EquivalenceReport:
    """
    Compare each form with form A.

    Flags average-difficulty drift above 0.3 and a differing number of
    covered topics. Issues are advisory; generation never fails on them.
    """
    if len(forms) < 2:
        return EquivalenceReport(are_equivalent=True)

    issues: List[str] = []
    base = forms[0].metadata
    for form in forms[1:]:
        drift = abs(form.metadata.avg_difficulty - base.avg_difficulty)
        if drift > FORMS.max_difficulty_deviation:
            issues.append(f"Form {form.version_label} difficulty varies significantly ({drift:.2f})")
        if len(form.metadata.topic_coverage) != len(base.topic_coverage):
            issues.append(f"Form {form.version_label} has different topic coverage")

    for issue in issues:
        logger.warning(issue)
    return EquivalenceReport(are_equivalent=not issues, issues=tuple(issues))


def _adjust_for_diversity(
    current: MutableSequence[Question],
    previous_order: Sequence[str],
    rng: SeededRandom,
) -> None:
    """Swap away positions shared with the previous form once the 20% cap is exceeded."""
    # A single question cannot move
    if len(current) < 2:
        return
    cap = math.floor(len(current) * FORMS.max_identical_position_ratio)
    count = 0
    swaps = 0

    for i in range(len(current)):
        if current[i].id != previous_order[i]:
            continue
        count += 1
        if count > cap:
            # Draw from the other positions; a swap never creates a new match
            swap = rng.randint_below(len(current) - 1)
            if swap >= i:
                swap += 1
            current[i], current[swap] = current[swap], current[i]
            count -= 1
            swaps += 1

    if swaps:
        logger.debug(f"Diversity adjustment made {swaps} swaps (cap={cap})")
