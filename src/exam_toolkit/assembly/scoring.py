"""
Module: assembly.scoring

Purpose:
    Pure balance metrics over question sets and count distributions.

Key Functions:
    - coverage_score(): Weighted distinct topic / Bloom level count
    - balance_score(): 1 - variance/mean^2 of per-topic counts, in [0, 1]
    - spread(): max - min of a count collection

Dependencies:
    - numpy: Population variance over count vectors
    - exam_toolkit.common.thresholds: Coverage weights

Used By:
    - assembly.strategies: AssemblyMetadata
    - distribution.strategies: Balance metrics
    - forms.versions: Version balance check
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

import numpy as np

from exam_toolkit.common.thresholds import ASSEMBLY
from exam_toolkit.core.models import Question


def coverage_score(selected: Sequence[Question]) -> float:
    """
    Diversity of a selection.

    (distinct_topics * 0.6 + distinct_bloom_levels * 0.4) / 10. Higher is
    better; no ceiling is enforced beyond the normalizer.

    Example:
        >>> coverage_score([])
        0.0
    """
    topics = {q.topic for q in selected}
    blooms = {q.bloom_level for q in selected}
    return (
        len(topics) * ASSEMBLY.coverage_topic_weight
        + len(blooms) * ASSEMBLY.coverage_bloom_weight
    ) / ASSEMBLY.coverage_normalizer


def balance_score(selected: Sequence[Question]) -> float:
    """
    Evenness of the per-topic split.

    Groups by topic and returns max(0, 1 - variance / mean^2) using the
    population variance. An even split scores 1.0; an empty selection
    scores 0.0.
    """
    if not selected:
        return 0.0
    counts = np.array(list(Counter(q.topic for q in selected).values()), dtype=float)
    mean = counts.mean()
    if mean == 0:
        return 0.0
    variance = counts.var()
    return float(max(0.0, 1.0 - variance / (mean * mean)))


def spread(counts: Iterable[int]) -> int:
    """Largest minus smallest count (0 when empty)."""
    values = np.fromiter(counts, dtype=np.int64)
    if values.size == 0:
        return 0
    return int(values.max() - values.min())
