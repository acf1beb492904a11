"""
Module: controller

Purpose:
    Orchestrate the batch pipeline.
    Filter → Select → Generate versions → Persist

Key Functions:
    - build_versions(): Main entry point for building test versions

Key Classes:
    - BuildResult: Complete build result

Dependencies:
    - exam_toolkit.assembly: Question selection
    - exam_toolkit.forms: Forms and versions
    - exam_toolkit.storage: Persistence sinks

Used By:
    - exam_toolkit.cli: ``versions`` command
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from exam_toolkit.assembly import AssemblyResult, select_questions
from exam_toolkit.core.models import Question, QuestionPool, Version
from exam_toolkit.core.utils.seeded_random import default_seed
from exam_toolkit.errors import BuildCancelled, BuildError
from exam_toolkit.forms import EquivalenceReport, VersionSet, generate_versions, validate_equivalence
from exam_toolkit.storage import PersistenceSink, RecordBatch

from .config import BuildConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """
    Complete build result (immutable).

    Attributes:
        selection: Assembly result (selected subset and its scores)
        versions: Generated versions with their balance report
        equivalence: Advisory comparison of the forms
        seed: Seed actually used (chosen here when the config had none)
        metadata: Build metadata dictionary
        warnings: Selection, equivalence and balance warnings

    Example:
        >>> result = build_versions(pool, BuildConfig(target_count=20, num_versions=3))
        >>> print(f"Built {len(result.versions)} versions of {len(result.selection.selected)} questions")
    """

    selection: AssemblyResult
    versions: VersionSet
    equivalence: EquivalenceReport
    seed: str
    metadata: dict
    warnings: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "metadata": dict(self.metadata),
            "selection": self.selection.to_dict(),
            "versions": [v.to_dict() for v in self.versions],
            "warnings": list(self.warnings),
        }


def build_versions(
    pool: QuestionPool | Sequence[Question],
    config: BuildConfig,
    sink: Optional[PersistenceSink] = None,
    cancel_event: Optional[threading.Event] = None,
) -> BuildResult:
    """
    Select a subset and generate versions from it.

    Pipeline:
    1. Filter the pool by topic
    2. Select questions
    3. Generate versions (checking for cancellation after each one)
    4. Persist forms and versions as one batch (when a sink is given)

    Args:
        pool: Question pool
        config: Build configuration
        sink: Where to persist forms and versions (optional)
        cancel_event: Set it to stop the build; checked after selection,
            after each version and before persistence

    Returns:
        BuildResult

    Raises:
        BuildError: If the pool is empty or nothing could be selected
        BuildCancelled: If cancel_event was set; nothing is persisted
        Exception: Whatever the sink raises, unchanged
    """
    start_time = time.perf_counter()
    warnings = []

    if not isinstance(pool, QuestionPool):
        pool = QuestionPool.of(pool)
    seed = config.seed if config.seed is not None else default_seed()

    logger.info(
        f"Starting build: {config.num_versions} versions of {config.target_count} questions "
        f"({config.strategy.value}, seed={seed})"
    )

    # 1. Filter
    if config.topics:
        pool = pool.filter(topics=config.topics)
        logger.info(f"After topic filter: {len(pool)} questions")
    if len(pool) == 0:
        raise BuildError("No questions match the specified filters")

    # 2. Select
    selection = select_questions(pool, config.assembly_config(seed))
    warnings.extend(selection.metadata.warnings)
    if not selection.selected:
        raise BuildError("No questions were selected")
    _check_cancelled(cancel_event, "selection")

    # 3. Generate versions
    def on_version(version: Version) -> None:
        logger.debug(f"Version {version.version_label} ready")
        _check_cancelled(cancel_event, f"version {version.version_label}")

    versions = generate_versions(selection.selected, config.version_config(seed), on_version=on_version)
    equivalence = validate_equivalence(versions.forms)
    warnings.extend(equivalence.issues)
    if versions.balance is not None:
        warnings.extend(versions.balance.warnings)

    metadata = _build_metadata(config, seed, selection, versions)

    # 4. Persist
    _check_cancelled(cancel_event, "persistence")
    if sink is not None:
        batch = RecordBatch(forms=versions.forms, versions=versions.versions)
        try:
            sink.write_batch(batch)
        except Exception as e:
            logger.error(f"Failed to persist {len(batch)} records: {e}")
            raise

    elapsed = time.perf_counter() - start_time
    logger.info(f"Build completed in {elapsed:.2f}s")

    return BuildResult(
        selection=selection,
        versions=versions,
        equivalence=equivalence,
        seed=seed,
        metadata=metadata,
        warnings=tuple(warnings),
    )


def _check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"Build cancelled after {stage}")
        raise BuildCancelled(f"Build cancelled after {stage}")


def _build_metadata(
    config: BuildConfig,
    seed: str,
    selection: AssemblyResult,
    versions: VersionSet,
) -> dict:
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "seed": seed,
        "strategy": config.strategy.value,
        "target_count": config.target_count,
        "selected_count": len(selection.selected),
        "num_versions": len(versions),
        "version_labels": [v.version_label for v in versions],
        "coverage_score": selection.metadata.coverage_score,
        "balance_score": selection.metadata.balance_score,
        "parent_test_id": config.parent_test_id,
        "generated_by": config.actor,
    }
