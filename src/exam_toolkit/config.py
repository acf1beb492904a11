"""
Module: config

Purpose:
    Configuration dataclass for the batch pipeline (select, then generate
    versions, then persist). Immutable configuration with validation on
    construction.

Key Classes:
    - BuildConfig: Main configuration for build_versions()

Dependencies:
    - dataclasses (std)
    - exam_toolkit.assembly.config, exam_toolkit.forms.versions

Used By:
    - exam_toolkit.controller: Main build controller
    - exam_toolkit.cli: ``versions`` command
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from exam_toolkit.assembly.config import AssemblyConfig, AssemblyConstraints, AssemblyStrategy
from exam_toolkit.errors import ConfigurationError
from exam_toolkit.forms.versions import VersionGenerationConfig


@dataclass(frozen=True)
class BuildConfig:
    """
    Configuration for building test versions (immutable).

    Attributes:
        target_count: Number of questions per version
        num_versions: Number of versions to generate
        strategy: Selection strategy
        seed: Seed for selection and shuffling (time-based when None)
        topics: Optional topic filter applied before selection
        constraints: Distributions for the constraint-based strategy
        shuffle_questions: Reorder questions per version
        shuffle_choices: Relabel multiple-choice options per version
        prevent_identical_positions: Limit overlap between consecutive forms
        balance_distributions: Check category balance across versions
        parent_test_id: Test the versions belong to (audit)
        actor: Who ran the build (audit)
        max_workers: Thread pool size for version generation

    Example:
        >>> config = BuildConfig(target_count=20, num_versions=3, seed="midterm")
        >>> config.assembly_config("midterm").strategy
        <AssemblyStrategy.BALANCED: 'balanced'>
    """

    # Required
    target_count: int

    # Versions
    num_versions: int = 2
    shuffle_questions: bool = True
    shuffle_choices: bool = True
    prevent_identical_positions: bool = True
    balance_distributions: bool = True
    max_workers: Optional[int] = None

    # Selection behavior
    strategy: AssemblyStrategy = AssemblyStrategy.BALANCED
    seed: Optional[str] = None
    topics: List[str] = field(default_factory=list)
    constraints: Optional[AssemblyConstraints] = None

    # Audit
    parent_test_id: Optional[str] = None
    actor: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        object.__setattr__(self, "strategy", AssemblyStrategy.parse(self.strategy))
        if self.target_count <= 0:
            raise ConfigurationError(f"target_count must be positive: {self.target_count}")
        if self.num_versions < 1:
            raise ConfigurationError(f"num_versions must be at least 1: {self.num_versions}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be positive: {self.max_workers}")

    def assembly_config(self, seed: str) -> AssemblyConfig:
        return AssemblyConfig(
            strategy=self.strategy,
            target_count=self.target_count,
            seed=seed,
            constraints=self.constraints,
        )

    def version_config(self, seed: str) -> VersionGenerationConfig:
        return VersionGenerationConfig(
            num_versions=self.num_versions,
            seed=seed,
            shuffle_questions=self.shuffle_questions,
            shuffle_choices=self.shuffle_choices,
            prevent_identical_positions=self.prevent_identical_positions,
            balance_distributions=self.balance_distributions,
            max_workers=self.max_workers,
        )
