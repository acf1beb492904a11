"""
Forms Package

Parallel forms (orderings) and answer-bearing versions.

Public API:
    generate_forms(subset, num_forms, seed) -> list[Form]
    generate_versions(subset, config) -> VersionSet
"""

from .parallel import (
    DisjointForms,
    EquivalenceReport,
    form_seed,
    generate_disjoint_forms,
    generate_forms,
    identical_positions,
    validate_equivalence,
)
from .versions import (
    VersionBalanceReport,
    VersionGenerationConfig,
    VersionSet,
    generate_versions,
    shuffle_choices,
    validate_version_balance,
)

__all__ = [
    "DisjointForms",
    "EquivalenceReport",
    "form_seed",
    "generate_disjoint_forms",
    "generate_forms",
    "identical_positions",
    "validate_equivalence",
    "VersionBalanceReport",
    "VersionGenerationConfig",
    "VersionSet",
    "generate_versions",
    "shuffle_choices",
    "validate_version_balance",
]
