"""Common utilities shared across the toolkit."""

from __future__ import annotations

from .labels import index_to_label, round_half_up
from .thresholds import (
    ASSEMBLY,
    DISTRIBUTION,
    FORMS,
    LENGTH,
    AssemblyThresholds,
    DistributionThresholds,
    FormThresholds,
    LengthThresholds,
)

__all__ = [
    # labels
    "index_to_label",
    "round_half_up",
    # thresholds
    "ASSEMBLY",
    "DISTRIBUTION",
    "FORMS",
    "LENGTH",
    "AssemblyThresholds",
    "DistributionThresholds",
    "FormThresholds",
    "LengthThresholds",
]
