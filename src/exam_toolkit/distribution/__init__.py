"""
Distribution Package

Assigns test versions to students and reports how evenly they were spread.

Public API:
    distribute(students, version_ids, version_labels, strategy, seed) -> DistributionResult
"""

from .engine import DistributionResult, distribute
from .strategies import DistributionStrategy, assign_versions, calculate_balance_metrics

__all__ = [
    "DistributionResult",
    "DistributionStrategy",
    "assign_versions",
    "calculate_balance_metrics",
    "distribute",
]
