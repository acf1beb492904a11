"""
Assembly Package

Question selection, balancing and test-length recommendation.

Public API:
    select_questions(pool, config) -> AssemblyResult
    assemble_greedy(pool, constraints, target_length) -> SolverResult
    apply_comprehensive_balance(questions, constraints, priority) -> list
    optimize_length(config) -> OptimalLength
"""

from .balancer import (
    BalancePriority,
    BalanceValidation,
    apply_comprehensive_balance,
    balance_by_bloom,
    balance_by_difficulty,
    balance_by_topic,
    validate_balance,
)
from .config import AssemblyConfig, AssemblyConstraints, AssemblyStrategy
from .length import (
    LengthOptimizerConfig,
    LengthOption,
    MarginalGain,
    OptimalLength,
    marginal_gain,
    optimize_length,
)
from .scoring import balance_score, coverage_score, spread
from .solver import (
    ConstraintType,
    SolverConstraint,
    SolverMetrics,
    SolverResult,
    assemble_greedy,
    evaluate_constraint,
    form_equivalence,
)
from .strategies import AssemblyMetadata, AssemblyResult, select_questions

__all__ = [
    "AssemblyConfig",
    "AssemblyConstraints",
    "AssemblyStrategy",
    "AssemblyMetadata",
    "AssemblyResult",
    "select_questions",
    "BalancePriority",
    "BalanceValidation",
    "apply_comprehensive_balance",
    "balance_by_bloom",
    "balance_by_difficulty",
    "balance_by_topic",
    "validate_balance",
    "ConstraintType",
    "SolverConstraint",
    "SolverMetrics",
    "SolverResult",
    "assemble_greedy",
    "evaluate_constraint",
    "form_equivalence",
    "LengthOptimizerConfig",
    "LengthOption",
    "MarginalGain",
    "OptimalLength",
    "marginal_gain",
    "optimize_length",
    "balance_score",
    "coverage_score",
    "spread",
]
