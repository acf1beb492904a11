"""Boundary validation for raw question and student records."""

from .validator import ValidationError, validate_pool, validate_question, validate_student

__all__ = [
    "ValidationError",
    "validate_pool",
    "validate_question",
    "validate_student",
]
