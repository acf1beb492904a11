"""
Module: errors

Purpose:
    Exception hierarchy shared by the assembly, forms, distribution and
    controller modules. Only configuration/precondition violations are
    raised; soft problems travel as warning strings on results.

Key Classes:
    - ExamToolkitError: Base class for all toolkit errors
    - ConfigurationError: Invalid strategy, counts or inputs
    - BuildError: Failure in the batch generation pipeline
    - BuildCancelled: Batch abandoned by the caller before persistence

Used By:
    - exam_toolkit.assembly, exam_toolkit.forms, exam_toolkit.distribution
    - exam_toolkit.controller
"""

from __future__ import annotations


class ExamToolkitError(Exception):
    """Base class for all toolkit errors."""
    pass


class ConfigurationError(ExamToolkitError, ValueError):
    """Invalid configuration or precondition (unknown strategy, empty inputs)."""
    pass


class BuildError(ExamToolkitError):
    """Error during the batch build pipeline."""
    pass


class BuildCancelled(BuildError):
    """Build abandoned through its cancellation token; nothing was persisted."""
    pass
