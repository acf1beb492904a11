"""
Exam Toolkit Core Package

Shared data models and utilities for every stage of the engine.

1. **Immutable Data Models**
   - Frozen dataclasses; relabelled choices produce new Question instances

2. **Closed Vocabulary**
   - Bloom level, difficulty and question type are enums parsed at the
     boundary, never free strings inside the algorithms

3. **Explicit Randomness**
   - `SeededRandom` is passed in, never a module-level generator
"""

from .models import (
    BloomLevel,
    Difficulty,
    QuestionType,
    Question,
    QuestionPool,
    Form,
    FormMetadata,
    Version,
    VersionItem,
    Student,
    Assignment,
    DistributionReport,
    DistributionLog,
    WatermarkCode,
)
from .utils.seeded_random import SeededRandom

__all__ = [
    "BloomLevel",
    "Difficulty",
    "QuestionType",
    "Question",
    "QuestionPool",
    "Form",
    "FormMetadata",
    "Version",
    "VersionItem",
    "Student",
    "Assignment",
    "DistributionReport",
    "DistributionLog",
    "WatermarkCode",
    "SeededRandom",
]
