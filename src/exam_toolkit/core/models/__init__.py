"""
Core Models Package

Immutable, validated data models shared by every stage of the engine.

**DESIGN RATIONALE:**

All models in this package are frozen dataclasses. This ensures:
1. No stage mutates a Question or a previously emitted Form/Version
2. Safe to pass between worker threads during version fan-out
3. Easier to reason about determinism (output depends on input + seed)

| Model | Produced by | Consumed by |
|-------|-------------|-------------|
| `Question`, `QuestionPool` | question repository | assembly, forms |
| `Form` | forms.parallel | forms.versions |
| `Version` | forms.versions | storage, distribution |
| `Assignment`, `DistributionReport` | distribution | storage |
| `WatermarkCode` | security.watermark | callers verifying exports |
| `SecurityEvent` | security.audit | storage, audits |
"""

from .questions import BloomLevel, Difficulty, QuestionType, Question, QuestionPool
from .forms import FormMetadata, Form, VersionItem, Version
from .distribution import Student, Assignment, DistributionReport, DistributionLog
from .watermark import WatermarkCode
from .audit import SecurityEvent, SecurityEventType, Severity

__all__ = [
    "BloomLevel",
    "Difficulty",
    "QuestionType",
    "Question",
    "QuestionPool",
    "FormMetadata",
    "Form",
    "VersionItem",
    "Version",
    "Student",
    "Assignment",
    "DistributionReport",
    "DistributionLog",
    "WatermarkCode",
    "SecurityEvent",
    "SecurityEventType",
    "Severity",
]
