"""
Module: audit

Purpose:
    Security audit records: exports, distributions, accesses and anything
    flagged as suspicious, written through the same sinks as the other
    run records.

Key Classes:
    - SecurityEventType: What happened
    - Severity: info / warning / critical
    - SecurityEvent: One audit trail entry

Used By:
    - exam_toolkit.security.audit
    - exam_toolkit.storage: Persistence batches
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional


class SecurityEventType(str, Enum):
    """Kind of audited action."""
    EXPORT = "export"
    DISTRIBUTION = "distribution"
    ACCESS = "access"
    ASSIGNMENT = "assignment"
    SUBMISSION = "submission"
    SUSPICIOUS = "suspicious"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | SecurityEventType) -> SecurityEventType:
        if isinstance(value, SecurityEventType):
            return value
        key = str(value).strip().lower()
        if key.startswith("security_"):
            key = key[len("security_"):]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown security event type: {value!r}") from None


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown severity: {value!r}") from None


@dataclass(frozen=True)
class SecurityEvent:
    """
    One entry of the security audit trail (immutable).

    Attributes:
        event_type: What happened
        test_id: Test (or version) the event concerns
        severity: How serious it is
        metadata: Free-form details (watermark code, student, file, ...)
        actor: Who triggered it, when known
        occurred_at: When it happened (UTC)
    """

    event_type: SecurityEventType
    test_id: str
    severity: Severity = Severity.INFO
    metadata: Dict[str, object] = field(default_factory=dict)
    actor: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_type", SecurityEventType.parse(self.event_type))
        object.__setattr__(self, "severity", Severity.parse(self.severity))
        object.__setattr__(self, "metadata", dict(self.metadata))
        if not self.test_id:
            raise ValueError("Security event needs a test id")

    @property
    def action(self) -> str:
        return f"security_{self.event_type.value}"

    def to_dict(self) -> dict:
        return {
            "entity_id": self.test_id,
            "action": self.action,
            "severity": self.severity.value,
            "actor": self.actor,
            "occurred_at": self.occurred_at.isoformat(),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> SecurityEvent:
        """Inverse of to_dict(); also accepts ``event_type`` and ``test_id`` keys."""
        return cls(
            event_type=data.get("event_type", data.get("action")),
            test_id=str(data.get("test_id", data.get("entity_id", ""))),
            severity=data.get("severity", Severity.INFO),
            metadata=dict(data.get("metadata") or {}),
            actor=data.get("actor"),
            occurred_at=datetime.fromisoformat(data["occurred_at"]),
        )
