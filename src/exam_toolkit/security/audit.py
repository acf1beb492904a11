"""
Module: security.audit

Purpose:
    Security audit trail. Events are written as ``security_event`` records
    through a persistence sink; a distribution audit combines the balance
    verdict of a run with the critical events recorded for its test.

Key Functions:
    - log_security_event(): Build, log and persist one SecurityEvent
    - security_events_from_records(): SecurityEvents in stored records
    - audit_distribution(): Verdict for one distribution run
    - audit_records(): Same, read from stored records (e.g. a JSONL file)

Dependencies:
    - exam_toolkit.storage: RecordBatch, PersistenceSink

Used By:
    - exam_toolkit.cli: ``audit`` command, ``watermark stamp --audit``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from exam_toolkit.core.models import (
    DistributionReport,
    SecurityEvent,
    SecurityEventType,
    Severity,
)
from exam_toolkit.storage import PersistenceSink, RecordBatch

logger = logging.getLogger(__name__)

CRITICAL_EVENT_LIMIT = 10

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.CRITICAL: logging.ERROR,
}


@dataclass(frozen=True)
class AuditResult:
    """
    Outcome of a distribution audit.

    Attributes:
        secure: No issue was found
        issues: What is wrong
        recommendations: What to do about it, same order as issues
    """

    secure: bool
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "secure": self.secure,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
        }


def log_security_event(
    sink: PersistenceSink,
    event_type: SecurityEventType | str,
    test_id: str,
    metadata: Optional[Mapping[str, object]] = None,
    *,
    severity: Severity | str = Severity.INFO,
    actor: Optional[str] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> SecurityEvent:
    """
    Record a security event.

    The event goes to the application log at a level matching its severity
    and is written to ``sink`` as a one-record batch.

    Returns:
        The persisted event

    Raises:
        ValueError: If the event type or severity is unknown
        Exception: Whatever the sink raises, unchanged

    Example:
        >>> event = log_security_event(InMemorySink(), "export", "exam-1", {"code": "A-..."})
        >>> event.action
        'security_export'
    """
    event = SecurityEvent(
        event_type=event_type,
        test_id=test_id,
        severity=severity,
        metadata=dict(metadata or {}),
        actor=actor,
        occurred_at=(clock or _utc_now)(),
    )
    logger.log(_LOG_LEVELS[event.severity], f"Security event {event.action} for {test_id} ({event.severity.value})")

    try:
        sink.write_batch(RecordBatch(security_events=(event,)))
    except Exception as e:
        logger.error(f"Failed to persist security event {event.action} for {test_id}: {e}")
        raise
    return event


def security_events_from_records(records: Iterable[Mapping[str, object]]) -> List[SecurityEvent]:
    """SecurityEvents among stored records, in record order."""
    return [SecurityEvent.from_dict(dict(r)) for r in records if r.get("kind") == "security_event"]


def audit_distribution(
    report: DistributionReport,
    events: Sequence[SecurityEvent] = (),
    test_id: Optional[str] = None,
) -> AuditResult:
    """
    Audit one distribution run.

    Flags an unbalanced version distribution and any critical security
    events recorded for ``test_id`` (all events when test_id is None).
    At most the 10 most recent critical events are counted.
    """
    issues: List[str] = []
    recommendations: List[str] = []

    if not report.is_balanced:
        issues.append("Unbalanced version distribution detected")
        recommendations.append("Redistribute tests to ensure equal version distribution")

    critical = sorted(
        (
            e for e in events
            if e.severity is Severity.CRITICAL and (test_id is None or e.test_id == test_id)
        ),
        key=lambda e: e.occurred_at,
        reverse=True,
    )[:CRITICAL_EVENT_LIMIT]
    if critical:
        issues.append(f"{len(critical)} critical security events detected")
        recommendations.append("Review security logs and investigate flagged events")

    result = AuditResult(secure=not issues, issues=tuple(issues), recommendations=tuple(recommendations))
    if result.secure:
        logger.info(f"Distribution audit passed for {test_id or 'all tests'}")
    else:
        for issue in issues:
            logger.warning(f"Distribution audit: {issue}")
    return result


def audit_records(records: Sequence[Mapping[str, object]], test_id: str) -> AuditResult:
    """
    Audit the latest distribution of ``test_id`` found in stored records.

    A test with no stored distribution log is reported as not secure.
    """
    logs = [
        r for r in records
        if r.get("kind") == "distribution_log" and r.get("parent_test_id") == test_id
    ]
    if not logs:
        logger.warning(f"No distribution log found for {test_id}")
        return AuditResult(
            secure=False,
            issues=(f"No distribution recorded for {test_id}",),
            recommendations=("Distribute the test before auditing it",),
        )

    settings = logs[-1].get("settings") or {}
    report = DistributionReport.from_dict(dict(settings.get("balance_metrics") or {}))
    return audit_distribution(report, security_events_from_records(records), test_id)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
