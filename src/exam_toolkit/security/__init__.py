"""
Security Package

Watermark codes for exported tests, seat-aware security heuristics and
the security audit trail.
"""

from .audit import (
    AuditResult,
    audit_distribution,
    audit_records,
    log_security_event,
    security_events_from_records,
)
from .seating import (
    adjacent_seats,
    detect_duplicate_submissions,
    generate_secure_seat_map,
    layout_adjacency,
)
from .watermark import (
    WatermarkStamp,
    create_security_metadata,
    create_watermark,
    generate_tracking_metadata,
    generate_watermark_code,
    sign_watermark_code,
    verify_tracking_metadata,
    verify_watermark_code,
    verify_watermark_signature,
)

__all__ = [
    "WatermarkStamp",
    "create_security_metadata",
    "create_watermark",
    "generate_tracking_metadata",
    "generate_watermark_code",
    "sign_watermark_code",
    "verify_tracking_metadata",
    "verify_watermark_code",
    "verify_watermark_signature",
    "adjacent_seats",
    "detect_duplicate_submissions",
    "generate_secure_seat_map",
    "layout_adjacency",
    "AuditResult",
    "audit_distribution",
    "audit_records",
    "log_security_event",
    "security_events_from_records",
]
