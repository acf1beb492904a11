"""
Module: security.watermark

Purpose:
    Tamper-evidence codes printed on exported tests. A code identifies the
    version, the test and (optionally) the student, plus a base-36
    timestamp and a random token:

        A-3F2A9C1B-S102-LQ8ZK0X1-9F0C2D4E6A1B

    Verification is a format check. HMAC signing is available as a
    separate, opt-in step for deployments that hold a secret.

Key Functions:
    - generate_watermark_code(): Build a code
    - verify_watermark_code(): Parse and format-check a code
    - sign_watermark_code(), verify_watermark_signature(): Opt-in HMAC
    - create_watermark(): Code plus render contract (WatermarkStamp)
    - create_security_metadata(): Dict stored next to an export
    - generate_tracking_metadata(), verify_tracking_metadata(): Checksummed tracking record

Dependencies:
    - secrets, hmac, hashlib, json (std)

Used By:
    - exam_toolkit.output.stamp: PDF stamping
    - exam_toolkit.cli: ``watermark`` command
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, Tuple

from exam_toolkit.core.models import WatermarkCode

logger = logging.getLogger(__name__)

UNASSIGNED_STUDENT = "XXXX"
SEGMENT_COUNT = 5
SIGNATURE_LENGTH = 16

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_TRACKED_FIELDS = ("watermark_code", "version", "student_id", "test_id", "generated_at")


@dataclass(frozen=True)
class WatermarkStamp:
    """
    What a renderer draws on each page of an exported version.

    Attributes:
        code: Watermark code
        version_label: Version letter
        pages: 0-based page indices to stamp
        student_name: Printed top-left when given
        timestamp: Issue time (footer date)
        test_id: Test the code was issued for
        student_id: Student the code was issued for
    """

    code: str
    version_label: str
    pages: Tuple[int, ...] = ()
    student_name: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    test_id: Optional[str] = None
    student_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "pages", tuple(self.pages))
        if any(p < 0 for p in self.pages):
            raise ValueError(f"Page indices must be non-negative: {self.pages}")


def generate_watermark_code(
    test_id: str,
    version_label: str,
    student_id: Optional[str] = None,
    *,
    clock: Optional[Callable[[], datetime]] = None,
    token_source: Optional[Callable[[int], str]] = None,
) -> str:
    """
    Build an upper-cased, five-segment watermark code.

    Segments: version label, first 8 chars of test_id, first 4 chars of
    student_id (or "XXXX"), base-36 millisecond timestamp, 12 random hex
    chars. Dashes inside ids are dropped so the code always splits into
    exactly five segments.

    Args:
        test_id: Test identifier
        version_label: Version letter
        student_id: Student identifier, None for an unassigned copy
        clock: Time source (defaults to UTC now)
        token_source: Hex token source taking a byte count (defaults to secrets.token_hex)

    Example:
        >>> code = generate_watermark_code("3f2a9c1b-77", "A", "S1024")
        >>> code.split("-")[:3]
        ['A', '3F2A9C1B', 'S102']
    """
    now = (clock or _utc_now)()
    token = (token_source or secrets.token_hex)(6)[:12]

    parts = [
        _clean(version_label),
        _clean(test_id)[:8],
        _clean(student_id)[:4] if student_id else UNASSIGNED_STUDENT,
        _to_base36(int(now.timestamp() * 1000)),
        token,
    ]
    return "-".join(parts).upper()


def verify_watermark_code(code: str) -> WatermarkCode:
    """
    Parse a watermark code.

    Format check only: the code is valid when it splits on "-" into exactly
    five segments. Malformed input returns ``WatermarkCode(is_valid=False)``
    rather than raising.

    Example:
        >>> verify_watermark_code("A-3F2A9C1B-XXXX-LQ8ZK0X1-9F0C2D4E6A1B").version_label
        'A'
        >>> verify_watermark_code("garbage").is_valid
        False
    """
    if not isinstance(code, str):
        return WatermarkCode.invalid()
    parts = code.strip().split("-")
    if len(parts) != SEGMENT_COUNT:
        logger.debug(f"Rejected watermark with {len(parts)} segments")
        return WatermarkCode.invalid()
    return WatermarkCode(
        is_valid=True,
        version_label=parts[0],
        test_id_hash=parts[1],
        student_hash=parts[2],
        timestamp_token=parts[3],
        random_token=parts[4],
    )


def sign_watermark_code(code: str, secret: str | bytes) -> str:
    """HMAC-SHA256 of the code, first 16 lowercase hex chars."""
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    digest = hmac.new(key, code.encode("utf-8"), hashlib.sha256).hexdigest()
    return digest[:SIGNATURE_LENGTH]


def verify_watermark_signature(code: str, signature: str, secret: str | bytes) -> bool:
    """Constant-time comparison of a signature against sign_watermark_code()."""
    expected = sign_watermark_code(code, secret)
    return hmac.compare_digest(expected, signature.strip().lower())


def create_watermark(
    test_id: str,
    version_label: str,
    pages: Sequence[int],
    *,
    student_id: Optional[str] = None,
    student_name: Optional[str] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> WatermarkStamp:
    """Issue a code and package it with what a renderer needs."""
    now = (clock or _utc_now)()
    code = generate_watermark_code(test_id, version_label, student_id, clock=lambda: now)
    logger.info(f"Issued watermark {code} for version {version_label}")
    return WatermarkStamp(
        code=code,
        version_label=version_label,
        pages=tuple(pages),
        student_name=student_name,
        timestamp=now,
        test_id=test_id,
        student_id=student_id,
    )


def create_security_metadata(
    stamp: WatermarkStamp,
    student_id: Optional[str] = None,
    distribution_strategy: Optional[str] = None,
) -> dict:
    """Metadata stored next to an exported, watermarked artifact."""
    metadata = {
        "watermark_code": stamp.code,
        "version_label": stamp.version_label,
        "student_id": student_id if student_id is not None else stamp.student_id,
        "generated_at": stamp.timestamp.isoformat(),
    }
    if distribution_strategy is not None:
        metadata["distribution_strategy"] = distribution_strategy
    return metadata


def generate_tracking_metadata(stamp: WatermarkStamp) -> dict:
    """
    Invisible tracking record for an issued watermark, with a checksum.

    The checksum covers code, version, student, test and issue time, so
    any edited field is detected by verify_tracking_metadata().

    Example:
        >>> meta = generate_tracking_metadata(stamp)
        >>> verify_tracking_metadata(meta)
        True
    """
    metadata = {
        "watermark_code": stamp.code,
        "version": stamp.version_label,
        "student_id": stamp.student_id,
        "test_id": stamp.test_id,
        "generated_at": stamp.timestamp.isoformat(),
    }
    metadata["checksum"] = _tracking_checksum(metadata)
    return metadata


def verify_tracking_metadata(metadata: dict) -> bool:
    """True when the stored checksum matches the tracked fields."""
    checksum = metadata.get("checksum")
    if not isinstance(checksum, str):
        return False
    return hmac.compare_digest(checksum, _tracking_checksum(metadata))


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _clean(value: Optional[str]) -> str:
    return (value or "").replace("-", "").strip()


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value > 0:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _tracking_checksum(metadata: dict) -> str:
    tracked = {key: metadata.get(key) for key in _TRACKED_FIELDS}
    payload = json.dumps(tracked, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:SIGNATURE_LENGTH]
