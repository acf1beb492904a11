"""
Module: watermark

Purpose:
    Parsed form of a watermark code. Codes are opaque strings of five
    dash-separated segments; this record exposes the segments after
    verification.

Key Classes:
    - WatermarkCode: Parsed segments plus the is_valid verdict

Used By:
    - exam_toolkit.security.watermark
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class WatermarkCode:
    """
    Result of parsing a watermark code.

    Attributes:
        is_valid: True when the code has exactly five segments
        version_label: Segment 1
        test_id_hash: Segment 2
        student_hash: Segment 3 ("XXXX" when unassigned)
        timestamp_token: Segment 4 (base-36 milliseconds)
        random_token: Segment 5
    """

    is_valid: bool
    version_label: Optional[str] = None
    test_id_hash: Optional[str] = None
    student_hash: Optional[str] = None
    timestamp_token: Optional[str] = None
    random_token: Optional[str] = None

    @classmethod
    def invalid(cls) -> WatermarkCode:
        return cls(is_valid=False)

    @property
    def is_assigned(self) -> bool:
        """True when the code was issued for a specific student."""
        return self.is_valid and self.student_hash != "XXXX"

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "version_label": self.version_label,
            "test_id_hash": self.test_id_hash,
            "student_hash": self.student_hash,
            "timestamp_token": self.timestamp_token,
            "random_token": self.random_token,
        }
