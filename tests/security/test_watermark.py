"""
Unit Tests for Watermark Codes

Tests for code generation, verification, signing, stamp metadata and
tracking checksums.
"""

from datetime import datetime, timezone

import pytest

from exam_toolkit.security import (
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

FIXED = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def _token(nbytes):
    return "0123456789ab"


class TestGenerateWatermarkCode:
    """Tests for generate_watermark_code function."""

    def test_generate_when_student_given_then_five_upper_segments(self):
        # Act
        code = generate_watermark_code("3f2a9c1b-77", "A", "s1024", clock=lambda: FIXED, token_source=_token)

        # Assert
        parts = code.split("-")
        assert parts[:3] == ["A", "3F2A9C1B", "S102"]
        assert int(parts[3], 36) == int(FIXED.timestamp() * 1000)
        assert parts[4] == "0123456789AB"
        assert code == code.upper()

    def test_generate_when_no_student_then_unassigned_marker(self):
        code = generate_watermark_code("exam", "B", clock=lambda: FIXED, token_source=_token)

        assert code.split("-")[2] == "XXXX"

    def test_generate_when_ids_contain_dashes_then_still_five_segments(self):
        code = generate_watermark_code("exam-2024-final", "C", "stu-01", clock=lambda: FIXED)

        parts = code.split("-")
        assert len(parts) == 5
        assert parts[1] == "EXAM2024"
        assert parts[2] == "STU0"

    def test_generate_when_default_token_then_twelve_hex_chars(self):
        code = generate_watermark_code("exam", "A")

        token = code.split("-")[4]
        assert len(token) == 12
        int(token, 16)

    def test_generate_when_called_twice_then_codes_differ(self):
        assert generate_watermark_code("exam", "A") != generate_watermark_code("exam", "A")


class TestVerifyWatermarkCode:
    """Tests for verify_watermark_code function."""

    def test_verify_when_generated_code_then_segments_parsed(self):
        # Arrange
        code = generate_watermark_code("3f2a9c1b", "A", "S1024", clock=lambda: FIXED, token_source=_token)

        # Act
        parsed = verify_watermark_code(code)

        # Assert
        assert parsed.is_valid is True
        assert parsed.version_label == "A"
        assert parsed.test_id_hash == "3F2A9C1B"
        assert parsed.student_hash == "S102"
        assert parsed.random_token == "0123456789AB"
        assert parsed.is_assigned is True

    @pytest.mark.parametrize("code", ["garbage", "A-B-C-D", "A-B-C-D-E-F", "", None, 42])
    def test_verify_when_malformed_then_invalid_without_raising(self, code):
        parsed = verify_watermark_code(code)

        assert parsed.is_valid is False
        assert parsed.version_label is None

    def test_verify_when_unassigned_then_not_assigned(self):
        assert verify_watermark_code("A-EXAM-XXXX-LQ8ZK0X1-0123456789AB").is_assigned is False


class TestWatermarkSignature:
    """Tests for the HMAC signing helpers."""

    def test_sign_when_called_then_sixteen_lowercase_hex(self):
        signature = sign_watermark_code("A-EXAM-XXXX-LQ8ZK0X1-0123456789AB", "secret")

        assert len(signature) == 16
        assert signature == signature.lower()

    def test_verify_signature_when_matching_then_true_case_insensitive(self):
        code = "A-EXAM-XXXX-LQ8ZK0X1-0123456789AB"
        signature = sign_watermark_code(code, b"secret")

        assert verify_watermark_signature(code, signature.upper(), "secret") is True

    def test_verify_signature_when_code_altered_then_false(self):
        signature = sign_watermark_code("A-EXAM-XXXX-LQ8ZK0X1-0123456789AB", "secret")

        assert verify_watermark_signature("B-EXAM-XXXX-LQ8ZK0X1-0123456789AB", signature, "secret") is False

    def test_verify_signature_when_wrong_secret_then_false(self):
        code = "A-EXAM-XXXX-LQ8ZK0X1-0123456789AB"

        assert verify_watermark_signature(code, sign_watermark_code(code, "one"), "two") is False


class TestCreateWatermark:
    """Tests for create_watermark and create_security_metadata."""

    def test_create_when_called_then_stamp_carries_inputs(self):
        # Act
        stamp = create_watermark("exam-1", "B", [0, 2], student_id="S1", student_name="Ada", clock=lambda: FIXED)

        # Assert
        assert stamp.version_label == "B"
        assert stamp.pages == (0, 2)
        assert stamp.student_name == "Ada"
        assert stamp.timestamp == FIXED
        assert verify_watermark_code(stamp.code).is_valid is True

    def test_stamp_when_negative_page_then_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            WatermarkStamp(code="A-B-C-D-E", version_label="A", pages=(-1,))

    def test_security_metadata_when_strategy_given_then_included(self):
        stamp = create_watermark("exam-1", "A", [0], student_id="S1", clock=lambda: FIXED)

        metadata = create_security_metadata(stamp, distribution_strategy="balanced")

        assert metadata == {
            "watermark_code": stamp.code,
            "version_label": "A",
            "student_id": "S1",
            "generated_at": FIXED.isoformat(),
            "distribution_strategy": "balanced",
        }

    def test_security_metadata_when_student_overridden_then_uses_argument(self):
        stamp = create_watermark("exam-1", "A", [0], clock=lambda: FIXED)

        metadata = create_security_metadata(stamp, student_id="S9")

        assert metadata["student_id"] == "S9"
        assert "distribution_strategy" not in metadata


class TestTrackingMetadata:
    """Tests for generate_tracking_metadata and verify_tracking_metadata."""

    @pytest.fixture
    def stamp(self):
        return create_watermark("exam-1", "C", [0], student_id="S7", clock=lambda: FIXED)

    def test_generate_when_called_then_fields_and_checksum(self, stamp):
        metadata = generate_tracking_metadata(stamp)

        assert metadata["watermark_code"] == stamp.code
        assert metadata["version"] == "C"
        assert metadata["test_id"] == "exam-1"
        assert metadata["generated_at"] == FIXED.isoformat()
        assert len(metadata["checksum"]) == 16
        assert verify_tracking_metadata(metadata) is True

    @pytest.mark.parametrize("field, value", [
        ("version", "D"),
        ("student_id", "S8"),
        ("generated_at", "2024-05-02T09:30:00+00:00"),
    ])
    def test_verify_when_field_edited_then_false(self, stamp, field, value):
        metadata = {**generate_tracking_metadata(stamp), field: value}

        assert verify_tracking_metadata(metadata) is False

    def test_verify_when_checksum_missing_then_false(self, stamp):
        metadata = generate_tracking_metadata(stamp)
        del metadata["checksum"]

        assert verify_tracking_metadata(metadata) is False
