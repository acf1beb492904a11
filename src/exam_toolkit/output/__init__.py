"""Watermark stamping of rendered PDF versions."""

from .stamp import extract_watermark_codes, find_watermark_codes, stamp_document, stamp_pdf

__all__ = [
    "extract_watermark_codes",
    "find_watermark_codes",
    "stamp_document",
    "stamp_pdf",
]
