"""
Module: output.stamp

Purpose:
    Draw watermark stamps onto rendered PDF versions and read the codes
    back from stamped files.

Key Functions:
    - stamp_document(): Stamp an open document in place
    - stamp_pdf(): Stamp a file and save the result
    - extract_watermark_codes(): Codes found in a PDF's text layer
    - find_watermark_codes(): Codes found in plain text

Layout (per stamped page):
    - "Version: X" top-right, the code underneath in smaller type
    - Student name top-left (when given)
    - Footer "X • CODE • YYYY-MM-DD" centred at the bottom
    - Light "VERSION X" across the page at 45 degrees

Dependencies:
    - fitz (PyMuPDF): PDF editing and text extraction

Used By:
    - exam_toolkit.cli: ``watermark stamp`` command
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Tuple

import fitz

from exam_toolkit.security.watermark import WatermarkStamp, verify_watermark_code

logger = logging.getLogger(__name__)

FONT = "helv"
MARGIN = 15
HEADER_COLOR: Tuple[float, float, float] = (0.39, 0.39, 0.39)
FOOTER_COLOR: Tuple[float, float, float] = (0.59, 0.59, 0.59)
DIAGONAL_COLOR: Tuple[float, float, float] = (0.86, 0.86, 0.86)
DIAGONAL_FONT_SIZE = 48

# Segments follow generate_watermark_code: any label, up to 8 test id chars,
# up to 4 student chars, base-36 time, 12 hex chars. Codes are whitespace bounded.
_CODE_PATTERN = re.compile(
    r"(?<!\S)[^\s-]+-[^\s-]{0,8}-[^\s-]{1,4}-[0-9A-Z]{1,13}-[0-9A-F]{12}(?!\S)"
)


def stamp_document(doc: fitz.Document, stamp: WatermarkStamp) -> int:
    """
    Stamp the pages listed in ``stamp.pages`` of an open document.

    Out-of-range page indices are skipped with a warning.

    Returns:
        Number of pages stamped.

    Example:
        >>> doc = fitz.open()
        >>> _ = doc.new_page()
        >>> stamp_document(doc, WatermarkStamp(code="A-1-XXXX-2-0123456789AB", version_label="A", pages=(0,)))
        1
    """
    stamped = 0
    for index in stamp.pages:
        if index >= doc.page_count:
            logger.warning(f"Page {index} out of range ({doc.page_count} pages), not stamped")
            continue
        _stamp_page(doc[index], stamp)
        stamped += 1

    logger.debug(f"Stamped {stamped} pages with {stamp.code}")
    return stamped


def stamp_pdf(source: Path, destination: Path, stamp: WatermarkStamp) -> int:
    """
    Stamp a PDF file and save it to ``destination``.

    Returns:
        Number of pages stamped.
    """
    source, destination = Path(source), Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    doc = fitz.open(source)
    try:
        stamped = stamp_document(doc, stamp)
        doc.save(destination, garbage=3, deflate=True)
    finally:
        doc.close()

    logger.info(f"Stamped {stamped} pages of {source.name} -> {destination.name}")
    return stamped


def extract_watermark_codes(pdf: Path | fitz.Document) -> List[str]:
    """
    Watermark codes present in a PDF's text, first-seen order, no repeats.
    """
    if isinstance(pdf, fitz.Document):
        return _codes_in(pdf)
    doc = fitz.open(Path(pdf))
    try:
        return _codes_in(doc)
    finally:
        doc.close()


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _stamp_page(page: fitz.Page, stamp: WatermarkStamp) -> None:
    width, height = page.rect.width, page.rect.height

    _insert_right(page, f"Version: {stamp.version_label}", width - MARGIN, 10 + 8, 8, HEADER_COLOR)
    _insert_right(page, stamp.code, width - MARGIN, 20 + 8, 6, HEADER_COLOR)

    if stamp.student_name:
        page.insert_text(fitz.Point(MARGIN, 10 + 8), stamp.student_name, fontname=FONT, fontsize=8, color=HEADER_COLOR)

    footer = f"{stamp.version_label} • {stamp.code} • {stamp.timestamp.date().isoformat()}"
    footer_width = fitz.get_text_length(footer, fontname=FONT, fontsize=6)
    page.insert_text(
        fitz.Point((width - footer_width) / 2, height - 10),
        footer,
        fontname=FONT,
        fontsize=6,
        color=FOOTER_COLOR,
    )

    diagonal = f"VERSION {stamp.version_label}"
    diagonal_width = fitz.get_text_length(diagonal, fontname=FONT, fontsize=DIAGONAL_FONT_SIZE)
    center = fitz.Point(width / 2, height / 2)
    page.insert_text(
        fitz.Point(center.x - diagonal_width / 2, center.y),
        diagonal,
        fontname=FONT,
        fontsize=DIAGONAL_FONT_SIZE,
        color=DIAGONAL_COLOR,
        morph=(center, fitz.Matrix(-45)),
    )


def _insert_right(page: fitz.Page, text: str, right: float, baseline: float, size: float, color) -> None:
    text_width = fitz.get_text_length(text, fontname=FONT, fontsize=size)
    page.insert_text(fitz.Point(right - text_width, baseline), text, fontname=FONT, fontsize=size, color=color)


def _codes_in(doc: fitz.Document) -> List[str]:
    found: List[str] = []
    for page in doc:
        for code in find_watermark_codes(page.get_text("text")):
            if code not in found:
                found.append(code)
    return found
