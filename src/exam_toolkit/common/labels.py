"""Label and rounding helpers shared across the toolkit.

Version labels run A, B, ..., Z, AA, AB, ... so any number of forms gets a
unique label. Choice labels use the same scheme.
"""

from __future__ import annotations

import math


def index_to_label(index: int) -> str:
    """
    Convert a 0-based index to a spreadsheet-style letter label.

    Example:
        >>> [index_to_label(i) for i in (0, 1, 25, 26, 27)]
        ['A', 'B', 'Z', 'AA', 'AB']
    """
    if index < 0:
        raise ValueError(f"index must be non-negative: {index}")
    label = ""
    n = index + 1
    while n > 0:
        n, remainder = divmod(n - 1, 26)
        label = chr(65 + remainder) + label
    return label


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with .5 going up.

    Python's round() uses banker's rounding (round(2.5) == 2); allocation
    targets use half-up so 2.5 questions becomes 3.
    """
    return int(math.floor(value + 0.5))
