"""
Module: security.seating

Purpose:
    Seat-aware heuristics: give neighbouring seats different versions and
    flag submissions that arrive at exactly the same instant.

Key Functions:
    - generate_secure_seat_map(): Greedy colouring of a seat adjacency graph
    - adjacent_seats(): Neighbours of one seat in a 2-D layout
    - layout_adjacency(): Seat list and adjacency matrix of a 2-D layout
    - detect_duplicate_submissions(): Identical-timestamp check
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Layout cell with no seat (aisle, pillar)
Layout = Sequence[Sequence[Optional[str]]]

DUPLICATE_SUBMISSION_PATTERN = "Multiple submissions at exact same timestamp detected"


def generate_secure_seat_map(
    seats: Sequence[str],
    versions: Sequence[str],
    adjacency: Sequence[Sequence[int]],
) -> Dict[str, str]:
    """
    Assign a version to every seat so neighbours differ where possible.

    Seats are visited in order; each gets the least-used version not
    already held by an adjacent, already-assigned seat. When every version
    is taken by a neighbour the first version is used.

    Args:
        seats: Seat ids
        versions: Version labels
        adjacency: Square 0/1 matrix over seats (row i lists neighbours of seats[i])

    Example:
        >>> generate_secure_seat_map(["1", "2", "3"], ["A", "B"], [[0, 1, 0], [1, 0, 1], [0, 1, 0]])
        {'1': 'A', '2': 'B', '3': 'A'}
    """
    if not versions:
        raise ValueError("At least one version is required")

    seat_map: Dict[str, str] = {}
    usage: Dict[str, int] = {v: 0 for v in versions}

    for index, seat in enumerate(seats):
        row = adjacency[index] if index < len(adjacency) else ()
        taken = {
            seat_map[other]
            for j, other in enumerate(seats)
            if j < len(row) and row[j] == 1 and other in seat_map
        }
        candidates = [v for v in versions if v not in taken]
        if candidates:
            chosen = min(candidates, key=lambda v: usage[v])
        else:
            chosen = versions[0]
            logger.debug(f"Seat {seat}: every version used by a neighbour, using {chosen}")
        seat_map[seat] = chosen
        usage[chosen] += 1

    return seat_map


def adjacent_seats(layout: Layout, row: int, col: int, *, diagonal: bool = False) -> List[str]:
    """Seats directly left, right, in front and behind (and diagonal when asked)."""
    offsets = [(-1, 0), (1, 0), (0, -1), (0, 1)]
    if diagonal:
        offsets += [(-1, -1), (-1, 1), (1, -1), (1, 1)]

    neighbours = []
    for dr, dc in offsets:
        r, c = row + dr, col + dc
        if 0 <= r < len(layout) and 0 <= c < len(layout[r]) and layout[r][c]:
            neighbours.append(layout[r][c])
    return neighbours


def layout_adjacency(layout: Layout, *, diagonal: bool = False) -> Tuple[List[str], List[List[int]]]:
    """
    Flatten a 2-D layout into (seats, adjacency matrix).

    Seats are listed row by row; empty cells are skipped.
    """
    seats = [seat for row in layout for seat in row if seat]
    index = {seat: i for i, seat in enumerate(seats)}
    if len(index) != len(seats):
        raise ValueError("Seat ids in the layout must be unique")

    matrix = [[0] * len(seats) for _ in seats]
    for r, row in enumerate(layout):
        for c, seat in enumerate(row):
            if not seat:
                continue
            for neighbour in adjacent_seats(layout, r, c, diagonal=diagonal):
                matrix[index[seat]][index[neighbour]] = 1
    return seats, matrix


def detect_duplicate_submissions(timestamps: Iterable[datetime | float]) -> Optional[str]:
    """
    Return a pattern description when two submissions share an exact timestamp.

    Missing (None) timestamps are ignored.
    """
    counts = Counter(t for t in timestamps if t is not None)
    duplicates = [t for t, n in counts.items() if n > 1]
    if not duplicates:
        return None
    logger.warning(f"{len(duplicates)} submission timestamps are shared by several students")
    return DUPLICATE_SUBMISSION_PATTERN
