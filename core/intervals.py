"""Interval algebra over half-open ``[start, end)`` character ranges."""
from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

Interval = Tuple[int, int]


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Merge overlapping or touching intervals into a sorted disjoint list.

    Degenerate intervals (``end <= start``) are dropped. Touching intervals
    such as ``(0, 3)`` and ``(3, 5)`` merge into ``(0, 5)``.
    """

    valid = sorted((start, end) for start, end in intervals if end > start)
    if not valid:
        return []

    merged: List[Interval] = [valid[0]]
    for start, end in valid[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def subtract_intervals(target: Interval, covered: Sequence[Interval]) -> List[Interval]:
    """Return the parts of *target* not covered by *covered*.

    *covered* must be sorted and merged, as returned by :func:`merge_intervals`.
    """

    start, end = target
    if end <= start:
        return []
    if not covered:
        return [(start, end)]

    gaps: List[Interval] = []
    cursor = start
    for covered_start, covered_end in covered:
        clipped_start = max(start, covered_start)
        clipped_end = min(end, covered_end)
        if clipped_end <= clipped_start:
            continue
        if clipped_start > cursor:
            gaps.append((cursor, clipped_start))
        cursor = max(cursor, clipped_end)
    if cursor < end:
        gaps.append((cursor, end))
    return gaps


def intersect(first: Interval, second: Interval) -> Interval:
    """Intersection of two intervals; degenerate when they do not overlap."""

    return max(first[0], second[0]), min(first[1], second[1])


def overlaps(first: Interval, second: Interval) -> bool:
    return first[0] < second[1] and first[1] > second[0]
