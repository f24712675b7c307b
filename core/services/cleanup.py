"""Post-mutation cleanup: coalesce identical-bounds segments, prune short ones."""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Tuple

from core.segment import Segment, unique_codes
from utils.logger import get_logger

LOGGER = get_logger(__name__)

_Key = Tuple[str, int, int]


def coalesce(segments: Iterable[Segment]) -> List[Segment]:
    """Merge text segments that share ``(doc_id, start, end)``.

    The first segment of each group keeps its id; codes are unioned in
    first-seen order, ``created_at`` takes the minimum and ``modified_at`` the
    maximum. Text segments left without codes, or with non-positive length,
    are dropped. PDF region segments pass through untouched.
    """

    merged: Dict[_Key, Segment] = {}
    order: List[object] = []
    folded = 0

    for segment in segments:
        if not segment.is_text_range:
            order.append(segment)
            continue

        start, end = segment.bounds
        if end <= start:
            continue

        key = (segment.doc_id, start, end)
        existing = merged.get(key)
        if existing is None:
            code_ids = unique_codes(segment.code_ids)
            if code_ids != segment.code_ids:
                segment = replace(segment, code_ids=code_ids)
            merged[key] = segment
            order.append(key)
            continue

        folded += 1
        merged[key] = replace(
            existing,
            code_ids=unique_codes(existing.code_ids + segment.code_ids),
            created_at=min(existing.created_at, segment.created_at),
            modified_at=max(existing.modified_at, segment.modified_at),
            text=existing.text or segment.text,
        )

    result: List[Segment] = []
    for entry in order:
        segment = merged[entry] if isinstance(entry, tuple) else entry
        if segment.is_text_range and not segment.code_ids:
            continue
        result.append(segment)

    if folded:
        LOGGER.debug("Coalesced %d duplicate-bounds segments", folded)
    return result


def prune(segments: Iterable[Segment], min_length: int) -> List[Segment]:
    """Drop text segments shorter than *min_length*."""

    return [s for s in segments if not s.is_text_range or s.length >= min_length]


def clean(segments: Iterable[Segment], min_length: int) -> List[Segment]:
    """Coalesce, then prune."""

    return prune(coalesce(segments), min_length)
