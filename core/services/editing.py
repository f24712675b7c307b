"""Direct edits on stored segments that bypass the toggle engine."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from core.document import CodingDocument
from core.errors import InvalidBoundaries, InvalidReference
from core.segment import Segment, utcnow
from core.services.cleanup import clean


def remove_code_from_segments(
    segments: Iterable[Segment],
    segment_ids: Iterable[str],
    code_id: str,
    min_length: int,
    *,
    now: Optional[datetime] = None,
) -> Tuple[List[Segment], bool]:
    """Strip *code_id* from the named segments without splitting them.

    Returns the new list and whether anything changed.
    """

    targets = set(segment_ids)
    segments = list(segments)
    if not targets or not code_id:
        return segments, False

    now = now or utcnow()
    changed = False
    result: List[Segment] = []
    for segment in segments:
        if segment.segment_id not in targets or not segment.has_code(code_id):
            result.append(segment)
            continue
        changed = True
        remaining = tuple(c for c in segment.code_ids if c != code_id)
        if remaining:
            result.append(segment.with_codes(remaining, now=now))

    if not changed:
        return segments, False
    return clean(result, min_length), True


def delete_segments(segments: Iterable[Segment], segment_ids: Iterable[str]) -> List[Segment]:
    doomed = set(segment_ids)
    return [s for s in segments if s.segment_id not in doomed]


def edit_boundaries(
    document: CodingDocument,
    segments: Iterable[Segment],
    segment_id: str,
    start_index: int,
    end_index: int,
    min_length: int,
    *,
    now: Optional[datetime] = None,
) -> List[Segment]:
    """Move a text segment to new bounds.

    Only ``0 <= start < end <= len(content)`` is validated; the cleanup pass
    afterwards merges the segment into an identical-bounds neighbour or drops
    it when it became shorter than *min_length*.
    """

    segments = list(segments)
    target = next((s for s in segments if s.segment_id == segment_id), None)
    if target is None:
        raise InvalidReference("segment", segment_id)
    if not target.is_text_range:
        raise InvalidBoundaries("Boundary editing is not available for PDF region codings")
    if target.doc_id != document.doc_id:
        raise InvalidReference("document", document.doc_id)
    if not 0 <= start_index < end_index <= document.length:
        raise InvalidBoundaries(
            f"Invalid boundaries [{start_index}, {end_index}) for document of length {document.length}"
        )

    now = now or utcnow()
    moved = target.with_bounds(document, start_index, end_index, now=now)
    return clean([moved if s is target else s for s in segments], min_length)
