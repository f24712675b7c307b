"""Toggle one code across a text range of a document.

The toggle removes the code wherever the range already carries it and adds
it over the remaining uncovered parts, in one pass:

1. every text segment touching the range is cut at the range bounds;
   pieces inside the range lose the code;
2. pieces left without codes or shorter than the minimum length are dropped;
3. uncovered gaps of at least the minimum length get the code, either on an
   existing segment with exactly those bounds or on a new segment;
4. the result is coalesced and pruned.

When a segment is split, its longest surviving piece keeps the segment id and
creation time so that memos attached to it stay attached.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from core.config import EngineConfig
from core.document import CodingDocument
from core.errors import InvalidBoundaries, InvalidReference
from core.intervals import Interval, intersect, merge_intervals, overlaps, subtract_intervals
from core.segment import Segment, TextRange, ToggleResult, _generate_id, utcnow
from core.services.cleanup import clean
from utils.logger import get_logger

_Piece = Tuple[int, int, Tuple[str, ...]]


class SegmentMutator:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.config = config or EngineConfig()
        self.id_factory = id_factory or _generate_id
        self.logger = get_logger(__name__)

    def toggle(
        self,
        document: CodingDocument,
        segments: Iterable[Segment],
        start_index: int,
        end_index: int,
        code_id: str,
        *,
        now: Optional[datetime] = None,
    ) -> ToggleResult:
        """Toggle *code_id* over ``[start_index, end_index)`` of *document*.

        *segments* may hold segments of other documents; they are returned
        untouched. The range must already be canonical (see
        :class:`~core.services.selection.SelectionNormalizer`).
        """

        if not code_id:
            raise InvalidReference("code", code_id)
        if not 0 <= start_index < end_index <= document.length:
            raise InvalidBoundaries(
                f"Range [{start_index}, {end_index}) is outside document "
                f"{document.doc_id!r} of length {document.length}"
            )

        segments = list(segments)
        now = now or utcnow()
        min_length = self.config.min_coding_length
        selection: Interval = (start_index, end_index)

        touching = [s for s in segments if _touches(s, document.doc_id, selection)]
        covered = merge_intervals(
            intersect(s.bounds, selection) for s in touching if s.has_code(code_id)
        )

        # Tiny ranges may only remove coding, never create it.
        if end_index - start_index < min_length and not covered:
            self.logger.debug(
                "Skipped tiny range [%d, %d) for code %s", start_index, end_index, code_id
            )
            return ToggleResult.unchanged(segments, skipped_tiny=True)

        to_add = [
            gap
            for gap in subtract_intervals(selection, covered)
            if gap[1] - gap[0] >= min_length
        ]

        touching_keys = {id(s) for s in touching}
        changed = False
        working: List[Segment] = []
        for segment in segments:
            if id(segment) not in touching_keys:
                working.append(segment)
                continue
            pieces, removed = self._split(document, segment, selection, code_id, now)
            changed = changed or removed
            working.extend(pieces)

        for start, end in to_add:
            index = _find_exact(working, document.doc_id, start, end)
            if index is None:
                working.append(
                    Segment.for_text_range(
                        document, start, end, [code_id], now=now, segment_id=self.id_factory()
                    )
                )
                changed = True
                continue
            target = working[index]
            if not target.has_code(code_id):
                working[index] = replace(
                    target,
                    code_ids=target.code_ids + (code_id,),
                    text=document.content[start:end],
                    modified_at=now,
                )
                changed = True

        if not changed:
            return ToggleResult.unchanged(segments)

        result = clean(working, min_length)
        self.logger.debug(
            "Toggled code %s on %s [%d, %d): covered=%s added=%s, %d -> %d segments",
            code_id,
            document.doc_id,
            start_index,
            end_index,
            covered,
            to_add,
            len(segments),
            len(result),
        )
        return ToggleResult.from_change(segments, result, changed=True)

    def _split(
        self,
        document: CodingDocument,
        segment: Segment,
        selection: Interval,
        code_id: str,
        now: datetime,
    ) -> Tuple[List[Segment], bool]:
        seg_start, seg_end = segment.bounds
        cuts = sorted({seg_start, seg_end} | {c for c in selection if seg_start < c < seg_end})

        removed = False
        pieces: List[_Piece] = []
        for start, end in zip(cuts, cuts[1:]):
            code_ids = segment.code_ids
            if overlaps((start, end), selection) and code_id in code_ids:
                code_ids = tuple(c for c in code_ids if c != code_id)
                removed = True
            pieces.append((start, end, code_ids))

        if self.config.absorb_tiny_remnants:
            pieces = self._absorb_tiny(pieces)

        min_length = self.config.min_coding_length
        survivors = [p for p in pieces if p[2] and p[1] - p[0] >= min_length]
        if not survivors:
            return [], removed
        if survivors == [(seg_start, seg_end, segment.code_ids)]:
            return [segment], removed

        heir = max(range(len(survivors)), key=lambda i: survivors[i][1] - survivors[i][0])
        result: List[Segment] = []
        for index, (start, end, code_ids) in enumerate(survivors):
            if index == heir:
                result.append(
                    replace(
                        segment,
                        location=TextRange(start, end),
                        text=document.content[start:end],
                        code_ids=code_ids,
                        modified_at=now,
                    )
                )
            else:
                result.append(
                    Segment.for_text_range(
                        document, start, end, code_ids, now=now, segment_id=self.id_factory()
                    )
                )
        return result, removed

    def _absorb_tiny(self, pieces: Sequence[_Piece]) -> List[_Piece]:
        """Fold sub-minimum pieces into an adjacent piece with the same codes."""

        min_length = self.config.min_coding_length
        merged: List[_Piece] = []
        for start, end, code_ids in pieces:
            if merged:
                prev_start, prev_end, prev_codes = merged[-1]
                tiny = end - start < min_length or prev_end - prev_start < min_length
                if tiny and code_ids and prev_codes == code_ids:
                    merged[-1] = (prev_start, end, code_ids)
                    continue
            merged.append((start, end, code_ids))
        return merged


def _touches(segment: Segment, doc_id: str, selection: Interval) -> bool:
    return segment.doc_id == doc_id and segment.is_text_range and overlaps(segment.bounds, selection)


def _find_exact(segments: Sequence[Segment], doc_id: str, start: int, end: int) -> Optional[int]:
    for index, segment in enumerate(segments):
        if segment.doc_id == doc_id and segment.is_text_range and segment.bounds == (start, end):
            return index
    return None
