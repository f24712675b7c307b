"""Turn raw UI selections into canonical ranges, snapping onto existing segments.

DOM text selection is imprecise by a few characters (whitespace, pixel
rounding). Without snapping, re-selecting a coded span after a re-render
would create a near-duplicate neighbour instead of toggling the existing one.
"""
from __future__ import annotations

import math
from typing import Iterable, Optional, Tuple

from core.config import EngineConfig
from core.document import CodingDocument
from core.segment import NormalizedRange, Segment
from utils.logger import get_logger


class SelectionNormalizer:
    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.logger = get_logger(__name__)

    def normalize(
        self,
        document: CodingDocument,
        segments: Iterable[Segment],
        start_index: object,
        end_index: object,
    ) -> Optional[NormalizedRange]:
        """Swap, clamp and snap a raw selection; ``None`` when nothing is selected."""

        bounds = _as_bounds(start_index, end_index)
        if bounds is None:
            return None
        start, end = bounds
        if end < start:
            start, end = end, start

        length = document.length
        start = max(0, min(start, length))
        end = max(0, min(end, length))
        if end <= start:
            return None

        snapped_id = None
        if self.config.snap_enabled:
            match = self.find_snap_target(document, segments, start, end)
            if match is not None:
                self.logger.debug(
                    "Snapped selection [%d, %d) to segment %s %s",
                    start,
                    end,
                    match.segment_id,
                    match.bounds,
                )
                start, end = match.bounds
                snapped_id = match.segment_id

        return NormalizedRange(
            start_index=start,
            end_index=end,
            text=document.content[start:end],
            snapped_segment_id=snapped_id,
        )

    def find_snap_target(
        self, document: CodingDocument, segments: Iterable[Segment], start: int, end: int
    ) -> Optional[Segment]:
        """Best existing text segment that *[start, end)* is an imprecise re-selection of."""

        selection_length = end - start
        if selection_length <= 0:
            return None

        config = self.config
        best: Optional[Segment] = None
        best_score = -math.inf

        for segment in segments:
            if segment.doc_id != document.doc_id or not segment.is_text_range:
                continue
            seg_start, seg_end = segment.bounds
            seg_length = seg_end - seg_start
            if seg_length <= 0:
                continue

            overlap = min(end, seg_end) - max(start, seg_start)
            if overlap <= 0:
                continue

            overlap_to_segment = overlap / seg_length
            overlap_to_selection = overlap / selection_length
            if (
                overlap_to_segment < config.snap_min_overlap_to_segment
                or overlap_to_selection < config.snap_min_overlap_to_selection
            ):
                continue

            tolerance = config.edge_tolerance(seg_length)
            start_drift = abs(start - seg_start)
            end_drift = abs(end - seg_end)
            if start_drift > tolerance or end_drift > tolerance:
                continue

            drift_penalty = (start_drift + end_drift) / (2 * tolerance) if tolerance else 0.0
            score = 2 * overlap_to_segment + overlap_to_selection - drift_penalty
            if score > best_score:
                best_score = score
                best = segment

        return best


def _as_bounds(start_index: object, end_index: object) -> Optional[Tuple[int, int]]:
    """Coerce raw offsets to ints; ``None`` when either is non-numeric or non-finite.

    Fractional offsets are truncated toward zero (``4.9`` becomes ``4``), the
    same way a substring lookup treats them, before swapping and clamping.
    """

    try:
        start = float(start_index)  # type: ignore[arg-type]
        end = float(end_index)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(start) and math.isfinite(end)):
        return None
    return int(start), int(end)
