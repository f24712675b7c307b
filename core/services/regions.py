"""Toggle codes on PDF page regions.

Regions are matched by approximate geometric equality and toggled as a
whole; they are never split or snapped.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, List, Optional

from core.config import EngineConfig
from core.errors import InvalidReference
from core.segment import PdfRegion, Segment, ToggleResult, _generate_id, utcnow
from utils.logger import get_logger


class RegionToggler:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.config = config or EngineConfig()
        self.id_factory = id_factory or _generate_id
        self.logger = get_logger(__name__)

    def find_match(
        self, doc_id: str, segments: Iterable[Segment], region: PdfRegion
    ) -> Optional[Segment]:
        for segment in segments:
            if segment.doc_id != doc_id or not isinstance(segment.location, PdfRegion):
                continue
            if segment.location.matches(region, self.config.region_tolerance):
                return segment
        return None

    def toggle(
        self,
        doc_id: str,
        segments: Iterable[Segment],
        region: PdfRegion,
        code_id: str,
        *,
        text: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ToggleResult:
        if not code_id:
            raise InvalidReference("code", code_id)

        segments = list(segments)
        now = now or utcnow()
        match = self.find_match(doc_id, segments, region)

        result: List[Segment]
        if match is None:
            created = Segment.for_region(
                doc_id, region, [code_id], text=text, now=now, segment_id=self.id_factory()
            )
            result = segments + [created]
            self.logger.debug("Created region segment %s on page %d", created.segment_id, region.page_num)
        elif match.has_code(code_id):
            remaining = tuple(c for c in match.code_ids if c != code_id)
            if remaining:
                result = [match.with_codes(remaining, now=now) if s is match else s for s in segments]
            else:
                result = [s for s in segments if s is not match]
                self.logger.debug("Removed region segment %s", match.segment_id)
        else:
            updated = match.with_codes(match.code_ids + (code_id,), now=now)
            result = [updated if s is match else s for s in segments]

        return ToggleResult.from_change(segments, result, changed=True)
