"""Common data model for coded document segments.

A segment applies one or more codes either to a character range of a
document (:class:`TextRange`) or to a box on a PDF page (:class:`PdfRegion`).
Segments are immutable; engine operations return new instances.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple, Union
import uuid

if TYPE_CHECKING:
    from core.document import CodingDocument


def _generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def unique_codes(code_ids: Iterable[str]) -> Tuple[str, ...]:
    """Deduplicate *code_ids* keeping first-seen order."""

    return tuple(dict.fromkeys(code_ids))


@dataclass(frozen=True)
class TextRange:
    """Half-open character range ``[start_index, end_index)``."""

    start_index: int
    end_index: int

    @property
    def length(self) -> int:
        return self.end_index - self.start_index

    def as_interval(self) -> Tuple[int, int]:
        return self.start_index, self.end_index


@dataclass(frozen=True)
class PdfRegion:
    """Axis-aligned box on a PDF page, in page-normalised 0..1 coordinates."""

    page_num: int
    x_norm: float
    y_norm: float
    w_norm: float
    h_norm: float
    start_index: Optional[int] = None
    end_index: Optional[int] = None

    @property
    def box(self) -> Tuple[float, float, float, float]:
        return self.x_norm, self.y_norm, self.w_norm, self.h_norm

    def matches(self, other: "PdfRegion", tolerance: float) -> bool:
        """Approximate equality: same page and every coordinate within *tolerance*."""

        if self.page_num != other.page_num:
            return False
        return all(abs(mine - theirs) <= tolerance for mine, theirs in zip(self.box, other.box))

    @classmethod
    def from_raw(
        cls,
        page_num: object,
        x: object,
        y: object,
        w: object,
        h: object,
        *,
        start_index: Optional[int] = None,
        end_index: Optional[int] = None,
    ) -> "PdfRegion":
        """Coerce loosely typed coordinates into a valid region.

        Values in ``(1, 100]`` are read as percentages; everything is clamped
        to ``[0, 1]`` and the page number to at least 1.
        """

        return cls(
            page_num=max(1, _to_int(page_num, 1)),
            x_norm=_to_norm(x),
            y_norm=_to_norm(y),
            w_norm=_to_norm(w),
            h_norm=_to_norm(h),
            start_index=start_index,
            end_index=end_index,
        )


Location = Union[TextRange, PdfRegion]


@dataclass(frozen=True)
class Segment:
    """Represents a set of codes applied to one span of a document."""

    doc_id: str
    code_ids: Tuple[str, ...]
    location: Location
    text: str = ""
    created_at: datetime = field(default_factory=utcnow)
    modified_at: datetime = field(default_factory=utcnow)
    segment_id: str = field(default_factory=_generate_id)

    @classmethod
    def for_text_range(
        cls,
        document: "CodingDocument",
        start_index: int,
        end_index: int,
        code_ids: Iterable[str],
        *,
        now: Optional[datetime] = None,
        segment_id: Optional[str] = None,
    ) -> "Segment":
        now = now or utcnow()
        return cls(
            doc_id=document.doc_id,
            code_ids=unique_codes(code_ids),
            location=TextRange(start_index, end_index),
            text=document.content[start_index:end_index],
            created_at=now,
            modified_at=now,
            segment_id=segment_id or _generate_id(),
        )

    @classmethod
    def for_region(
        cls,
        doc_id: str,
        region: PdfRegion,
        code_ids: Iterable[str],
        *,
        text: Optional[str] = None,
        now: Optional[datetime] = None,
        segment_id: Optional[str] = None,
    ) -> "Segment":
        now = now or utcnow()
        return cls(
            doc_id=doc_id,
            code_ids=unique_codes(code_ids),
            location=region,
            text=text if text else f"[PDF region: page {region.page_num}]",
            created_at=now,
            modified_at=now,
            segment_id=segment_id or _generate_id(),
        )

    @property
    def is_text_range(self) -> bool:
        return isinstance(self.location, TextRange)

    @property
    def is_pdf_region(self) -> bool:
        return isinstance(self.location, PdfRegion)

    @property
    def start_index(self) -> Optional[int]:
        return self.location.start_index

    @property
    def end_index(self) -> Optional[int]:
        return self.location.end_index

    @property
    def bounds(self) -> Tuple[int, int]:
        if not isinstance(self.location, TextRange):
            raise TypeError("PDF region segments have no character bounds")
        return self.location.as_interval()

    @property
    def length(self) -> int:
        start, end = self.bounds
        return end - start

    def has_code(self, code_id: str) -> bool:
        return code_id in self.code_ids

    def with_codes(self, code_ids: Iterable[str], *, now: datetime) -> "Segment":
        return replace(self, code_ids=unique_codes(code_ids), modified_at=now)

    def with_bounds(
        self, document: "CodingDocument", start_index: int, end_index: int, *, now: datetime
    ) -> "Segment":
        return replace(
            self,
            location=TextRange(start_index, end_index),
            text=document.content[start_index:end_index],
            modified_at=now,
        )

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-serialisable record of the segment."""

        record: Dict[str, object] = {
            "id": self.segment_id,
            "sourceId": self.doc_id,
            "codeRefs": list(self.code_ids),
            "text": self.text,
            "created": self.created_at.isoformat(),
            "modified": self.modified_at.isoformat(),
        }
        if self.start_index is not None:
            record["startPosition"] = self.start_index
        if self.end_index is not None:
            record["endPosition"] = self.end_index
        if isinstance(self.location, PdfRegion):
            region = self.location
            record["pdfRegion"] = {
                "pageNum": region.page_num,
                "xNorm": region.x_norm,
                "yNorm": region.y_norm,
                "wNorm": region.w_norm,
                "hNorm": region.h_norm,
            }
        return record

    @classmethod
    def from_dict(cls, record: Dict[str, object]) -> "Segment":
        start = _optional_int(record.get("startPosition"))
        end = _optional_int(record.get("endPosition"))
        region_block = record.get("pdfRegion")

        location: Location
        if isinstance(region_block, dict):
            location = PdfRegion.from_raw(
                region_block.get("pageNum"),
                region_block.get("xNorm", region_block.get("x")),
                region_block.get("yNorm", region_block.get("y")),
                region_block.get("wNorm", region_block.get("width")),
                region_block.get("hNorm", region_block.get("height")),
                start_index=start,
                end_index=end,
            )
        else:
            if start is None or end is None:
                raise ValueError(f"Text segment record {record.get('id')!r} lacks positions")
            location = TextRange(start, end)

        created = _parse_time(record.get("created"))
        return cls(
            doc_id=str(record["sourceId"]),
            code_ids=unique_codes(str(code) for code in record.get("codeRefs") or ()),
            location=location,
            text=str(record.get("text") or ""),
            created_at=created,
            modified_at=_parse_time(record.get("modified"), default=created),
            segment_id=str(record["id"]),
        )


@dataclass(frozen=True)
class NormalizedRange:
    """A canonical, clamped selection ready for toggling."""

    start_index: int
    end_index: int
    text: str
    snapped_segment_id: Optional[str] = None

    @property
    def snapped(self) -> bool:
        return self.snapped_segment_id is not None

    @property
    def length(self) -> int:
        return self.end_index - self.start_index


@dataclass(frozen=True)
class ToggleResult:
    """Replacement segment list plus the status flags the host acts on."""

    segments: List[Segment]
    changed: bool
    skipped_tiny: bool = False
    created_ids: Tuple[str, ...] = ()
    removed_ids: Tuple[str, ...] = ()

    @classmethod
    def unchanged(cls, segments: Iterable[Segment], *, skipped_tiny: bool = False) -> "ToggleResult":
        return cls(segments=list(segments), changed=False, skipped_tiny=skipped_tiny)

    @classmethod
    def from_change(
        cls, before: Iterable[Segment], after: List[Segment], *, changed: bool
    ) -> "ToggleResult":
        before_ids = {segment.segment_id for segment in before}
        after_ids = {segment.segment_id for segment in after}
        return cls(
            segments=after,
            changed=changed,
            created_ids=tuple(s.segment_id for s in after if s.segment_id not in before_ids),
            removed_ids=tuple(sorted(before_ids - after_ids)),
        )


def _to_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _optional_int(value: object) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)  # type: ignore[arg-type]


def _to_norm(value: object) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    if 1 < number <= 100:
        number /= 100
    return max(0.0, min(1.0, number))


def _parse_time(value: object, default: Optional[datetime] = None) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return default or utcnow()
