"""Formatting utilities for exporting and previewing coded segments."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from core.document import Code, CodingDocument
from core.segment import Segment, unique_codes


@dataclass(frozen=True)
class CodedSpan:
    """Maximal stretch of document text covered by the same set of segments."""

    start: int
    end: int
    text: str
    segment_ids: Tuple[str, ...] = ()
    code_ids: Tuple[str, ...] = ()

    @property
    def is_coded(self) -> bool:
        return bool(self.segment_ids)


def coded_spans(document: CodingDocument, segments: Iterable[Segment]) -> List[CodedSpan]:
    """Sweep segment boundaries over *document* and split it into spans.

    At equal positions segment ends are processed before starts, so touching
    segments never share a span.
    """

    relevant = [s for s in segments if s.doc_id == document.doc_id and s.is_text_range]
    events: List[Tuple[int, int, int]] = []
    for index, segment in enumerate(relevant):
        start, end = segment.bounds
        events.append((start, 1, index))
        events.append((end, 0, index))
    events.sort()

    spans: List[CodedSpan] = []
    active: Dict[int, Segment] = {}
    position = 0
    for offset, kind, index in events:
        if offset > position:
            spans.append(_span(document, position, offset, active))
            position = offset
        if kind == 1:
            active[index] = relevant[index]
        else:
            active.pop(index, None)

    if position < document.length:
        spans.append(_span(document, position, document.length, active))
    return spans


def _span(
    document: CodingDocument, start: int, end: int, active: Mapping[int, Segment]
) -> CodedSpan:
    ordered = [active[i] for i in sorted(active)]
    return CodedSpan(
        start=start,
        end=end,
        text=document.content[start:end],
        segment_ids=tuple(s.segment_id for s in ordered),
        code_ids=unique_codes(code for s in ordered for code in s.code_ids),
    )


def to_markdown(
    document: CodingDocument,
    segments: Iterable[Segment],
    codes: Optional[Mapping[str, Code]] = None,
) -> str:
    """Render *document* with coded stretches as ``[text]{Code A, Code B}``."""

    parts = []
    for span in coded_spans(document, segments):
        if not span.is_coded:
            parts.append(span.text)
            continue
        names = [codes[c].name if codes and c in codes else c for c in span.code_ids]
        parts.append(f"[{span.text}]{{{', '.join(names)}}}")
    return "".join(parts)


def to_jsonl(segments: Iterable[Segment]) -> Iterator[str]:
    """Yield JSON lines representing *segments*."""

    for segment in segments:
        yield json.dumps(segment.to_dict(), ensure_ascii=False)
