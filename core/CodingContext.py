from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from langchain_core.documents import Document

from core.config import EngineConfig
from core.document import Code, CodingDocument, Memo
from core.errors import InvalidBoundaries, InvalidReference
from core.pipeline import get_config
from core.segment import NormalizedRange, PdfRegion, Segment, ToggleResult, utcnow
from core.services import (
    RegionToggler,
    SegmentMutator,
    SelectionNormalizer,
    clean,
    delete_segments,
    edit_boundaries,
    remove_code_from_segments,
)
from output.writer import read_jsonl, write_jsonl
from utils.logger import get_logger


def resolve_memo_code_id(
    segments: Iterable[Segment], segment_id: str, code_id: Optional[str]
) -> Optional[str]:
    """Return *code_id* if the segment currently carries it, else ``None``."""

    normalized = (code_id or "").strip()
    if not normalized:
        return None
    segment = next((s for s in segments if s.segment_id == segment_id), None)
    if segment is None or not segment.has_code(normalized):
        return None
    return normalized


class CodingContext:
    """In-memory project: owns documents, codes, segments and memos.

    The engine services are pure; this class validates references, calls
    them and commits their results.
    """

    name: str
    segments: List[Segment]

    def __init__(self, name: str, config: Optional[EngineConfig] = None):
        self.name = name
        self.config = config or get_config()
        self.documents: Dict[str, CodingDocument] = {}
        self.codes: Dict[str, Code] = {}
        self.segments = []
        self.memos: List[Memo] = []
        self.logger = get_logger(__name__)

        self.selection_normalizer = SelectionNormalizer(self.config)
        self.segment_mutator = SegmentMutator(self.config)
        self.region_toggler = RegionToggler(self.config)

    def add_document(self, document: Union[CodingDocument, Document]) -> CodingDocument:
        if isinstance(document, Document):
            document = CodingDocument.from_langchain(document)
        self.documents[document.doc_id] = document
        self.logger.info("Added document %s (%d chars)", document.doc_id, document.length)
        return document

    def add_code(self, code_id: str, name: str, color: str = "#999999") -> Code:
        code = Code(code_id=code_id, name=name, color=color)
        self.codes[code_id] = code
        return code

    def get_document(self, doc_id: str) -> CodingDocument:
        try:
            return self.documents[doc_id]
        except KeyError as exc:
            raise InvalidReference("document", doc_id) from exc

    def get_code(self, code_id: str) -> Code:
        try:
            return self.codes[code_id]
        except KeyError as exc:
            raise InvalidReference("code", code_id) from exc

    def get_segment(self, segment_id: str) -> Segment:
        for segment in self.segments:
            if segment.segment_id == segment_id:
                return segment
        raise InvalidReference("segment", segment_id)

    def segments_for(self, doc_id: str) -> List[Segment]:
        return [s for s in self.segments if s.doc_id == doc_id]

    def normalize_selection(
        self, doc_id: str, start_index: object, end_index: object
    ) -> Optional[NormalizedRange]:
        document = self.get_document(doc_id)
        return self.selection_normalizer.normalize(document, self.segments, start_index, end_index)

    def apply_code(
        self, doc_id: str, start_index: object, end_index: object, code_id: str
    ) -> ToggleResult:
        """Toggle *code_id* over a raw selection and commit the result."""

        document = self.get_document(doc_id)
        code = self.get_code(code_id)
        normalized = self.selection_normalizer.normalize(
            document, self.segments, start_index, end_index
        )
        if normalized is None:
            return ToggleResult.unchanged(self.segments)

        now = utcnow()
        code.last_used = now
        result = self.segment_mutator.toggle(
            document,
            self.segments,
            normalized.start_index,
            normalized.end_index,
            code_id,
            now=now,
        )
        self._commit(result)
        if result.changed:
            self.logger.info(
                "Toggled code %s on %s [%d, %d)",
                code_id,
                doc_id,
                normalized.start_index,
                normalized.end_index,
            )
        return result

    def apply_code_to_region(
        self, doc_id: str, region: PdfRegion, code_id: str, text: Optional[str] = None
    ) -> ToggleResult:
        self.get_document(doc_id)
        code = self.get_code(code_id)
        now = utcnow()
        code.last_used = now
        result = self.region_toggler.toggle(doc_id, self.segments, region, code_id, text=text, now=now)
        self._commit(result)
        self.logger.info("Toggled code %s on %s page %d region", code_id, doc_id, region.page_num)
        return result

    def remove_code_from_segments(self, segment_ids: Iterable[str], code_id: str) -> bool:
        self.get_code(code_id)
        before = self.segments
        self.segments, changed = remove_code_from_segments(
            self.segments, segment_ids, code_id, self.config.min_coding_length
        )
        if changed:
            self._drop_orphaned_memos(before)
        return changed

    def edit_boundaries(self, segment_id: str, start_index: int, end_index: int) -> None:
        segment = self.get_segment(segment_id)
        document = self.get_document(segment.doc_id)
        before = self.segments
        self.segments = edit_boundaries(
            document,
            self.segments,
            segment_id,
            start_index,
            end_index,
            self.config.min_coding_length,
        )
        self._drop_orphaned_memos(before)

    def delete_segments(self, segment_ids: Iterable[str]) -> None:
        before = self.segments
        self.segments = delete_segments(self.segments, segment_ids)
        self._drop_orphaned_memos(before)

    def delete_document(self, doc_id: str) -> None:
        self.get_document(doc_id)
        before = self.segments
        self.segments = [s for s in self.segments if s.doc_id != doc_id]
        del self.documents[doc_id]
        self._drop_orphaned_memos(before)
        self.logger.info("Deleted document %s", doc_id)

    def add_segment_memo(
        self, segment_id: str, content: str, tag: str = "", code_id: Optional[str] = None
    ) -> Optional[Memo]:
        self.get_segment(segment_id)
        if not content and not tag:
            return None
        memo = Memo(
            target_id=segment_id,
            content=content,
            tag=tag,
            code_id=resolve_memo_code_id(self.segments, segment_id, code_id),
        )
        self.memos.append(memo)
        return memo

    def memos_for_segment(self, segment_id: str) -> List[Memo]:
        return [m for m in self.memos if m.target_id == segment_id]

    def export_jsonl(self, path: Path) -> None:
        write_jsonl(self.segments, path)

    def import_jsonl(self, path: Path) -> List[Segment]:
        """Load segment records for known documents, replacing their segments.

        Text is re-read from the stored document and the merged list goes
        through coalesce and prune, so imported data obeys the same rules as
        edited data. Returns the segments now stored for the imported documents.
        """

        loaded = [self._attach(segment) for segment in read_jsonl(path) if segment.code_ids]
        doc_ids = {s.doc_id for s in loaded}
        before = self.segments
        self.segments = clean(
            [s for s in self.segments if s.doc_id not in doc_ids] + loaded,
            self.config.min_coding_length,
        )
        self._drop_orphaned_memos(before)
        imported = [s for s in self.segments if s.doc_id in doc_ids]
        self.logger.info(
            "Imported %d of %d segment records from %s", len(imported), len(loaded), path
        )
        return imported

    def _attach(self, segment: Segment) -> Segment:
        document = self.get_document(segment.doc_id)
        if not segment.is_text_range:
            return segment
        start, end = segment.bounds
        if not 0 <= start <= end <= document.length:
            raise InvalidBoundaries(
                f"Segment {segment.segment_id!r} has boundaries [{start}, {end}) "
                f"outside document {document.doc_id!r} of length {document.length}"
            )
        return replace(segment, text=document.content[start:end])

    def _commit(self, result: ToggleResult) -> None:
        if not result.changed:
            return
        self.segments = result.segments
        if result.removed_ids:
            removed = set(result.removed_ids)
            self.memos = [m for m in self.memos if m.target_id not in removed]

    def _drop_orphaned_memos(self, before: List[Segment]) -> None:
        remaining = {s.segment_id for s in self.segments}
        gone = {s.segment_id for s in before} - remaining
        if gone:
            self.memos = [m for m in self.memos if m.target_id not in gone]
