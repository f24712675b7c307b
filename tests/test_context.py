import json
from pathlib import Path

import pytest
from langchain_core.documents import Document

from core.CodingContext import CodingContext
from core.config import EngineConfig
from core.document import CodingDocument
from core.errors import InvalidBoundaries, InvalidReference
from core.segment import PdfRegion


@pytest.fixture
def context(fox_document) -> CodingContext:
    context = CodingContext("test", EngineConfig())
    context.add_document(fox_document)
    context.add_code("codeA", "Code A", "#ff0000")
    context.add_code("codeB", "Code B")
    return context


def test_apply_code_commits_segments(context):
    result = context.apply_code("doc_fox", 9, 4, "codeA")

    assert result.changed
    assert [(s.bounds, s.code_ids) for s in context.segments] == [((4, 9), ("codeA",))]
    assert context.codes["codeA"].last_used is not None


def test_imprecise_reselection_toggles_existing_segment_off(context):
    context.apply_code("doc_fox", 4, 15, "codeA")
    result = context.apply_code("doc_fox", 3, 16, "codeA")

    assert result.changed
    assert context.segments == []


def test_degenerate_selection_changes_nothing(context):
    context.apply_code("doc_fox", 4, 15, "codeA")
    before = list(context.segments)

    result = context.apply_code("doc_fox", 30, 40, "codeA")

    assert not result.changed
    assert context.segments == before


def test_tiny_selection_is_reported(context):
    result = context.apply_code("doc_fox", 0, 1, "codeA")
    assert result.skipped_tiny
    assert context.segments == []


def test_unknown_references_fail_fast(context):
    with pytest.raises(InvalidReference):
        context.apply_code("missing", 0, 5, "codeA")
    with pytest.raises(InvalidReference):
        context.apply_code("doc_fox", 0, 5, "missing")
    with pytest.raises(InvalidReference):
        context.add_segment_memo("missing", "note")


def test_memo_stays_attached_across_a_split(context):
    context.apply_code("doc_fox", 0, 20, "codeA")
    segment_id = context.segments[0].segment_id
    memo = context.add_segment_memo(segment_id, "why this matters", tag="  important  ")

    context.apply_code("doc_fox", 5, 8, "codeA")

    assert sorted(s.bounds for s in context.segments) == [(0, 5), (8, 20)]
    assert context.get_segment(segment_id).bounds == (8, 20)
    assert context.memos_for_segment(segment_id) == [memo]
    assert memo.tag == "important"


def test_memo_code_scope_requires_code_on_segment(context):
    context.apply_code("doc_fox", 4, 15, "codeA")
    segment_id = context.segments[0].segment_id

    scoped = context.add_segment_memo(segment_id, "scoped", code_id="codeA")
    unscoped = context.add_segment_memo(segment_id, "unscoped", code_id="codeB")

    assert scoped.code_id == "codeA"
    assert unscoped.code_id is None
    assert context.add_segment_memo(segment_id, "") is None


def test_memo_tag_is_truncated(context):
    context.apply_code("doc_fox", 4, 15, "codeA")
    memo = context.add_segment_memo(context.segments[0].segment_id, "", tag="x" * 60)
    assert len(memo.tag) == 40


def test_memos_of_removed_segments_are_dropped(context):
    context.apply_code("doc_fox", 4, 15, "codeA")
    context.add_segment_memo(context.segments[0].segment_id, "note")

    context.apply_code("doc_fox", 4, 15, "codeA")

    assert context.memos == []


def test_remove_code_and_edit_boundaries(context):
    context.apply_code("doc_fox", 4, 15, "codeA")
    context.apply_code("doc_fox", 4, 15, "codeB")
    segment_id = context.segments[0].segment_id

    assert context.remove_code_from_segments([segment_id], "codeA")
    assert context.get_segment(segment_id).code_ids == ("codeB",)

    context.edit_boundaries(segment_id, 16, 19)
    assert context.get_segment(segment_id).text == "fox"


def test_delete_segments_and_document(context):
    context.apply_code("doc_fox", 4, 15, "codeA")
    context.apply_code("doc_fox", 16, 25, "codeB")
    first_id = context.segments[0].segment_id

    context.delete_segments([first_id])
    assert len(context.segments_for("doc_fox")) == 1

    context.delete_document("doc_fox")
    assert context.segments == []
    with pytest.raises(InvalidReference):
        context.get_document("doc_fox")


def test_region_coding_through_context(context):
    region = PdfRegion.from_raw(2, 0.10, 0.20, 0.30, 0.05)
    context.apply_code_to_region("doc_fox", region, "codeA")
    context.apply_code_to_region("doc_fox", PdfRegion.from_raw(2, 0.1005, 0.1995, 0.30, 0.05), "codeA")
    assert context.segments == []


def test_langchain_documents_are_accepted():
    context = CodingContext("lc", EngineConfig())
    document = context.add_document(
        Document(page_content="Parsed page text", metadata={"source": "report.pdf"})
    )
    assert document == CodingDocument(doc_id="report.pdf", content="Parsed page text", title="report.pdf")
    assert "report.pdf" in context.documents


def test_langchain_document_without_identity_is_rejected():
    with pytest.raises(ValueError):
        CodingDocument.from_langchain(Document(page_content="anonymous"))


def test_export_and_import_round_trip(tmp_path: Path, context):
    context.apply_code("doc_fox", 4, 15, "codeA")
    context.apply_code_to_region("doc_fox", PdfRegion(1, 0.1, 0.1, 0.2, 0.2), "codeB")
    exported = list(context.segments)
    path = tmp_path / "segments.jsonl"

    context.export_jsonl(path)
    context.segments = []
    loaded = context.import_jsonl(path)

    assert loaded == exported
    assert context.segments == exported


def _write_records(path: Path, records) -> None:
    path.write_text("".join(json.dumps(record) + "\n" for record in records), encoding="utf-8")


def _record(segment_id, start, end, codes, text="stale"):
    return {
        "id": segment_id,
        "sourceId": "doc_fox",
        "startPosition": start,
        "endPosition": end,
        "codeRefs": codes,
        "text": text,
    }


def test_import_cleans_records_and_refreshes_text(tmp_path: Path, context):
    path = tmp_path / "legacy.jsonl"
    _write_records(
        path,
        [
            _record("a", 4, 9, ["codeA"]),
            _record("b", 4, 9, ["codeB"]),
            _record("c", 0, 1, ["codeA"]),
            _record("e", 10, 15, []),
        ],
    )

    imported = context.import_jsonl(path)

    assert [(s.segment_id, s.bounds, s.code_ids, s.text) for s in imported] == [
        ("a", (4, 9), ("codeA", "codeB"), "quick")
    ]
    assert context.segments == imported


def test_import_rejects_records_outside_the_document(tmp_path: Path, context):
    path = tmp_path / "broken.jsonl"
    _write_records(path, [_record("a", 20, 40, ["codeA"])])

    with pytest.raises(InvalidBoundaries):
        context.import_jsonl(path)
    assert context.segments == []


def test_import_drops_memos_of_replaced_segments(tmp_path: Path, context):
    context.apply_code("doc_fox", 4, 9, "codeA")
    context.add_segment_memo(context.segments[0].segment_id, "note")
    path = tmp_path / "replacement.jsonl"
    _write_records(path, [_record("other", 10, 15, ["codeB"])])

    context.import_jsonl(path)

    assert [s.segment_id for s in context.segments] == ["other"]
    assert context.memos == []


def test_import_keeps_memos_of_reimported_segments(tmp_path: Path, context):
    context.apply_code("doc_fox", 4, 9, "codeA")
    segment_id = context.segments[0].segment_id
    memo = context.add_segment_memo(segment_id, "note")
    path = tmp_path / "segments.jsonl"
    context.export_jsonl(path)

    context.import_jsonl(path)

    assert context.memos_for_segment(segment_id) == [memo]
