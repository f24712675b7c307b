"""Host-owned entities the segment engine reads: documents, codes and memos."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from langchain_core.documents import Document

from core.segment import _generate_id, utcnow

MAX_MEMO_TAG_LENGTH = 40


@dataclass(frozen=True)
class CodingDocument:
    """Imported document text. Content never changes after import."""

    doc_id: str
    content: str
    title: str = ""

    @property
    def length(self) -> int:
        return len(self.content)

    @classmethod
    def from_langchain(cls, document: Document, *, doc_id: Optional[str] = None) -> "CodingDocument":
        """Wrap a parsed :class:`Document`, taking its id from the document or its metadata."""

        metadata = document.metadata or {}
        resolved = (
            doc_id
            or getattr(document, "id", None)
            or metadata.get("doc_id")
            or metadata.get("source")
        )
        if not resolved:
            raise ValueError("Document has no id, doc_id or source metadata to identify it")
        return cls(
            doc_id=str(resolved),
            content=document.page_content,
            title=str(metadata.get("title") or metadata.get("source") or ""),
        )


@dataclass
class Code:
    """A user-defined label. Name and colour are display attributes only."""

    code_id: str
    name: str
    color: str = "#999999"
    last_used: Optional[datetime] = None


@dataclass
class Memo:
    """Annotation attached to a segment, optionally scoped to one of its codes."""

    target_id: str
    content: str
    tag: str = ""
    code_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    edited_at: datetime = field(default_factory=utcnow)
    memo_id: str = field(default_factory=lambda: f"memo_{_generate_id()}")

    def __post_init__(self) -> None:
        self.tag = (self.tag or "").strip()[:MAX_MEMO_TAG_LENGTH]
