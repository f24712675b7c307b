"""Utility helpers for the segment coder project."""
from .formatting import CodedSpan, coded_spans, to_jsonl, to_markdown
from .logger import get_logger

__all__ = [
    "CodedSpan",
    "coded_spans",
    "to_jsonl",
    "to_markdown",
    "get_logger",
]
