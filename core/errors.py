"""Exceptions raised by the segment engine and its host facade."""
from __future__ import annotations


class CodingError(Exception):
    """Base class for coding errors."""


class InvalidReference(CodingError, LookupError):
    """An identifier does not resolve to a known document, code or segment."""

    def __init__(self, kind: str, reference: object) -> None:
        self.kind = kind
        self.reference = reference
        super().__init__(f"Unknown {kind} reference: {reference!r}")


class InvalidBoundaries(CodingError, ValueError):
    """A text range is outside its document or otherwise unusable."""
