from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import Iterable, Optional

from core.config import EngineConfig
from core.document import CodingDocument
from core.segment import NormalizedRange, Segment, ToggleResult
from core.services import SegmentMutator, SelectionNormalizer
from utils.logger import get_logger

LOGGER = get_logger(__name__)


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    config = EngineConfig.from_env()
    LOGGER.debug("Loaded engine config: %s", config)
    return config


def normalize(
    document: CodingDocument,
    segments: Iterable[Segment],
    start_index: object,
    end_index: object,
    config: Optional[EngineConfig] = None,
) -> Optional[NormalizedRange]:
    return SelectionNormalizer(config or get_config()).normalize(
        document, segments, start_index, end_index
    )


def toggle(
    document: CodingDocument,
    segments: Iterable[Segment],
    start_index: int,
    end_index: int,
    code_id: str,
    config: Optional[EngineConfig] = None,
    *,
    now: Optional[datetime] = None,
) -> ToggleResult:
    return SegmentMutator(config or get_config()).toggle(
        document, segments, start_index, end_index, code_id, now=now
    )


def toggle_selection(
    document: CodingDocument,
    segments: Iterable[Segment],
    start_index: object,
    end_index: object,
    code_id: str,
    config: Optional[EngineConfig] = None,
    *,
    now: Optional[datetime] = None,
) -> ToggleResult:
    """Normalize a raw selection, then toggle *code_id* over it."""

    segments = list(segments)
    config = config or get_config()
    normalized = normalize(document, segments, start_index, end_index, config)
    if normalized is None:
        return ToggleResult.unchanged(segments)
    return toggle(
        document,
        segments,
        normalized.start_index,
        normalized.end_index,
        code_id,
        config,
        now=now,
    )
