from datetime import datetime, timezone
from itertools import count

import pytest

from core.config import EngineConfig
from core.document import CodingDocument

FOX = "The quick brown fox jumps"


@pytest.fixture
def fox_document() -> CodingDocument:
    return CodingDocument(doc_id="doc_fox", content=FOX)


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def later() -> datetime:
    return datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def id_factory():
    sequence = count(1)
    return lambda: f"seg_{next(sequence)}"
