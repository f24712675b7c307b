import random
from collections import Counter

import pytest

from core.config import EngineConfig
from core.document import CodingDocument
from core.services.cleanup import coalesce, prune
from core.services.toggle import SegmentMutator

CODES = ("codeA", "codeB", "codeC")
DOCUMENT = CodingDocument(doc_id="doc_props", content="".join(chr(97 + i % 26) for i in range(60)))
STEP = 5


def _coverage(segments, code_id):
    covered = set()
    for segment in segments:
        if segment.has_code(code_id):
            covered.update(range(*segment.bounds))
    return covered


def _random_range(rng):
    # Bounds on multiples of STEP keep every piece at least STEP long, so the
    # minimum-length rule never clips coverage.
    start, end = sorted(rng.sample(range(0, DOCUMENT.length + 1, STEP), 2))
    return start, end


def _assert_invariants(segments, min_length):
    bounds = Counter((s.doc_id, s.bounds) for s in segments)
    assert all(count == 1 for count in bounds.values())
    assert all(s.code_ids for s in segments)
    assert all(s.length >= min_length for s in segments)
    assert all(s.text == DOCUMENT.content[s.start_index:s.end_index] for s in segments)


@pytest.mark.parametrize("seed", range(12))
def test_random_toggles_keep_invariants_and_flip_coverage(seed):
    rng = random.Random(seed)
    config = EngineConfig()
    mutator = SegmentMutator(config)
    model = {code: set() for code in CODES}
    segments = []

    for _ in range(40):
        code_id = rng.choice(CODES)
        start, end = _random_range(rng)
        result = mutator.toggle(DOCUMENT, segments, start, end, code_id)
        segments = result.segments

        assert result.changed
        model[code_id] ^= set(range(start, end))
        _assert_invariants(segments, config.min_coding_length)
        for code in CODES:
            assert _coverage(segments, code) == model[code]


@pytest.mark.parametrize("seed", range(6))
def test_cleanup_is_idempotent_after_random_toggles(seed):
    rng = random.Random(seed)
    mutator = SegmentMutator()
    segments = []
    for _ in range(25):
        start, end = _random_range(rng)
        segments = mutator.toggle(DOCUMENT, segments, start, end, rng.choice(CODES)).segments

    assert coalesce(segments) == segments
    assert prune(segments, 3) == segments


@pytest.mark.parametrize("seed", range(6))
def test_toggle_twice_restores_code_free_range(seed):
    rng = random.Random(seed)
    mutator = SegmentMutator()
    segments = []
    for _ in range(10):
        start, end = _random_range(rng)
        segments = mutator.toggle(DOCUMENT, segments, start, end, rng.choice(CODES[1:])).segments

    before = {code: _coverage(segments, code) for code in CODES}
    start, end = _random_range(rng)
    once = mutator.toggle(DOCUMENT, segments, start, end, "codeA").segments
    twice = mutator.toggle(DOCUMENT, once, start, end, "codeA").segments

    assert {code: _coverage(twice, code) for code in CODES} == before
