from core.intervals import intersect, merge_intervals, overlaps, subtract_intervals


def test_merge_intervals_merges_overlapping_and_touching():
    assert merge_intervals([(7, 9), (0, 3), (2, 5)]) == [(0, 5), (7, 9)]
    assert merge_intervals([(0, 3), (3, 5)]) == [(0, 5)]


def test_merge_intervals_drops_degenerate_ranges():
    assert merge_intervals([(4, 4), (6, 2)]) == []
    assert merge_intervals([(5, 5), (1, 2)]) == [(1, 2)]


def test_merge_intervals_keeps_contained_range_inside_outer():
    assert merge_intervals([(0, 10), (2, 4), (12, 15)]) == [(0, 10), (12, 15)]


def test_merge_intervals_empty():
    assert merge_intervals([]) == []


def test_subtract_without_coverage_returns_target():
    assert subtract_intervals((4, 9), []) == [(4, 9)]


def test_subtract_emits_gaps_inside_target():
    covered = merge_intervals([(0, 5), (7, 8), (12, 20)])
    assert subtract_intervals((3, 15), covered) == [(5, 7), (8, 12)]


def test_subtract_fully_covered_target_is_empty():
    assert subtract_intervals((4, 9), [(0, 10)]) == []


def test_subtract_ignores_coverage_outside_target():
    assert subtract_intervals((4, 9), [(0, 2), (11, 13)]) == [(4, 9)]


def test_subtract_degenerate_target():
    assert subtract_intervals((5, 5), []) == []


def test_intersect_and_overlaps():
    assert intersect((4, 9), (6, 11)) == (6, 9)
    assert overlaps((4, 9), (6, 11))
    assert not overlaps((0, 4), (4, 9))
