import math

import pytest

from semsearch.similarity import (
    DimensionMismatch,
    cosine_similarity,
    count_redundant_items,
    normalize_embedding,
)


VECTORS = [
    [1.0, 0.0, 0.0],
    [0.3, -2.0, 5.5],
    [-1.0, -1.0, -1.0],
    [1e-8, 3e-8, 0.0],
    [123.0, 0.001, -7.0],
]


def test_cosine_similarity_basic():
    assert abs(cosine_similarity([1, 0], [1, 0]) - 1.0) < 1e-6
    assert abs(cosine_similarity([1, 0], [0, 1]) - 0.0) < 1e-6
    assert abs(cosine_similarity([1, 0], [-1, 0]) + 1.0) < 1e-6


def test_cosine_similarity_bounds_and_symmetry():
    for a in VECTORS:
        for b in VECTORS:
            s = cosine_similarity(a, b)
            assert -1.0 <= s <= 1.0
            assert s == cosine_similarity(b, a)


def test_self_similarity_is_one():
    for v in VECTORS:
        assert cosine_similarity(v, v) == pytest.approx(1.0)
    # clamped, never drifts past 1.0
    assert cosine_similarity([0.1, 0.2, 0.3], [0.1, 0.2, 0.3]) <= 1.0


def test_zero_vector_similarity_is_zero():
    assert cosine_similarity([0, 0], [1, 2]) == 0.0
    assert cosine_similarity([1, 2], [0, 0]) == 0.0
    assert cosine_similarity([0, 0], [0, 0]) == 0.0


def test_dimension_mismatch_reports_both_lengths():
    with pytest.raises(DimensionMismatch) as exc:
        cosine_similarity([1, 2], [1, 2, 3])
    assert exc.value.left == 2
    assert exc.value.right == 3
    assert "2 vs 3" in str(exc.value)
    assert isinstance(exc.value, ValueError)


def test_normalize_embedding_unit_length():
    v = normalize_embedding([3.0, 4.0])
    assert v == pytest.approx([0.6, 0.8])
    assert math.sqrt(sum(x * x for x in v)) == pytest.approx(1.0)


def test_normalize_zero_vector_is_noop():
    assert normalize_embedding([0.0, 0.0, 0.0]) == [0.0, 0.0, 0.0]


def test_normalized_dot_matches_cosine():
    a, b = [0.3, -2.0, 5.5], [123.0, 0.001, -7.0]
    na, nb = normalize_embedding(a), normalize_embedding(b)
    dot = sum(x * y for x, y in zip(na, nb))
    assert dot == pytest.approx(cosine_similarity(a, b))


def test_count_redundant_items_detects_duplicates():
    # Two identical vectors and one different vector
    v1 = [1.0, 0.0, 0.0]
    v2 = [1.0, 0.0, 0.0]   # duplicate of v1
    v3 = [0.0, 1.0, 0.0]   # distinct

    # with threshold < 1.0, v2 is redundant with v1
    assert count_redundant_items([v1, v2, v3], threshold=0.95) == 1
    assert count_redundant_items([], threshold=0.95) == 0
