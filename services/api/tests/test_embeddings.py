import math

import pytest

from semsearch.embeddings import EmbeddingProvider, parse_embedding


def test_hash_embeddings_are_deterministic_and_normalized():
    e = EmbeddingProvider("hash")
    assert e.dim() == 128

    v1, v2 = e.embed(["quadratic equations", "quadratic equations"])
    assert v1 == v2
    assert len(v1) == 128
    assert math.sqrt(sum(x * x for x in v1)) == pytest.approx(1.0)


def test_hash_embed_query_matches_embed():
    e = EmbeddingProvider("HASH")
    assert e.embed_query("Newton's laws") == e.embed(["Newton's laws"])[0]


def test_hash_embedding_of_empty_text_is_zero_vector():
    e = EmbeddingProvider("hash")
    assert e.embed_query("") == [0.0] * 128


@pytest.mark.parametrize(
    "raw,expected",
    [
        ([1, 2.5, -3], [1.0, 2.5, -3.0]),
        ((0.5, 0.25), [0.5, 0.25]),
        ("[0.1, 0.2, 0.3]", [0.1, 0.2, 0.3]),
    ],
)
def test_parse_embedding_accepts_lists_and_json(raw, expected):
    assert parse_embedding(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [None, "", "not json", "{\"a\": 1}", "[]", [], ["x", 1], [True, 1.0], "[1, NaN]", 42],
)
def test_parse_embedding_rejects_malformed(raw):
    assert parse_embedding(raw) is None
