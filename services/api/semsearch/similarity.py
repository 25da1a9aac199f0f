from __future__ import annotations

from typing import List, Sequence
import math


class DimensionMismatch(ValueError):
    """Raised when two compared vectors differ in length."""

    def __init__(self, left: int, right: int):
        self.left = left
        self.right = right
        super().__init__(f"Vector length mismatch: {left} vs {right}")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity in [-1, 1].

    A zero-magnitude vector on either side gives 0.0, including zero vs zero.
    """
    if len(a) != len(b):
        raise DimensionMismatch(len(a), len(b))

    dot = 0.0
    na = 0.0
    nb = 0.0
    for x, y in zip(a, b):
        dot += float(x) * float(y)
        na += float(x) * float(x)
        nb += float(y) * float(y)
    if na == 0.0 or nb == 0.0:
        return 0.0

    sim = dot / (math.sqrt(na) * math.sqrt(nb))
    # rounding can push |a|==|b| cases just past 1.0
    return max(-1.0, min(1.0, sim))


def normalize_embedding(v: Sequence[float]) -> List[float]:
    norm = math.sqrt(sum(float(x) * float(x) for x in v))
    if norm == 0.0:
        return [float(x) for x in v]
    return [float(x) / norm for x in v]


def count_redundant_items(
    vectors: Sequence[Sequence[float]],
    threshold: float = 0.95,
) -> int:
    kept_vecs: List[Sequence[float]] = []
    redundant = 0

    for v in vectors:
        is_dup = any(cosine_similarity(v, kv) > threshold for kv in kept_vecs)
        if is_dup:
            redundant += 1
        else:
            kept_vecs.append(v)

    return redundant
