from __future__ import annotations

import hashlib
import json
import math
from typing import Any, List, Optional


class EmbeddingProviderError(RuntimeError):
    """Raised when the configured embedding backend cannot be loaded."""


class EmbeddingProvider:
    """
    Two modes:

    1) Normal: SentenceTransformer(model_name) when model_name != "hash"
    2) CI/Test: deterministic hash embeddings when model_name == "hash"
       - no downloads, no network, stable vectors
    """

    def __init__(self, model_name: str):
        self.model_name = (model_name or "").strip()

        if self.model_name.lower() == "hash":
            self._dim = 128
            self.model = None
            return

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise EmbeddingProviderError(
                "sentence-transformers is not available, but EMBEDDING_MODEL != 'hash'. "
                "Install the ml extra or set EMBEDDING_MODEL=hash."
            ) from e

        self.model = SentenceTransformer(self.model_name)
        self._dim = self.model.get_sentence_embedding_dimension()

    def embed(self, texts: List[str]) -> List[List[float]]:
        if self.model is None:
            return [self._hash_embed(t) for t in texts]

        vectors = self.model.encode(
            texts,
            normalize_embeddings=True,
            batch_size=32,
            show_progress_bar=False,
        )
        return vectors.tolist()

    def embed_query(self, text: str) -> List[float]:
        return self.embed([text])[0]

    def dim(self) -> int:
        return self._dim

    def _hash_embed(self, text: str) -> List[float]:
        """
        Deterministic embedding:
        - map tokens to buckets via sha256
        - build a signed bag-of-words style vector
        - L2 normalize
        """
        v = [0.0] * self._dim
        toks = (text or "").lower().split()
        for tok in toks:
            h = hashlib.sha256(tok.encode("utf-8")).digest()
            idx = int.from_bytes(h[:4], "little") % self._dim
            sign = 1.0 if (h[4] & 1) == 0 else -1.0
            v[idx] += sign

        norm = sum(x * x for x in v) ** 0.5
        if norm > 0:
            v = [x / norm for x in v]
        return v


def parse_embedding(raw: Any) -> Optional[List[float]]:
    """
    Accept an embedding as a list of numbers or as JSON text of one.

    Returns None for anything malformed so callers can skip the row.
    """
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, (list, tuple)) or not raw:
        return None

    out: List[float] = []
    for x in raw:
        if isinstance(x, bool) or not isinstance(x, (int, float)):
            return None
        f = float(x)
        if not math.isfinite(f):
            return None
        out.append(f)
    return out
