"""
Maximal Marginal Relevance selection over precomputed embeddings.

    mmr = lambda_ * sim(query, doc) - (1 - lambda_) * max(sim(doc, selected))

lambda_ = 1.0 ranks purely by relevance, lambda_ = 0.0 purely by dissimilarity to what
is already picked. lambda_ is not range-checked.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from loguru import logger

from semsearch.similarity import cosine_similarity

M = TypeVar("M", bound=Mapping[str, Any])


@dataclass(frozen=True)
class Document(Generic[M]):
    id: Any
    embedding: Sequence[float]
    content: str
    metadata: Optional[M] = None


@dataclass(frozen=True)
class SearchResult(Generic[M]):
    id: Any
    content: str
    score: float  # MMR objective at selection time (relevance for similarity_search)
    relevance: float  # raw cosine to the query
    metadata: Optional[M] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "score": self.score,
            "relevance": self.relevance,
            "metadata": dict(self.metadata) if self.metadata is not None else None,
        }


def _score_candidates(
    query_embedding: Sequence[float],
    documents: Sequence[Document[M]],
    threshold: float,
) -> List[Tuple[Document[M], float]]:
    # score everything before filtering: any bad dimension aborts the call
    scored = [(doc, cosine_similarity(query_embedding, doc.embedding)) for doc in documents]
    # input order preserved; ties in mmr_search resolve on it
    return [(doc, rel) for doc, rel in scored if rel >= threshold]


def mmr_search(
    query_embedding: Sequence[float],
    documents: Sequence[Document[M]],
    k: int = 10,
    lambda_: float = 0.7,
    threshold: float = -1.0,
) -> List[SearchResult[M]]:
    """
    Greedily pick up to k documents balancing relevance and diversity.

    Only documents with relevance >= threshold are candidates. Each step takes the
    candidate with the strictly greatest MMR score; on a tie the one that came first in
    `documents` wins. Results are returned in selection order, which is the rank order.
    Raises DimensionMismatch if any embedding length differs from the query's.
    """
    if k <= 0 or not documents:
        return []

    candidates = _score_candidates(query_embedding, documents, threshold)
    if not candidates:
        logger.debug(f"mmr_search: no candidates at threshold={threshold}")
        return []

    selected: List[SearchResult[M]] = []
    selected_vecs: List[Sequence[float]] = []
    remaining = candidates[:]

    while remaining and len(selected) < k:
        best_idx = -1
        best_score = float("-inf")

        for i, (doc, rel) in enumerate(remaining):
            max_sim = 0.0
            for sv in selected_vecs:
                max_sim = max(max_sim, cosine_similarity(doc.embedding, sv))
            score = lambda_ * rel - (1 - lambda_) * max_sim

            if score > best_score:
                best_score = score
                best_idx = i

        if best_idx < 0:
            # only reachable when every score is NaN
            break

        doc, rel = remaining.pop(best_idx)
        selected.append(
            SearchResult(
                id=doc.id,
                content=doc.content,
                score=best_score,
                relevance=rel,
                metadata=doc.metadata,
            )
        )
        selected_vecs.append(doc.embedding)

    logger.trace(
        f"mmr_search: candidates={len(candidates)} selected={[r.id for r in selected]}"
    )
    return selected


def similarity_search(
    query_embedding: Sequence[float],
    documents: Sequence[Document[M]],
    k: int = 10,
    threshold: float = -1.0,
) -> List[SearchResult[M]]:
    """Top-k by relevance alone. Equal relevance keeps input order."""
    if k <= 0 or not documents:
        return []

    candidates = _score_candidates(query_embedding, documents, threshold)
    # sorted() is stable
    ranked = sorted(candidates, key=lambda x: x[1], reverse=True)[:k]

    return [
        SearchResult(
            id=doc.id,
            content=doc.content,
            score=rel,
            relevance=rel,
            metadata=doc.metadata,
        )
        for doc, rel in ranked
    ]
