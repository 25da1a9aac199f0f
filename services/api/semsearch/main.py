from time import perf_counter
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import FastAPI, HTTPException
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from semsearch.embeddings import EmbeddingProvider, parse_embedding
from semsearch.log import setup_logging
from semsearch.mmr import Document, SearchResult, mmr_search, similarity_search
from semsearch.settings import get_settings
from semsearch.similarity import DimensionMismatch, count_redundant_items


# ---------------------------------------------------------------------
# Settings / Globals
# ---------------------------------------------------------------------

settings = get_settings()
setup_logging(settings.log_level)
embedder = EmbeddingProvider(settings.embedding_model)

app = FastAPI()


# ---------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------

class DocumentIn(BaseModel):
    id: Union[int, str]
    content: str = ""
    # stored embeddings often arrive as JSON text
    embedding: Union[List[float], str, None] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = None
    query_embedding: Optional[List[float]] = None
    documents: List[DocumentIn] = Field(default_factory=list)

    limit: Optional[int] = Field(None, ge=0)
    mmr_lambda: Optional[float] = Field(None, ge=0.0, le=1.0, alias="lambda")
    threshold: Optional[float] = None
    mode: Optional[Literal["mmr", "similarity"]] = None

    # If True, add a "meta" block with diagnostics
    include_meta: bool = False


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def to_documents(rows: List[DocumentIn]) -> List[Document]:
    seen = set()
    for r in rows:
        if r.id in seen:
            raise HTTPException(status_code=400, detail=f"Duplicate document id: {r.id}")
        seen.add(r.id)

    docs: List[Document] = []
    for r in rows:
        emb = parse_embedding(r.embedding)
        if emb is None:
            logger.debug(f"Skipping document {r.id}: missing or malformed embedding")
            continue
        docs.append(Document(id=r.id, embedding=emb, content=r.content, metadata=r.metadata))
    return docs


def format_result(res: SearchResult, digits: int) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": res.id,
        "content": res.content,
        "relevance_score": round(res.relevance, digits),
        "mmr_score": round(res.score, digits),
    }
    if res.metadata:
        for key, value in res.metadata.items():
            out.setdefault(key, value)
    return out


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------

@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/search")
def search(req: SearchRequest):
    t0 = perf_counter()

    query = (req.query or "").strip()
    if req.query_embedding is None and not query:
        raise HTTPException(status_code=400, detail="Query is required")

    defaults = settings.search_defaults
    limit = req.limit if req.limit is not None else defaults["limit"]
    limit = min(limit, settings.max_limit)
    lam = req.mmr_lambda if req.mmr_lambda is not None else defaults["lambda"]
    threshold = req.threshold if req.threshold is not None else defaults["threshold"]
    mode = req.mode or defaults["mode"]

    docs = to_documents(req.documents)
    skipped = len(req.documents) - len(docs)

    try:
        q_vec = req.query_embedding if req.query_embedding is not None else embedder.embed_query(query)

        if mode == "similarity":
            results = similarity_search(q_vec, docs, k=limit, threshold=threshold)
        else:
            results = mmr_search(q_vec, docs, k=limit, lambda_=lam, threshold=threshold)
    except DimensionMismatch as e:
        logger.warning(f"Search rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error performing search")
        raise HTTPException(status_code=500, detail="Search failed")

    logger.info(
        f"search mode={mode} documents={len(docs)} skipped={skipped} results={len(results)}"
    )

    payload: Dict[str, Any] = {
        "results": [format_result(r, settings.round_digits) for r in results],
        "query": req.query,
        "total_documents": len(req.documents),
        "search_params": {
            "limit": limit,
            "lambda": lam,
            "threshold": threshold,
            "mode": mode,
        },
    }

    if req.include_meta:
        by_id = {d.id: d.embedding for d in docs}
        payload["meta"] = {
            "skipped_documents": skipped,
            "redundant_results": count_redundant_items(
                [by_id[r.id] for r in results],
                threshold=settings.dup_threshold,
            ),
            "latency_ms": round((perf_counter() - t0) * 1000.0, 2),
        }

    return payload
