from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from semsearch.embeddings import EmbeddingProvider, parse_embedding
from semsearch.log import setup_logging
from semsearch.mmr import Document, mmr_search, similarity_search
from semsearch.similarity import DimensionMismatch


def _load_jsonl(path: Path) -> List[Dict[str, Any]]:
    records = []
    for n, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            rec = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}:{n}: invalid JSON: {e.msg}") from e
        if isinstance(rec, dict):
            records.append(rec)
    return records


def load_documents(path: Path, embedder: Optional[EmbeddingProvider] = None) -> List[Document]:
    """
    Read one document per JSONL line: {"id", "content", "embedding"?, "metadata"?}.

    Rows without an embedding are embedded from their content when an embedder is
    given, otherwise skipped. Rows with a malformed embedding are skipped. File order
    is kept. An unparseable line raises ValueError naming the file and line.
    """
    rows: List[Dict[str, Any]] = []
    vectors: List[Optional[List[float]]] = []
    missing: List[int] = []

    for rec in _load_jsonl(path):
        if rec.get("embedding") is None:
            if embedder is None:
                logger.warning(f"[search] skipping {rec.get('id')}: no embedding and no embedder")
                continue
            missing.append(len(rows))
            emb = None
        else:
            emb = parse_embedding(rec["embedding"])
            if emb is None:
                logger.warning(f"[search] skipping {rec.get('id')}: malformed embedding")
                continue
        rows.append(rec)
        vectors.append(emb)

    if missing and embedder is not None:
        embedded = embedder.embed([str(rows[i].get("content", "")) for i in missing])
        for i, v in zip(missing, embedded):
            vectors[i] = v

    return [_to_document(rec, emb) for rec, emb in zip(rows, vectors)]


def _to_document(rec: Dict[str, Any], emb: List[float]) -> Document:
    return Document(
        id=rec.get("id"),
        embedding=emb,
        content=str(rec.get("content", "")),
        metadata=rec.get("metadata") or None,
    )


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Run MMR or similarity search over a JSONL file")
    p.add_argument("docs", type=Path)
    p.add_argument("--query", required=True)
    p.add_argument("--k", type=int, default=10)
    p.add_argument("--lambda", dest="lam", type=float, default=0.7)
    p.add_argument("--threshold", type=float, default=-1.0)
    p.add_argument("--mode", choices=["mmr", "similarity"], default="mmr")
    p.add_argument("--model", default=os.environ.get("EMBEDDING_MODEL", "hash"))
    p.add_argument("--log-level", default=os.environ.get("LOG_LEVEL", "WARNING"))
    args = p.parse_args(argv)

    setup_logging(args.log_level)

    embedder = EmbeddingProvider(args.model)
    try:
        docs = load_documents(args.docs, embedder)
    except ValueError as e:
        logger.error(f"[search] {e}")
        return 2

    q_vec = embedder.embed_query(args.query)

    try:
        if args.mode == "similarity":
            results = similarity_search(q_vec, docs, k=args.k, threshold=args.threshold)
        else:
            results = mmr_search(q_vec, docs, k=args.k, lambda_=args.lam, threshold=args.threshold)
    except DimensionMismatch as e:
        logger.error(f"[search] {e}")
        return 1

    print(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
