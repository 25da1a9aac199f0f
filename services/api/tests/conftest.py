import os
from pathlib import Path

# Set env BEFORE importing the app (semsearch.main reads settings at import time)
os.environ["EMBEDDING_MODEL"] = "hash"
os.environ.setdefault(
    "SEARCH_CONFIG_PATH",
    str(Path(__file__).resolve().parents[3] / "config" / "search.yaml"),
)
