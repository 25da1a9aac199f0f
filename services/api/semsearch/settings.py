import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml
from loguru import logger


@dataclass(frozen=True)
class Settings:
    embedding_model: str
    log_level: str
    search_defaults: Dict[str, Any]
    max_limit: int
    round_digits: int
    dup_threshold: float


def _load_search_config() -> Dict[str, Any]:
    path = os.environ.get("SEARCH_CONFIG_PATH", "config/search.yaml")
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring unreadable search config {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def get_settings() -> Settings:
    search_config = _load_search_config()
    search = search_config.get("search_defaults") or {}

    search_defaults = {
        "limit": int(search.get("limit", 10)),
        "lambda": float(search.get("lambda", 0.7)),
        "threshold": float(search.get("threshold", 0.3)),
        "mode": str(search.get("mode", "mmr")),
    }

    return Settings(
        embedding_model=os.environ.get("EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        search_defaults=search_defaults,
        max_limit=int(search.get("max_limit", 20)),
        round_digits=int(search.get("round_digits", 2)),
        dup_threshold=float(search.get("dup_threshold", 0.95)),
    )
