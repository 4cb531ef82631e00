from __future__ import annotations

from typing import Any, Dict, Optional

from cookbook_rag.config import load_config

INGREDIENTS_MARKER = r"VẬT\s*LIỆU:"
STEPS_MARKER = r"CÁCH\s+(?:LÀM|CHẾ\s+BIẾN)"
LOOKBACK_CHARS = 500

EMBEDDING_MODEL_NAME = "paraphrase-multilingual-MiniLM-L12-v2"
COLLECTION_NAME = "cookbook_recipes"


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = cfg.get(name, {})
    return section if isinstance(section, dict) else {}


def extraction_defaults(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    ext_cfg = _section(config or load_config(), "extraction")
    return {
        "ingredients_marker": str(ext_cfg.get("ingredients_marker") or INGREDIENTS_MARKER),
        "steps_marker": str(ext_cfg.get("steps_marker") or STEPS_MARKER),
        "lookback_chars": int(ext_cfg.get("lookback_chars", LOOKBACK_CHARS)),
    }


def retrieval_defaults(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    rag_cfg = _section(config or load_config(), "rag")
    threshold = rag_cfg.get("similarity_threshold", 0.5)
    return {
        "collection_name": str(rag_cfg.get("collection_name", COLLECTION_NAME)),
        "embedding_model": str(rag_cfg.get("embedding_model", EMBEDDING_MODEL_NAME)),
        "top_k": int(rag_cfg.get("top_k", 3)),
        "similarity_threshold": float(threshold) if threshold is not None else None,
        "context_limit": int(rag_cfg.get("context_limit", 3)),
        "variant_timeout_seconds": float(rag_cfg.get("variant_timeout_seconds", 10.0)),
    }
