import hashlib
import logging
import unicodedata
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import chromadb
from chromadb.utils import embedding_functions

from cookbook_rag.config import get_chroma_path
from cookbook_rag.rag.defaults import retrieval_defaults
from services.models import ExtractedRecord, SimilarityMatch
from services.retry import index_retry

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "vi"


def recipe_identity(title: str) -> str:
    """Stable key for "the same dish": NFC, lower-cased, single-spaced."""
    normalized = unicodedata.normalize("NFC", str(title or ""))
    return " ".join(normalized.lower().split())


def _document_id(identity: str) -> str:
    return hashlib.sha256(identity.encode("utf-8")).hexdigest()[:32]


def recipe_document(record: ExtractedRecord, language: str = DEFAULT_LANGUAGE) -> Tuple[str, Dict[str, Any]]:
    """Index text and metadata for a recipe.

    Chroma metadata values must be scalars, so categories are stored joined.
    """
    ingredient_text = ", ".join(
        f"{item.quantity} {item.name}".strip() for item in record.ingredients
    )
    step_text = " ".join(step.text for step in record.steps)
    text = (
        f"{record.title}. {record.description}. "
        f"Nguyên liệu: {ingredient_text}. Cách làm: {step_text}"
    )
    metadata = {
        "identity": recipe_identity(record.title),
        "dishName": record.title,
        "description": record.description,
        "prepTime": record.prep_time,
        "cookTime": record.cook_time,
        "servings": record.servings,
        "categories": ", ".join(sorted(record.categories)),
        "language": language,
    }
    return text, metadata


class RecipeIndex:
    def __init__(
        self,
        persist_directory: Optional[Path] = None,
        collection_name: Optional[str] = None,
        embedding_model: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        settings = retrieval_defaults(config)
        self.persist_directory = Path(persist_directory or get_chroma_path(config))
        self.persist_directory.mkdir(parents=True, exist_ok=True)
        self.collection_name = collection_name or settings["collection_name"]

        self.chroma_client = chromadb.PersistentClient(
            path=str(self.persist_directory),
            settings=chromadb.Settings(anonymized_telemetry=False),
        )
        self.embedding_func = embedding_functions.SentenceTransformerEmbeddingFunction(
            model_name=embedding_model or settings["embedding_model"]
        )
        self.collection = self._open_collection()

        logger.info(
            "Recipe index initialized. collection=%s size=%s",
            self.collection_name,
            self.collection.count(),
        )

    def _open_collection(self):
        # Cosine distance keeps scores in [0, 2] so 1 - score reads as similarity.
        return self.chroma_client.get_or_create_collection(
            name=self.collection_name,
            embedding_function=self.embedding_func,
            metadata={"hnsw:space": "cosine"},
        )

    def is_available(self) -> bool:
        return self.collection is not None

    def count(self) -> int:
        return int(self.collection.count())

    @index_retry
    def add_record(self, record: ExtractedRecord, language: str = DEFAULT_LANGUAGE) -> str:
        text, metadata = recipe_document(record, language=language)
        doc_id = _document_id(metadata["identity"])
        self.collection.upsert(ids=[doc_id], documents=[text], metadatas=[metadata])
        logger.debug("Indexed recipe %s as %s", record.title, doc_id)
        return doc_id

    @index_retry
    def _query(self, query_text: str, n_results: int) -> Dict[str, Any]:
        return self.collection.query(query_texts=[query_text], n_results=n_results)

    def search(self, query_text: str, k: int) -> List[SimilarityMatch]:
        """Nearest recipes for ``query_text``, closest first. Errors propagate."""
        available = self.count()
        if available == 0 or k < 1:
            return []

        results = self._query(query_text, min(int(k), available))
        documents = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        output: List[SimilarityMatch] = []
        for i, document in enumerate(documents):
            metadata = dict(metadatas[i] or {}) if i < len(metadatas) else {}
            if i >= len(distances) or distances[i] is None:
                continue
            identity = metadata.get("identity") or recipe_identity(metadata.get("dishName", ""))
            if not identity:
                continue
            output.append(
                SimilarityMatch(
                    identity=str(identity),
                    content=str(document or ""),
                    metadata=metadata,
                    score=float(distances[i]),
                )
            )

        logger.debug("Recipe index returned %s hits for %r", len(output), query_text)
        return output

    def clear(self) -> None:
        self.chroma_client.delete_collection(self.collection_name)
        self.collection = self._open_collection()


@lru_cache(maxsize=1)
def get_recipe_index() -> Optional[RecipeIndex]:
    """Shared index instance; None when Chroma or the embedding model cannot start."""
    try:
        return RecipeIndex()
    except Exception as exc:
        logger.error("Recipe index unavailable: %s", exc)
        return None
