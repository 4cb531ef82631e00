import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from cookbook_rag.llm.prompts import (
    CONTEXT_FOOTER,
    CONTEXT_HEADER,
    REFERENCE_HEADING,
    REFERENCE_TIMING,
    REFERENCE_TIMING_PREFIX,
)
from cookbook_rag.logging import RUN_CONTEXT, correlation_context, log_with_context
from services.models import RecipeContext, RetrievalResult, SimilarityMatch
from services.retrieval import RetrievalAggregator

logger = logging.getLogger(__name__)


def _render_timing(metadata: Dict[str, Any]) -> str:
    parts: List[str] = []
    for key, template in REFERENCE_TIMING.items():
        value = str(metadata.get(key) or "").strip()
        if value:
            parts.append(template.format(value=value))
    if not parts:
        return ""
    return REFERENCE_TIMING_PREFIX + ", ".join(parts)


def render_match(ordinal: int, match: SimilarityMatch) -> str:
    lines = [
        REFERENCE_HEADING.format(ordinal=ordinal, similarity=round(1 - match.score, 2)),
        match.content.strip(),
    ]
    timing = _render_timing(match.metadata or {})
    if timing:
        lines.append(timing)
    return "\n".join(line for line in lines if line)


class ContextAssembler:
    def assemble(self, matches: Sequence[SimilarityMatch]) -> str:
        if not matches:
            return ""
        body = "\n\n".join(render_match(ordinal, match) for ordinal, match in enumerate(matches, start=1))
        return f"{CONTEXT_HEADER}\n{body}\n\n{CONTEXT_FOOTER}"


def assemble(matches: Sequence[SimilarityMatch]) -> str:
    return ContextAssembler().assemble(matches)


def build_context(result: RetrievalResult) -> RecipeContext:
    return RecipeContext(
        context=assemble(result.matches),
        recipes_found=len(result.matches),
        queries_used=tuple(result.queries_used),
    )


class RecipeContextService:
    """Look up similar recipes for a dish and turn them into generation context."""

    def __init__(self, index: Any = None, config: Optional[Dict[str, Any]] = None):
        self._index = index
        self._config = config
        self._aggregator: Optional[RetrievalAggregator] = None

    def _get_index(self) -> Any:
        if self._index is None:
            from services.rag import get_recipe_index

            self._index = get_recipe_index()
        return self._index

    def _get_aggregator(self, index: Any) -> RetrievalAggregator:
        if self._aggregator is None:
            self._aggregator = RetrievalAggregator.from_config(index.search, self._config)
        return self._aggregator

    def retrieve_context(self, dish_name: str, categories: Iterable[str] = ()) -> RecipeContext:
        with correlation_context(kind=RUN_CONTEXT):
            index = self._get_index()
            if index is None or not index.is_available():
                logger.warning("Vector store not available - skipping RAG")
                return RecipeContext(context="", recipes_found=0, queries_used=())

            aggregator = self._get_aggregator(index)
            try:
                result = aggregator.retrieve(dish_name, list(categories or ()))
            except Exception as exc:
                logger.error("RAG retrieval failed: %s", exc)
                return RecipeContext(context="", recipes_found=0, queries_used=())

            context = build_context(result)
            log_with_context(
                logger,
                logging.INFO,
                "RAG context ready",
                dish=dish_name,
                recipes_found=context.recipes_found,
                queries=len(context.queries_used),
            )
            return context
