"""Multi-query retrieval over the recipe index.

A dish name is searched as several query variants. Hits are merged by
identity keeping the lowest score, so the outcome does not depend on the
order in which variants finish; the variants therefore run concurrently.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
from typing import Any, Dict, List, Optional

from cookbook_rag.rag.defaults import retrieval_defaults
from services.categories import prompt_hint
from services.models import RetrievalResult, SimilarityMatch

logger = logging.getLogger(__name__)

RECIPE_KEYWORD_SUFFIX = "công thức"
OVERSAMPLE_FACTOR = 2

SearchFn = Callable[[str, int], Sequence[Any]]


class RetrievalConfigError(ValueError):
    pass


def _normalize_query(text: str) -> str:
    return " ".join(str(text or "").split())


def hint_text(hints: Iterable[str]) -> str:
    """Describe the hints in words. Hints without a known phrase are dropped."""
    phrases: List[str] = []
    for hint in hints or ():
        phrase = prompt_hint(_normalize_query(hint))
        if not phrase:
            logger.debug("Ignoring unknown retrieval hint %r", hint)
            continue
        if phrase not in phrases:
            phrases.append(phrase)
    return " ".join(phrases)


def build_query_variants(primary_key: str, hints: Iterable[str] = ()) -> List[str]:
    key = _normalize_query(primary_key)
    if not key:
        return []

    candidates = [key, f"{key} {RECIPE_KEYWORD_SUFFIX}"]
    descriptive = hint_text(hints)
    if descriptive:
        candidates.append(f"{key} {descriptive}")

    variants: List[str] = []
    for candidate in candidates:
        query = _normalize_query(candidate)
        if query not in variants:
            variants.append(query)
    return variants


def _coerce_match(item: Any) -> Optional[SimilarityMatch]:
    if isinstance(item, SimilarityMatch):
        try:
            score = float(item.score)
        except (TypeError, ValueError):
            logger.debug("Dropping search hit %s with score %r", item.identity, item.score)
            return None
        return replace(item, score=score)
    if isinstance(item, Mapping):
        try:
            return SimilarityMatch.from_mapping(item)
        except (KeyError, TypeError, ValueError) as exc:
            logger.debug("Dropping malformed search hit %r: %s", item, exc)
            return None
    logger.debug("Dropping unsupported search hit of type %s", type(item).__name__)
    return None


def passes_threshold(score: float, threshold: Optional[float]) -> bool:
    try:
        value = float(score)
    except (TypeError, ValueError):
        return False
    if math.isnan(value):
        return False
    return threshold is None or value <= threshold


def merge_matches(batches: Iterable[Iterable[SimilarityMatch]]) -> Dict[str, SimilarityMatch]:
    """Keep the lowest-scoring hit per identity across all batches."""
    merged: Dict[str, SimilarityMatch] = {}
    for batch in batches:
        for match in batch:
            existing = merged.get(match.identity)
            if existing is None or match.score < existing.score:
                merged[match.identity] = match
    return merged


class RetrievalAggregator:
    def __init__(
        self,
        search: Optional[SearchFn],
        top_k: int = 3,
        similarity_threshold: Optional[float] = 0.5,
        limit: int = 3,
        variant_timeout: float = 10.0,
    ):
        if search is None or not callable(search):
            raise RetrievalConfigError("A similarity search capability is required.")
        if top_k < 1:
            raise RetrievalConfigError("top_k must be at least 1.")
        if limit < 0:
            raise RetrievalConfigError("limit must not be negative.")
        if variant_timeout <= 0:
            raise RetrievalConfigError("variant_timeout must be positive.")
        self.search = search
        self.top_k = int(top_k)
        self.similarity_threshold = similarity_threshold
        self.limit = int(limit)
        self.variant_timeout = float(variant_timeout)

    @classmethod
    def from_config(cls, search: Optional[SearchFn], config: Optional[Dict[str, Any]] = None) -> "RetrievalAggregator":
        defaults = retrieval_defaults(config)
        return cls(
            search,
            top_k=defaults["top_k"],
            similarity_threshold=defaults["similarity_threshold"],
            limit=defaults["context_limit"],
            variant_timeout=defaults["variant_timeout_seconds"],
        )

    def _search_variant(self, query: str) -> List[SimilarityMatch]:
        raw = self.search(query, self.top_k * OVERSAMPLE_FACTOR) or []
        kept: List[SimilarityMatch] = []
        for item in raw:
            match = _coerce_match(item)
            if match is None:
                continue
            if not passes_threshold(match.score, self.similarity_threshold):
                continue
            kept.append(match)
        return kept

    def _start_variant(self, query: str) -> Future:
        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self._search_variant(query))
            except Exception as exc:
                future.set_exception(exc)

        # Daemon threads: a search call that never returns must not keep the process alive.
        threading.Thread(target=run, name="rag-variant", daemon=True).start()
        return future

    def _run_variants(self, variants: Sequence[str]) -> List[List[SimilarityMatch]]:
        futures = [(query, self._start_variant(query)) for query in variants]
        deadline = time.monotonic() + self.variant_timeout
        batches: List[List[SimilarityMatch]] = []
        for query, future in futures:
            remaining = max(0.0, deadline - time.monotonic())
            try:
                batch = future.result(timeout=remaining)
            except FutureTimeoutError:
                logger.warning("RAG query %r timed out after %.1fs", query, self.variant_timeout)
                batch = []
            except Exception as exc:
                logger.warning("RAG query %r failed: %s", query, exc)
                batch = []
            logger.debug("Query %r found %s results", query, len(batch))
            batches.append(batch)
        return batches

    def retrieve(self, primary_key: str, hints: Iterable[str] = ()) -> RetrievalResult:
        variants = build_query_variants(primary_key, hints)
        if not variants:
            logger.warning("RAG retrieval skipped: empty dish name.")
            return RetrievalResult(matches=(), queries_used=())

        logger.info("RAG: testing %s query strategies for %r", len(variants), primary_key)
        merged = merge_matches(self._run_variants(variants))
        ranked = sorted(merged.values(), key=lambda match: match.score)

        logger.info(
            "RAG found %s unique recipes (threshold=%s)",
            len(ranked),
            self.similarity_threshold,
        )
        for match in ranked:
            logger.debug("RAG similarity %s: %.3f", match.identity, 1 - match.score)

        top = ranked[: self.limit]
        if not top:
            logger.warning("No recipes above threshold - generating from scratch")
        return RetrievalResult(matches=tuple(top), queries_used=tuple(variants))


def retrieve(
    primary_key: str,
    hints: Iterable[str],
    search: Optional[SearchFn],
    k: int,
    threshold: Optional[float],
    limit: int,
    variant_timeout: float = 10.0,
) -> RetrievalResult:
    aggregator = RetrievalAggregator(
        search,
        top_k=k,
        similarity_threshold=threshold,
        limit=limit,
        variant_timeout=variant_timeout,
    )
    return aggregator.retrieve(primary_key, hints)
