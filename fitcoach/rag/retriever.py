"""Multi-partition retrieval with a formatted-context cache.

One turn queries up to three partitions concurrently, merges the hits by
document id (highest score wins), keeps the best few and formats them into
a text block for prompt injection. The formatted block is cached for a
bounded window so hot questions skip the fan-out entirely.
"""

import asyncio
import time
from typing import List, Optional, Sequence

import structlog

from ..classifier.models import ExtractedData, Intent
from .cache import CacheBackend
from .indexes import get_enhanced_indexes
from .query import build_optimized_query
from .search import KnowledgeDocument, SearchService

logger = structlog.get_logger()

DEFAULT_CACHE_TTL = 600
DEFAULT_PARTITION_TOP_K = 5
DEFAULT_MAX_DOCUMENTS = 3
DEFAULT_SNIPPET_CHARS = 500


def cache_key(intent: Intent, optimized_query: str) -> str:
    """Cache key for a formatted context block."""
    return f"rag:{intent.value}:{optimized_query}"


def merge_results(result_sets: Sequence[Sequence[KnowledgeDocument]]) -> List[KnowledgeDocument]:
    """Merge partition results by id, keeping the highest score.

    Ties keep the first copy seen. The output is sorted by score descending;
    the sort is stable so equal scores keep first-seen order.
    """
    best: dict[str, KnowledgeDocument] = {}
    for documents in result_sets:
        for doc in documents:
            current = best.get(doc.id)
            if current is None or doc.score > current.score:
                best[doc.id] = doc
    return sorted(best.values(), key=lambda d: d.score, reverse=True)


def truncate_text(text: str, limit: int = DEFAULT_SNIPPET_CHARS) -> str:
    """Trim text to about ``limit`` chars, preferring a sentence boundary."""
    if len(text) <= limit:
        return text
    cutoff = text[: limit + 50]
    last_period = cutoff.rfind(".")
    if last_period > int(limit * 0.8):
        return cutoff[: last_period + 1]
    return text[:limit] + "..."


def format_documents(
    documents: Sequence[KnowledgeDocument],
    snippet_chars: int = DEFAULT_SNIPPET_CHARS,
) -> str:
    """Render documents as labelled ``[Source i: category]`` blocks."""
    blocks = [
        f"[Source {i}: {doc.category}]\n{truncate_text(doc.text, snippet_chars)}"
        for i, doc in enumerate(documents, start=1)
    ]
    return "\n\n".join(blocks)


class KnowledgeRetriever:
    """Fan-out retriever over the search service, fronted by the cache."""

    def __init__(
        self,
        search: SearchService,
        cache: Optional[CacheBackend] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        partition_top_k: int = DEFAULT_PARTITION_TOP_K,
        max_documents: int = DEFAULT_MAX_DOCUMENTS,
        snippet_chars: int = DEFAULT_SNIPPET_CHARS,
        partition_timeout: Optional[float] = 3.0,
    ) -> None:
        self._search = search
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._top_k = partition_top_k
        self._max_documents = max_documents
        self._snippet_chars = snippet_chars
        self._partition_timeout = partition_timeout

    async def get_rag_context(
        self,
        message: str,
        intent: Intent,
        extracted: Optional[ExtractedData] = None,
    ) -> str:
        """Formatted knowledge block for a message, or "" if nothing was found."""
        start = time.monotonic()
        extracted = extracted or ExtractedData()
        optimized_query = build_optimized_query(message, intent, extracted)
        indexes = get_enhanced_indexes(intent, extracted)
        key = cache_key(intent, optimized_query)

        cached = await self._cache_get(key)
        if cached:
            logger.info(
                "RAG cache hit",
                query=optimized_query,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
            return cached

        documents = await self.retrieve(optimized_query, indexes)
        logger.info(
            "RAG retrieval",
            query=optimized_query,
            indexes=indexes,
            results=len(documents),
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        if not documents:
            return ""

        formatted = format_documents(documents, self._snippet_chars)
        await self._cache_set(key, formatted)
        return formatted

    async def retrieve(
        self,
        query: str,
        partitions: Sequence[str],
        limit: Optional[int] = None,
        max_documents: Optional[int] = None,
    ) -> List[KnowledgeDocument]:
        """Query partitions concurrently and return the merged top documents.

        ``limit`` is the per-partition fetch width; ``max_documents`` caps the
        merged list.
        """
        result_sets = await asyncio.gather(
            *(self._search_partition(p, query, limit or self._top_k) for p in partitions)
        )
        return merge_results(result_sets)[: max_documents or self._max_documents]

    async def _search_partition(
        self,
        partition: str,
        query: str,
        limit: int,
    ) -> List[KnowledgeDocument]:
        """Search one partition; failures and timeouts yield an empty list."""
        try:
            documents = await asyncio.wait_for(
                self._search.search(partition, query, limit),
                timeout=self._partition_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Partition search timed out", partition=partition)
            return []
        except Exception as exc:
            logger.warning("Partition search failed", partition=partition, error=str(exc))
            return []

        for doc in documents:
            if not doc.source_partition:
                doc.source_partition = partition
        return list(documents)

    async def _cache_get(self, key: str) -> Optional[str]:
        if self._cache is None:
            return None
        try:
            return await self._cache.get(key)
        except Exception as exc:
            logger.warning("RAG cache read failed", key=key, error=str(exc))
            return None

    async def _cache_set(self, key: str, value: str) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(key, value, self._cache_ttl)
        except Exception as exc:
            logger.warning("RAG cache write failed", key=key, error=str(exc))
