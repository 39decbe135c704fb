"""Retrieval-augmented context: query building, partition selection, fan-out and caching."""

from .cache import CacheBackend, MemoryCache, RedisCache
from .indexes import get_enhanced_indexes
from .query import build_optimized_query
from .retriever import KnowledgeRetriever, format_documents, merge_results
from .search import HttpSearchClient, KnowledgeDocument, SearchService

__all__ = [
    "CacheBackend",
    "HttpSearchClient",
    "KnowledgeDocument",
    "KnowledgeRetriever",
    "MemoryCache",
    "RedisCache",
    "SearchService",
    "build_optimized_query",
    "format_documents",
    "get_enhanced_indexes",
    "merge_results",
]
