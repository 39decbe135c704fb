"""Wire a coach from settings."""

from dataclasses import dataclass
from typing import Optional

import structlog

from ..classifier.fallback import IntentClassifier
from ..config.settings import Settings
from ..exceptions import ConfigurationError
from ..llm.chat_provider import ChatProvider
from ..log_setup import configure_logging
from ..rag.cache import CacheBackend, MemoryCache, RedisCache
from ..rag.retriever import KnowledgeRetriever
from ..rag.search import HttpSearchClient
from ..session.store import SessionStore
from ..storage.database import DatabaseManager
from ..storage.repository import SQLiteFitnessStore
from .handlers import HandlerDeps
from .orchestrator import CoachOrchestrator
from .program_generator import CompletionProgramGenerator

logger = structlog.get_logger()


@dataclass
class Coach:
    """A wired orchestrator plus the resources it owns."""

    orchestrator: CoachOrchestrator
    db_manager: DatabaseManager
    search: HttpSearchClient
    cache: CacheBackend

    async def close(self) -> None:
        """Release connections."""
        await self.search.close()
        if isinstance(self.cache, RedisCache):
            await self.cache.close()
        await self.db_manager.close()


async def create_coach(settings: Settings, cache: Optional[CacheBackend] = None) -> Coach:
    """Build every collaborator and initialize the database.

    Raises:
        ConfigurationError: If the API key or search URL is missing.
    """
    api_key = settings.openai_api_key_str
    if not api_key:
        raise ConfigurationError("FITCOACH_OPENAI_API_KEY is required")
    if not settings.search_url:
        raise ConfigurationError("FITCOACH_SEARCH_URL is required")

    configure_logging(settings.log_level, json_output=settings.log_json)

    if cache is None:
        cache = RedisCache.from_url(settings.redis_url) if settings.redis_url else MemoryCache()

    db_manager = DatabaseManager(settings.database_url)
    await db_manager.initialize()

    search = HttpSearchClient(settings.search_url, token=settings.search_token_str)
    coach_llm = ChatProvider(settings.model_coach, api_key, settings.llm_base_url)
    classifier_llm = ChatProvider(settings.model_classifier, api_key, settings.llm_base_url)

    deps = HandlerDeps(
        store=SQLiteFitnessStore(db_manager),
        sessions=SessionStore(cache, ttl_seconds=settings.session_ttl_seconds),
        retriever=KnowledgeRetriever(
            search,
            cache=cache,
            cache_ttl=settings.rag_cache_ttl_seconds,
            partition_top_k=settings.rag_partition_top_k,
            max_documents=settings.rag_max_documents,
            snippet_chars=settings.rag_snippet_chars,
            partition_timeout=settings.retrieval_timeout_seconds,
        ),
        completion=coach_llm,
        program_generator=CompletionProgramGenerator(
            coach_llm, temperature=settings.temperature_creative
        ),
        coaching_temperature=settings.temperature_coaching,
        completion_timeout=settings.completion_timeout_seconds,
    )
    classifier = IntentClassifier(
        classifier_llm,
        threshold=settings.classifier_confidence_threshold,
        timeout_seconds=settings.classifier_timeout_seconds,
        temperature=settings.temperature_classification,
    )

    logger.info(
        "Coach created",
        coach_model=settings.model_coach,
        classifier_model=settings.model_classifier,
        cache="redis" if isinstance(cache, RedisCache) else type(cache).__name__,
    )
    return Coach(
        orchestrator=CoachOrchestrator(classifier, deps),
        db_manager=db_manager,
        search=search,
        cache=cache,
    )
