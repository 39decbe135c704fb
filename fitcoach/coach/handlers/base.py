"""Base protocol and shared collaborators for intent handlers."""

import random
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from ...classifier.models import ClassificationResult, Intent
from ...llm.interface import CompletionService
from ...rag.retriever import KnowledgeRetriever
from ...session.store import SessionStore
from ...storage.repository import FitnessStore
from ...utils.locks import KeyedLock
from ..models import CoachResponse, StreamChunk, UserContext
from ..program_generator import ProgramGenerator


@dataclass
class HandlerDeps:
    """Collaborators shared by every handler."""

    store: FitnessStore
    sessions: SessionStore
    retriever: KnowledgeRetriever
    completion: CompletionService
    program_generator: Optional[ProgramGenerator] = None
    locks: KeyedLock = field(default_factory=KeyedLock)
    rng: random.Random = field(default_factory=random.Random)
    coaching_temperature: float = 0.7
    completion_timeout: float = 30.0


@runtime_checkable
class IntentHandler(Protocol):
    """Protocol for intent handlers."""

    name: str
    intents: tuple[Intent, ...]

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        """Process the message and return the response."""
        ...

    def stream(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> AsyncIterator[StreamChunk]:
        """Yield text chunks, then the final response."""
        ...


class BaseHandler:
    """Default streaming behavior: a single final chunk."""

    name: str = ""
    intents: tuple[Intent, ...] = ()

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        raise NotImplementedError

    async def stream(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> AsyncIterator[StreamChunk]:
        response = await self.handle(message, classification, context, deps)
        yield StreamChunk(final=response)


def format_number(value: float) -> str:
    """185.0 -> "185", 102.5 -> "102.5"."""
    return str(int(value)) if float(value).is_integer() else f"{value:g}"
