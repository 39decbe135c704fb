"""Shared fixtures and in-memory collaborators."""

import random
from typing import Optional

import pytest

from fitcoach.coach.handlers import HandlerDeps
from fitcoach.coach.models import UserContext
from fitcoach.rag.cache import MemoryCache
from fitcoach.rag.retriever import KnowledgeRetriever
from fitcoach.rag.search import KnowledgeDocument
from fitcoach.session.store import SessionStore
from fitcoach.storage.database import DatabaseManager
from fitcoach.storage.repository import SQLiteFitnessStore
from fitcoach.storage.seed import seed_catalog


class FakeSearch:
    """Search service serving canned documents per partition."""

    def __init__(self, results=None, errors=None):
        self.results: dict[str, list[KnowledgeDocument]] = results or {}
        self.errors: dict[str, Exception] = errors or {}
        self.calls: list[tuple[str, str, int]] = []

    async def search(self, partition, query, limit=5, filter=None):
        self.calls.append((partition, query, limit))
        if partition in self.errors:
            raise self.errors[partition]
        return list(self.results.get(partition, []))[:limit]


class FakeCompletion:
    """Completion service returning a fixed reply or raising."""

    def __init__(self, reply: str = "Coach says hi.", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def complete(self, system_prompt, user_prompt, temperature=0.7, max_tokens=500):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.error:
            raise self.error
        return self.reply

    async def stream(self, system_prompt, user_prompt, temperature=0.7, max_tokens=500):
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt, "stream": True})
        if self.error:
            raise self.error
        for word in self.reply.split(" "):
            yield word + " "


def make_doc(doc_id, score, text="Some text.", category="Technique", **content):
    return KnowledgeDocument(
        id=doc_id,
        score=score,
        content={"text": text, "category": category, **content},
    )


@pytest.fixture
async def db_manager(tmp_path):
    """Database with migrations applied."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'test.db'}")
    await manager.initialize()
    yield manager
    await manager.close()


@pytest.fixture
async def store(db_manager):
    """Store seeded with the default catalog."""
    fitness_store = SQLiteFitnessStore(db_manager)
    await seed_catalog(fitness_store)
    return fitness_store


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def search():
    return FakeSearch()


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def deps(store, cache, search, completion):
    return HandlerDeps(
        store=store,
        sessions=SessionStore(cache),
        retriever=KnowledgeRetriever(search, cache=cache),
        completion=completion,
        rng=random.Random(7),
        completion_timeout=1.0,
    )


@pytest.fixture
def context():
    """User with an open workout."""
    return UserContext(user_id="user-1", name="Sam", active_workout_id="workout-1")
