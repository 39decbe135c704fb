"""Session store for the logging state machine.

State lives in the cache backend under ``session:{user}:{workout}`` with a
TTL that is refreshed on every write, so abandoned sessions expire on their
own. Read-modify-write sequences go through ``transaction()``, which holds a
per-session lock so two concurrent "log a set" turns can never both read the
same pre-increment ``set_count``.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from pydantic import ValidationError

from ..rag.cache import CacheBackend
from ..utils.locks import KeyedLock
from .models import SessionState

logger = structlog.get_logger()

DEFAULT_SESSION_TTL = 7200


def session_key(user_id: str, target_id: str) -> str:
    """Cache key for a session."""
    return f"session:{user_id}:{target_id}"


class SessionStore:
    """Keyed ephemeral state per (user, active log target)."""

    def __init__(
        self,
        backend: CacheBackend,
        ttl_seconds: int = DEFAULT_SESSION_TTL,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self._backend = backend
        self._ttl = ttl_seconds
        self._locks = locks if locks is not None else KeyedLock()

    async def get(self, user_id: str, target_id: str) -> SessionState:
        """Current state; a fresh state (``set_count=0``) if none exists."""
        raw = await self._backend.get(session_key(user_id, target_id))
        if not raw:
            return SessionState()
        try:
            return SessionState.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Discarding unreadable session state",
                user_id=user_id,
                target_id=target_id,
                error=str(exc),
            )
            return SessionState()

    async def save(self, user_id: str, target_id: str, state: SessionState) -> None:
        """Persist state and refresh its TTL."""
        await self._backend.set(
            session_key(user_id, target_id), state.model_dump_json(), self._ttl
        )

    async def clear(self, user_id: str, target_id: str) -> None:
        """Delete a session. This is the only deletion path."""
        async with self._locks.hold(session_key(user_id, target_id)):
            await self._backend.delete(session_key(user_id, target_id))
        logger.info("Session cleared", user_id=user_id, target_id=target_id)

    @asynccontextmanager
    async def transaction(self, user_id: str, target_id: str) -> AsyncIterator[SessionState]:
        """Serialized read-modify-write on one session.

        The yielded state is saved when the block exits normally and was
        modified; it is discarded if the block raises.
        """
        async with self._locks.hold(session_key(user_id, target_id)):
            state = await self.get(user_id, target_id)
            original = state.model_copy()
            yield state
            if state != original:
                await self.save(user_id, target_id, state)
