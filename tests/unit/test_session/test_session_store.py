"""Tests for the session store and keyed locks."""

import asyncio

import pytest

from fitcoach.rag.cache import MemoryCache
from fitcoach.session.models import SessionState
from fitcoach.session.store import SessionStore, session_key
from fitcoach.utils.locks import KeyedLock


@pytest.fixture
def clock():
    return [0.0]


@pytest.fixture
def backend(clock):
    return MemoryCache(clock=lambda: clock[0])


@pytest.fixture
def sessions(backend):
    return SessionStore(backend, ttl_seconds=7200)


class TestSessionStore:

    async def test_default_state(self, sessions):
        state = await sessions.get("u1", "w1")
        assert state == SessionState()
        assert state.set_count == 0

    async def test_save_and_get(self, sessions):
        await sessions.save("u1", "w1", SessionState(current_exercise="Squat", set_count=2))
        state = await sessions.get("u1", "w1")
        assert state.current_exercise == "Squat"
        assert state.set_count == 2

    async def test_sessions_are_keyed_by_target(self, sessions):
        await sessions.save("u1", "w1", SessionState(set_count=3))
        assert (await sessions.get("u1", "w2")).set_count == 0

    async def test_state_expires(self, sessions, clock):
        await sessions.save("u1", "w1", SessionState(set_count=1))
        clock[0] = 7201
        assert (await sessions.get("u1", "w1")).set_count == 0

    async def test_clear(self, sessions, backend):
        await sessions.save("u1", "w1", SessionState(set_count=1))
        await sessions.clear("u1", "w1")
        assert await backend.get(session_key("u1", "w1")) is None

    async def test_unreadable_state_resets(self, sessions, backend):
        await backend.set(session_key("u1", "w1"), "{not json", 60)
        assert await sessions.get("u1", "w1") == SessionState()

    async def test_transaction_saves_on_success(self, sessions):
        async with sessions.transaction("u1", "w1") as state:
            state.set_count += 1
        assert (await sessions.get("u1", "w1")).set_count == 1

    async def test_transaction_discards_on_error(self, sessions):
        with pytest.raises(RuntimeError):
            async with sessions.transaction("u1", "w1") as state:
                state.set_count = 5
                raise RuntimeError("insert failed")
        assert (await sessions.get("u1", "w1")).set_count == 0

    async def test_unchanged_state_not_written(self, sessions, backend):
        async with sessions.transaction("u1", "w1"):
            pass
        assert len(backend) == 0

    async def test_concurrent_increments_are_serialized(self, sessions):
        async def increment():
            async with sessions.transaction("u1", "w1") as state:
                current = state.set_count
                await asyncio.sleep(0)
                state.set_count = current + 1

        await asyncio.gather(*(increment() for _ in range(10)))
        assert (await sessions.get("u1", "w1")).set_count == 10


class TestSessionState:

    def test_switch_exercise_resets_count(self):
        state = SessionState(current_exercise="Squat", current_exercise_id="sq", set_count=4)
        state.switch_exercise("bp", "Bench Press")
        assert state.current_exercise_id == "bp"
        assert state.set_count == 0


class TestKeyedLock:

    async def test_locks_released_when_idle(self):
        locks = KeyedLock()
        async with locks.hold("a"):
            assert locks.active_keys() == ["a"]
        assert locks.active_keys() == []

    async def test_distinct_keys_do_not_block(self):
        locks = KeyedLock()
        async with locks.hold("a"):
            await asyncio.wait_for(self._enter(locks, "b"), timeout=0.5)

    async def test_same_key_is_exclusive(self):
        locks = KeyedLock()
        order = []

        async def worker(name):
            async with locks.hold("k"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("one"), worker("two"))
        assert order == ["one-in", "one-out", "two-in", "two-out"]
        assert locks.active_keys() == []

    @staticmethod
    async def _enter(locks, key):
        async with locks.hold(key):
            return True
