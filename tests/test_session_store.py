# tests/test_session_store.py
"""Tests for the in-memory session store and per-chat locking"""
import asyncio

import pytest

from participium_bot.core.engine.domain import ConversationSession, WizardStep
from participium_bot.infra.memory_session_store import InMemorySessionStore, KeyedLock


class TestInMemorySessionStore:
    def test_get_missing_returns_none(self):
        store = InMemorySessionStore()
        assert store.get("1") is None

    def test_put_get_remove(self):
        store = InMemorySessionStore()
        session = ConversationSession(chat_id="1", username="mario")
        store.put("1", session)

        assert store.get("1") is session
        assert "1" in store
        assert len(store) == 1

        store.remove("1")
        assert store.get("1") is None
        assert len(store) == 0

    def test_remove_missing_is_noop(self):
        store = InMemorySessionStore()
        store.remove("nope")
        assert len(store) == 0

    def test_put_replaces_existing(self):
        store = InMemorySessionStore()
        old = ConversationSession(chat_id="1", username="mario")
        old.step = WizardStep.WAITING_PHOTOS
        store.put("1", old)
        store.put("1", ConversationSession(chat_id="1", username="mario"))

        assert store.get("1").step == WizardStep.WAITING_LOCATION

    def test_chats_are_independent(self):
        store = InMemorySessionStore()
        store.put("1", ConversationSession(chat_id="1", username="a"))
        store.put("2", ConversationSession(chat_id="2", username="b"))
        store.remove("1")

        assert store.get("2").username == "b"


class TestKeyedLock:
    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self):
        locks = KeyedLock()
        order: list[str] = []

        async def worker(name: str):
            async with locks.acquire("chat"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    @pytest.mark.asyncio
    async def test_different_keys_run_concurrently(self):
        locks = KeyedLock()
        inside = asyncio.Event()
        released = asyncio.Event()

        async def holder():
            async with locks.acquire("chat-1"):
                inside.set()
                await released.wait()

        task = asyncio.create_task(holder())
        await inside.wait()

        # chat-2 must not wait for chat-1
        async with locks.acquire("chat-2"):
            pass

        released.set()
        await task

    @pytest.mark.asyncio
    async def test_idle_locks_are_dropped(self):
        locks = KeyedLock()
        async with locks.acquire("chat"):
            assert len(locks) == 1
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_released_on_exception(self):
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.acquire("chat"):
                raise RuntimeError("boom")

        assert len(locks) == 0
        async with locks.acquire("chat"):
            pass

    @pytest.mark.asyncio
    async def test_store_lock_serializes_read_modify_write(self):
        store = InMemorySessionStore()
        store.put("1", ConversationSession(chat_id="1", username="mario"))

        async def add_photo_marker():
            async with store.lock("1"):
                session = store.get("1")
                count = len(session.draft.photos)
                await asyncio.sleep(0.01)
                session.draft.photos = session.draft.photos + [count]

        await asyncio.gather(*(add_photo_marker() for _ in range(3)))

        assert store.get("1").draft.photos == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_waiters_admitted_in_arrival_order(self):
        locks = KeyedLock()
        order: list[int] = []

        async def worker(n: int):
            async with locks.acquire("chat"):
                await asyncio.sleep(0.005)
                order.append(n)

        await asyncio.gather(*(worker(n) for n in range(5)))

        assert order == [0, 1, 2, 3, 4]
