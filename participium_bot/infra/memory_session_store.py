# participium_bot/infra/memory_session_store.py
"""
In-process session store with per-chat locking.

Sessions live only as long as the process (no persistence across restarts).
``get``/``put``/``remove`` are plain dict operations and cannot interleave
on the event loop; ``lock(chat_id)`` is what keeps a whole update's
read → external call → write sequence from racing with another update for
the same chat.  Different chats never share a lock.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from participium_bot.core.engine.domain import ConversationSession
from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)


class KeyedLock:
    """
    One ``asyncio.Lock`` per key, created on demand.

    Entries are reference-counted and dropped as soon as nobody holds or
    waits for them, so idle chats do not accumulate lock objects.
    Waiters are admitted in arrival order (``asyncio.Lock`` is FIFO).
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class InMemorySessionStore:
    """Conversation id → ConversationSession mapping."""

    def __init__(self) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._locks = KeyedLock()

    def get(self, chat_id: str) -> Optional[ConversationSession]:
        return self._sessions.get(chat_id)

    def put(self, chat_id: str, session: ConversationSession) -> None:
        self._sessions[chat_id] = session

    def remove(self, chat_id: str) -> None:
        self._sessions.pop(chat_id, None)

    def lock(self, chat_id: str):
        return self._locks.acquire(chat_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._sessions
