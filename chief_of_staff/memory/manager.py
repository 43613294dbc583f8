"""
Memory Manager

Keeps the facts the assistant learns about the user across sessions.

Extraction is a simple heuristic: a user message that states a
preference ("I prefer...", "I always...", "my goal is...") is stored
whole as a preference memory. The most important memories are fed back
into the system prompt.

Storage failures are logged and swallowed here: losing a memory must
never break a chat turn.
"""

import re
from typing import Optional

import structlog

from chief_of_staff.models.conversation import Memory, MemoryCategory
from chief_of_staff.storage import (
    InMemoryMemoryStorage,
    MemoryStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)

PREFERENCE_PATTERNS = [
    re.compile(r"\bi (?:prefer|like|always|never|usually|want)\b", re.IGNORECASE),
    re.compile(r"\bmy (?:goal|preference|style|habit)\b", re.IGNORECASE),
]

DEFAULT_IMPORTANCE = 5


class MemoryManager:
    def __init__(self, storage: Optional[MemoryStorageInterface] = None):
        self._storage = storage or InMemoryMemoryStorage()
        self._memories: list[Memory] = []
        self._loaded = False

    @property
    def memories(self) -> list[Memory]:
        return list(self._memories)

    async def ensure_loaded(self) -> None:
        """Load stored memories once; later calls are no-ops."""
        if self._loaded:
            return
        try:
            self._memories = await self._storage.load_memories()
        except StorageError as e:
            logger.error("memory_load_failed", error=str(e))
            self._memories = []
        self._loaded = True

    @staticmethod
    def is_preference(message: str) -> bool:
        return any(p.search(message) for p in PREFERENCE_PATTERNS)

    async def extract(self, user_message: str) -> Optional[Memory]:
        """
        Store the message as a preference memory if it states one.

        Returns the new memory, or None if nothing was stored. An
        identical memory already on file is not stored twice.
        """
        if not self.is_preference(user_message):
            return None

        content = user_message.strip()
        if any(m.content == content for m in self._memories):
            return None

        memory = Memory(
            content=content,
            category=MemoryCategory.PREFERENCE,
            importance=DEFAULT_IMPORTANCE,
        )
        self._memories.append(memory)

        try:
            await self._storage.save_memories(self._memories)
        except StorageError as e:
            # Keep it for this session even if it could not be persisted
            logger.error("memory_save_failed", error=str(e), memory_id=memory.id)

        return memory
