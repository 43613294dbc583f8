"""In-process storage backends, used when no files are configured and in tests."""

from typing import Optional
from uuid import UUID

from chief_of_staff.models.audit import AuditEvent
from chief_of_staff.models.conversation import Memory
from chief_of_staff.storage.interface import (
    AuditStorageInterface,
    MemoryStorageInterface,
)


class InMemoryAuditStorage(AuditStorageInterface):
    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]


class InMemoryMemoryStorage(MemoryStorageInterface):
    def __init__(self, memories: Optional[list[Memory]] = None):
        self._memories: list[Memory] = list(memories or [])

    async def load_memories(self) -> list[Memory]:
        return list(self._memories)

    async def save_memories(self, memories: list[Memory]) -> None:
        self._memories = list(memories)
