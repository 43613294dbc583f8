"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
Backends (in-memory, JSON files, a remote service later) are swappable
without touching the orchestrator.

The interface is intentionally small: the assistant only needs an
append-only audit trail and a place to keep user memories.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from chief_of_staff.models.audit import AuditEvent
from chief_of_staff.models.conversation import Memory


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one chat turn).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class MemoryStorageInterface(ABC):
    """Abstract interface for persisting the assistant's user memories."""

    @abstractmethod
    async def load_memories(self) -> list[Memory]:
        """
        Load every stored memory.

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save_memories(self, memories: list[Memory]) -> None:
        """
        Replace the stored memories.

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
