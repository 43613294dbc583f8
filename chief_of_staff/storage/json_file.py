"""
JSON File Storage

Local-file backends for the audit trail (JSON Lines, append-only) and for
user memories (a single JSON document rewritten on save).

File IO runs in a worker thread so a slow disk never blocks the event loop.
"""

import asyncio
from pathlib import Path
from typing import Union
from uuid import UUID

import structlog
from pydantic import TypeAdapter, ValidationError

from chief_of_staff.models.audit import AuditEvent
from chief_of_staff.models.conversation import Memory
from chief_of_staff.storage.interface import (
    AuditStorageInterface,
    MemoryStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)

_memory_list = TypeAdapter(list[Memory])


class JsonLinesAuditStorage(AuditStorageInterface):
    """Audit events appended one JSON object per line."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._lock = asyncio.Lock()

    def _append(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _read_all(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events = []
        with self._path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(AuditEvent.model_validate_json(line))
                except ValidationError as e:
                    # A torn last line after a crash must not hide the rest
                    logger.warning(
                        "audit_line_unreadable",
                        path=str(self._path),
                        line=lineno,
                        error=str(e),
                    )
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        async with self._lock:
            try:
                await asyncio.to_thread(self._append, event.to_json_line())
            except OSError as e:
                raise StorageError(f"Could not write audit log {self._path}: {e}") from e
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = await self._load()
        return [e for e in events if e.correlation_id == correlation_id]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = await self._load()
        return list(reversed(events))[:limit]

    async def _load(self) -> list[AuditEvent]:
        try:
            return await asyncio.to_thread(self._read_all)
        except OSError as e:
            raise StorageError(f"Could not read audit log {self._path}: {e}") from e


class JsonMemoryStorage(MemoryStorageInterface):
    """All memories kept in one JSON array, rewritten atomically."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    def _read(self) -> list[Memory]:
        if not self._path.exists():
            return []
        return _memory_list.validate_json(self._path.read_bytes())

    def _write(self, payload: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_bytes(payload)
        tmp.replace(self._path)

    async def load_memories(self) -> list[Memory]:
        try:
            return await asyncio.to_thread(self._read)
        except (OSError, ValidationError) as e:
            raise StorageError(f"Could not load memories from {self._path}: {e}") from e

    async def save_memories(self, memories: list[Memory]) -> None:
        payload = _memory_list.dump_json(memories, indent=2)
        try:
            await asyncio.to_thread(self._write, payload)
        except OSError as e:
            raise StorageError(f"Could not save memories to {self._path}: {e}") from e
