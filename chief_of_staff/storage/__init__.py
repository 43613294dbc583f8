"""
Storage Package

Provides abstract interfaces and concrete implementations for the audit
trail and user memories. In-memory backends are the default; JSON files
are used when paths are configured.
"""

from chief_of_staff.storage.interface import (
    AuditStorageInterface,
    MemoryStorageInterface,
    StorageError,
)
from chief_of_staff.storage.in_memory import (
    InMemoryAuditStorage,
    InMemoryMemoryStorage,
)
from chief_of_staff.storage.json_file import (
    JsonLinesAuditStorage,
    JsonMemoryStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "MemoryStorageInterface",
    # Exceptions
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryMemoryStorage",
    "JsonLinesAuditStorage",
    "JsonMemoryStorage",
]
