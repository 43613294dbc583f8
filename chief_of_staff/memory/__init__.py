"""Long-lived user memories."""

from chief_of_staff.memory.manager import MemoryManager

__all__ = ["MemoryManager"]
