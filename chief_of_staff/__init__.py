"""
Chief of Staff - Assistant Core

The conversational engine behind the MoneyLoop "Chief of Staff" panel.
It keeps one conversation per instance, asks a reasoning provider for
replies, and turns proposed side effects into actions a human approves.

DESIGN PRINCIPLES:
1. AI proposes → Human approves → System executes
2. One chat turn in flight at a time
3. Every failure ends in a visible, terminal state
4. Every step must be auditable
5. Providers, executors and storage are swappable
"""

__version__ = "1.0.0"
__author__ = "MoneyLoop Team"

from chief_of_staff.orchestrator import (
    AssistantBusyError,
    ChiefOfStaff,
    create_chief_of_staff,
)

__all__ = [
    "AssistantBusyError",
    "ChiefOfStaff",
    "create_chief_of_staff",
]
