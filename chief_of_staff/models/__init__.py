"""
Data Models Package

This package contains all Pydantic models used by the Chief of Staff core.
All data flowing through the orchestrator must conform to these schemas.
"""

from chief_of_staff.models.actions import (
    ActionPayload,
    ActionProposal,
    ActionStatus,
    ActionType,
    CalendarPayload,
    EmailPayload,
    NotePayload,
    PendingAction,
    ReminderPayload,
    RiskLevel,
    TransactionPayload,
    build_payload,
)
from chief_of_staff.models.conversation import (
    AIProvider,
    ChiefOfStaffConfig,
    ChiefOfStaffState,
    ConversationMessage,
    Memory,
    MemoryCategory,
    MessageMetadata,
    MessageRole,
)
from chief_of_staff.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Action models
    "ActionPayload",
    "ActionProposal",
    "ActionStatus",
    "ActionType",
    "CalendarPayload",
    "EmailPayload",
    "NotePayload",
    "PendingAction",
    "ReminderPayload",
    "RiskLevel",
    "TransactionPayload",
    "build_payload",
    # Conversation models
    "AIProvider",
    "ChiefOfStaffConfig",
    "ChiefOfStaffState",
    "ConversationMessage",
    "Memory",
    "MemoryCategory",
    "MessageMetadata",
    "MessageRole",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
