"""
Audit Models for the Chief of Staff

Every significant assistant step is logged for audit purposes:
1. What the user asked and which provider answered
2. Which actions were proposed and how they were admitted
3. Every human decision (approve / reject)
4. Every execution outcome

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step of a chat turn and of the action lifecycle has its own type.
    """
    # Conversation
    MESSAGE_RECEIVED = "message_received"
    RESPONSE_GENERATED = "response_generated"
    HISTORY_CLEARED = "history_cleared"

    # Providers
    PROVIDER_FAILED = "provider_failed"
    FALLBACK_USED = "fallback_used"
    ALL_PROVIDERS_FAILED = "all_providers_failed"

    # Action admission
    ACTION_PROPOSED = "action_proposed"
    ACTION_QUEUED = "action_queued"
    ACTION_AUTO_APPROVED = "action_auto_approved"
    ACTION_DISCARDED = "action_discarded"

    # Human decisions
    ACTION_APPROVED = "action_approved"
    ACTION_REJECTED = "action_rejected"

    # Execution
    ACTION_EXECUTED = "action_executed"
    ACTION_FAILED = "action_failed"

    # Memory
    MEMORY_STORED = "memory_stored"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'message', 'action', 'provider')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one chat turn)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize as one line of a JSON Lines audit file."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True)


def _truncate(text: str, limit: int = 120) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.message_received(message_id, length, correlation_id)
        event = AuditEventBuilder.action_approved(action, correlation_id)
    """

    @staticmethod
    def message_received(
        message_id: str,
        length: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_RECEIVED,
            entity_type="message",
            entity_id=message_id,
            correlation_id=correlation_id,
            description="User message received",
            details={"length": length},
            is_user_action=True,
        )

    @staticmethod
    def response_generated(
        message_id: str,
        provider: str,
        action_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RESPONSE_GENERATED,
            entity_type="message",
            entity_id=message_id,
            correlation_id=correlation_id,
            description=f"Response generated by {provider}",
            details={"provider": provider, "action_count": action_count},
        )

    @staticmethod
    def history_cleared(message_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_CLEARED,
            entity_type="conversation",
            description=f"Conversation cleared ({message_count} messages)",
            details={"message_count": message_count},
            is_user_action=True,
        )

    @staticmethod
    def provider_failed(
        provider: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="provider",
            entity_id=provider,
            correlation_id=correlation_id,
            description=f"Provider {provider} failed",
            error_message=error_message,
        )

    @staticmethod
    def fallback_used(
        primary: str,
        fallback: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FALLBACK_USED,
            severity=AuditSeverity.WARNING,
            entity_type="provider",
            entity_id=fallback,
            correlation_id=correlation_id,
            description=f"Fell back from {primary} to {fallback}",
            details={"primary": primary, "fallback": fallback},
        )

    @staticmethod
    def all_providers_failed(
        failures: dict[str, str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALL_PROVIDERS_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="provider",
            correlation_id=correlation_id,
            description="No provider could answer the message",
            details={"failures": failures},
        )

    @staticmethod
    def action_admitted(
        event_type: AuditEventType,
        action_id: str,
        action_type: str,
        risk_level: str,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        """ACTION_PROPOSED, ACTION_QUEUED or ACTION_AUTO_APPROVED."""
        return AuditEvent(
            event_type=event_type,
            entity_type="action",
            entity_id=action_id,
            correlation_id=correlation_id,
            description=f"{action_type} action: {_truncate(description)}",
            details={"action_type": action_type, "risk_level": risk_level},
        )

    @staticmethod
    def action_discarded(
        action_type: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTION_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="action",
            correlation_id=correlation_id,
            description=f"Discarded invalid {action_type} proposal",
            error_message=reason,
        )

    @staticmethod
    def action_approved(
        action_id: str,
        action_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTION_APPROVED,
            entity_type="action",
            entity_id=action_id,
            correlation_id=correlation_id,
            description=f"User approved {action_type} action",
            is_user_action=True,
        )

    @staticmethod
    def action_rejected(
        action_id: str,
        action_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTION_REJECTED,
            entity_type="action",
            entity_id=action_id,
            correlation_id=correlation_id,
            description=f"User rejected {action_type} action",
            is_user_action=True,
        )

    @staticmethod
    def action_executed(
        action_id: str,
        action_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTION_EXECUTED,
            entity_type="action",
            entity_id=action_id,
            correlation_id=correlation_id,
            description=f"{action_type} action executed",
        )

    @staticmethod
    def action_failed(
        action_id: str,
        action_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="action",
            entity_id=action_id,
            correlation_id=correlation_id,
            description=f"{action_type} action failed",
            error_message=error_message,
        )

    @staticmethod
    def memory_stored(
        memory_id: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMORY_STORED,
            entity_type="memory",
            entity_id=memory_id,
            correlation_id=correlation_id,
            description=f"Stored {category} memory",
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
