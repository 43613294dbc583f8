"""
Audit Logger

DESIGN DECISION: Every significant assistant step is logged.
This provides:
1. Complete traceability of proposals and human decisions
2. Debugging capability when a provider misbehaves
3. A history the user can review

The audit logger:
- Is async to not block main flow
- Never raises when persisting fails (the chat turn must still complete)
- Supports correlation IDs to trace the events of one chat turn
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from chief_of_staff.models.actions import PendingAction
from chief_of_staff.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from chief_of_staff.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend (for persistence), when one is given
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_message_received(
        self,
        message_id: str,
        length: int,
        correlation_id: UUID,
    ) -> None:
        """Log a user chat message."""
        await self.log(AuditEventBuilder.message_received(
            message_id=message_id,
            length=length,
            correlation_id=correlation_id,
        ))

    async def log_response_generated(
        self,
        message_id: str,
        provider: str,
        action_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.response_generated(
            message_id=message_id,
            provider=provider,
            action_count=action_count,
            correlation_id=correlation_id,
        ))

    async def log_history_cleared(self, message_count: int) -> None:
        await self.log(AuditEventBuilder.history_cleared(message_count))

    async def log_provider_failed(
        self,
        provider: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.provider_failed(
            provider=provider,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_fallback_used(
        self,
        primary: str,
        fallback: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.fallback_used(
            primary=primary,
            fallback=fallback,
            correlation_id=correlation_id,
        ))

    async def log_all_providers_failed(
        self,
        failures: dict[str, str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.all_providers_failed(
            failures=failures,
            correlation_id=correlation_id,
        ))

    async def log_action_admitted(
        self,
        event_type: AuditEventType,
        action: PendingAction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a proposal and how it was admitted (queued / auto-approved)."""
        await self.log(AuditEventBuilder.action_admitted(
            event_type=event_type,
            action_id=action.id,
            action_type=action.type.value,
            risk_level=action.risk_level.value,
            description=action.description,
            correlation_id=correlation_id,
        ))

    async def log_action_discarded(
        self,
        action_type: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.action_discarded(
            action_type=action_type,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_action_approved(
        self,
        action: PendingAction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.action_approved(
            action_id=action.id,
            action_type=action.type.value,
            correlation_id=correlation_id,
        ))

    async def log_action_rejected(
        self,
        action: PendingAction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.action_rejected(
            action_id=action.id,
            action_type=action.type.value,
            correlation_id=correlation_id,
        ))

    async def log_action_executed(
        self,
        action: PendingAction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.action_executed(
            action_id=action.id,
            action_type=action.type.value,
            correlation_id=correlation_id,
        ))

    async def log_action_failed(
        self,
        action: PendingAction,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.action_failed(
            action_id=action.id,
            action_type=action.type.value,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_memory_stored(
        self,
        memory_id: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.memory_stored(
            memory_id=memory_id,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a chat turn).
    Pass it through all subsequent operations.
    """
    return uuid4()
