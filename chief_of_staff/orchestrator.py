"""
Chief of Staff Orchestrator

This module ties together all the components and defines the flows of
one assistant session:
1. Chat turn (message → provider round trip → reply + proposed actions)
2. Action decision (approve → execute, or reject)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Only one chat turn is in flight at a time; a second call fails fast
- No action runs unless the admission policy or a human allowed it
- Every exit path of a turn or an approval ends in a notified, terminal state
- Every step is audited

It is the sole mutator of its state. Consumers see frozen snapshots via
get_state() and subscribe().
"""

import asyncio
from typing import Any, Awaitable, Callable, Coroutine, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from chief_of_staff.actions import (
    AdmissionDecision,
    ExecutorRegistry,
    HttpActionExecutor,
    PendingActionQueue,
    decide_admission,
)
from chief_of_staff.agents import build_system_prompt, classify_task
from chief_of_staff.audit import AuditLogger, create_correlation_id
from chief_of_staff.config import Settings, get_settings
from chief_of_staff.memory import MemoryManager
from chief_of_staff.models.actions import (
    ActionProposal,
    ActionStatus,
    PendingAction,
)
from chief_of_staff.models.audit import AuditEventType
from chief_of_staff.models.conversation import (
    ChiefOfStaffConfig,
    ChiefOfStaffState,
    ConversationMessage,
    MessageMetadata,
    MessageRole,
)
from chief_of_staff.providers import (
    AllProvidersFailedError,
    ProviderRouter,
    create_provider,
)
from chief_of_staff.storage import (
    InMemoryAuditStorage,
    JsonLinesAuditStorage,
    JsonMemoryStorage,
)
from chief_of_staff.subscriptions import SubscriptionBus, Unsubscribe

FAILURE_NOTICE = (
    "I couldn't reach any of my reasoning services just now, so I wasn't "
    "able to answer that. Nothing was changed. Please try again in a moment."
)


class AssistantBusyError(RuntimeError):
    """chat() was called while another turn is still being processed."""
    pass


def _error_summary(error: BaseException) -> str:
    text = str(error) or type(error).__name__
    return text if len(text) <= 300 else text[:297] + "..."


class ChiefOfStaff:
    """
    Stateful coordinator of one conversation and its action queue.

    Args:
        config: Autonomy / approval settings and provider identifiers
        router: Primary/fallback provider router
        executors: Executors for approved actions
        memory: Long-lived user memories (in-memory if omitted)
        audit_logger: Audit trail (local log only if omitted)
        history_window: Number of recent messages sent to a provider
    """

    def __init__(
        self,
        config: ChiefOfStaffConfig,
        router: ProviderRouter,
        executors: Optional[ExecutorRegistry] = None,
        memory: Optional[MemoryManager] = None,
        audit_logger: Optional[AuditLogger] = None,
        history_window: int = 10,
    ):
        if history_window < 1:
            raise ValueError("history_window must be at least 1")

        self._config = config
        self._router = router
        self._executors = executors or ExecutorRegistry()
        self._memory = memory or MemoryManager()
        self._audit = audit_logger or AuditLogger()
        self._history_window = history_window

        self._history: list[ConversationMessage] = []
        self._queue = PendingActionQueue()
        self._bus: SubscriptionBus[ChiefOfStaffState] = SubscriptionBus()
        self._is_processing = False
        self._current_provider: Optional[str] = None
        self._background: set[asyncio.Task] = set()

        self._logger = structlog.get_logger(__name__)

    @property
    def config(self) -> ChiefOfStaffConfig:
        return self._config

    # =========================================================================
    # STATE
    # =========================================================================

    def get_state(self) -> ChiefOfStaffState:
        """Frozen snapshot of the current state."""
        return ChiefOfStaffState(
            conversation_history=tuple(self._history),
            pending_actions=tuple(self._queue.all()),
            is_processing=self._is_processing,
            current_provider=self._current_provider,
            memories=tuple(self._memory.memories),
        )

    def awaiting_approval(self) -> list[PendingAction]:
        """Actions a human still has to approve or reject."""
        return self._queue.pending()

    def subscribe(self, callback: Callable[[ChiefOfStaffState], None]) -> Unsubscribe:
        """
        Call `callback(state)` after every state change.

        Returns a function that removes the callback; calling it again
        does nothing.
        """
        return self._bus.subscribe(callback)

    def _notify(self) -> None:
        self._bus.notify(self.get_state())

    def _append(
        self,
        role: MessageRole,
        content: str,
        metadata: Optional[MessageMetadata] = None,
    ) -> ConversationMessage:
        message = ConversationMessage(role=role, content=content, metadata=metadata)
        self._history.append(message)
        return message

    def _append_failure_notice(self) -> ConversationMessage:
        return self._append(
            MessageRole.ASSISTANT,
            FAILURE_NOTICE,
            metadata=MessageMetadata(is_error=True),
        )

    def _audit_soon(self, coro: Coroutine[Any, Any, None]) -> None:
        """Run an audit write from synchronous code without blocking it."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: the structured log line already recorded it
            coro.close()
            return
        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # =========================================================================
    # CHAT
    # =========================================================================

    async def chat(self, message: str) -> None:
        """
        Process one user message.

        FLOW:
        1. Append the user message, mark processing, notify
        2. Ask the router (primary, then fallback) for a reply
        3. Admit each proposed action: queue it or execute it now
        4. Append the assistant reply (or a failure notice)
        5. Clear processing, notify

        Raises:
            ValueError: The message is empty after trimming
            AssistantBusyError: Another chat turn is in flight
        """
        text = (message or "").strip()
        if not text:
            raise ValueError("Message must not be empty")
        if self._is_processing:
            raise AssistantBusyError("Already processing a message; wait for the reply")

        correlation_id = create_correlation_id()
        self._is_processing = True
        user_message = self._append(MessageRole.USER, text)
        self._notify()

        try:
            await self._run_turn(user_message, correlation_id)
        except Exception as e:
            self._logger.error(
                "chat_turn_failed",
                error=str(e),
                correlation_id=str(correlation_id),
                exc_info=True,
            )
            if self._history and self._history[-1].id == user_message.id:
                self._append_failure_notice()
            await self._audit.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                correlation_id=correlation_id,
            )
        finally:
            self._is_processing = False
            self._notify()

    async def _run_turn(
        self,
        user_message: ConversationMessage,
        correlation_id: UUID,
    ) -> None:
        await self._audit.log_message_received(
            message_id=user_message.id,
            length=len(user_message.content),
            correlation_id=correlation_id,
        )
        await self._memory.ensure_loaded()

        category = classify_task(user_message.content)
        system_prompt = build_system_prompt(category, self._memory.memories, self._config)
        context = self._history[-self._history_window:]

        try:
            routed = await self._router.generate(context, system_prompt)
        except AllProvidersFailedError as e:
            self._append_failure_notice()
            await self._audit.log_all_providers_failed(
                failures=e.summary(),
                correlation_id=correlation_id,
            )
            return

        for provider_name, error in routed.failed_attempts.items():
            await self._audit.log_provider_failed(
                provider=provider_name,
                error_message=_error_summary(error),
                correlation_id=correlation_id,
            )
        reply = routed.reply
        if routed.used_fallback:
            await self._audit.log_fallback_used(
                primary=self._router.primary.name,
                fallback=reply.provider,
                correlation_id=correlation_id,
            )
        self._current_provider = reply.provider

        admitted = []
        for proposal in reply.actions:
            action = await self._admit(proposal, correlation_id)
            if action is not None:
                admitted.append(action)

        assistant_message = self._append(
            MessageRole.ASSISTANT,
            reply.text,
            metadata=MessageMetadata(
                model=reply.provider,
                actions_taken=tuple(a.type.value for a in admitted),
            ),
        )
        self._notify()
        await self._audit.log_response_generated(
            message_id=assistant_message.id,
            provider=reply.provider,
            action_count=len(admitted),
            correlation_id=correlation_id,
        )

        memory = await self._memory.extract(user_message.content)
        if memory is not None:
            await self._audit.log_memory_stored(
                memory_id=memory.id,
                category=memory.category.value,
                correlation_id=correlation_id,
            )

    # =========================================================================
    # ACTIONS
    # =========================================================================

    async def _admit(
        self,
        proposal: ActionProposal,
        correlation_id: UUID,
    ) -> Optional[PendingAction]:
        """Validate a proposal, then queue it or execute it per policy."""
        try:
            action = proposal.to_pending_action()
        except ValidationError as e:
            self._logger.warning(
                "action_proposal_invalid",
                action_type=proposal.type,
                error=str(e),
            )
            await self._audit.log_action_discarded(
                action_type=proposal.type,
                reason=_error_summary(e),
                correlation_id=correlation_id,
            )
            return None

        await self._audit.log_action_admitted(
            AuditEventType.ACTION_PROPOSED, action, correlation_id
        )
        decision = decide_admission(self._config, action)

        if decision == AdmissionDecision.QUEUE:
            self._queue.add(action)
            self._notify()
            await self._audit.log_action_admitted(
                AuditEventType.ACTION_QUEUED, action, correlation_id
            )
            return action

        approved = self._queue.add(action.with_status(ActionStatus.APPROVED))
        self._notify()
        return await self._execute(
            approved,
            lambda: self._audit.log_action_admitted(
                AuditEventType.ACTION_AUTO_APPROVED, approved, correlation_id
            ),
            correlation_id,
        )

    async def _execute(
        self,
        action: PendingAction,
        record_approval: Callable[[], Awaitable[None]],
        correlation_id: Optional[UUID] = None,
    ) -> PendingAction:
        """
        Run an approved action; it always ends executed or failed.

        CRITICAL: `action` is already approved in the queue. Everything
        awaited from here on, the approval's audit write included, sits
        inside the guard so no exit path leaves it approved.
        """
        try:
            await record_approval()
            await self._executors.execute(action)
        except asyncio.CancelledError:
            self._queue.transition(action.id, ActionStatus.FAILED, error="Execution was cancelled")
            self._notify()
            raise
        except Exception as e:
            summary = _error_summary(e)
            updated = self._queue.transition(action.id, ActionStatus.FAILED, error=summary)
            self._logger.warning("action_failed", error=summary, **updated.to_log_dict())
            self._notify()
            await self._audit.log_action_failed(updated, summary, correlation_id)
            return updated

        updated = self._queue.transition(action.id, ActionStatus.EXECUTED)
        self._logger.info("action_executed", **updated.to_log_dict())
        self._notify()
        await self._audit.log_action_executed(updated, correlation_id)
        return updated

    async def approve_action(self, action_id: str) -> PendingAction:
        """
        Approve a pending action and execute it.

        Returns the action in its terminal status (executed or failed).

        Raises:
            ActionNotActionableError: Unknown id or action not pending
        """
        # Check and transition before the first await: the status is the
        # per-action lock against a concurrent approve/reject.
        self._queue.require_pending(action_id)
        action = self._queue.transition(action_id, ActionStatus.APPROVED)
        self._notify()
        return await self._execute(
            action,
            lambda: self._audit.log_action_approved(action),
        )

    def reject_action(self, action_id: str) -> PendingAction:
        """
        Reject a pending action. Rejection is terminal.

        Raises:
            ActionNotActionableError: Unknown id or action not pending
        """
        self._queue.require_pending(action_id)
        action = self._queue.transition(action_id, ActionStatus.REJECTED)
        self._logger.info("action_rejected", **action.to_log_dict())
        self._notify()
        self._audit_soon(self._audit.log_action_rejected(action))
        return action

    # =========================================================================
    # SESSION
    # =========================================================================

    def clear_history(self) -> None:
        """
        Forget the conversation. Actions and memories are kept.

        Raises:
            AssistantBusyError: A chat turn is in flight
        """
        if self._is_processing:
            raise AssistantBusyError("Cannot clear history while processing a message")
        count = len(self._history)
        self._history = []
        self._logger.info("history_cleared", message_count=count)
        self._notify()
        self._audit_soon(self._audit.log_history_cleared(count))

    async def aclose(self) -> None:
        """Flush pending audit writes and close network clients."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self._router.aclose()
        await self._executors.aclose()
        self._bus.clear()

    async def __aenter__(self) -> "ChiefOfStaff":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def create_chief_of_staff(
    config: Union[ChiefOfStaffConfig, dict, None] = None,
    *,
    router: Optional[ProviderRouter] = None,
    executors: Optional[ExecutorRegistry] = None,
    memory: Optional[MemoryManager] = None,
    audit_logger: Optional[AuditLogger] = None,
    settings: Optional[Settings] = None,
) -> ChiefOfStaff:
    """
    Factory function to create one assistant session.

    Anything not passed in is built from settings:
    - config from CHIEF_* variables
    - providers for config.primary_provider / fallback_provider
    - an HTTP executor posting to the MoneyLoop execution endpoint
    - JSON file storage for memories / audit when paths are configured

    Each call returns an independent instance; there is no shared
    global session.

    Raises:
        pydantic.ValidationError: config dict has unknown or invalid options
    """
    settings = settings or get_settings()
    assistant_settings = settings.assistant

    if config is None:
        config = assistant_settings.to_config()
    elif isinstance(config, dict):
        config = ChiefOfStaffConfig.model_validate(config)

    if router is None:
        endpoints = settings.endpoints
        gemini = settings.gemini
        router = ProviderRouter(
            primary=create_provider(config.primary_provider, endpoints, gemini),
            fallback=create_provider(config.fallback_provider, endpoints, gemini),
            timeout_seconds=assistant_settings.provider_timeout_seconds,
        )

    if executors is None:
        endpoints = settings.endpoints
        executors = ExecutorRegistry(
            default=HttpActionExecutor(
                base_url=endpoints.base_url,
                path=endpoints.execute_path,
                api_token=endpoints.api_token,
            )
        )

    if memory is None:
        memory_storage = (
            JsonMemoryStorage(assistant_settings.memory_path)
            if assistant_settings.memory_path
            else None
        )
        memory = MemoryManager(memory_storage)

    if audit_logger is None:
        audit_storage = (
            JsonLinesAuditStorage(assistant_settings.audit_log_path)
            if assistant_settings.audit_log_path
            else InMemoryAuditStorage()
        )
        audit_logger = AuditLogger(audit_storage)

    return ChiefOfStaff(
        config=config,
        router=router,
        executors=executors,
        memory=memory,
        audit_logger=audit_logger,
        history_window=assistant_settings.history_window,
    )
