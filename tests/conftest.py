"""
Shared test doubles.

No test talks to a real provider or execution service: providers and
executors are replaced by the scripted fakes below.
"""

import asyncio
from typing import Optional, Sequence

import pytest

from chief_of_staff.actions import ActionExecutor, ExecutorRegistry
from chief_of_staff.audit import AuditLogger
from chief_of_staff.memory import MemoryManager
from chief_of_staff.models import (
    ActionProposal,
    ChiefOfStaffConfig,
    ConversationMessage,
    PendingAction,
)
from chief_of_staff.orchestrator import ChiefOfStaff
from chief_of_staff.providers import (
    ProviderError,
    ProviderReply,
    ProviderRouter,
    ReasoningProvider,
)
from chief_of_staff.storage import InMemoryAuditStorage, InMemoryMemoryStorage


class ScriptedProvider(ReasoningProvider):
    """
    Provider whose behaviour is set per test.

    - reply: returned as-is
    - error: raised instead of replying
    - delay: seconds to sleep before replying
    - gate: asyncio.Event awaited before replying
    """

    def __init__(
        self,
        name: str = "primary",
        reply: Optional[ProviderReply] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        gate: Optional[asyncio.Event] = None,
    ):
        self._name = name
        self.reply = reply or ProviderReply(text=f"Hello from {name}")
        self.error = error
        self.delay = delay
        self.gate = gate
        self.calls: list[tuple[list[ConversationMessage], Optional[str]]] = []

    @property
    def name(self) -> str:
        return self._name

    async def generate(
        self,
        context: Sequence[ConversationMessage],
        system_prompt: Optional[str] = None,
    ) -> ProviderReply:
        self.calls.append((list(context), system_prompt))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ProviderReply(
            text=self.reply.text,
            actions=list(self.reply.actions),
            provider=self.reply.provider,
        )


class RecordingExecutor(ActionExecutor):
    """Executor that records calls and optionally fails."""

    def __init__(self, error: Optional[Exception] = None, gate: Optional[asyncio.Event] = None):
        self.error = error
        self.gate = gate
        self.executed: list[PendingAction] = []

    async def execute(self, action: PendingAction) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        self.executed.append(action)


def proposal(
    action_type: str = "transaction",
    risk: str = "low",
    description: str = "Pay the electric bill",
    payload: Optional[dict] = None,
) -> ActionProposal:
    return ActionProposal(
        type=action_type,
        description=description,
        payload=payload or {},
        risk_level=risk,
    )


def reply_with(*proposals: ActionProposal, text: str = "On it.") -> ProviderReply:
    return ProviderReply(text=text, actions=list(proposals))


def build_assistant(
    config: Optional[ChiefOfStaffConfig] = None,
    primary: Optional[ReasoningProvider] = None,
    fallback: Optional[ReasoningProvider] = None,
    executor: Optional[ActionExecutor] = None,
    timeout_seconds: float = 5.0,
    memory: Optional[MemoryManager] = None,
    audit_storage: Optional[InMemoryAuditStorage] = None,
) -> ChiefOfStaff:
    router = ProviderRouter(
        primary=primary or ScriptedProvider("primary"),
        fallback=fallback,
        timeout_seconds=timeout_seconds,
    )
    return ChiefOfStaff(
        config=config or ChiefOfStaffConfig(),
        router=router,
        executors=ExecutorRegistry(default=executor or RecordingExecutor()),
        memory=memory or MemoryManager(InMemoryMemoryStorage()),
        audit_logger=AuditLogger(audit_storage or InMemoryAuditStorage()),
    )


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def failing_provider() -> ScriptedProvider:
    return ScriptedProvider("broken", error=ProviderError("service unavailable"))
