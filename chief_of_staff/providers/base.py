"""
Base Reasoning Provider

A provider turns the conversation so far into a reply: free text plus
zero or more proposed actions. Every backend (Gemini, the MoneyLoop
provider endpoints, test doubles) implements the same call shape.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from chief_of_staff.models.actions import ActionProposal
from chief_of_staff.models.conversation import ConversationMessage


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.original_error = original_error


class ProviderTimeoutError(ProviderError):
    """A provider attempt exceeded its time budget."""
    pass


class AllProvidersFailedError(ProviderError):
    """
    Primary and fallback both failed.

    `failures` maps provider name to the error each attempt raised,
    in attempt order.
    """

    def __init__(self, failures: dict[str, Exception]):
        summary = "; ".join(f"{name}: {err}" for name, err in failures.items())
        super().__init__(f"All providers failed ({summary})")
        self.failures = failures

    def summary(self) -> dict[str, str]:
        return {name: str(err) for name, err in self.failures.items()}


@dataclass
class ProviderReply:
    """What a provider answered.

    Attributes:
        text: Assistant text shown to the user
        actions: Proposed side effects, not yet validated
        provider: Name of the provider that answered
    """

    text: str
    actions: list[ActionProposal] = field(default_factory=list)
    provider: str = ""


class ReasoningProvider(ABC):
    """Interface every reasoning backend implements."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier used in logs, metadata and fallback reports."""
        pass

    @abstractmethod
    async def generate(
        self,
        context: Sequence[ConversationMessage],
        system_prompt: Optional[str] = None,
    ) -> ProviderReply:
        """
        Produce a reply for the conversation.

        Args:
            context: Conversation history, oldest first; the last
                     message is the user turn being answered
            system_prompt: Instructions for the model

        Raises:
            ProviderError: The backend could not produce a reply
        """
        pass

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
