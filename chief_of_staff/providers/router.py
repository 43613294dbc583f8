"""
Provider Router

Puts a primary and a fallback provider behind one call:

1. Call the primary, bounded by `timeout_seconds`
2. On any error or timeout, call the fallback once with the same input
3. If the fallback fails too, raise one AllProvidersFailedError

CRITICAL: The router never retries beyond those two attempts and never
substitutes an empty reply. Worst-case latency of one call is
2 x timeout_seconds. It holds no conversation state.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from chief_of_staff.models.conversation import ConversationMessage
from chief_of_staff.providers.base import (
    AllProvidersFailedError,
    ProviderError,
    ProviderReply,
    ProviderTimeoutError,
    ReasoningProvider,
)

logger = structlog.get_logger(__name__)


@dataclass
class RoutedReply:
    """A reply plus the attempts that failed before it."""

    reply: ProviderReply
    failed_attempts: dict[str, Exception] = field(default_factory=dict)

    @property
    def used_fallback(self) -> bool:
        return bool(self.failed_attempts)


class ProviderRouter:
    """Primary/fallback routing with a per-attempt timeout.

    Args:
        primary: Provider tried first
        fallback: Provider tried once when the primary fails (optional)
        timeout_seconds: Budget for each attempt
    """

    def __init__(
        self,
        primary: ReasoningProvider,
        fallback: Optional[ReasoningProvider] = None,
        timeout_seconds: float = 30.0,
    ):
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.primary = primary
        self.fallback = fallback
        self.timeout_seconds = timeout_seconds

    @property
    def providers(self) -> list[ReasoningProvider]:
        return [p for p in (self.primary, self.fallback) if p is not None]

    async def _attempt(
        self,
        provider: ReasoningProvider,
        context: Sequence[ConversationMessage],
        system_prompt: Optional[str],
    ) -> ProviderReply:
        try:
            reply = await asyncio.wait_for(
                provider.generate(context, system_prompt),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(
                f"Provider {provider.name} timed out after {self.timeout_seconds:g}s",
                provider=provider.name,
                original_error=e,
            ) from e
        if not reply.text or not reply.text.strip():
            raise ProviderError(f"Provider {provider.name} returned an empty reply", provider=provider.name)
        if not reply.provider:
            reply.provider = provider.name
        return reply

    async def generate(
        self,
        context: Sequence[ConversationMessage],
        system_prompt: Optional[str] = None,
    ) -> RoutedReply:
        """
        Ask the primary, then the fallback.

        Raises:
            AllProvidersFailedError: Every attempt failed; `failures`
                                     holds each provider's error
        """
        failures: dict[str, Exception] = {}

        for provider in self.providers:
            label = provider.name
            if label in failures:
                label = f"{label}#{len(failures) + 1}"
            try:
                reply = await self._attempt(provider, context, system_prompt)
            except Exception as e:
                logger.warning(
                    "provider_failed",
                    provider=provider.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                failures[label] = e
                continue

            if failures:
                logger.info("provider_fallback_succeeded", provider=provider.name)
            return RoutedReply(reply=reply, failed_attempts=failures)

        raise AllProvidersFailedError(failures)

    async def aclose(self) -> None:
        for provider in self.providers:
            await provider.aclose()
