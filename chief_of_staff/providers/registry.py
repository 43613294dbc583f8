"""
Provider Catalog and Factory

Maps provider identifiers to the backend that serves them.
"""

from dataclasses import dataclass
from typing import Optional, Union

import httpx

from chief_of_staff.config import EndpointSettings, GeminiSettings
from chief_of_staff.models.conversation import AIProvider
from chief_of_staff.providers.base import ReasoningProvider
from chief_of_staff.providers.endpoint import EndpointProvider


@dataclass(frozen=True)
class ProviderProfile:
    """Static facts about one provider."""

    display_name: str
    endpoint: str
    best_for: tuple[str, ...]
    max_tokens: int


PROVIDER_CATALOG: dict[AIProvider, ProviderProfile] = {
    AIProvider.CLAUDE: ProviderProfile(
        display_name="Claude",
        endpoint="/api/ai/claude",
        best_for=("reasoning", "analysis", "strategy", "writing"),
        max_tokens=4096,
    ),
    AIProvider.GEMINI: ProviderProfile(
        display_name="Gemini",
        endpoint="/api/ai/gemini",
        best_for=("speed", "research", "summarization", "extraction"),
        max_tokens=8192,
    ),
    AIProvider.OPENAI: ProviderProfile(
        display_name="GPT-4",
        endpoint="/api/ai/openai",
        best_for=("creativity", "coding", "versatile"),
        max_tokens=4096,
    ),
}


def create_provider(
    provider_id: Union[AIProvider, str],
    endpoints: Optional[EndpointSettings] = None,
    gemini: Optional[GeminiSettings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ReasoningProvider:
    """
    Build the provider for an identifier.

    Gemini is called directly when an API key is configured; every
    other case goes through the MoneyLoop endpoint for that provider.

    Raises:
        ValueError: Unknown provider identifier
    """
    provider = AIProvider(provider_id)
    profile = PROVIDER_CATALOG[provider]

    if provider == AIProvider.GEMINI and gemini is not None and gemini.api_key:
        # Imported here so the SDK is only loaded when Gemini is used directly
        from chief_of_staff.providers.gemini import GeminiProvider

        return GeminiProvider(gemini, name=provider.value)

    endpoints = endpoints or EndpointSettings()
    return EndpointProvider(
        name=provider.value,
        endpoint=profile.endpoint,
        base_url=endpoints.base_url,
        max_tokens=profile.max_tokens,
        api_token=endpoints.api_token,
        client=client,
    )
