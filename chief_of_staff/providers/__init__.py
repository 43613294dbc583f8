"""Reasoning providers and the primary/fallback router."""

from chief_of_staff.providers.base import (
    AllProvidersFailedError,
    ProviderError,
    ProviderReply,
    ProviderTimeoutError,
    ReasoningProvider,
)
from chief_of_staff.providers.endpoint import EndpointProvider
from chief_of_staff.providers.parsing import (
    extract_action_tags,
    parse_reply,
    parse_structured_actions,
)
from chief_of_staff.providers.registry import (
    PROVIDER_CATALOG,
    ProviderProfile,
    create_provider,
)
from chief_of_staff.providers.router import ProviderRouter, RoutedReply

__all__ = [
    "AllProvidersFailedError",
    "EndpointProvider",
    "PROVIDER_CATALOG",
    "ProviderError",
    "ProviderProfile",
    "ProviderReply",
    "ProviderRouter",
    "ProviderTimeoutError",
    "ReasoningProvider",
    "RoutedReply",
    "create_provider",
    "extract_action_tags",
    "parse_reply",
    "parse_structured_actions",
]
