"""Configuration package."""

from chief_of_staff.config.settings import (
    AssistantSettings,
    EndpointSettings,
    GeminiSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AssistantSettings",
    "EndpointSettings",
    "GeminiSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
