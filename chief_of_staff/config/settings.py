"""
Configuration Management for the Chief of Staff

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every external dependency (provider endpoints, Gemini, storage files)
is visible in one place and validated when first loaded.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chief_of_staff.models.conversation import AIProvider, ChiefOfStaffConfig


class AssistantSettings(BaseSettings):
    """Orchestrator behaviour: providers, autonomy, timeouts, storage files."""

    model_config = SettingsConfigDict(
        env_prefix="CHIEF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    primary_provider: AIProvider = Field(
        default=AIProvider.CLAUDE,
        description="Backend tried first"
    )
    fallback_provider: AIProvider = Field(
        default=AIProvider.GEMINI,
        description="Backend tried once when the primary fails"
    )
    enable_autonomous_actions: bool = Field(
        default=False,
        description="Allow low-risk actions to run without approval"
    )
    require_approval_for_high_risk: bool = Field(
        default=True,
        description="Always queue high-risk actions for approval"
    )

    provider_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Timeout for each provider attempt"
    )
    history_window: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many recent messages are sent to a provider"
    )

    memory_path: Optional[Path] = Field(
        default=None,
        description="JSON file for long-lived memories (in-memory if unset)"
    )
    audit_log_path: Optional[Path] = Field(
        default=None,
        description="JSON Lines file for the audit trail (in-memory if unset)"
    )

    def to_config(self) -> ChiefOfStaffConfig:
        """The per-instance config these settings describe."""
        return ChiefOfStaffConfig(
            primary_provider=self.primary_provider,
            fallback_provider=self.fallback_provider,
            enable_autonomous_actions=self.enable_autonomous_actions,
            require_approval_for_high_risk=self.require_approval_for_high_risk,
        )


class EndpointSettings(BaseSettings):
    """Backend that fronts the provider endpoints and the action executor."""

    model_config = SettingsConfigDict(
        env_prefix="MONEYLOOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the MoneyLoop backend"
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent with every request"
    )
    execute_path: str = Field(
        default="/api/chief-of-staff/execute",
        description="Path of the action execution endpoint"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key; without it Gemini is reached via the backend endpoint"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=8192,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: sub-settings are loaded lazily to allow partial configuration

    @property
    def assistant(self) -> AssistantSettings:
        return AssistantSettings()

    @property
    def endpoints(self) -> EndpointSettings:
        return EndpointSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus `<name>_error`
    entries for the sections that failed. Useful for startup checks.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("assistant", "endpoints", "gemini"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
