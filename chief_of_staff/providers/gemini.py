"""
Gemini Provider

Talks to Google Gemini directly through `google-generativeai`.
Used for the `gemini` identifier when GEMINI_API_KEY is configured.
"""

from typing import Any, Optional, Sequence

import google.generativeai as genai
import structlog

from chief_of_staff.config import GeminiSettings
from chief_of_staff.models.conversation import ConversationMessage, MessageRole
from chief_of_staff.providers.base import (
    ProviderError,
    ProviderReply,
    ReasoningProvider,
)
from chief_of_staff.providers.parsing import parse_reply

logger = structlog.get_logger(__name__)


class GeminiProvider(ReasoningProvider):
    """
    Reasoning provider backed by a Gemini model.

    Conversation roles map onto Gemini's "user" / "model" turns.
    System messages from the history are folded into the system
    instruction, since Gemini has no system turn.
    """

    def __init__(self, settings: GeminiSettings, name: str = "gemini"):
        if not settings.api_key:
            raise ValueError("GeminiProvider requires GEMINI_API_KEY")
        self._settings = settings
        self._name = name
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._generation_config = {
            "temperature": self._settings.temperature,
            "max_output_tokens": self._settings.max_tokens,
        }

    @property
    def name(self) -> str:
        return self._name

    @staticmethod
    def _to_contents(
        context: Sequence[ConversationMessage],
    ) -> tuple[list[dict[str, Any]], list[str]]:
        contents = []
        system_notes = []
        for message in context:
            if message.role == MessageRole.SYSTEM:
                system_notes.append(message.content)
                continue
            role = "model" if message.role == MessageRole.ASSISTANT else "user"
            contents.append({"role": role, "parts": [message.content]})
        return contents, system_notes

    async def generate(
        self,
        context: Sequence[ConversationMessage],
        system_prompt: Optional[str] = None,
    ) -> ProviderReply:
        contents, system_notes = self._to_contents(context)
        if not contents:
            raise ProviderError("No conversation context to answer", provider=self._name)

        instruction = "\n\n".join(p for p in [system_prompt, *system_notes] if p) or None
        model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config=self._generation_config,
            system_instruction=instruction,
        )

        try:
            response = await model.generate_content_async(contents)
            raw_text = response.text
        except Exception as e:
            # The SDK raises google.api_core errors, and ValueError for blocked replies
            raise ProviderError(
                f"Gemini request failed: {e}",
                provider=self._name,
                original_error=e,
            ) from e

        text, actions = parse_reply(raw_text)
        if not text:
            raise ProviderError("Gemini returned an empty response", provider=self._name)

        logger.debug("gemini_reply", model=self._settings.model_name, actions=len(actions))
        return ProviderReply(text=text, actions=actions, provider=self._name)
