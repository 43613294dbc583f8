"""
MoneyLoop Endpoint Provider

Reaches a reasoning backend through the MoneyLoop API, which proxies
each model behind `/api/ai/<provider>`.

Request body:
    {"message", "systemPrompt", "history", "maxTokens"}

Response body: JSON with the reply under `response`, `content` or
`text`, plus an optional structured `actions` array of
`{type, description, payload, riskLevel}` objects.
"""

from typing import Any, Optional, Sequence

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chief_of_staff.models.conversation import ConversationMessage
from chief_of_staff.providers.base import (
    ProviderError,
    ProviderReply,
    ProviderTimeoutError,
    ReasoningProvider,
)
from chief_of_staff.providers.parsing import parse_reply

logger = structlog.get_logger(__name__)


def _history_payload(context: Sequence[ConversationMessage]) -> list[dict[str, Any]]:
    return [
        {
            "id": m.id,
            "role": m.role.value,
            "content": m.content,
            "timestamp": m.timestamp.isoformat(),
        }
        for m in context
    ]


class EndpointProvider(ReasoningProvider):
    """Provider reached over HTTP through the MoneyLoop backend.

    Args:
        name: Provider identifier (claude, gemini, openai)
        endpoint: Path of the provider route, e.g. "/api/ai/claude"
        base_url: MoneyLoop backend URL
        max_tokens: Token budget forwarded to the backend
        api_token: Optional bearer token
        client: Pre-built client (tests pass one with a mock transport)
    """

    def __init__(
        self,
        name: str,
        endpoint: str,
        base_url: str = "http://localhost:3000",
        max_tokens: int = 4096,
        api_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._name = name
        self._endpoint = endpoint
        self._max_tokens = max_tokens

        headers = {"Content-Type": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"

        # The router enforces the per-attempt timeout; no client timeout here.
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=None,
        )

    @property
    def name(self) -> str:
        return self._name

    @retry(
        retry=retry_if_exception_type(httpx.ConnectError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        reraise=True,
    )
    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        return await self._client.post(self._endpoint, json=body)

    async def generate(
        self,
        context: Sequence[ConversationMessage],
        system_prompt: Optional[str] = None,
    ) -> ProviderReply:
        if not context:
            raise ProviderError("No conversation context to answer", provider=self._name)

        body = {
            "message": context[-1].content,
            "systemPrompt": system_prompt or "",
            "history": _history_payload(context),
            "maxTokens": self._max_tokens,
        }

        try:
            response = await self._post(body)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Provider {self._name} timed out", provider=self._name, original_error=e
            ) from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Provider {self._name} failed: HTTP {e.response.status_code}",
                provider=self._name,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Provider {self._name} unreachable: {e}",
                provider=self._name,
                original_error=e,
            ) from e
        except ValueError as e:
            raise ProviderError(
                f"Provider {self._name} returned invalid JSON",
                provider=self._name,
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise ProviderError(f"Provider {self._name} returned an unexpected body", provider=self._name)

        raw_text = data.get("response") or data.get("content") or data.get("text") or ""
        text, actions = parse_reply(str(raw_text), data.get("actions"))
        if not text:
            raise ProviderError(f"Provider {self._name} returned an empty response", provider=self._name)

        logger.debug(
            "endpoint_provider_reply",
            provider=self._name,
            actions=len(actions),
        )
        return ProviderReply(text=text, actions=actions, provider=self._name)

    async def aclose(self) -> None:
        await self._client.aclose()
