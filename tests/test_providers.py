"""Tests for the HTTP endpoint provider and the provider factory."""

import json

import httpx
import pytest

from chief_of_staff.config import EndpointSettings, GeminiSettings
from chief_of_staff.models import AIProvider, ConversationMessage, MessageRole
from chief_of_staff.providers import (
    PROVIDER_CATALOG,
    EndpointProvider,
    ProviderError,
    ProviderTimeoutError,
    create_provider,
)

CONTEXT = [
    ConversationMessage(role=MessageRole.USER, content="Hi"),
    ConversationMessage(role=MessageRole.ASSISTANT, content="Hello!"),
    ConversationMessage(role=MessageRole.USER, content="Pay my electric bill"),
]


def endpoint_provider(handler, name="claude") -> EndpointProvider:
    client = httpx.AsyncClient(
        base_url="http://moneyloop.test",
        transport=httpx.MockTransport(handler),
    )
    return EndpointProvider(name=name, endpoint=f"/api/ai/{name}", client=client)


class TestEndpointProvider:
    @pytest.mark.asyncio
    async def test_request_body(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"response": "Done."})

        provider = endpoint_provider(handler)
        reply = await provider.generate(CONTEXT, "be helpful")
        await provider.aclose()

        assert requests[0].url.path == "/api/ai/claude"
        body = json.loads(requests[0].content)
        assert body["message"] == "Pay my electric bill"
        assert body["systemPrompt"] == "be helpful"
        assert [m["role"] for m in body["history"]] == ["user", "assistant", "user"]
        assert body["maxTokens"] == 4096
        assert reply.text == "Done."
        assert reply.provider == "claude"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["response", "content", "text"])
    async def test_reply_text_keys(self, key):
        provider = endpoint_provider(lambda request: httpx.Response(200, json={key: "Sure."}))
        reply = await provider.generate(CONTEXT)
        assert reply.text == "Sure."

    @pytest.mark.asyncio
    async def test_tagged_actions_parsed(self):
        text = 'Bill found.\n[ACTION:transaction:high] Pay City Power {"amount": "84.20"}'
        provider = endpoint_provider(lambda request: httpx.Response(200, json={"response": text}))

        reply = await provider.generate(CONTEXT)

        assert reply.text == "Bill found."
        assert reply.actions[0].type == "transaction"
        assert reply.actions[0].payload == {"amount": "84.20"}

    @pytest.mark.asyncio
    async def test_structured_actions_parsed(self):
        body = {
            "response": "Queued it.",
            "actions": [{"type": "email", "description": "Email landlord", "riskLevel": "high"}],
        }
        provider = endpoint_provider(lambda request: httpx.Response(200, json=body))

        reply = await provider.generate(CONTEXT)

        assert [a.description for a in reply.actions] == ["Email landlord"]

    @pytest.mark.asyncio
    async def test_http_error_becomes_provider_error(self):
        provider = endpoint_provider(lambda request: httpx.Response(503))

        with pytest.raises(ProviderError, match="HTTP 503"):
            await provider.generate(CONTEXT)

    @pytest.mark.asyncio
    async def test_timeout_becomes_provider_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ProviderTimeoutError):
            await endpoint_provider(handler).generate(CONTEXT)

    @pytest.mark.asyncio
    async def test_invalid_json_rejected(self):
        provider = endpoint_provider(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(ProviderError, match="invalid JSON"):
            await provider.generate(CONTEXT)

    @pytest.mark.asyncio
    async def test_empty_reply_rejected(self):
        provider = endpoint_provider(lambda request: httpx.Response(200, json={"response": ""}))

        with pytest.raises(ProviderError, match="empty"):
            await provider.generate(CONTEXT)

    @pytest.mark.asyncio
    async def test_no_context_rejected(self):
        provider = endpoint_provider(lambda request: httpx.Response(200, json={"response": "x"}))

        with pytest.raises(ProviderError):
            await provider.generate([])


class TestCreateProvider:
    def test_catalog_covers_every_provider(self):
        assert set(PROVIDER_CATALOG) == set(AIProvider)

    @pytest.mark.parametrize("provider_id", ["claude", "gemini", "openai"])
    def test_endpoint_provider_without_gemini_key(self, provider_id):
        provider = create_provider(
            provider_id,
            EndpointSettings(base_url="http://moneyloop.test/"),
            GeminiSettings(api_key=None),
        )
        assert isinstance(provider, EndpointProvider)
        assert provider.name == provider_id

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_provider("llama")

    def test_gemini_direct_with_key(self):
        pytest.importorskip("google.generativeai")
        from chief_of_staff.providers.gemini import GeminiProvider

        provider = create_provider("gemini", gemini=GeminiSettings(api_key="test-key"))

        assert isinstance(provider, GeminiProvider)

    def test_gemini_role_mapping(self):
        pytest.importorskip("google.generativeai")
        from chief_of_staff.providers.gemini import GeminiProvider

        context = [
            ConversationMessage(role=MessageRole.SYSTEM, content="Prefers brevity"),
            *CONTEXT,
        ]
        contents, notes = GeminiProvider._to_contents(context)

        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert notes == ["Prefers brevity"]


class TestEndpointSettings:
    def test_trailing_slash_removed(self):
        assert EndpointSettings(base_url="https://app.moneyloop.test/").base_url == "https://app.moneyloop.test"

    def test_scheme_required(self):
        with pytest.raises(ValueError):
            EndpointSettings(base_url="moneyloop.test")
