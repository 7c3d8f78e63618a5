"""Tests for AgentClient: ask protocol, retries, timeouts and fan-out."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from aiportal.agents.client import AGENT_NOT_FOUND, AgentClient, extract_content
from aiportal.agents.models import AskRequest
from aiportal.registry.loader import AgentRegistry
from tests.conftest import ok_response, raw_response

PAYLOAD = {"session_id": "s1", "model_id": "gpt-4o", "user": "u1", "prompt": "hello"}


class TestUnresolvedAgent:
    @pytest.mark.asyncio
    async def test_unknown_alias_fails_without_network(self, client: AgentClient):
        reply = await client.ask("unknown-alias", PAYLOAD)
        assert reply.ok is False
        assert reply.error == AGENT_NOT_FOUND
        assert reply.time_ms == 0
        client._client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_base_url_is_not_found(self, client: AgentClient):
        reply = await client.ask("placeholder", PAYLOAD)
        assert reply.ok is False
        assert reply.error == AGENT_NOT_FOUND
        client._client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_lookup_is_case_sensitive(self, client: AgentClient):
        reply = await client.ask("ALPHA", PAYLOAD)
        assert reply.error == AGENT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_registry_unavailable_becomes_failed_reply(self):
        source = AsyncMock()
        source.fetch.side_effect = RuntimeError("config service down")
        agent_client = AgentClient(AgentRegistry(source))
        try:
            reply = await agent_client.ask("alpha", PAYLOAD)
        finally:
            await agent_client.close()
        assert reply.ok is False
        assert "config service down" in reply.error


class TestAskSuccess:
    @pytest.mark.asyncio
    async def test_posts_payload_to_ask_endpoint(self, client: AgentClient):
        client._client.post.return_value = ok_response({"answer": "hi", "sources": []})

        reply = await client.ask("alpha", PAYLOAD)

        assert reply.ok is True
        assert reply.data == {"answer": "hi", "sources": []}
        assert reply.error is None
        client._client.post.assert_called_once()
        call = client._client.post.call_args
        assert call.args[0] == "http://alpha.agents.test/v1/ask"
        assert call.kwargs["json"] == PAYLOAD

    @pytest.mark.asyncio
    async def test_unparsable_body_is_ok_with_empty_data(self, client: AgentClient):
        client._client.post.return_value = raw_response(b"<html>not json</html>")
        reply = await client.ask("alpha", PAYLOAD)
        assert reply.ok is True
        assert reply.data == {}
        assert client._client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_null_body_is_ok_with_empty_data(self, client: AgentClient):
        client._client.post.return_value = raw_response(b"null")
        reply = await client.ask("alpha", PAYLOAD)
        assert reply.ok is True
        assert reply.data == {}

    @pytest.mark.asyncio
    async def test_ask_request_model_drops_unset_fields(self, client: AgentClient):
        client._client.post.return_value = ok_response({"answer": "x"})
        await client.ask("alpha", AskRequest(prompt="hello", user="u1", trace="t-1"))
        body = client._client.post.call_args.kwargs["json"]
        assert body == {"prompt": "hello", "user": "u1", "trace": "t-1"}

    @pytest.mark.asyncio
    async def test_trailing_slash_in_base_url_is_stripped(self):
        from aiportal.registry.sources import StaticConfigSource

        registry = AgentRegistry(
            StaticConfigSource([{"alias": "slash", "baseUrl": "http://slash.test/api/"}])
        )
        agent_client = AgentClient(registry)
        real = agent_client._client
        agent_client._client = AsyncMock()
        agent_client._client.post.return_value = ok_response({"answer": "x"})
        try:
            await agent_client.ask("slash", PAYLOAD)
        finally:
            await real.aclose()
        assert agent_client._client.post.call_args.args[0] == "http://slash.test/api/ask"

    @pytest.mark.asyncio
    async def test_404_falls_back_to_versioned_path(self, client: AgentClient):
        client._client.post.side_effect = [
            httpx.Response(404),
            ok_response({"answer": "from v1"}),
        ]
        reply = await client.ask("alpha", PAYLOAD)
        assert reply.ok is True
        assert reply.data == {"answer": "from v1"}
        urls = [c.args[0] for c in client._client.post.call_args_list]
        assert urls == [
            "http://alpha.agents.test/v1/ask",
            "http://alpha.agents.test/v1/v1/ask",
        ]


class TestRetries:
    @pytest.mark.asyncio
    async def test_http_500_makes_two_attempts(self, client: AgentClient):
        client._client.post.return_value = httpx.Response(500)
        reply = await client.ask("alpha", PAYLOAD, 1)
        assert reply.ok is False
        assert reply.error == "HTTP 500"
        assert client._client.post.call_count == 2

    @pytest.mark.asyncio
    async def test_zero_retries_makes_one_attempt(self, client: AgentClient):
        client._client.post.return_value = httpx.Response(503)
        reply = await client.ask("alpha", PAYLOAD, 0)
        assert reply.error == "HTTP 503"
        assert client._client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_retry_budget_bounds_attempts(self, client: AgentClient):
        client._client.post.return_value = httpx.Response(502)
        await client.ask("alpha", PAYLOAD, 3)
        assert client._client.post.call_count == 4

    @pytest.mark.asyncio
    async def test_transport_error_then_success(self, client: AgentClient):
        client._client.post.side_effect = [
            httpx.ConnectError("connection refused"),
            ok_response({"answer": "ok"}),
        ]
        reply = await client.ask("alpha", PAYLOAD)
        assert reply.ok is True
        assert reply.data == {"answer": "ok"}

    @pytest.mark.asyncio
    async def test_transport_error_message_surfaces(self, client: AgentClient):
        client._client.post.side_effect = httpx.ConnectError("connection refused")
        reply = await client.ask("alpha", PAYLOAD)
        assert reply.ok is False
        assert reply.error == "connection refused"
        assert client._client.post.call_count == 2

    @pytest.mark.asyncio
    async def test_timeout_then_success(self, registry: AgentRegistry):
        agent_client = AgentClient(registry, timeout=0.05, retries=1)
        real = agent_client._client
        calls = 0

        async def slow_then_ok(url, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.sleep(5)
            return ok_response({"answer": "ok"})

        agent_client._client = AsyncMock()
        agent_client._client.post = AsyncMock(side_effect=slow_then_ok)
        try:
            reply = await agent_client.ask("alpha", PAYLOAD, 1)
        finally:
            await real.aclose()

        assert reply.ok is True
        assert reply.data == {"answer": "ok"}
        assert calls == 2
        assert reply.time_ms >= 40

    @pytest.mark.asyncio
    async def test_timeout_exhausts_budget(self, registry: AgentRegistry):
        agent_client = AgentClient(registry, timeout=0.02, retries=1)
        real = agent_client._client

        async def never_answers(url, **kwargs):
            await asyncio.sleep(5)

        agent_client._client = AsyncMock()
        agent_client._client.post = AsyncMock(side_effect=never_answers)
        try:
            reply = await agent_client.ask("alpha", PAYLOAD)
        finally:
            await real.aclose()

        assert reply.ok is False
        assert "timed out" in reply.error

    @pytest.mark.asyncio
    async def test_attempts_share_idempotency_key(self, client: AgentClient):
        client._client.post.side_effect = [httpx.Response(500), ok_response({"answer": "x"})]
        await client.ask("alpha", PAYLOAD)
        keys = {c.kwargs["headers"]["Idempotency-Key"] for c in client._client.post.call_args_list}
        assert len(keys) == 1


class TestAskMany:
    @pytest.mark.asyncio
    async def test_replies_follow_input_order(self, client: AgentClient):
        async def by_url(url, **kwargs):
            if "beta" in url:
                await asyncio.sleep(0.01)
                return ok_response({"answer": "B"})
            return ok_response({"answer": "A"})

        client._client.post = AsyncMock(side_effect=by_url)
        replies = await client.ask_many(["beta", "alpha", "missing"], PAYLOAD)

        assert [r.alias for r in replies] == ["beta", "alpha", "missing"]
        assert replies[0].data == {"answer": "B"}
        assert replies[1].data == {"answer": "A"}
        assert replies[2].ok is False

    @pytest.mark.asyncio
    async def test_one_broken_agent_does_not_abort_turn(self, client: AgentClient):
        async def by_url(url, **kwargs):
            if "beta" in url:
                raise httpx.ReadError("reset by peer")
            return ok_response({"answer": "A"})

        client._client.post = AsyncMock(side_effect=by_url)
        replies = await client.ask_many(["alpha", "beta"], PAYLOAD)
        assert [r.ok for r in replies] == [True, False]


class TestFetchMetadata:
    @pytest.mark.asyncio
    async def test_returns_document(self, client: AgentClient):
        client._client.get.return_value = ok_response({"name": "Alpha"})
        data = await client.fetch_metadata("http://alpha.agents.test/v1/")
        assert data == {"name": "Alpha"}
        assert client._client.get.call_args.args[0] == "http://alpha.agents.test/v1/metadata"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [httpx.Response(404), httpx.Response(500), raw_response(b"oops"), ok_response([1, 2])],
        ids=["404", "500", "non-json", "non-object"],
    )
    async def test_failures_return_none(self, client: AgentClient, response: httpx.Response):
        client._client.get.return_value = response
        assert await client.fetch_metadata("http://alpha.agents.test/v1") is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self, client: AgentClient):
        client._client.get.side_effect = httpx.ConnectError("refused")
        assert await client.fetch_metadata("http://alpha.agents.test/v1") is None

    @pytest.mark.asyncio
    async def test_empty_base_url_skips_request(self, client: AgentClient):
        assert await client.fetch_metadata("") is None
        client._client.get.assert_not_called()


class TestFetchData:
    @pytest.mark.asyncio
    async def test_relays_json(self, client: AgentClient):
        client._client.get.return_value = ok_response({"items": [1]})
        data = await client.fetch_data("alpha", {"type": "documents"})
        assert data == {"items": [1]}
        call = client._client.get.call_args
        assert call.args[0] == "http://alpha.agents.test/v1/data"
        assert call.kwargs["params"] == {"type": "documents"}

    @pytest.mark.asyncio
    async def test_unknown_alias_returns_none(self, client: AgentClient):
        assert await client.fetch_data("missing") is None
        client._client.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self, client: AgentClient):
        client._client.get.return_value = httpx.Response(500)
        assert await client.fetch_data("alpha") is None


class TestExtractContent:
    def test_prefers_content_markdown(self):
        data = {"content_markdown": " **md** ", "answer": "plain", "content": "c"}
        assert extract_content(data) == "**md**"

    def test_falls_back_to_answer_then_content(self):
        assert extract_content({"answer": "a"}) == "a"
        assert extract_content({"content": "c "}) == "c"

    def test_non_text_is_empty(self):
        assert extract_content({"answer": 42}) == ""
        assert extract_content(None) == ""
        assert extract_content("text") == ""
