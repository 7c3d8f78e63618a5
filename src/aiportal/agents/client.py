"""Async httpx client implementing the agent ask/metadata/data protocol."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Mapping
from typing import Any

import httpx

from aiportal.agents.models import AgentReply, AskRequest
from aiportal.config import (
    DEFAULT_ASK_RETRIES,
    DEFAULT_ASK_TIMEOUT,
    DEFAULT_METADATA_TIMEOUT,
)
from aiportal.errors import RegistryUnavailable
from aiportal.registry.loader import AgentRegistry

logger = logging.getLogger(__name__)

AGENT_NOT_FOUND = "Agent not found or no baseUrl"

_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, TimeoutError, OSError)


def _elapsed_ms(t0: float) -> int:
    return max(0, int((time.monotonic() - t0) * 1000))


def _error_message(exc: BaseException, timeout: float) -> str:
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return str(exc) or f"Request timed out after {timeout:g}s"
    return str(exc) or type(exc).__name__


def extract_content(data: Any) -> str:
    """Text of an agent reply: content_markdown, then answer, then content."""
    if not isinstance(data, Mapping):
        return ""
    for key in ("content_markdown", "answer", "content"):
        raw = data.get(key)
        if raw is not None:
            return raw.strip() if isinstance(raw, str) else ""
    return ""


class AgentClient:
    """Calls registered agents with bounded latency and a bounded retry budget.

    ask() never raises: every path returns an AgentReply.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        *,
        timeout: float = DEFAULT_ASK_TIMEOUT,
        retries: int = DEFAULT_ASK_RETRIES,
        metadata_timeout: float = DEFAULT_METADATA_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._registry = registry
        self._timeout = timeout
        self._retries = retries
        self._metadata_timeout = metadata_timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AgentClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def ask(
        self,
        alias: str,
        payload: Mapping[str, Any] | AskRequest,
        retries: int | None = None,
    ) -> AgentReply:
        if retries is None:
            retries = self._retries

        try:
            agent = await self._registry.resolve(alias)
        except RegistryUnavailable as e:
            return AgentReply.failure(alias, str(e))
        if agent is None or not agent.base_url:
            return AgentReply.failure(alias, AGENT_NOT_FOUND)

        if isinstance(payload, AskRequest):
            body = payload.model_dump(exclude_none=True)
        else:
            body = dict(payload)
        base = agent.base_url.rstrip("/")
        # Shared by every attempt so agents can drop duplicate deliveries.
        headers = {"Idempotency-Key": uuid.uuid4().hex}

        t0 = time.monotonic()
        error = "Fetch error"
        for attempt in range(max(0, retries) + 1):
            try:
                resp = await asyncio.wait_for(
                    self._post_ask(base, body, headers), timeout=self._timeout
                )
            except _TRANSPORT_ERRORS as e:
                error = _error_message(e, self._timeout)
                logger.debug(f"ask {alias} attempt {attempt + 1} failed: {error}")
                continue

            if not resp.is_success:
                error = f"HTTP {resp.status_code}"
                logger.debug(f"ask {alias} attempt {attempt + 1} failed: {error}")
                continue

            try:
                data = resp.json()
            except ValueError:
                data = {}
            if data is None:
                data = {}
            return AgentReply.success(alias, data, _elapsed_ms(t0))

        logger.warning(f"Agent '{alias}' ask failed after {attempt + 1} attempts: {error}")
        return AgentReply.failure(alias, error, _elapsed_ms(t0))

    async def _post_ask(
        self, base: str, body: dict[str, Any], headers: dict[str, str]
    ) -> httpx.Response:
        resp = await self._client.post(f"{base}/ask", json=body, headers=headers)
        if resp.status_code == 404:
            # Agents mounted under a versioned prefix
            resp = await self._client.post(f"{base}/v1/ask", json=body, headers=headers)
        return resp

    async def ask_many(
        self,
        aliases: list[str],
        payload: Mapping[str, Any] | AskRequest,
        retries: int | None = None,
    ) -> list[AgentReply]:
        """Ask every alias concurrently and wait for all replies, in input order."""
        return list(
            await asyncio.gather(*(self.ask(alias, payload, retries) for alias in aliases))
        )

    async def fetch_metadata(self, base_url: str) -> dict[str, Any] | None:
        """GET {base_url}/metadata. Returns None on any failure."""
        if not base_url:
            return None
        url = f"{base_url.rstrip('/')}/metadata"
        try:
            resp = await asyncio.wait_for(
                self._client.get(url, headers={"Accept": "application/json"}),
                timeout=self._metadata_timeout,
            )
        except _TRANSPORT_ERRORS as e:
            logger.debug(f"metadata fetch {url} failed: {_error_message(e, self._metadata_timeout)}")
            return None
        if resp.status_code >= 400:
            return None
        try:
            data = resp.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    async def fetch_data(
        self, alias: str, params: Mapping[str, str] | None = None
    ) -> Any | None:
        """GET {base_url}/data for a registered agent. Returns None on any failure."""
        try:
            agent = await self._registry.resolve(alias)
        except RegistryUnavailable:
            return None
        if agent is None or not agent.base_url:
            return None
        url = f"{agent.base_url.rstrip('/')}/data"
        try:
            resp = await asyncio.wait_for(
                self._client.get(url, params=dict(params or {})), timeout=self._timeout
            )
        except _TRANSPORT_ERRORS as e:
            logger.debug(f"data fetch {url} failed: {_error_message(e, self._timeout)}")
            return None
        if resp.status_code >= 400:
            return None
        try:
            return resp.json()
        except ValueError:
            return None
