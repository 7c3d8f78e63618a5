"""Metadata contract validation, metadata caching and advisory agent health."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import ValidationError

from aiportal.agents.client import AgentClient
from aiportal.config import DEFAULT_METADATA_CACHE_TTL
from aiportal.registry.models import (
    AgentDescriptor,
    AgentHealth,
    AgentMetadata,
    AgentStatus,
)

logger = logging.getLogger(__name__)

SAMPLE_PROMPT_LIMIT = 40


def validate_metadata(raw: Any) -> AgentMetadata | None:
    """Return parsed metadata, or None when the document breaks the contract."""
    if not isinstance(raw, dict):
        return None
    try:
        return AgentMetadata.model_validate(raw)
    except ValidationError:
        return None


class MetadataCache:
    """Valid metadata per normalized base URL, expiring after ``ttl`` seconds."""

    def __init__(self, ttl: float = DEFAULT_METADATA_CACHE_TTL) -> None:
        self._ttl = ttl
        self._entries: dict[str, tuple[AgentMetadata, float]] = {}

    @staticmethod
    def _key(base_url: str) -> str:
        return base_url.rstrip("/")

    def get(self, base_url: str) -> AgentMetadata | None:
        entry = self._entries.get(self._key(base_url))
        if entry is None:
            return None
        metadata, stored_at = entry
        if time.monotonic() - stored_at >= self._ttl:
            del self._entries[self._key(base_url)]
            return None
        return metadata

    def put(self, base_url: str, metadata: AgentMetadata) -> None:
        self._entries[self._key(base_url)] = (metadata, time.monotonic())

    def invalidate(self, base_url: str | None = None) -> None:
        if base_url is None:
            self._entries.clear()
        else:
            self._entries.pop(self._key(base_url), None)


class HealthMonitor:
    """Builds agent status views and tracks the last observed health per alias.

    Health is advisory: it never prevents AgentClient.ask() from being attempted.
    """

    def __init__(self, client: AgentClient, cache: MetadataCache | None = None) -> None:
        self._client = client
        self._cache = cache if cache is not None else MetadataCache()
        self._health: dict[str, AgentHealth] = {}

    @property
    def cache(self) -> MetadataCache:
        return self._cache

    def health(self, alias: str) -> AgentHealth:
        return self._health.get(alias, AgentHealth.UNKNOWN)

    def invalidate(self) -> None:
        self._cache.invalidate()

    async def _load_metadata(self, base_url: str) -> AgentMetadata | None:
        cached = self._cache.get(base_url)
        if cached is not None:
            return cached
        metadata = validate_metadata(await self._client.fetch_metadata(base_url))
        if metadata is not None:
            self._cache.put(base_url, metadata)
        return metadata

    async def describe(self, descriptor: AgentDescriptor) -> AgentStatus:
        metadata = await self._load_metadata(descriptor.base_url)
        if metadata is None:
            health = AgentHealth.UNHEALTHY
            logger.warning(f"Agent '{descriptor.alias}' is unhealthy: missing or invalid metadata")
        else:
            health = AgentHealth.HEALTHY
        self._health[descriptor.alias] = health

        name = descriptor.display_name or (metadata.name if metadata else None) or descriptor.alias
        return AgentStatus(
            alias=descriptor.alias,
            name=name,
            base_url=descriptor.base_url,
            domain_url=descriptor.domain_url,
            icon=descriptor.icon,
            display_order=descriptor.display_order,
            health=health,
            routing_hint=descriptor.routing_hint,
            metadata=metadata,
        )

    async def describe_all(self, descriptors: Iterable[AgentDescriptor]) -> list[AgentStatus]:
        return list(await asyncio.gather(*(self.describe(d) for d in descriptors)))


def collect_sample_prompts(
    statuses: Sequence[AgentStatus], limit: int = SAMPLE_PROMPT_LIMIT
) -> list[str]:
    """Unique sample prompts across healthy agents, first-seen order."""
    seen: set[str] = set()
    prompts: list[str] = []
    for status in statuses:
        if status.health != AgentHealth.HEALTHY or status.metadata is None:
            continue
        for prompt in status.metadata.sample_prompts:
            text = prompt.strip()
            if text and text not in seen:
                seen.add(text)
                prompts.append(text)
    return prompts[:limit]
