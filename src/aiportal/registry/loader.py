"""AgentRegistry: load, cache and resolve agent descriptors."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from aiportal.config import PortalConfig
from aiportal.errors import RegistryUnavailable
from aiportal.registry.models import AgentDescriptor
from aiportal.registry.sources import (
    ConfigSource,
    FileConfigSource,
    HttpConfigSource,
    StaticConfigSource,
)

logger = logging.getLogger(__name__)


def normalize_alias(alias: str) -> str:
    """Normalize a caller-supplied alias before lookup."""
    return alias.strip().lower()


def parse_descriptors(items: list[Any]) -> list[AgentDescriptor]:
    """Validate raw descriptor dicts.

    Invalid entries are skipped. Duplicate aliases keep the first occurrence.
    """
    descriptors: list[AgentDescriptor] = []
    seen: set[str] = set()
    for raw in items:
        try:
            descriptor = AgentDescriptor.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipping invalid agent descriptor {raw!r}: {e.error_count()} errors")
            continue
        if descriptor.alias in seen:
            logger.warning(f"Duplicate agent alias '{descriptor.alias}' ignored")
            continue
        seen.add(descriptor.alias)
        descriptors.append(descriptor)
    return descriptors


class AgentRegistry:
    """Lazily loaded, process-wide cache of agent descriptors.

    The descriptor list is fetched from the source on first use and kept until
    invalidate() or refresh() is called. Once a list has been loaded, a failed
    re-fetch serves the stale list instead of raising.
    """

    def __init__(self, source: ConfigSource) -> None:
        self._source = source
        self._cache: list[AgentDescriptor] | None = None
        self._stale = False

    @classmethod
    def from_config(cls, config: PortalConfig) -> AgentRegistry:
        if config.config_url:
            return cls(HttpConfigSource(config.config_url, timeout=config.config_timeout))
        if config.agents_file:
            return cls(FileConfigSource(Path(config.agents_file)))
        return cls(StaticConfigSource(config.agents))

    @classmethod
    def from_json(cls, path: Path) -> AgentRegistry:
        """Registry backed by a JSON file (for testing and local setups)."""
        return cls(FileConfigSource(path))

    @property
    def source(self) -> ConfigSource:
        return self._source

    @property
    def is_loaded(self) -> bool:
        return self._cache is not None

    async def get_configs(self) -> list[AgentDescriptor]:
        if self._cache is not None and not self._stale:
            return list(self._cache)

        try:
            items = await self._source.fetch()
        except Exception as e:
            if self._cache is None:
                raise RegistryUnavailable(f"Cannot load agent configuration: {e}") from e
            logger.warning(f"Agent configuration refresh failed, serving cached list: {e}")
            return list(self._cache)

        self._cache = parse_descriptors(items)
        self._stale = False
        logger.debug(f"Loaded {len(self._cache)} agent descriptors from {self._source!r}")
        return list(self._cache)

    async def resolve(self, alias: str) -> AgentDescriptor | None:
        for descriptor in await self.get_configs():
            if descriptor.alias == alias:
                return descriptor
        return None

    def invalidate(self) -> None:
        """Mark the cached list stale; the next read re-fetches it."""
        self._stale = True

    async def refresh(self) -> list[AgentDescriptor]:
        self.invalidate()
        return await self.get_configs()
