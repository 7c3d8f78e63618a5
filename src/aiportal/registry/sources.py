"""Configuration sources the registry reads agent descriptors from."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

import httpx


class ConfigSource(Protocol):
    async def fetch(self) -> list[dict[str, Any]]: ...


class HttpConfigSource:
    """Reads the descriptor list from the portal's configuration service."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> list[dict[str, Any]]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.get(self._url, headers={"Accept": "application/json"})
        if resp.status_code >= 400:
            message = f"HTTP {resp.status_code}"
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("error"), str):
                message = body["error"]
            raise RuntimeError(f"Config service at {self._url} failed: {message}")
        data = resp.json()
        if not isinstance(data, list):
            raise ValueError(f"Config service at {self._url} did not return a list")
        return data

    def __repr__(self) -> str:
        return f"HttpConfigSource({self._url!r})"


class FileConfigSource:
    """Reads descriptors from a JSON file: a list, or an object with an "agents" list."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    async def fetch(self) -> list[dict[str, Any]]:
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("agents")
        if not isinstance(data, list):
            raise ValueError(f"{self._path} does not contain an agent list")
        return data

    def __repr__(self) -> str:
        return f"FileConfigSource({str(self._path)!r})"


class StaticConfigSource:
    def __init__(self, items: list[dict[str, Any]]) -> None:
        self._items = list(items)

    async def fetch(self) -> list[dict[str, Any]]:
        return [dict(item) for item in self._items]

    def __repr__(self) -> str:
        return f"StaticConfigSource({len(self._items)} agents)"
