"""Shared fixtures for aiportal tests."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from aiportal.agents.client import AgentClient
from aiportal.registry.loader import AgentRegistry
from aiportal.registry.sources import StaticConfigSource


def _make_descriptor(
    alias: str,
    *,
    base_url: str | None = None,
    display_order: int = 0,
    **extra: object,
) -> dict:
    """Build a descriptor dict in the configuration service's wire format."""
    return {
        "alias": alias,
        "baseUrl": base_url if base_url is not None else f"http://{alias}.agents.test/v1",
        "icon": "Bot",
        "displayOrder": display_order,
        "isActive": True,
        **extra,
    }


def _make_metadata(name: str = "Research Assistant", **extra: object) -> dict:
    return {
        "name": name,
        "description": f"{name} for tests",
        "version": "1.0.0",
        "capabilities": ["search"],
        "supported_models": [
            {"model_id": "gpt-4o", "name": "GPT-4o", "accepted_file_types": ["pdf"]}
        ],
        "sample_prompts": ["Summarize this paper"],
        "provided_data_types": [{"type": "documents"}],
        "status": "active",
        **extra,
    }


def _write_json(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def descriptors() -> list[dict]:
    return [
        _make_descriptor("alpha", display_order=1),
        _make_descriptor("beta", display_order=2),
        _make_descriptor("placeholder", base_url=""),
        _make_descriptor("portal-app", base_url="", domainUrl="https://apps.example.test"),
    ]


@pytest.fixture
def registry(descriptors: list[dict]) -> AgentRegistry:
    return AgentRegistry(StaticConfigSource(descriptors))


@pytest_asyncio.fixture
async def client(registry: AgentRegistry):
    """AgentClient whose httpx client is replaced with an AsyncMock."""
    agent_client = AgentClient(registry, timeout=0.5, retries=1)
    real_client = agent_client._client
    agent_client._client = AsyncMock()
    yield agent_client
    await real_client.aclose()


def ok_response(data: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=data)


def raw_response(content: bytes, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=content)
