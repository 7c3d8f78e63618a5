"""Starlette app factory with lifespan for the agent registry and client."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from starlette.applications import Starlette

from aiportal.agents.client import AgentClient
from aiportal.agents.metadata import HealthMonitor, MetadataCache
from aiportal.config import PortalConfig, load_config
from aiportal.registry.loader import AgentRegistry
from aiportal.server.routes_agents import routes as agent_routes
from aiportal.server.routes_orchestrator import routes as orchestrator_routes
from aiportal.server.routes_system import routes as system_routes


def create_app(
    config: PortalConfig | None = None,
    *,
    registry: AgentRegistry | None = None,
    client: AgentClient | None = None,
    monitor: HealthMonitor | None = None,
) -> Starlette:
    """Create the portal API. Collaborators not passed in are built from config."""

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        cfg = config if config is not None else load_config()
        app.state.config = cfg

        app.state.registry = registry if registry is not None else AgentRegistry.from_config(cfg)
        owns_client = client is None
        app.state.client = (
            client
            if client is not None
            else AgentClient(
                app.state.registry,
                timeout=cfg.ask_timeout,
                retries=cfg.ask_retries,
                metadata_timeout=cfg.metadata_timeout,
            )
        )
        app.state.monitor = (
            monitor
            if monitor is not None
            else HealthMonitor(app.state.client, MetadataCache(ttl=cfg.metadata_cache_ttl))
        )

        yield

        if owns_client:
            await app.state.client.close()

    app = Starlette(
        routes=system_routes + agent_routes + orchestrator_routes,
        lifespan=lifespan,
    )
    return app
