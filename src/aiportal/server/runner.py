"""Uvicorn launcher for the portal API."""

from __future__ import annotations

from aiportal.config import PortalConfig, load_config


def run_server(config: PortalConfig | None = None) -> None:
    """Start the HTTP API server with uvicorn."""
    import uvicorn

    if config is None:
        config = load_config()

    uvicorn.run(
        "aiportal.server.app:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )
