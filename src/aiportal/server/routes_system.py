"""System routes: liveness with registry state, version, ask policy."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from aiportal import __version__


async def health(request: Request) -> JSONResponse:
    """GET /health — process is up; reports whether agent configs are loaded yet."""
    registry = request.app.state.registry
    return JSONResponse({"status": "ok", "registry_loaded": registry.is_loaded})


async def version(request: Request) -> JSONResponse:
    return JSONResponse({"name": "aiportal", "version": __version__})


async def ask_policy(request: Request) -> JSONResponse:
    """GET /api/config — timeouts and retry budget applied to agent calls."""
    config = request.app.state.config
    return JSONResponse(
        {
            "ask_timeout": config.ask_timeout,
            "ask_retries": config.ask_retries,
            "metadata_timeout": config.metadata_timeout,
            "metadata_cache_ttl": config.metadata_cache_ttl,
        }
    )


routes = [
    Route("/health", health),
    Route("/api/version", version),
    Route("/api/config", ask_policy),
]
