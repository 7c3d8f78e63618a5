"""Agent routes: list with health, single status, /data relay, ask, refresh."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from aiportal.agents.metadata import collect_sample_prompts
from aiportal.errors import RegistryUnavailable
from aiportal.registry.loader import normalize_alias


def registry_unavailable(e: RegistryUnavailable) -> JSONResponse:
    return JSONResponse({"error": str(e)}, status_code=503)


async def list_agents(request: Request) -> JSONResponse:
    """GET /api/agents — all registered agents with metadata and health."""
    registry = request.app.state.registry
    monitor = request.app.state.monitor
    try:
        descriptors = await registry.get_configs()
    except RegistryUnavailable as e:
        return registry_unavailable(e)
    statuses = await monitor.describe_all(descriptors)
    return JSONResponse(
        {
            "agents": [s.model_dump(mode="json") for s in statuses],
            "count": len(statuses),
        }
    )


async def get_agent(request: Request) -> JSONResponse:
    """GET /api/agents/{alias}"""
    alias = normalize_alias(request.path_params["alias"])
    try:
        descriptor = await request.app.state.registry.resolve(alias)
    except RegistryUnavailable as e:
        return registry_unavailable(e)
    if descriptor is None:
        return JSONResponse({"error": f"Agent '{alias}' not found"}, status_code=404)
    status = await request.app.state.monitor.describe(descriptor)
    return JSONResponse(status.model_dump(mode="json"))


async def get_agent_data(request: Request) -> JSONResponse:
    """GET /api/agents/{alias}/data — relay the agent's optional /data listing."""
    alias = normalize_alias(request.path_params["alias"])
    try:
        descriptor = await request.app.state.registry.resolve(alias)
    except RegistryUnavailable as e:
        return registry_unavailable(e)
    if descriptor is None:
        return JSONResponse({"error": f"Agent '{alias}' not found"}, status_code=404)
    data = await request.app.state.client.fetch_data(alias, dict(request.query_params))
    if data is None:
        return JSONResponse({"error": f"Agent '{alias}' data unavailable"}, status_code=502)
    return JSONResponse(data)


async def ask_agent(request: Request) -> JSONResponse:
    """POST /api/agents/{alias}/ask — single-agent ask, always a structured reply."""
    alias = normalize_alias(request.path_params["alias"])
    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse({"error": "Body must be valid JSON"}, status_code=400)
    if not isinstance(payload, dict):
        return JSONResponse({"error": "Body must be a JSON object"}, status_code=400)
    reply = await request.app.state.client.ask(alias, payload)
    return JSONResponse(reply.model_dump(mode="json", by_alias=True))


async def refresh_agents(request: Request) -> JSONResponse:
    """POST /api/agents/refresh — configuration changed: drop caches and reload."""
    request.app.state.monitor.invalidate()
    try:
        descriptors = await request.app.state.registry.refresh()
    except RegistryUnavailable as e:
        return registry_unavailable(e)
    return JSONResponse({"status": "ok", "count": len(descriptors)})


async def sample_prompts(request: Request) -> JSONResponse:
    """GET /api/agents/sample-prompts — prompts suggested by healthy agents."""
    try:
        descriptors = await request.app.state.registry.get_configs()
    except RegistryUnavailable as e:
        return registry_unavailable(e)
    statuses = await request.app.state.monitor.describe_all(descriptors)
    prompts = collect_sample_prompts(statuses)
    return JSONResponse({"prompts": prompts, "count": len(prompts)})


routes = [
    Route("/api/agents", list_agents),
    Route("/api/agents/refresh", refresh_agents, methods=["POST"]),
    Route("/api/agents/sample-prompts", sample_prompts),
    Route("/api/agents/{alias}", get_agent),
    Route("/api/agents/{alias}/data", get_agent_data),
    Route("/api/agents/{alias}/ask", ask_agent, methods=["POST"]),
]
