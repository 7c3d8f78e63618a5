"""Orchestrator route: fan one chat turn out to several agents and merge."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from aiportal.agents.synthesizer import synthesize
from aiportal.registry.loader import normalize_alias


class OrchestratorRequest(BaseModel):
    agents: list[str] = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)


async def orchestrate_ask(request: Request) -> JSONResponse:
    """POST /api/orchestrator/ask — ask every listed agent and synthesize one answer."""
    try:
        raw = await request.json()
    except ValueError:
        return JSONResponse({"error": "Body must be valid JSON"}, status_code=400)
    try:
        body = OrchestratorRequest.model_validate(raw)
    except ValidationError as e:
        return JSONResponse(
            {"error": "Invalid orchestrator request", "details": e.errors(include_url=False)},
            status_code=400,
        )

    aliases = [normalize_alias(a) for a in body.agents]
    replies = await request.app.state.client.ask_many(aliases, body.payload)
    answer = synthesize(replies)
    return JSONResponse(answer.model_dump(mode="json", by_alias=True))


routes = [
    Route("/api/orchestrator/ask", orchestrate_ask, methods=["POST"]),
]
