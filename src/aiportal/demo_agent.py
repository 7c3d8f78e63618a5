"""Reference agent serving the /metadata, /ask and /data contract."""

from __future__ import annotations

import time

from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from aiportal.agents.models import AskRequest, AskResponse

REQUIRED_FIELDS = ("session_id", "model_id", "user", "prompt")

DEMO_METADATA = {
    "name": "Document Assistant",
    "description": "Tìm kiếm, tóm tắt và giải thích tài liệu nghiên cứu",
    "version": "1.2.0",
    "developer": "AI Portal",
    "capabilities": ["search", "summarize", "explain"],
    "supported_models": [
        {
            "model_id": "gpt-4o",
            "name": "GPT-4o",
            "description": "Mô hình mạnh cho tóm tắt và giải thích chi tiết",
            "accepted_file_types": ["pdf", "docx", "txt", "md"],
        },
        {
            "model_id": "gpt-4o-mini",
            "name": "GPT-4o Mini",
            "description": "Mô hình nhanh, tiết kiệm chi phí",
            "accepted_file_types": ["pdf", "txt"],
        },
    ],
    "sample_prompts": [
        "Tóm tắt bài báo về học sâu trong y tế",
        "Giải thích khái niệm 'federated learning' trong AI",
    ],
    "provided_data_types": [
        {"type": "documents", "description": "Tài liệu nghiên cứu mà Agent lưu trữ"},
        {"type": "experts", "description": "Chuyên gia liên quan tới lĩnh vực của Agent"},
    ],
    "contact": "email@example.com",
    "status": "active",
}

DEMO_DATA = {
    "documents": [
        {"id": "doc-1", "title": "Deep learning in medical imaging", "year": 2024},
        {"id": "doc-2", "title": "Federated learning survey", "year": 2023},
    ],
    "experts": [
        {"id": "exp-1", "name": "Nguyễn Văn A", "field": "Machine learning"},
    ],
}


def _error(status_code: int, code: str, message: str, session_id: str | None = None) -> JSONResponse:
    return JSONResponse(
        {
            "session_id": session_id,
            "status": "error",
            "error_code": code,
            "error_message": message,
        },
        status_code=status_code,
    )


def create_demo_agent(name: str | None = None) -> Starlette:
    """Create a reference agent app; ``name`` overrides the metadata name."""
    metadata = dict(DEMO_METADATA)
    if name:
        metadata["name"] = name

    async def get_metadata(request: Request) -> JSONResponse:
        """GET /metadata"""
        return JSONResponse(metadata)

    async def ask(request: Request) -> JSONResponse:
        """POST /ask — answer a prompt."""
        t0 = time.monotonic()
        try:
            raw = await request.json()
        except ValueError:
            return _error(400, "INVALID_JSON", "Payload không phải JSON hợp lệ")
        if not isinstance(raw, dict):
            return _error(400, "INVALID_JSON", "Payload không phải JSON hợp lệ")

        try:
            body: AskRequest | None = AskRequest.model_validate(raw)
        except ValidationError:
            body = None
        if body is None or any(not getattr(body, f) for f in REQUIRED_FIELDS):
            session_id = raw.get("session_id") if isinstance(raw.get("session_id"), str) else None
            return _error(400, "INVALID_REQUEST", "Thiếu tham số bắt buộc", session_id)

        answer = f"[{metadata['name']}] {body.prompt}"
        reply = AskResponse(
            answer=answer,
            sources=[],
            session_id=body.session_id,
            status="success",
            content_markdown=answer,
            meta={
                "model": body.model_id,
                "response_time_ms": int((time.monotonic() - t0) * 1000),
            },
        )
        return JSONResponse(reply.model_dump())

    async def get_data(request: Request) -> JSONResponse:
        """GET /data?type=... — provided data listings."""
        data_type = request.query_params.get("type", "documents")
        items = DEMO_DATA.get(data_type)
        if items is None:
            return JSONResponse(
                {"status": "error", "error_message": f"Unknown data type '{data_type}'"},
                status_code=404,
            )
        return JSONResponse({"status": "success", "data_type": data_type, "items": items})

    return Starlette(
        routes=[
            Route("/metadata", get_metadata),
            Route("/ask", ask, methods=["POST"]),
            Route("/data", get_data),
        ]
    )


def run_demo_agent(host: str = "127.0.0.1", port: int = 41781) -> None:
    """Serve the reference agent with uvicorn."""
    import uvicorn

    uvicorn.run(create_demo_agent(), host=host, port=port)
