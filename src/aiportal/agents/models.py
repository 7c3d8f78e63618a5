"""Pydantic models for the ask protocol and synthesized answers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AskRequest(BaseModel):
    """Payload POSTed to an agent's /ask endpoint. Unknown fields pass through."""

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    session_id: str | None = None
    model_id: str | None = None
    user: str | None = None
    prompt: str | None = None
    context: dict[str, Any] | None = None


class AskResponse(BaseModel):
    """Reply body the reference agent returns from POST /ask.

    Portal-side parsing of agent replies is field by field, in
    ``synthesizer.parse_answer``.
    """

    model_config = ConfigDict(extra="allow")

    answer: str | None = None
    sources: list[Any] = Field(default_factory=list)


class AgentReply(BaseModel):
    """Outcome of one logical ask call, retries included."""

    model_config = ConfigDict(populate_by_name=True)

    alias: str
    ok: bool
    time_ms: int = Field(default=0, ge=0, alias="timeMs")
    data: Any = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_outcome(self) -> AgentReply:
        if self.ok:
            if self.data is None:
                raise ValueError("successful reply requires data")
            if self.error is not None:
                raise ValueError("successful reply must not carry an error")
        elif not self.error:
            raise ValueError("failed reply requires a non-empty error")
        return self

    @classmethod
    def success(cls, alias: str, data: Any, time_ms: int) -> AgentReply:
        return cls(alias=alias, ok=True, time_ms=time_ms, data=data)

    @classmethod
    def failure(cls, alias: str, error: str, time_ms: int = 0) -> AgentReply:
        return cls(alias=alias, ok=False, time_ms=time_ms, error=error)


class AnswerPart(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    alias: str
    answer: str
    sources: list[Any] = Field(default_factory=list)
    time_ms: int = Field(default=0, alias="timeMs")


class AnswerMeta(BaseModel):
    best_alias: str | None = None
    latency_ms: int = 0
    replies: list[AgentReply] = Field(default_factory=list)


class SynthesizedAnswer(BaseModel):
    summary: str
    parts: list[AnswerPart] = Field(default_factory=list)
    meta: AnswerMeta = Field(default_factory=AnswerMeta)
