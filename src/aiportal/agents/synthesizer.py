"""Merge the replies of one chat turn into a single displayable answer."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from aiportal.agents.models import (
    AgentReply,
    AnswerMeta,
    AnswerPart,
    SynthesizedAnswer,
)

NO_VALID_REPLY = "Không nhận được phản hồi hợp lệ từ các trợ lý."
EMPTY_ANSWER = "(không có nội dung)"


def parse_answer(data: Any) -> tuple[str, list[Any]]:
    """Extract (answer, sources) from an ask body, degrading to the placeholder."""
    if not isinstance(data, Mapping):
        return EMPTY_ANSWER, []
    answer = data.get("answer")
    if not isinstance(answer, str):
        answer = EMPTY_ANSWER
    sources = data.get("sources")
    if not isinstance(sources, list):
        sources = []
    return answer, list(sources)


def synthesize(replies: Sequence[AgentReply]) -> SynthesizedAnswer:
    ok_replies = [r for r in replies if r.ok]
    if not ok_replies:
        return SynthesizedAnswer(
            summary=NO_VALID_REPLY,
            parts=[],
            meta=AnswerMeta(
                latency_ms=max((r.time_ms for r in replies), default=0),
                replies=list(replies),
            ),
        )

    parts: list[AnswerPart] = []
    for reply in ok_replies:
        answer, sources = parse_answer(reply.data)
        parts.append(
            AnswerPart(alias=reply.alias, answer=answer, sources=sources, time_ms=reply.time_ms)
        )

    if len(parts) == 1:
        summary = parts[0].answer
    else:
        summary = "\n\n".join(f"— {p.alias.upper()}: {p.answer}" for p in parts)

    # min() keeps the first of equally fast parts
    best = min(parts, key=lambda p: p.time_ms)
    return SynthesizedAnswer(
        summary=summary,
        parts=parts,
        meta=AnswerMeta(
            best_alias=best.alias,
            latency_ms=max(r.time_ms for r in ok_replies),
            replies=list(replies),
        ),
    )
