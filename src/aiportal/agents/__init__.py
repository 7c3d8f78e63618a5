"""Agent protocol: ask client, response synthesis and metadata health."""

from aiportal.agents.client import AGENT_NOT_FOUND, AgentClient, extract_content
from aiportal.agents.metadata import (
    HealthMonitor,
    MetadataCache,
    collect_sample_prompts,
    validate_metadata,
)
from aiportal.agents.models import (
    AgentReply,
    AnswerMeta,
    AnswerPart,
    AskRequest,
    AskResponse,
    SynthesizedAnswer,
)
from aiportal.agents.synthesizer import EMPTY_ANSWER, NO_VALID_REPLY, synthesize

__all__ = [
    "AGENT_NOT_FOUND",
    "EMPTY_ANSWER",
    "NO_VALID_REPLY",
    "AgentClient",
    "AgentReply",
    "AnswerMeta",
    "AnswerPart",
    "AskRequest",
    "AskResponse",
    "HealthMonitor",
    "MetadataCache",
    "SynthesizedAnswer",
    "collect_sample_prompts",
    "extract_content",
    "synthesize",
    "validate_metadata",
]
