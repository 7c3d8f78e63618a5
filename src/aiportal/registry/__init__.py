"""Agent registry: descriptors, configuration sources and alias resolution."""

from aiportal.errors import RegistryUnavailable
from aiportal.registry.loader import AgentRegistry, normalize_alias, parse_descriptors
from aiportal.registry.models import (
    AgentDescriptor,
    AgentHealth,
    AgentMetadata,
    AgentStatus,
    ProvidedDataType,
    SupportedModel,
)
from aiportal.registry.sources import (
    ConfigSource,
    FileConfigSource,
    HttpConfigSource,
    StaticConfigSource,
)

__all__ = [
    "AgentDescriptor",
    "AgentHealth",
    "AgentMetadata",
    "AgentRegistry",
    "AgentStatus",
    "ConfigSource",
    "FileConfigSource",
    "HttpConfigSource",
    "ProvidedDataType",
    "RegistryUnavailable",
    "StaticConfigSource",
    "SupportedModel",
    "normalize_alias",
    "parse_descriptors",
]
