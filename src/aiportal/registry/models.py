"""Pydantic models for agent descriptors and the metadata contract."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)


class AgentDescriptor(BaseModel):
    """Registry entry for a single assistant or application."""

    model_config = ConfigDict(populate_by_name=True)

    alias: str
    base_url: str = Field(default="", alias="baseUrl")
    domain_url: str | None = Field(default=None, alias="domainUrl")
    icon: str = "Bot"
    display_order: int = Field(default=0, alias="displayOrder")
    is_active: bool = Field(default=True, alias="isActive")
    config_json: dict[str, Any] = Field(default_factory=dict, alias="configJson")

    @field_validator("base_url", mode="before")
    @classmethod
    def _none_base_url(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("config_json", mode="before")
    @classmethod
    def _none_config(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_embedded(self) -> bool:
        """Applications with a domain URL are rendered as embedded pages."""
        return bool(self.domain_url)

    @property
    def display_name(self) -> str | None:
        raw = self.config_json.get("displayName")
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
        return None

    @property
    def routing_hint(self) -> str | None:
        raw = self.config_json.get("routing_hint")
        return raw if isinstance(raw, str) else None


def _text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _valid_entries(model: type[BaseModel], value: Any) -> list[Any]:
    """Validate each entry on its own; entries that do not parse are dropped."""
    if not isinstance(value, list):
        return []
    entries = []
    for raw in value:
        try:
            entries.append(model.model_validate(raw))
        except ValidationError:
            continue
    return entries


class SupportedModel(BaseModel):
    model_config = ConfigDict(extra="allow", protected_namespaces=())

    model_id: str
    name: str | None = None
    description: str | None = None
    accepted_file_types: list[str] = Field(default_factory=list)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _text(value)

    @field_validator("accepted_file_types", mode="before")
    @classmethod
    def _coerce_file_types(cls, value: Any) -> list[str]:
        return _text_list(value)


class ProvidedDataType(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    description: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _detail_as_description(cls, data: Any) -> Any:
        # Older agents publish the description under "detail".
        if isinstance(data, dict) and not data.get("description") and data.get("detail"):
            data = {**data, "description": data["detail"]}
        return data

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _text(value)


class AgentMetadata(BaseModel):
    """Document served by an agent at GET {baseUrl}/metadata.

    Only ``name`` is required. Optional fields of the wrong shape are coerced
    or emptied rather than rejecting the whole document.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = None
    version: str | None = None
    developer: str | None = None
    capabilities: list[str] = Field(default_factory=list)
    supported_models: list[SupportedModel] = Field(default_factory=list)
    sample_prompts: list[str] = Field(default_factory=list)
    provided_data_types: list[ProvidedDataType] = Field(default_factory=list)
    contact: Any = None
    status: str | None = None  # "active" | "inactive" | other

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

    @field_validator("description", "version", "developer", "status", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _text(value)

    @field_validator("capabilities", "sample_prompts", mode="before")
    @classmethod
    def _coerce_text_list(cls, value: Any) -> list[str]:
        return _text_list(value)

    @field_validator("supported_models", mode="before")
    @classmethod
    def _drop_bad_models(cls, value: Any) -> list[Any]:
        return _valid_entries(SupportedModel, value)

    @field_validator("provided_data_types", mode="before")
    @classmethod
    def _drop_bad_data_types(cls, value: Any) -> list[Any]:
        return _valid_entries(ProvidedDataType, value)


class AgentHealth(StrEnum):
    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class AgentStatus(BaseModel):
    """Descriptor merged with live metadata, as listed to the UI."""

    alias: str
    name: str
    base_url: str = ""
    domain_url: str | None = None
    icon: str = "Bot"
    display_order: int = 0
    health: AgentHealth = AgentHealth.UNKNOWN
    routing_hint: str | None = None
    metadata: AgentMetadata | None = None
