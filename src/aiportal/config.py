"""Configuration defaults, config file loading, and environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Agent protocol
DEFAULT_ASK_TIMEOUT = 20.0
DEFAULT_ASK_RETRIES = 1
DEFAULT_METADATA_TIMEOUT = 10.0
DEFAULT_METADATA_CACHE_TTL = 5 * 60.0
DEFAULT_CONFIG_TIMEOUT = 10.0

# Server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 41780

CONFIG_FILENAME = ".aiportal.json"


def _safe_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def _safe_float(value: str, default: float) -> float:
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class PortalConfig:
    config_url: str | None = None
    agents_file: str | None = None
    agents: list[dict] = field(default_factory=list)
    ask_timeout: float = DEFAULT_ASK_TIMEOUT
    ask_retries: int = DEFAULT_ASK_RETRIES
    metadata_timeout: float = DEFAULT_METADATA_TIMEOUT
    metadata_cache_ttl: float = DEFAULT_METADATA_CACHE_TTL
    config_timeout: float = DEFAULT_CONFIG_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"


_FILE_KEYS = (
    "config_url",
    "agents_file",
    "agents",
    "ask_timeout",
    "ask_retries",
    "metadata_timeout",
    "metadata_cache_ttl",
    "config_timeout",
    "host",
    "port",
    "log_level",
)


def load_config(path: Path | None = None) -> PortalConfig:
    """Load config from JSON file with env var overrides."""
    if path is None:
        path = Path.cwd() / CONFIG_FILENAME
    config = PortalConfig()

    if path.exists():
        try:
            text = path.read_text()
            if text.strip():
                data = json.loads(text)
                for key in _FILE_KEYS:
                    if key in data:
                        setattr(config, key, data[key])
        except (json.JSONDecodeError, OSError, TypeError) as e:
            logger.warning(f"Failed to load portal config from {path}: {e}")

    # Env var overrides
    config_url = os.environ.get("AIPORTAL_CONFIG_URL")
    if config_url:
        config.config_url = config_url

    agents_file = os.environ.get("AIPORTAL_AGENTS_FILE")
    if agents_file:
        config.agents_file = agents_file

    timeout_env = os.environ.get("AIPORTAL_ASK_TIMEOUT")
    if timeout_env:
        config.ask_timeout = _safe_float(timeout_env, config.ask_timeout)

    retries_env = os.environ.get("AIPORTAL_ASK_RETRIES")
    if retries_env:
        config.ask_retries = max(0, _safe_int(retries_env, config.ask_retries))

    port_env = os.environ.get("AIPORTAL_PORT")
    if port_env:
        config.port = _safe_int(port_env, config.port)

    log_level = os.environ.get("AIPORTAL_LOG_LEVEL")
    if log_level:
        config.log_level = log_level.upper()

    return config
