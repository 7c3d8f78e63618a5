"""Exception types shared across the portal core."""

from __future__ import annotations


class PortalError(Exception):
    """Base class for portal errors."""


class RegistryUnavailable(PortalError):
    """Raised when the agent configuration cannot be loaded at all."""
