"""aiportal: agent integration core for the AI Portal."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("aiportal-agents")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
