"""Exception hierarchy shared by the fetchers, generators and API layer."""
from __future__ import annotations

from typing import Optional


class PulseError(Exception):
    """Base class for every error raised by Trend Pulse."""


class TransportError(PulseError):
    """Network or HTTP failure while talking to the proxy, search or LLM API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(PulseError):
    """Missing or malformed parameters at a request boundary."""


class ParseError(PulseError):
    """Feed markup does not have the expected ``rss > channel > item`` shape."""


class FetchError(PulseError):
    """The feed could not be fetched or parsed. Always chained from the cause."""


class GenerationError(PulseError):
    """The text-generation backend failed to produce a summary."""


class ConfigurationError(PulseError):
    """A required setting (usually an API key) is missing or malformed."""
