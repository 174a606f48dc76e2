"""Exception types shared by the relay components."""

from __future__ import annotations

from typing import Any

__all__ = [
    "RelayError",
    "ConfigurationMissing",
    "UpstreamError",
    "UpstreamMalformed",
    "MirrorFetchError",
]


class RelayError(Exception):
    """Base class for every error raised on purpose by the relay."""


class ConfigurationMissing(RelayError):
    """A required configuration item (credential or channel id) is absent."""

    def __init__(self, name: str):
        super().__init__(f"Missing {name}")
        self.name = name


class UpstreamError(RelayError):
    """Discord answered with a non-success status.

    ``status`` and ``details`` (the decoded response body) are forwarded to the
    HTTP client verbatim.
    """

    def __init__(self, status: int, details: Any):
        super().__init__(f"Discord API error (HTTP {status})")
        self.status = status
        self.details = details


class UpstreamMalformed(UpstreamError):
    """Discord answered with a body that is not valid JSON."""

    def __init__(self, raw: str):
        super().__init__(502, {"error": "Discord returned non-JSON", "raw": raw})
        self.raw = raw


class MirrorFetchError(RelayError):
    """Downloading an attachment for the local mirror failed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Could not mirror {url}: {reason}")
        self.url = url
        self.reason = reason
