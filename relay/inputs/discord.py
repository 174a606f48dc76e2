"""discord.py – Discord Input Adapter

Purpose
-------
Reads a single channel through the official Discord REST API (v10) using a
bot token.  The adapter exposes a deliberately small surface –
:pyfunc:`DiscordClient.get_channel` and :pyfunc:`DiscordClient.list_messages` –
so the rest of the code-base stays unaware of URLs, headers and status codes.

Error policy
------------
* Non-success status → :class:`relay.errors.UpstreamError` carrying the status
  and decoded body.
* Body that is not JSON → :class:`relay.errors.UpstreamMalformed` (502) with the
  raw text, even when the status was a success.
* No retries and no back-off; failures surface to the caller immediately.

Example
-------
>>> from relay.config import load_config
>>> from relay.inputs.discord import DiscordClient
>>> client = DiscordClient(load_config())
>>> len(client.list_messages(limit=20))
20
"""

from __future__ import annotations

import json
from typing import Any, List, Optional

import requests

from relay.config import RelayConfig
from relay.errors import UpstreamError, UpstreamMalformed
from relay.helper_functions import build_session
from relay.logs import log_text
from relay.models import DiscordMessage

__all__ = [
    "DiscordClient",
    "MESSAGE_PAGE_SIZE",
]

# Single page, no pagination.
MESSAGE_PAGE_SIZE = 20


class DiscordClient:
    """Authenticated, read-only view of one Discord channel."""

    def __init__(self, config: RelayConfig, session: Optional[requests.Session] = None):
        config.require()
        self.config = config
        self.session = session or build_session()
        self.session.headers["Authorization"] = f"Bot {config.bot_token}"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.config.api_base.rstrip('/')}/{path.lstrip('/')}"

    def _fetch_json(self, path: str, params: Optional[dict] = None) -> Any:
        """GET *path* and return the decoded JSON body (``None`` when empty)."""
        url = self._url(path)
        response = self.session.get(url, params=params, timeout=self.config.api_timeout)
        raw = response.text

        try:
            data = json.loads(raw) if raw else None
        except ValueError as exc:
            log_text(
                f"Discord returned non-JSON for {path} (HTTP {response.status_code})",
                severity="WARNING",
            )
            raise UpstreamMalformed(raw) from exc

        if not response.ok:
            log_text(
                f"Discord API error for {path}: HTTP {response.status_code}",
                severity="WARNING",
            )
            raise UpstreamError(response.status_code, data)

        return data

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "DiscordClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get_channel(self) -> Any:
        """Return the raw channel object for the configured channel."""
        return self._fetch_json(f"channels/{self.config.channel_id}")

    def list_messages(self, limit: int = MESSAGE_PAGE_SIZE) -> List[DiscordMessage]:
        """Return the most recent *limit* messages, newest first.

        A JSON body that is not an array is treated as an empty channel.
        """
        data = self._fetch_json(
            f"channels/{self.config.channel_id}/messages",
            params={"limit": limit},
        )
        if not isinstance(data, list):
            return []
        messages = [DiscordMessage.from_dict(m) for m in data if isinstance(m, dict)]
        log_text(f"Fetched {len(messages)} Discord messages", severity="DEBUG")
        return messages
