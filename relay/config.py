"""Configuration management.

The whole relay is driven by one :class:`RelayConfig`, built from the
environment once at process start and passed to every component.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from relay.errors import ConfigurationMissing
from relay.helper_functions import get_secret_value
from relay.logs import log_text

DEFAULT_ALLOWED_ORIGINS = [
    "https://socalalliance.org",
    "https://beta.socalalliance.org",
    "https://b1.socalalliance.org",
    "http://localhost:3000",
    "http://127.0.0.1:5500",
]


@dataclass
class RelayConfig:
    """Complete application configuration."""
    bot_token: Optional[str]
    channel_id: Optional[str]
    port: int = 3000
    api_base: str = "https://discord.com/api/v10"
    api_timeout: float = 10.0
    mirror_dir: Path = Path("downloads")
    mirror_timeout: float = 30.0
    media_workers: int = 4
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    rate_limit: str = "120 per minute"
    static_site_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        self.bot_token = _clean(self.bot_token)
        self.channel_id = _clean(self.channel_id)
        self.mirror_dir = Path(self.mirror_dir)
        if self.static_site_dir is not None:
            self.static_site_dir = Path(self.static_site_dir)

    def missing(self) -> List[str]:
        """Names of required items that are absent, in check order."""
        absent = []
        if not self.bot_token:
            absent.append("DISCORD_BOT_TOKEN")
        if not self.channel_id:
            absent.append("DISCORD_CHANNEL_ID")
        return absent

    def require(self) -> None:
        """Raise :class:`ConfigurationMissing` for the first absent item."""
        absent = self.missing()
        if absent:
            raise ConfigurationMissing(absent[0])


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_list_env(key: str, default: List[str]) -> List[str]:
    """Parse comma-separated list from environment variable."""
    value = os.getenv(key, "")
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _float_env(key: str, default: float, minimum: float = 1.0) -> float:
    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return max(minimum, float(raw))
    except ValueError:
        log_text(f"Ignoring invalid {key}={raw!r}; using {default}", severity="WARNING")
        return default


def _int_env(key: str, default: int, minimum: int = 1) -> int:
    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        log_text(f"Ignoring invalid {key}={raw!r}; using {default}", severity="WARNING")
        return default


def _resolve_bot_token() -> Optional[str]:
    """Return the bot token: env var first, Secret Manager second.

    The Secret Manager lookup only happens when ``DISCORD_TOKEN_SECRET_ID`` is
    set; a failing lookup leaves the token unset so the per-request check
    reports it.
    """
    token = _clean(os.getenv("DISCORD_BOT_TOKEN"))
    if token:
        return token

    secret_id = _clean(os.getenv("DISCORD_TOKEN_SECRET_ID"))
    if not secret_id:
        return None

    project_id = os.getenv("GOOGLE_CLOUD_PROJECT")
    try:
        token = _clean(get_secret_value(project_id, secret_id))
    except Exception as exc:  # pragma: no cover – network / IAM failures
        log_text(
            f"Failed to retrieve Discord bot token from Secret Manager: {exc}",
            severity="ERROR",
        )
        return None
    log_text("Loaded Discord bot token from Secret Manager.", severity="INFO")
    return token


def load_config() -> RelayConfig:
    """Load configuration from environment variables.

    Missing credential / channel id is logged here but not raised; the feed
    endpoints report it per request.
    """
    static_dir = _clean(os.getenv("STATIC_SITE_DIR"))
    config = RelayConfig(
        bot_token=_resolve_bot_token(),
        channel_id=os.getenv("DISCORD_CHANNEL_ID"),
        port=_int_env("PORT", 3000),
        api_base=(os.getenv("DISCORD_API_BASE") or "https://discord.com/api/v10").strip().rstrip("/"),
        api_timeout=_float_env("DISCORD_API_TIMEOUT", 10.0),
        mirror_dir=Path(os.getenv("MIRROR_DIR", "downloads")),
        mirror_timeout=_float_env("MIRROR_FETCH_TIMEOUT", 30.0),
        media_workers=_int_env("MEDIA_WORKERS", 4),
        allowed_origins=_parse_list_env("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS),
        rate_limit=(os.getenv("RATE_LIMIT") or "120 per minute").strip(),
        static_site_dir=Path(static_dir) if static_dir else None,
    )

    for name in config.missing():
        log_text(f"{name} is not set – feed endpoints will return 500", severity="WARNING")
    return config
