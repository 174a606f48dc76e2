"""verbs.py – Action primitives for the announcement relay

Verbs are the high-level actions behind the HTTP routes and the CLI.  They
orchestrate the Discord input adapter, the attachment mirror and the content
sanitizer without knowing anything about Flask or click.

``fetch_announcements`` is the main verb: it pulls the latest page of channel
messages, keeps the ones worth showing, resolves their media (mirroring
attachments, leaving embeds remote) and returns at most eight
:class:`relay.models.Announcement` records in upstream order.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from typing import Any, Dict, List, Optional

from relay.config import RelayConfig
from relay.errors import MirrorFetchError
from relay.inputs.discord import MESSAGE_PAGE_SIZE, DiscordClient
from relay.logs import log_text
from relay.mirror import AttachmentMirror
from relay.models import (
    Announcement,
    DiscordAttachment,
    DiscordEmbed,
    DiscordMessage,
    MediaItem,
    channel_summary,
)
from relay.sanitize import sanitize_content

__all__ = [
    "classify_attachment",
    "classify_embed_image",
    "describe_channel",
    "extract_media",
    "fetch_announcements",
    "message_text",
]

MAX_ANNOUNCEMENTS = 8

# Extension followed by end of path, query string or fragment.
_GIF_URL = re.compile(r"\.gif(?:$|[?#])", re.IGNORECASE)
_IMAGE_URL = re.compile(r"\.(?:png|jpe?g|gif|webp)(?:$|[?#])", re.IGNORECASE)
_VIDEO_URL = re.compile(r"\.(?:mp4|webm|mov)(?:$|[?#])", re.IGNORECASE)

_IMAGE_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/gif", "image/webp"}
_VIDEO_CONTENT_TYPES = {"video/mp4", "video/webm", "video/quicktime"}


# ---------------------------------------------------------------------------
# Classification helpers
# ---------------------------------------------------------------------------


def classify_attachment(url: str, content_type: Optional[str]) -> str:
    """Return ``image`` / ``gif`` / ``video`` / ``file`` for an attachment.

    The content type decides when present, otherwise the extension of the
    original URL does.  A gif hint from either source wins over ``image``.
    """
    url = url or ""
    is_gif = bool(_GIF_URL.search(url))

    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime in _IMAGE_CONTENT_TYPES:
            return "gif" if is_gif or mime == "image/gif" else "image"
        if mime in _VIDEO_CONTENT_TYPES:
            return "video"
        return "file"

    if _IMAGE_URL.search(url):
        return "gif" if is_gif else "image"
    if _VIDEO_URL.search(url):
        return "video"
    return "file"


def classify_embed_image(url: str) -> str:
    return "gif" if _GIF_URL.search(url or "") else "image"


def message_text(message: DiscordMessage) -> str:
    """Own text when non-blank, else the first embed's title + description."""
    if message.content and message.content.strip():
        raw = message.content
    elif message.embeds:
        embed = message.embeds[0]
        raw = (f"{embed.title}\n" if embed.title else "") + (embed.description or "")
    else:
        raw = ""
    return sanitize_content(raw).strip()


# ---------------------------------------------------------------------------
# Media extraction
# ---------------------------------------------------------------------------


def _attachment_item(
    attachment: DiscordAttachment,
    message_id: str,
    mirror: Optional[AttachmentMirror],
) -> Optional[MediaItem]:
    if not attachment.url:
        return None

    url = attachment.url
    if mirror is not None:
        try:
            url = mirror.mirror(attachment.url, message_id, attachment.filename)
        except (MirrorFetchError, OSError) as exc:
            log_text(
                f"Mirror failed for message {message_id}, serving remote URL: {exc}",
                severity="WARNING",
            )

    return MediaItem(
        url=url,
        type=classify_attachment(attachment.url, attachment.content_type),
        name=attachment.filename,
        content_type=attachment.content_type,
    )


def _embed_item(embed: DiscordEmbed) -> Optional[MediaItem]:
    # A video embed's image is just its poster frame.
    if embed.video_url:
        return MediaItem(url=embed.video_url, type="video")
    if embed.image_url:
        return MediaItem(url=embed.image_url, type=classify_embed_image(embed.image_url))
    if embed.thumbnail_url:
        return MediaItem(url=embed.thumbnail_url, type=classify_embed_image(embed.thumbnail_url))
    return None


def extract_media(
    message: DiscordMessage,
    mirror: Optional[AttachmentMirror] = None,
) -> List[MediaItem]:
    """Attachments first, then embeds; deduplicated by URL in encounter order."""
    candidates: List[Optional[MediaItem]] = [
        _attachment_item(a, message.id, mirror) for a in message.attachments
    ]
    candidates.extend(_embed_item(e) for e in message.embeds)

    seen: set[str] = set()
    media: List[MediaItem] = []
    for item in candidates:
        if item is None or item.url in seen:
            continue
        seen.add(item.url)
        media.append(item)
    return media


# ---------------------------------------------------------------------------
# Public verbs
# ---------------------------------------------------------------------------


def fetch_announcements(
    config: RelayConfig,
    *,
    client: Optional[DiscordClient] = None,
    mirror: Optional[AttachmentMirror] = None,
) -> List[Announcement]:
    """Return the latest announcements for the configured channel.

    Raises
    ------
    ConfigurationMissing
        Bot token or channel id absent; raised before any network call.
    UpstreamError / UpstreamMalformed
        Discord rejected the request or returned garbage.
    """
    config.require()
    with ExitStack() as owned:
        if client is None:
            client = owned.enter_context(DiscordClient(config))
        if mirror is None:
            mirror = AttachmentMirror(config.mirror_dir, timeout=config.mirror_timeout)
            owned.callback(mirror.close)

        messages = [m for m in client.list_messages(limit=MESSAGE_PAGE_SIZE) if m.is_relevant]

        # executor.map yields in submission order, whatever the completion order.
        with ThreadPoolExecutor(max_workers=config.media_workers) as executor:
            media_lists = list(executor.map(lambda m: extract_media(m, mirror), messages))

    announcements = [
        Announcement(
            id=message.id,
            content=message_text(message),
            timestamp=message.timestamp,
            media=media,
        )
        for message, media in zip(messages, media_lists)
    ]
    kept = [a for a in announcements if not a.is_empty][:MAX_ANNOUNCEMENTS]

    log_text(
        f"Built {len(kept)} announcements from {len(messages)} relevant messages",
        severity="DEBUG",
    )
    return kept


def describe_channel(
    config: RelayConfig,
    *,
    client: Optional[DiscordClient] = None,
) -> Dict[str, Any]:
    """Return ``{id, name, type, guild_id, last_message_id}`` for the channel."""
    config.require()
    if client is not None:
        return channel_summary(client.get_channel())
    with DiscordClient(config) as owned:
        return channel_summary(owned.get_channel())
