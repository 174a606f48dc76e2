"""Data models.

Two families live here:

* **Upstream shapes** – ``DiscordMessage``, ``DiscordEmbed`` and
  ``DiscordAttachment`` wrap the loosely-typed JSON returned by the Discord REST
  API.  Their ``from_dict`` constructors tolerate any missing optional field.
* **Feed records** – ``Announcement`` and ``MediaItem`` are what the website
  receives.  They live for a single HTTP response and are never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Discord message type for ordinary user messages.
MESSAGE_TYPE_DEFAULT = 0

MEDIA_TYPES = ("image", "gif", "video", "file")


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value) or None


def _nested_url(payload: Dict[str, Any], key: str) -> Optional[str]:
    """Return ``payload[key]["url"]`` when present (embed image/video/thumbnail)."""
    inner = payload.get(key)
    if isinstance(inner, dict):
        return _str_or_none(inner.get("url"))
    return None


@dataclass
class DiscordAttachment:
    """A file uploaded directly to a message."""
    id: Optional[str]
    url: Optional[str]
    filename: Optional[str] = None
    content_type: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DiscordAttachment":
        return cls(
            id=_str_or_none(payload.get("id")),
            url=_str_or_none(payload.get("url")),
            filename=_str_or_none(payload.get("filename")),
            content_type=_str_or_none(payload.get("content_type")),
        )


@dataclass
class DiscordEmbed:
    """Rich-preview metadata (link previews and the like)."""
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DiscordEmbed":
        return cls(
            title=_str_or_none(payload.get("title")),
            description=_str_or_none(payload.get("description")),
            image_url=_nested_url(payload, "image"),
            video_url=_nested_url(payload, "video"),
            thumbnail_url=_nested_url(payload, "thumbnail"),
        )


@dataclass
class DiscordMessage:
    """One entry of ``GET /channels/{id}/messages``."""
    id: str
    type: Optional[int] = None
    content: str = ""
    timestamp: Optional[str] = None
    embeds: List[DiscordEmbed] = field(default_factory=list)
    attachments: List[DiscordAttachment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DiscordMessage":
        raw_type = payload.get("type")
        return cls(
            id=str(payload.get("id", "")),
            type=raw_type if isinstance(raw_type, int) else None,
            content=payload.get("content") or "",
            timestamp=_str_or_none(payload.get("timestamp")),
            embeds=[
                DiscordEmbed.from_dict(e)
                for e in payload.get("embeds") or []
                if isinstance(e, dict)
            ],
            attachments=[
                DiscordAttachment.from_dict(a)
                for a in payload.get("attachments") or []
                if isinstance(a, dict)
            ],
        )

    @property
    def is_relevant(self) -> bool:
        """Plain messages, or anything carrying embeds / attachments."""
        return (
            self.type == MESSAGE_TYPE_DEFAULT
            or len(self.embeds) > 0
            or len(self.attachments) > 0
        )


@dataclass
class MediaItem:
    """A piece of media shown alongside an announcement."""
    url: str
    type: str
    name: Optional[str] = None
    content_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "type": self.type}
        if self.name is not None:
            data["name"] = self.name
        if self.content_type is not None:
            data["contentType"] = self.content_type
        return data


@dataclass
class Announcement:
    """The client-facing representation of one qualifying message."""
    id: str
    content: str
    timestamp: Optional[str]
    media: List[MediaItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.content and not self.media

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "timestamp": self.timestamp,
            "media": [item.to_dict() for item in self.media],
        }


def channel_summary(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Reduce a Discord channel object to the fields the diagnostic route shows."""
    payload = payload if isinstance(payload, dict) else {}
    return {
        "id": payload.get("id"),
        "name": payload.get("name"),
        "type": payload.get("type"),
        "guild_id": payload.get("guild_id"),
        "last_message_id": payload.get("last_message_id"),
    }
