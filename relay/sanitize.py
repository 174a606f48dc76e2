"""Make Discord mention syntax readable on the public website."""

from __future__ import annotations

import re
from typing import Optional

__all__ = [
    "sanitize_content",
]

# Literal "<" / ">" as they appear in double-escaped payloads.
_ESCAPED_LT = re.compile(r"\\u003c", re.IGNORECASE)
_ESCAPED_GT = re.compile(r"\\u003e", re.IGNORECASE)

_USER_MENTION = re.compile(r"<@!?\d+>")
_ROLE_MENTION = re.compile(r"<@&\d+>")
_CHANNEL_MENTION = re.compile(r"<#\d+>")


def sanitize_content(text: Optional[str] = "") -> str:
    """Replace mention tokens with neutral placeholders.

    Escapes are undone before mentions are matched, so ``\\u003c@123\\u003e``
    becomes ``@user``.  Surrounding whitespace is left for the caller to trim.
    """
    if text is None:
        return ""
    text = _ESCAPED_LT.sub("<", str(text))
    text = _ESCAPED_GT.sub(">", text)
    text = _USER_MENTION.sub("@user", text)
    text = _ROLE_MENTION.sub("@role", text)
    return _CHANNEL_MENTION.sub("#channel", text)
