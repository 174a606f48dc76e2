"""mirror.py – Attachment Mirror

Keeps a permanent local copy of attachments uploaded to Discord so the website
keeps working after the signed CDN links expire.

- Files live flat under ``<mirror_dir>/<message_id>-<sanitized filename>``.
- The name is derived from (message id, filename) only, so repeated calls for
  the same attachment land on the same file and never collide across
  messages.
- An existing file is always considered valid: no remote check, no refresh,
  no eviction.
- Two concurrent first-time calls for the same attachment may both download
  and write; both produce the same bytes under the same name.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import requests

from relay.errors import MirrorFetchError
from relay.helper_functions import build_session
from relay.logs import log_text

__all__ = [
    "AttachmentMirror",
    "sanitize_filename",
]

FALLBACK_FILENAME = "file"
MAX_FILENAME_LENGTH = 180
PUBLIC_PREFIX = "/downloads"

_UNSAFE_RUN = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(suggested: Optional[str], remote_url: str = "") -> str:
    """Return a filesystem-safe name for an attachment.

    Source order: *suggested*, the last path segment of *remote_url*, then
    ``"file"``.  Runs of characters outside ``[A-Za-z0-9._-]`` collapse to one
    ``_``; leading/trailing ``_`` are trimmed; length is capped at 180.
    """
    candidate = suggested
    if not candidate and remote_url:
        candidate = unquote(urlparse(remote_url).path.rsplit("/", 1)[-1])
    if not candidate:
        candidate = FALLBACK_FILENAME

    cleaned = _UNSAFE_RUN.sub("_", candidate).strip("_")[:MAX_FILENAME_LENGTH].rstrip("_")
    return cleaned or FALLBACK_FILENAME


class AttachmentMirror:
    """Disk-backed, first-write-wins mirror for Discord attachments."""

    def __init__(
        self,
        mirror_dir: str | Path,
        *,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        public_prefix: str = PUBLIC_PREFIX,
    ):
        self.mirror_dir = Path(mirror_dir)
        self.mirror_dir.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout
        self.session = session or build_session()
        self.public_prefix = public_prefix.rstrip("/")

    # ---------- internals ----------

    @staticmethod
    def local_name(message_id: str, filename: str) -> str:
        return f"{message_id}-{filename}"

    def reference_for(self, local_name: str) -> str:
        return f"{self.public_prefix}/{local_name}"

    def path_for(self, local_name: str) -> Path:
        """Resolve a served name to its file; path parts and dotfiles are refused."""
        if not local_name or Path(local_name).name != local_name or local_name.startswith("."):
            raise ValueError(f"Invalid mirror name: {local_name!r}")
        return self.mirror_dir / local_name

    def _download(self, remote_url: str) -> bytes:
        try:
            response = self.session.get(remote_url, timeout=self.timeout)
        except (requests.RequestException, ValueError) as exc:
            raise MirrorFetchError(remote_url, str(exc)) from exc
        if not response.ok:
            raise MirrorFetchError(remote_url, f"HTTP {response.status_code}")
        return response.content

    def _atomic_write(self, path: Path, payload: bytes) -> None:
        """Write *payload* to a temp file beside *path*, then rename into place."""
        fd, tmp_name = tempfile.mkstemp(dir=self.mirror_dir, prefix=".partial-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # ---------- public API ----------

    def close(self) -> None:
        self.session.close()

    def mirror(
        self,
        remote_url: str,
        message_id: str,
        suggested_filename: Optional[str] = None,
    ) -> str:
        """Ensure a local copy of *remote_url* exists and return its reference.

        Raises :class:`MirrorFetchError` when the download fails, or when the
        URL and message id do not form a name inside the mirror directory.
        Callers decide whether to fall back to the remote URL.
        """
        try:
            filename = sanitize_filename(suggested_filename, remote_url)
            name = self.local_name(message_id, filename)
            path = self.path_for(name)
        except ValueError as exc:
            raise MirrorFetchError(remote_url, str(exc)) from exc

        if path.exists():
            log_text(f"MIRROR HIT {name}", severity="DEBUG")
            return self.reference_for(name)

        payload = self._download(remote_url)
        self._atomic_write(path, payload)
        log_text(f"MIRROR WRITE {name} ({len(payload)} bytes)", severity="INFO")
        return self.reference_for(name)
