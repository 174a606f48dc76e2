import json
import sys
from pathlib import Path

import pytest
import requests

# Ensure the repository root (parent directory of this file) is on the import path.
# This allows test modules to do `import relay...` even when pytest is executed from
# a sub-directory or when the working directory is not the project root.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from relay.config import RelayConfig  # noqa: E402

API_BASE = "https://discord.test/api/v10"


class FakeResponse:
    """The subset of ``requests.Response`` the relay reads."""

    def __init__(self, status_code: int = 200, body=b""):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.status_code = status_code
        self.content = body

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Routes GET calls to canned responses keyed by URL (query string ignored).

    A route value may be a ``FakeResponse`` or an exception instance to raise.
    Every call is recorded in ``calls`` as ``(url, params, timeout)``.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.headers: dict[str, str] = {}
        self.calls: list[tuple] = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        target = self.routes.get(url)
        if target is None:
            return FakeResponse(404, {"message": "Unknown route"})
        if isinstance(target, BaseException):
            raise target
        return target

    def close(self):
        self.closed = True

    def urls(self) -> list[str]:
        return [call[0] for call in self.calls]


def make_message(
    message_id: str,
    content: str = "",
    *,
    type_: int = 0,
    embeds=None,
    attachments=None,
    timestamp: str = "2026-10-01T12:00:00.000000+00:00",
) -> dict:
    """Build a raw Discord message payload."""
    return {
        "id": message_id,
        "type": type_,
        "content": content,
        "timestamp": timestamp,
        "embeds": embeds or [],
        "attachments": attachments or [],
    }


def make_attachment(url: str, filename: str | None = None, content_type: str | None = None) -> dict:
    payload = {"id": "9", "url": url}
    if filename is not None:
        payload["filename"] = filename
    if content_type is not None:
        payload["content_type"] = content_type
    return payload


@pytest.fixture
def relay_config(tmp_path: Path) -> RelayConfig:
    return RelayConfig(
        bot_token="test-token",
        channel_id="555",
        api_base=API_BASE,
        mirror_dir=tmp_path / "downloads",
        media_workers=2,
    )


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def messages_url() -> str:
    return f"{API_BASE}/channels/555/messages"
