"""Tests for `relay.mirror`."""

from __future__ import annotations

import pytest
import requests

from relay.errors import MirrorFetchError
from relay.mirror import AttachmentMirror, sanitize_filename

from conftest import FakeResponse, FakeSession

CDN_URL = "https://cdn.discordapp.com/attachments/1/2/file.png?ex=abc&is=def"


@pytest.fixture
def session() -> FakeSession:
    return FakeSession({CDN_URL: FakeResponse(200, b"\x89PNG-bytes")})


@pytest.fixture
def mirror(tmp_path, session) -> AttachmentMirror:
    return AttachmentMirror(tmp_path / "mirror", session=session, timeout=5.0)


# ---------------------------------------------------------------------------
# sanitize_filename
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "suggested, url, expected",
    [
        ("file.png", "", "file.png"),
        ("my flyer (final).png", "", "my_flyer_final_.png"),
        ("  spaced  ", "", "spaced"),
        ("__weird__name__", "", "weird__name"),
        (None, CDN_URL, "file.png"),
        (None, "https://cdn.example/a/b/Event%20Poster.JPG", "Event_Poster.JPG"),
        (None, "https://cdn.example/", "file"),
        (None, "", "file"),
        ("###", "", "file"),
    ],
)
def test_sanitize_filename(suggested, url, expected):
    assert sanitize_filename(suggested, url) == expected


def test_sanitize_filename_caps_length():
    assert len(sanitize_filename("a" * 500 + ".png")) == 180


def test_sanitize_filename_never_ends_in_separator_after_cap():
    name = sanitize_filename("a" * 179 + " tail.png")

    assert name == "a" * 179


# ---------------------------------------------------------------------------
# mirror()
# ---------------------------------------------------------------------------


def test_mirror_writes_file_and_returns_download_reference(mirror, session):
    ref = mirror.mirror(CDN_URL, "111", "file.png")

    assert ref == "/downloads/111-file.png"
    assert (mirror.mirror_dir / "111-file.png").read_bytes() == b"\x89PNG-bytes"
    assert session.calls[0][2] == 5.0


def test_mirror_is_idempotent_and_fetches_once(mirror, session):
    first = mirror.mirror(CDN_URL, "111", "file.png")
    second = mirror.mirror(CDN_URL, "111", "file.png")

    assert first == second
    assert len(session.calls) == 1


def test_existing_file_is_never_refreshed(mirror, session):
    (mirror.mirror_dir / "111-file.png").write_bytes(b"old")

    assert mirror.mirror(CDN_URL, "111", "file.png") == "/downloads/111-file.png"
    assert session.calls == []
    assert (mirror.mirror_dir / "111-file.png").read_bytes() == b"old"


def test_same_filename_in_different_messages_does_not_collide(mirror, session):
    a = mirror.mirror(CDN_URL, "111", "file.png")
    b = mirror.mirror(CDN_URL, "222", "file.png")

    assert a != b
    assert len(session.calls) == 2


def test_filename_falls_back_to_url_segment(mirror):
    assert mirror.mirror(CDN_URL, "111") == "/downloads/111-file.png"


def test_non_success_status_raises_and_writes_nothing(tmp_path):
    session = FakeSession({CDN_URL: FakeResponse(404, b"gone")})
    mirror = AttachmentMirror(tmp_path, session=session)

    with pytest.raises(MirrorFetchError) as excinfo:
        mirror.mirror(CDN_URL, "111", "file.png")

    assert "HTTP 404" in str(excinfo.value)
    assert list(tmp_path.iterdir()) == []


def test_transport_error_raises_mirror_fetch_error(tmp_path):
    session = FakeSession({CDN_URL: requests.ConnectionError("boom")})
    mirror = AttachmentMirror(tmp_path, session=session)

    with pytest.raises(MirrorFetchError):
        mirror.mirror(CDN_URL, "111", "file.png")


@pytest.mark.parametrize("name", ["../secret", "a/b", ".partial-xyz", ""])
def test_path_for_refuses_unsafe_names(mirror, name):
    with pytest.raises(ValueError):
        mirror.path_for(name)


def test_path_for_resolves_inside_mirror_dir(mirror):
    assert mirror.path_for("111-file.png") == mirror.mirror_dir / "111-file.png"


@pytest.mark.parametrize("message_id", ["../escaped", "a/b", ".hidden"])
def test_message_id_cannot_place_file_outside_mirror_dir(tmp_path, session, message_id):
    mirror = AttachmentMirror(tmp_path / "mirror", session=session)

    with pytest.raises(MirrorFetchError):
        mirror.mirror(CDN_URL, message_id, "file.png")

    assert session.calls == []
    assert sorted(p.name for p in tmp_path.rglob("*")) == ["mirror"]


def test_unparseable_url_raises_mirror_fetch_error(mirror, session):
    with pytest.raises(MirrorFetchError):
        mirror.mirror("https://[cdn.example/a/file.png", "111")

    assert session.calls == []
