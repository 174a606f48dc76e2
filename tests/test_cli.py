"""Tests for `relay.cli`."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

import relay.cli as cli_module
from relay.errors import ConfigurationMissing, UpstreamError
from relay.models import Announcement, MediaItem

from conftest import FakeResponse


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def local_config(monkeypatch: pytest.MonkeyPatch, relay_config):
    monkeypatch.setattr(cli_module, "load_config", lambda: relay_config)
    return relay_config


def test_announcements_runs_locally(runner, monkeypatch, local_config):
    seen = []

    def fake_fetch(config):
        seen.append(config)
        return [Announcement("1", "Hello", "2026-10-01T00:00:00+00:00", [MediaItem("/downloads/1-a.png", "image")])]

    monkeypatch.setattr(cli_module, "fetch_announcements", fake_fetch)

    result = runner.invoke(cli_module.cli, ["announcements"])

    assert result.exit_code == 0, result.output
    assert seen == [local_config]
    assert json.loads(result.output) == [
        {
            "id": "1",
            "content": "Hello",
            "timestamp": "2026-10-01T00:00:00+00:00",
            "media": [{"url": "/downloads/1-a.png", "type": "image"}],
        }
    ]


def test_missing_configuration_becomes_click_error(runner, monkeypatch, local_config):
    def fake_fetch(config):
        raise ConfigurationMissing("DISCORD_CHANNEL_ID")

    monkeypatch.setattr(cli_module, "fetch_announcements", fake_fetch)

    result = runner.invoke(cli_module.cli, ["announcements"])

    assert result.exit_code == 1
    assert "Missing DISCORD_CHANNEL_ID" in result.output


def test_channel_upstream_error_becomes_click_error(runner, monkeypatch, local_config):
    def fake_describe(config):
        raise UpstreamError(401, {"message": "401: Unauthorized"})

    monkeypatch.setattr(cli_module, "describe_channel", fake_describe)

    result = runner.invoke(cli_module.cli, ["channel"])

    assert result.exit_code == 1
    assert "HTTP 401" in result.output


def test_remote_execution_uses_api_url(runner, monkeypatch):
    requested = []

    def fake_get(url, timeout=None):
        requested.append(url)
        return FakeResponse(200, {"id": "555", "name": "announcements"})

    monkeypatch.setattr(cli_module.requests, "get", fake_get)

    result = runner.invoke(cli_module.cli, ["--api-url", "http://relay.local:3000/", "channel"])

    assert result.exit_code == 0, result.output
    assert requested == ["http://relay.local:3000/api/channel"]
    assert json.loads(result.output)["name"] == "announcements"


def test_mirror_command_prints_reference(runner, monkeypatch, local_config):
    class FakeMirror:
        def __init__(self, mirror_dir, timeout):
            self.mirror_dir = mirror_dir

        def mirror(self, url, message_id, filename):
            return f"/downloads/{message_id}-{filename or 'file'}"

    monkeypatch.setattr(cli_module, "AttachmentMirror", FakeMirror)

    result = runner.invoke(
        cli_module.cli,
        ["mirror", "https://cdn.example/x/flyer.png", "42", "--filename", "flyer.png"],
    )

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "/downloads/42-flyer.png"
