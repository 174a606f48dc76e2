"""cli.py – Announcement Relay Command-Line Interface

This module exposes a Click-based CLI for running the relay's verbs either
*locally* (in-process, against Discord directly) or *remotely* via HTTP calls
to a running relay server.

Usage examples
--------------
# Local execution – call the verb in-process
$ relay announcements
$ relay channel
$ relay mirror https://cdn.discordapp.com/attachments/1/2/flyer.png 1234567890

# Remote execution – forward the request over HTTP
$ relay --api-url http://localhost:3000 announcements

Environment variables
---------------------
RELAY_API_URL  If set, acts like the --api-url option (handy for scripts).
"""

from __future__ import annotations

from typing import Any, Optional
import json

import click
import requests

from relay.config import load_config
from relay.errors import ConfigurationMissing, MirrorFetchError, UpstreamError
from relay.logs import log_text
from relay.mirror import AttachmentMirror
from relay.verbs import describe_channel, fetch_announcements

# ---------------------------------------------------------------------------
# HTTP helper (remote execution)
# ---------------------------------------------------------------------------


def _get_json(url: str) -> Any:
    """GET a relay endpoint and return the decoded JSON response."""
    log_text(f"GET {url}", severity="DEBUG")
    try:
        response = requests.get(url, timeout=30)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as exc:
        raise click.ClickException(f"HTTP call failed: {exc}") from exc


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _run_locally(verb, *args, **kwargs) -> Any:
    """Call a verb and convert relay errors into Click errors."""
    try:
        return verb(*args, **kwargs)
    except ConfigurationMissing as exc:
        raise click.ClickException(str(exc)) from exc
    except UpstreamError as exc:
        raise click.ClickException(
            f"Discord API error (HTTP {exc.status}): {json.dumps(exc.details)}"
        ) from exc


# ---------------------------------------------------------------------------
# Click entry-point
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--api-url",
    envvar="RELAY_API_URL",
    default=None,
    metavar="URL",
    help="If provided, CLI commands are forwarded to the relay HTTP API at this "
    "URL instead of running locally.",
)
@click.pass_context
def cli(ctx: click.Context, api_url: Optional[str]):  # noqa: D401 – Click callback
    """Announcement relay command-line interface."""

    ctx.obj = {"api_url": api_url}


# ---------------------------------------------------------------------------
# `announcements` command
# ---------------------------------------------------------------------------


@cli.command("announcements", help="Print the current announcements feed as JSON.")
@click.pass_context
def announcements_command(ctx: click.Context) -> None:  # noqa: D401 – Click callback
    api_url: Optional[str] = ctx.obj.get("api_url") if ctx.obj else None

    if api_url:
        _echo_json(_get_json(api_url.rstrip("/") + "/api/announcements"))
    else:
        items = _run_locally(fetch_announcements, load_config())
        _echo_json([a.to_dict() for a in items])


# ---------------------------------------------------------------------------
# `channel` command
# ---------------------------------------------------------------------------


@cli.command("channel", help="Print the configured channel's summary as JSON.")
@click.pass_context
def channel_command(ctx: click.Context) -> None:  # noqa: D401 – Click callback
    api_url: Optional[str] = ctx.obj.get("api_url") if ctx.obj else None

    if api_url:
        _echo_json(_get_json(api_url.rstrip("/") + "/api/channel"))
    else:
        _echo_json(_run_locally(describe_channel, load_config()))


# ---------------------------------------------------------------------------
# `mirror` command
# ---------------------------------------------------------------------------


@cli.command("mirror", help="Mirror one attachment into the local download directory.")
@click.argument("url")
@click.argument("message_id")
@click.option(
    "--filename",
    default=None,
    metavar="NAME",
    help="Original attachment filename (defaults to the URL's last path segment).",
)
def mirror_command(url: str, message_id: str, filename: Optional[str]) -> None:  # noqa: D401
    config = load_config()
    mirror = AttachmentMirror(config.mirror_dir, timeout=config.mirror_timeout)
    try:
        reference = mirror.mirror(url, message_id, filename)
    except MirrorFetchError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(reference)


# ---------------------------------------------------------------------------
# Entry-point shim for `python -m relay.cli`
# ---------------------------------------------------------------------------

if __name__ == "__main__":  # pragma: no cover – manual execution shortcut
    cli()  # pylint: disable=no-value-for-parameter
