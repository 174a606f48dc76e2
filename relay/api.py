"""HTTP routes.

* ``api_bp`` – the JSON feed and the channel diagnostic.
* ``downloads_bp`` – mirrored attachments, cached as immutable.
* ``site_bp`` – optional static website, registered last.
"""

from __future__ import annotations

from pathlib import Path

from flask import Blueprint, abort, current_app, jsonify, send_from_directory

from relay.config import RelayConfig
from relay.mirror import AttachmentMirror
from relay.verbs import describe_channel, fetch_announcements

# Mirrored files never change once written.
DOWNLOAD_MAX_AGE = 86400

api_bp = Blueprint("api", __name__, url_prefix="/api")
downloads_bp = Blueprint("downloads", __name__, url_prefix="/downloads")
site_bp = Blueprint("site", __name__)


def _config() -> RelayConfig:
    return current_app.config["RELAY"]


def _mirror() -> AttachmentMirror:
    return current_app.extensions["relay_mirror"]


def _no_store(response):
    response.headers["Cache-Control"] = "no-store"
    return response


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@api_bp.route("/announcements", methods=["GET"])
def announcements():
    """Latest announcements from the configured Discord channel."""
    items = fetch_announcements(_config(), mirror=_mirror())
    return _no_store(jsonify([a.to_dict() for a in items]))


@api_bp.route("/channel", methods=["GET"])
def channel():
    """Debug: confirm the relay is pointed at the right channel."""
    return _no_store(jsonify(describe_channel(_config())))


# ---------------------------------------------------------------------------
# Mirrored downloads
# ---------------------------------------------------------------------------


@downloads_bp.route("/<name>", methods=["GET"])
def download(name: str):
    mirror = _mirror()
    try:
        path = mirror.path_for(name)
    except ValueError:
        abort(404)
    if not path.is_file():
        abort(404)

    response = send_from_directory(
        mirror.mirror_dir.resolve(),
        name,
        max_age=DOWNLOAD_MAX_AGE,
        etag=True,
        conditional=True,
    )
    response.headers["Cache-Control"] = f"public, max-age={DOWNLOAD_MAX_AGE}, immutable"
    return response


# ---------------------------------------------------------------------------
# Static website
# ---------------------------------------------------------------------------


def _site_candidates(path: str):
    """Yield ``path``, ``path.html`` and ``path/index.html`` in that order."""
    stripped = path.strip("/")
    if not stripped:
        yield "index.html"
        return
    yield stripped
    yield f"{stripped}.html"
    yield f"{stripped}/index.html"


@site_bp.route("/", defaults={"path": ""}, methods=["GET"])
@site_bp.route("/<path:path>", methods=["GET"])
def site(path: str):
    root = Path(_config().static_site_dir).resolve()
    for candidate in _site_candidates(path):
        target = (root / candidate).resolve()
        if target.is_file() and target.is_relative_to(root):
            return send_from_directory(root, candidate)
    abort(404)
