"""
Announcement Relay – Discord channel to website feed

This package houses the Flask application that turns the latest messages of
one Discord channel into a JSON announcements feed, mirroring uploaded
attachments to local disk on the way.  The application factory below wires
configuration, logging, CORS, rate limiting and the route blueprints
together; the actual work lives in :pymod:`relay.verbs`.
"""

from typing import Any, Optional

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException

from relay import logs
from relay.config import RelayConfig, load_config
from relay.errors import ConfigurationMissing, UpstreamError
from relay.logs import log_text
from relay.mirror import AttachmentMirror

__all__ = [
    "create_app",
]


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(config: Optional[RelayConfig] = None, *, logger: Any = None) -> Flask:
    """Create and configure the Flask application instance.

    ``config`` defaults to :pyfunc:`relay.config.load_config`.  ``logger`` is an
    optional Google Cloud logger (anything exposing ``log_text``); when given,
    every module logs through it.
    """
    if logger is not None:
        logs.use_cloud_logger(logger)

    config = config or load_config()

    # ---------------------------------------------------------------------
    # Initialise base Flask app
    # ---------------------------------------------------------------------
    app = Flask(__name__)
    app.config["RELAY"] = config
    app.extensions["relay_mirror"] = AttachmentMirror(
        config.mirror_dir, timeout=config.mirror_timeout
    )

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[config.rate_limit],
        storage_uri="memory://",
    )
    limiter.init_app(app)

    @limiter.request_filter
    def _skip_preflight() -> bool:
        return request.method == "OPTIONS"

    allowed_origins = frozenset(config.allowed_origins)

    # ---------------------------------------------------------------------
    # CORS – reflect allow-listed origins only, short-circuit preflight
    # ---------------------------------------------------------------------
    @app.before_request
    def _preflight():
        if request.method == "OPTIONS":
            return app.response_class(status=204)
        return None

    @app.after_request
    def _cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.vary.add("Origin")
        response.headers["Access-Control-Allow-Methods"] = "GET,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    # ---------------------------------------------------------------------
    # Health check route – required by Cloud Run / load-balancers
    # ---------------------------------------------------------------------
    @app.route("/healthz", methods=["GET"])
    @limiter.exempt
    def health_check():  # type: ignore[return-value]
        """Light-weight liveness probe endpoint."""
        return jsonify({"status": "ok"}), 200

    # ---------------------------------------------------------------------
    # Error handlers
    # ---------------------------------------------------------------------
    @app.errorhandler(ConfigurationMissing)
    def _configuration_missing(error: ConfigurationMissing):
        log_text(f"Request rejected: {error}", severity="WARNING")
        return jsonify({"error": str(error)}), 500

    @app.errorhandler(UpstreamError)
    def _upstream_error(error: UpstreamError):
        return (
            jsonify({
                "error": "Discord API error",
                "status": error.status,
                "details": error.details,
            }),
            error.status,
        )

    @app.errorhandler(429)  # type: ignore[arg-type]
    def _ratelimit_handler(error):  # noqa: D401 – internal handler
        client_ip = request.remote_addr or "unknown"
        log_text(
            f"Rate limit exceeded: {error} – IP: {client_ip}, path: {request.path}",
            severity="WARNING",
        )
        return (
            jsonify({
                "status": "error",
                "message": "Rate limit exceeded. Please try again later.",
            }),
            429,
        )

    @app.errorhandler(Exception)
    def _server_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        log_text(f"Unhandled error on {request.path}: {error!r}", severity="ERROR")
        return jsonify({"error": "Server error", "details": str(error)}), 500

    # ---------------------------------------------------------------------
    # Blueprints – API first, static website last so it never shadows them
    # ---------------------------------------------------------------------
    from relay.api import api_bp, downloads_bp, site_bp

    app.register_blueprint(api_bp)
    app.register_blueprint(downloads_bp)
    limiter.exempt(downloads_bp)
    if config.static_site_dir is not None:
        app.register_blueprint(site_bp)
        limiter.exempt(site_bp)

    log_text("Flask application initialised", severity="INFO")
    return app
