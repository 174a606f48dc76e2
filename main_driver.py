import os
import sys
import logging as pylogging

from dotenv import load_dotenv
from google.cloud import logging as gcp_logging

load_dotenv()

from relay import create_app  # noqa: E402 – .env must be loaded first
from relay.config import load_config  # noqa: E402
from relay.logs import log_text  # noqa: E402

ENV_NAME = os.getenv("ENV_NAME", "dev")
LOG_NAME = f"{ENV_NAME}_announcement_relay"
CLOUD_LOGGING = os.getenv("CLOUD_LOGGING", "false").lower() in ("1", "true", "yes")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s – %(message)s"

# ---------------------------------------------------------------------------
# Google Cloud Logging – centralised configuration
# ---------------------------------------------------------------------------


class CloudLoggingHandler(pylogging.Handler):
    """Stdlib logging handler that forwards records to Google Cloud Logging."""

    def __init__(self, gcp_logger):  # noqa: D401 – simple pass-through
        super().__init__()
        self._gcp_logger = gcp_logger

    def emit(self, record: pylogging.LogRecord) -> None:  # noqa: D401
        try:
            msg = self.format(record)
            severity = record.levelname.upper()
            self._gcp_logger.log_text(msg, severity=severity)
        except Exception:  # pragma: no cover – never let logging crash the app
            super().handleError(record)


def configure_logging():
    """Attach the log sink and return the Cloud logger (``None`` when disabled)."""
    root_logger = pylogging.getLogger()
    root_logger.setLevel(pylogging.INFO)

    if not CLOUD_LOGGING:
        pylogging.basicConfig(level=pylogging.INFO, format=LOG_FORMAT)
        return None

    logging_client = gcp_logging.Client()
    logger = logging_client.logger(LOG_NAME)

    # Modules using the stdlib ``logging`` API (werkzeug, gunicorn, ...) are
    # forwarded to GCP as well.
    handler = CloudLoggingHandler(logger)
    handler.setFormatter(pylogging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    return logger


logger = configure_logging()

FLASK_ENV = os.getenv("FLASK_ENV", "development").lower()
config = load_config()
app = create_app(config, logger=logger)


def run_server() -> None:
    """
    Run the appropriate web server based on the environment configuration.

    Production (``FLASK_ENV=production``) starts Gunicorn programmatically;
    anything else starts the Flask development server with debug enabled.
    """
    log_text(f"Server starting in {FLASK_ENV} mode", severity="INFO")
    log_text(f"API:   http://localhost:{config.port}/api/announcements", severity="INFO")
    log_text(f"Debug: http://localhost:{config.port}/api/channel", severity="INFO")
    if config.static_site_dir is not None:
        log_text(f"Site:  http://localhost:{config.port}/", severity="INFO")

    if FLASK_ENV == "production":
        from gunicorn.app.wsgiapp import run

        sys.argv = [
            "gunicorn",
            "main_driver:app",
            "--bind",
            f"0.0.0.0:{config.port}",
            "--workers",
            "1",
            "--threads",
            "8",
            "--timeout",
            "120",
        ]
        run()  # This will block until Gunicorn exits
    else:
        app.run(host="0.0.0.0", port=config.port, debug=True)


if __name__ == "__main__":
    run_server()
