"""logs.py – Logging facade

Every module in the package logs through :pyfunc:`log_text`, which keeps the
Google Cloud Logging call style (``log_text(msg, severity="WARNING")``) without
forcing a Cloud Logging client into existence at import time.

By default records go to the stdlib ``relay`` logger.  ``main_driver`` calls
:pyfunc:`use_cloud_logger` with a ``google.cloud.logging`` logger when Cloud
Logging is enabled, after which every call is forwarded to GCP.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

__all__ = [
    "log_text",
    "use_cloud_logger",
]

_stdlib_logger = logging.getLogger("relay")

# Cloud Logging severities -> stdlib levels.
_SEVERITY_LEVELS = {
    "DEFAULT": logging.INFO,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "NOTICE": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "ALERT": logging.CRITICAL,
    "EMERGENCY": logging.CRITICAL,
}

# Google Cloud logger (anything exposing ``log_text``); ``None`` means stdlib.
_gcp_logger: Optional[Any] = None


def use_cloud_logger(gcp_logger: Optional[Any]) -> None:
    """Route subsequent :pyfunc:`log_text` calls to *gcp_logger*.

    Passing ``None`` restores the stdlib logger.
    """
    global _gcp_logger  # noqa: PLW0603 – process-wide sink
    if gcp_logger is not None and not hasattr(gcp_logger, "log_text"):
        raise TypeError("Cloud logger must expose a 'log_text' method")
    _gcp_logger = gcp_logger


def log_text(message: str, *, severity: str = "INFO") -> None:
    """Emit *message* at *severity* on the active sink."""
    level = severity.upper()
    if _gcp_logger is not None:
        _gcp_logger.log_text(message, severity=level)
        return
    _stdlib_logger.log(_SEVERITY_LEVELS.get(level, logging.INFO), message)
