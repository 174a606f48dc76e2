"""Small shared helpers: Secret Manager access and HTTP session construction."""

from __future__ import annotations

from typing import Dict, Optional

import requests
from google.cloud import secretmanager

from relay.logs import log_text

USER_AGENT = "DiscordBot (announcement-relay, 0.1.0)"


def get_secret_value(project_id, secret_id, version_id="latest"):
    """
    Retrieve a secret value from Google Cloud Secret Manager.

    Parameters
    ----------
    project_id : str
        The Google Cloud project ID where the secret is stored
    secret_id : str
        The ID of the secret to retrieve
    version_id : str, optional
        The version of the secret to retrieve, defaults to "latest"

    Returns
    -------
    str
        The secret payload as a UTF-8 decoded string

    Notes
    -----
    Uses Application Default Credentials (ADC) from the environment.
    """
    # Never log the payload itself.
    log_text(
        f"Fetching secret '{secret_id}' from project '{project_id}' (version '{version_id}').",
        severity="DEBUG",
    )
    client = secretmanager.SecretManagerServiceClient()
    name = f"projects/{project_id}/secrets/{secret_id}/versions/{version_id}"
    response = client.access_secret_version(request={"name": name})
    payload = response.payload.data.decode("UTF-8")

    log_text(f"Successfully fetched secret '{secret_id}'.", severity="INFO")
    return payload


def build_session(headers: Optional[Dict[str, str]] = None) -> requests.Session:
    """Return a ``requests.Session`` with the relay's User-Agent and *headers*."""
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    if headers:
        session.headers.update(headers)
    return session
