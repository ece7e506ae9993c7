"""Session and transport helpers for the Splunk REST API.

This module centralizes creation of the requests Session used for every call
of a command and applies small but important normalization rules (such as
sanitizing the host URL) so malformed configuration fails before any network
traffic happens.
"""

from urllib.parse import quote, urlsplit

import requests
from requests.auth import HTTPBasicAuth

from splunkcli.core.config import ConnectionConfig
from splunkcli.core.errors import ConfigurationError


def _sanitize_host(host: str | None) -> str:
    """
    Normalize a Splunk host URL.

    - Removes query strings and fragments
    - Removes trailing slashes

    Raises:
        ConfigurationError: If the host is empty or not an http(s) URL.
    """
    raw = (host or "").strip()
    if not raw:
        raise ConfigurationError("--host is required")
    raw = raw.split("?", 1)[0].split("#", 1)[0]
    try:
        parts = urlsplit(raw)
        parts.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError as exc:
        raise ConfigurationError(f"invalid host URL in configuration: {exc}") from exc
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ConfigurationError(
            f"invalid host URL in configuration: {host!r} (expected http(s)://host[:port])"
        )
    return raw.rstrip("/")


def api_base_url(cfg: ConnectionConfig) -> str:
    """
    Return the REST base URL for the configured namespace.

    `{host}/services` without an app, `{host}/servicesNS/{owner}/{app}` with one.
    """
    host = _sanitize_host(cfg.host)
    if cfg.app:
        owner = quote(cfg.effective_owner, safe="")
        return f"{host}/servicesNS/{owner}/{quote(cfg.app, safe='')}"
    return f"{host}/services"


def build_session(cfg: ConnectionConfig) -> requests.Session:
    """
    Create a requests Session for the given configuration.

    The session keeps cookies across requests, applies the TLS verification
    policy and carries the authentication: a bearer token when one is set,
    HTTP basic auth otherwise.

    Raises:
        ConfigurationError: If the host is malformed or no credentials are set.
    """
    _sanitize_host(cfg.host)
    cfg.require_credentials()

    session = requests.Session()
    session.verify = not cfg.insecure
    if cfg.uses_token:
        session.headers["Authorization"] = f"Bearer {cfg.token}"
    else:
        session.auth = HTTPBasicAuth(cfg.user, cfg.password)
    return session
