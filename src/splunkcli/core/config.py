"""Connection configuration for Splunk searches.

The configuration is resolved once (defaults, config file, environment,
command-line flags) and then passed by value into every core operation.
Each layer produces a new ConnectionConfig; nothing is mutated in place.
"""

from __future__ import annotations

import json
import math
import os
import re
from dataclasses import dataclass, replace
from importlib.metadata import PackageNotFoundError, version as pkg_version
from pathlib import Path
from typing import Any, Mapping

from splunkcli.core.errors import ConfigurationError

DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_RUN_TIMEOUT = 600.0
DEFAULT_OWNER = "nobody"

_ENV_OVERRIDES = {
    "SPLUNK_HOST": "host",
    "SPLUNK_TOKEN": "token",
    "SPLUNK_USER": "user",
    "SPLUNK_PASSWORD": "password",
    "SPLUNK_APP": "app",
}

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Fully resolved settings for talking to a Splunk REST endpoint.

    Attributes:
        host: Base URL of the management port, e.g. https://splunk:8089.
        token: Bearer token; takes precedence over user/password.
        user: Username for basic auth.
        password: Password for basic auth.
        app: Optional app namespace the search runs in.
        owner: Owner of the app namespace; "nobody" when empty.
        insecure: Skip TLS certificate verification.
        http_timeout: Per-request timeout in seconds.
        timeout: Overall timeout for waiting on a job, in seconds.
        limit: Maximum number of results to fetch (0 for all).
        debug: Enable request/response debug output.
    """

    host: str = ""
    token: str = ""
    user: str = ""
    password: str = ""
    app: str = ""
    owner: str = ""
    insecure: bool = False
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    timeout: float = DEFAULT_RUN_TIMEOUT
    limit: int = 0
    debug: bool = False

    @property
    def effective_owner(self) -> str:
        """Return the owner used in namespaced paths."""
        return self.owner or DEFAULT_OWNER

    @property
    def uses_token(self) -> bool:
        """Return True if requests are authenticated with the bearer token."""
        return bool(self.token)

    @property
    def has_credentials(self) -> bool:
        """Return True if either a token or a full user/password pair is set."""
        return bool(self.token) or bool(self.user and self.password)

    def require_credentials(self) -> None:
        """Fail fast when no usable credentials are configured."""
        if not self.has_credentials:
            raise ConfigurationError(
                "no credentials configured: set a token or both user and password"
            )

    def with_overrides(self, **values: Any) -> ConnectionConfig:
        """
        Return a copy with the given fields replaced.

        None values are ignored so unset command-line flags do not clobber
        values coming from the config file or the environment.
        """
        changes = {k: v for k, v in values.items() if v is not None}
        return replace(self, **changes) if changes else self

    def masked(self) -> dict[str, Any]:
        """Return the configuration as a dict with secrets masked for display."""
        token = f"toke...{self.token[-4:]}" if len(self.token) > 8 else ""
        return {
            "Host": self.host,
            "Token": token,
            "User": self.user,
            "Password": "********" if self.password else "",
            "App": self.app,
            "Owner": self.effective_owner if self.app else self.owner,
            "Insecure": self.insecure,
            "HTTP Timeout": f"{self.http_timeout:g}s",
            "Timeout": f"{self.timeout:g}s",
            "Limit": self.limit,
        }


@dataclass(frozen=True)
class BuildInfo:
    """Version metadata of the running tool."""

    version: str = "dev"
    commit: str = "none"
    date: str = "unknown"

    def render(self) -> str:
        """Return the text printed by `--version`."""
        return f"splunk-cli version {self.version}\ncommit {self.commit}\nbuilt at {self.date}"


def build_info(env: Mapping[str, str] | None = None) -> BuildInfo:
    """
    Resolve build metadata.

    The version comes from the installed distribution; commit and build date
    are taken from SPLUNK_CLI_COMMIT / SPLUNK_CLI_BUILD_DATE when a packaging
    pipeline provides them.
    """
    env = os.environ if env is None else env
    try:
        version = pkg_version("splunk-cli")
    except PackageNotFoundError:
        version = "dev"
    return BuildInfo(
        version=version,
        commit=env.get("SPLUNK_CLI_COMMIT") or "none",
        date=env.get("SPLUNK_CLI_BUILD_DATE") or "unknown",
    )


def parse_duration(value: str | float | int) -> float:
    """
    Parse a duration into seconds.

    Accepts bare numbers (seconds) and Go-style durations made of one or more
    `<number><unit>` parts, with units ms, s, m and h (e.g. "500ms", "1m30s").
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        raw = (value or "").strip()
        if not raw:
            raise ValueError("empty duration")
        try:
            seconds = float(raw)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART_RE.finditer(raw):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos != len(raw) or pos == 0:
                raise ValueError(f"invalid duration: {value!r}") from None

    if not math.isfinite(seconds) or seconds < 0:
        raise ValueError(f"invalid duration: {value!r}")
    return seconds


def default_config_path() -> Path:
    """Return the default config file location."""
    return Path.home() / ".config" / "splunk-cli" / "config.json"


def load_config_file(
    path: Path | None = None, base: ConnectionConfig | None = None
) -> tuple[ConnectionConfig, Path]:
    """
    Load settings from a JSON config file on top of `base`.

    A missing file is not an error: the base configuration is returned as-is.

    Returns:
        The resulting configuration and the path that was consulted.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    cfg = base or ConnectionConfig()
    path = path or default_config_path()
    if not path.exists():
        return cfg, path

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"could not open config file: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"could not parse config file: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError("could not parse config file: expected a JSON object")

    values: dict[str, Any] = {}
    for key in ("host", "token", "user", "password", "app", "owner"):
        raw = payload.get(key)
        if raw is not None:
            values[key] = str(raw).strip()
    if "insecure" in payload:
        values["insecure"] = bool(payload["insecure"])
    if "limit" in payload:
        try:
            values["limit"] = int(payload["limit"])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid limit value in config: {exc}") from exc
    http_timeout = payload.get("httpTimeout")
    if http_timeout:
        try:
            values["http_timeout"] = parse_duration(http_timeout)
        except ValueError as exc:
            raise ConfigurationError(f"invalid httpTimeout value in config: {exc}") from exc
    run_timeout = payload.get("timeout")
    if run_timeout is not None:
        try:
            values["timeout"] = parse_duration(run_timeout)
        except ValueError as exc:
            raise ConfigurationError(f"invalid timeout value in config: {exc}") from exc

    return cfg.with_overrides(**values), path


def apply_env(cfg: ConnectionConfig, env: Mapping[str, str] | None = None) -> ConnectionConfig:
    """Overlay SPLUNK_* environment variables onto the configuration."""
    env = os.environ if env is None else env
    values = {field: env[name] for name, field in _ENV_OVERRIDES.items() if env.get(name)}
    return cfg.with_overrides(**values)
