"""Error types raised by the splunk-cli core.

Every failure surfaced by the core derives from SplunkError so the CLI can
report it uniformly. Cancelling or detaching from a job are not errors; they
are reported as outcomes by the lifecycle controller.
"""

from __future__ import annotations

from typing import Iterable


class SplunkError(Exception):
    """Base class for all splunk-cli errors."""


class ConfigurationError(SplunkError):
    """Raised when the resolved configuration cannot be used (host, auth)."""


class EmptyQueryError(ConfigurationError):
    """Raised when a search is started with an empty query."""


class TransportError(SplunkError):
    """Raised when a request fails below HTTP (DNS, TLS, connection, timeout)."""


class APIError(SplunkError):
    """
    Raised when the API answers with an unexpected HTTP status or body.

    Attributes:
        status_code: HTTP status code of the response.
        reason: HTTP reason phrase, if any.
        body: Raw response body, kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body

    @property
    def status(self) -> str:
        """Return the status line in the `404 Not Found` form."""
        if self.status_code is None:
            return ""
        return f"{self.status_code} {self.reason or ''}".rstrip()


class CancelError(APIError):
    """Raised when the cancel control request is not accepted."""


class JobNotFoundError(SplunkError):
    """Raised when a status response carries no entry for the job."""

    def __init__(self, sid: str) -> None:
        super().__init__(f"job status not found in response (sid: {sid})")
        self.sid = sid


class JobFailedError(SplunkError):
    """
    Raised when a finished job reports the FAILED dispatch state.

    The message lists every FATAL or ERROR message reported by the server as
    a bulleted line.
    """

    def __init__(self, sid: str, errors: Iterable[str] = ()) -> None:
        self.sid = sid
        self.errors = list(errors)
        if self.errors:
            lines = "".join(f"\n  - {text}" for text in self.errors)
            message = f"search job {sid} failed with errors:{lines}"
        else:
            message = f"search job {sid} failed"
        super().__init__(message)


class JobTimeoutError(SplunkError, TimeoutError):
    """Raised when the overall run deadline elapses before the job is done."""

    def __init__(self, sid: str, timeout: float) -> None:
        super().__init__(f"command timed out after {format_seconds(timeout)} (sid: {sid})")
        self.sid = sid
        self.timeout = timeout


class WaitCancelled(SplunkError):
    """Raised inside a wait that was stopped from outside (not a timeout)."""

    def __init__(self, sid: str) -> None:
        super().__init__(f"wait for job {sid} was cancelled")
        self.sid = sid


def format_seconds(seconds: float) -> str:
    """Render a duration the way it is typed on the command line (`1m30s`)."""
    if seconds < 1:
        return f"{int(round(seconds * 1000))}ms"
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return "".join(parts)
