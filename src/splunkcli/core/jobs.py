"""Core search job domain models plus submit, status and cancel logic.

This module defines the search job data structures (JobMessage, JobStatus,
JobState) and the domain-level operations that start, inspect and cancel a
Splunk search job. It is intentionally free of CLI concerns (output, prompts)
and of HTTP details, which live in the adapter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from splunkcli.core.errors import EmptyQueryError, JobFailedError
from splunkcli.core.log import NULL_LOGGER, Logger

FAILED_DISPATCH_STATE = "FAILED"
SEARCH_COMMAND = "search"
_ERROR_MESSAGE_TYPES = {"FATAL", "ERROR"}


@dataclass(frozen=True)
class JobMessage:
    """
    A diagnostic message attached to a search job.

    Attributes:
        type: Severity as reported by the server (INFO, WARN, ERROR, FATAL...).
        text: Message text.
    """

    type: str
    text: str

    @property
    def is_error(self) -> bool:
        """Return True for FATAL and ERROR messages (case-insensitive)."""
        return self.type.upper() in _ERROR_MESSAGE_TYPES


@dataclass(frozen=True)
class JobStatus:
    """
    Snapshot of a search job as returned by one status request.

    Attributes:
        sid: Search ID of the job.
        is_done: True once the job has finished (successfully or not).
        dispatch_state: Server-defined lifecycle label (QUEUED, RUNNING, DONE, FAILED...).
        messages: Diagnostic messages in server order.
        result_count: Number of results available.
    """

    sid: str
    is_done: bool
    dispatch_state: str
    messages: tuple[JobMessage, ...] = ()
    result_count: int = 0

    @property
    def failed(self) -> bool:
        """Return True if the job finished in the FAILED dispatch state."""
        return self.is_done and self.dispatch_state == FAILED_DISPATCH_STATE

    def error_messages(self) -> list[str]:
        """Return the texts of all FATAL and ERROR messages."""
        return [m.text for m in self.messages if m.is_error]

    def raise_for_failure(self) -> None:
        """Raise JobFailedError if the job finished in the FAILED state."""
        if self.failed:
            raise JobFailedError(self.sid, self.error_messages())


class JobState(str, Enum):
    """
    Terminal and intermediate states of a search driven by the controller.

    Values:
        SUBMITTED: The job was created on the server.
        POLLING: The controller is waiting for the job to finish.
        DONE: The job finished and its results were fetched.
        FAILED: The job finished in the FAILED dispatch state.
        TIMED_OUT: The overall deadline elapsed first.
        CANCELLED: The operator chose to cancel the job.
        DETACHED: The operator left the job running on the server.
    """

    SUBMITTED = "SUBMITTED"
    POLLING = "POLLING"
    DONE = "DONE"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"
    DETACHED = "DETACHED"


class SearchJobsAdapter(Protocol):
    """Interface for the search job REST endpoints used by the core domain."""

    def create_job(self, form: dict[str, str]) -> str:
        """Create a search job from form fields and return its SID."""
        ...

    def get_job(self, sid: str) -> JobStatus:
        """Return the current status of a job."""
        ...

    def get_results_page(self, sid: str, offset: int, count: int) -> list[Any]:
        """Return one page of results."""
        ...

    def cancel_job(self, sid: str) -> None:
        """Ask the server to cancel a job."""
        ...


def normalize_query(query: str) -> str:
    """
    Return the search string sent to the server.

    Plain SPL fragments need an explicit leading `search` command; generating
    pipelines (starting with `|`) are sent unchanged.

    Raises:
        EmptyQueryError: If the query is empty or only whitespace.
    """
    if not query or not query.strip():
        raise EmptyQueryError("search query must not be empty")
    if query.strip().startswith("|"):
        return query
    return f"{SEARCH_COMMAND} {query}"


def build_search_form(
    query: str, earliest: str | None = None, latest: str | None = None
) -> dict[str, str]:
    """Build the form fields of a job creation request."""
    form = {"search": normalize_query(query)}
    if earliest:
        form["earliest_time"] = earliest
    if latest:
        form["latest_time"] = latest
    form["output_mode"] = "json"
    return form


def start_search(
    adapter: SearchJobsAdapter,
    query: str,
    earliest: str | None = None,
    latest: str | None = None,
    log: Logger = NULL_LOGGER,
) -> str:
    """
    Start a search job.

    Args:
        adapter: Splunk jobs adapter used to create the job.
        query: SPL query; prefixed with `search` unless it starts with `|`.
        earliest: Optional earliest time bound, forwarded verbatim.
        latest: Optional latest time bound, forwarded verbatim.
        log: Logger receiving progress lines.

    Returns:
        The SID of the created job.
    """
    form = build_search_form(query, earliest, latest)
    log.info("Connecting to Splunk and starting search job...")
    sid = adapter.create_job(form)
    log.info(f"Job started with SID: {sid}")
    return sid


def job_status(adapter: SearchJobsAdapter, sid: str) -> JobStatus:
    """Return a single status snapshot of a job (no retry)."""
    return adapter.get_job(sid)


def cancel_search(adapter: SearchJobsAdapter, sid: str, log: Logger = NULL_LOGGER) -> None:
    """
    Cancel a running search job.

    Raises:
        CancelError: If the server does not accept the cancel request.
    """
    log.info("Cancelling search job...")
    adapter.cancel_job(sid)
    log.info("Job successfully cancelled.")
