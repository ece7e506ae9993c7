"""Search job lifecycle: wait for completion, react to interrupts, fetch results.

This module contains the controller that drives one search from submission
to a terminal state. The poll loop, the overall deadline and interrupt
delivery are independent completion sources; they all post events to one
channel and the controller acts on whichever arrives first. Cancelling and
detaching are successful outcomes, not errors.
"""

from __future__ import annotations

import signal
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from queue import Empty, SimpleQueue
from typing import Any, Callable, NamedTuple, Protocol

from splunkcli.core.errors import JobTimeoutError, WaitCancelled
from splunkcli.core.jobs import (
    JobState,
    JobStatus,
    SearchJobsAdapter,
    cancel_search,
    job_status,
    start_search,
)
from splunkcli.core.log import NULL_LOGGER, Logger
from splunkcli.core.results import fetch_results
from splunkcli.core.terminal import prompt_cancel_or_detach

POLL_INTERVAL = 2.0
DETACH_CHOICE = "d"

_POLL = "poll"
_INTERRUPT = "interrupt"
_CHOICE = "choice"


class _Event(NamedTuple):
    kind: str
    value: Any = None


class InterruptSource(Protocol):
    """Delivers operator interrupts to a channel while armed."""

    def arm(self, channel: SimpleQueue) -> None:
        """Start posting interrupt events to `channel` (replacing any previous one)."""
        ...

    def disarm(self) -> None:
        """Stop posting events and restore the previous behaviour."""
        ...


class SignalInterrupts:
    """Interrupt source backed by OS signals (SIGINT and SIGTERM by default)."""

    def __init__(self, signals: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM)):
        self.signals = signals
        self._previous: dict[int, Any] = {}

    def arm(self, channel: SimpleQueue) -> None:
        """Install handlers posting to `channel`; must run on the main thread."""

        def _handler(signum, frame):
            # SimpleQueue.put is safe to call from a signal handler.
            channel.put(_Event(_INTERRUPT, signum))

        for sig in self.signals:
            previous = signal.signal(sig, _handler)
            self._previous.setdefault(sig, previous)

    def disarm(self) -> None:
        """Restore the handlers that were active before the first arm()."""
        for sig, previous in self._previous.items():
            # None means the previous handler was not installed from Python.
            signal.signal(sig, signal.SIG_DFL if previous is None else previous)
        self._previous.clear()


@dataclass(frozen=True)
class SearchOutcome:
    """
    Terminal result of a search driven by run_search.

    Attributes:
        sid: Search ID of the job.
        state: DONE, CANCELLED or DETACHED (failures are raised instead).
        results: Result set for DONE, None otherwise.
    """

    sid: str
    state: JobState
    results: dict[str, list[Any]] | None = None


def wait_for_job(
    adapter: SearchJobsAdapter,
    sid: str,
    *,
    timeout: float | None = None,
    stop: threading.Event | None = None,
    log: Logger = NULL_LOGGER,
    poll_interval: float = POLL_INTERVAL,
) -> JobStatus:
    """
    Block until a search job is done, the deadline elapses or `stop` is set.

    The job is polled every `poll_interval` seconds, starting one interval
    after the call.

    Args:
        adapter: Splunk jobs adapter used to query job status.
        sid: Search ID of the job to monitor.
        timeout: Overall deadline in seconds (None or 0 waits forever).
        stop: Event that aborts the wait when set.
        log: Logger receiving progress lines.
        poll_interval: Time in seconds between status checks.

    Returns:
        The final JobStatus of a job that finished successfully.

    Raises:
        JobFailedError: The job finished in the FAILED dispatch state.
        JobTimeoutError: The deadline elapsed before the job was done.
        WaitCancelled: `stop` was set.
    """
    stop = stop or threading.Event()
    deadline = time.monotonic() + timeout if timeout else None
    log.info("Waiting for job to complete...")

    while True:
        wait_s = poll_interval
        if deadline is not None:
            wait_s = min(wait_s, max(deadline - time.monotonic(), 0.0))
        if stop.wait(wait_s):
            raise WaitCancelled(sid)
        if deadline is not None and time.monotonic() >= deadline:
            raise JobTimeoutError(sid, timeout)

        status = job_status(adapter, sid)
        log.debug(f"Job {sid}: isDone={status.is_done} dispatchState={status.dispatch_state}")
        if status.is_done:
            status.raise_for_failure()
            log.info("Job finished.")
            return status


def _read_choice(choose: Callable[[str], str], sid: str, channel: SimpleQueue, log: Logger) -> None:
    """Read the operator's choice and post it to `channel`."""
    try:
        answer = choose(sid)
    except Exception as exc:  # noqa: BLE001 - an unreadable answer means cancel
        log.error(f"could not read choice: {exc}")
        answer = ""
    channel.put(_Event(_CHOICE, answer))


def _handle_interrupt(
    adapter: SearchJobsAdapter,
    sid: str,
    interrupts: InterruptSource,
    choose: Callable[[str], str],
    log: Logger,
) -> SearchOutcome:
    """Ask the operator to cancel or detach; a second interrupt cancels at once."""
    answers: SimpleQueue = SimpleQueue()
    interrupts.arm(answers)
    reader = threading.Thread(
        target=_read_choice,
        args=(choose, sid, answers, log),
        name=f"choice-{sid}",
        daemon=True,
    )
    reader.start()

    event = answers.get()
    if event.kind == _CHOICE and str(event.value).strip().lower() == DETACH_CHOICE:
        log.warn(f"Detaching from job {sid}. Use 'results' command to fetch results later.")
        return SearchOutcome(sid=sid, state=JobState.DETACHED)

    cancel_search(adapter, sid, log)
    return SearchOutcome(sid=sid, state=JobState.CANCELLED)


def run_search(
    adapter: SearchJobsAdapter,
    query: str,
    *,
    earliest: str | None = None,
    latest: str | None = None,
    timeout: float | None = None,
    limit: int = 0,
    log: Logger = NULL_LOGGER,
    interrupts: InterruptSource | None = None,
    choose: Callable[[str], str] | None = None,
    poll_interval: float = POLL_INTERVAL,
) -> SearchOutcome:
    """
    Run a search from submission to a terminal state.

    Submits the query, then waits for the first of: the job finishing, the
    overall deadline, or an operator interrupt. On an interrupt the operator
    chooses between cancelling the job and detaching from it; a second
    interrupt while the question is pending cancels immediately.

    Args:
        adapter: Splunk jobs adapter.
        query: SPL query.
        earliest: Optional earliest time bound.
        latest: Optional latest time bound.
        timeout: Overall deadline in seconds for the wait (None or 0 waits forever).
        limit: Maximum number of results to fetch (0 for all).
        log: Logger receiving progress lines.
        interrupts: Interrupt source; OS signals by default.
        choose: Callable asking the operator for a choice given the SID.
        poll_interval: Time in seconds between status checks.

    Returns:
        A SearchOutcome in the DONE, CANCELLED or DETACHED state.

    Raises:
        JobFailedError: The job finished in the FAILED dispatch state.
        JobTimeoutError: The deadline elapsed first.
        CancelError: The cancel request was rejected.
    """
    sid = start_search(adapter, query, earliest, latest, log)

    interrupts = interrupts or SignalInterrupts()
    choose = choose or partial(prompt_cancel_or_detach, log=log)
    events: SimpleQueue = SimpleQueue()
    stop = threading.Event()
    deadline = time.monotonic() + timeout if timeout else None

    interrupts.arm(events)
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"poll-{sid}")
    try:
        future = pool.submit(
            wait_for_job,
            adapter,
            sid,
            timeout=timeout,
            stop=stop,
            log=log,
            poll_interval=poll_interval,
        )
        future.add_done_callback(lambda f: events.put(_Event(_POLL, f)))

        remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
        try:
            event = events.get(timeout=remaining)
        except Empty:
            raise JobTimeoutError(sid, timeout) from None

        if event.kind == _INTERRUPT:
            stop.set()
            return _handle_interrupt(adapter, sid, interrupts, choose, log)

        done: Future = event.value
        done.result()
    finally:
        stop.set()
        interrupts.disarm()
        pool.shutdown(wait=False, cancel_futures=True)

    log.info("Fetching results...")
    results = fetch_results(adapter, sid, limit, log)
    return SearchOutcome(sid=sid, state=JobState.DONE, results=results)
