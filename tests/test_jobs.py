import pytest

from splunkcli.core.errors import EmptyQueryError, JobFailedError
from splunkcli.core.jobs import (
    JobMessage,
    JobStatus,
    build_search_form,
    cancel_search,
    normalize_query,
    start_search,
)


class _JobsAdapterStub:
    def __init__(self):
        self.forms: list[dict[str, str]] = []
        self.cancelled: list[str] = []

    def create_job(self, form: dict[str, str]) -> str:
        self.forms.append(form)
        return "12345.1"

    def cancel_job(self, sid: str) -> None:
        self.cancelled.append(sid)


@pytest.mark.parametrize(
    "query",
    ["index=main", "error OR warn | stats count", "  index=_internal ", "sourcetype=a|b"],
)
def test_normalize_query_prefixes_plain_fragments(query: str):
    assert normalize_query(query) == "search " + query


@pytest.mark.parametrize(
    "query",
    ["| makeresults", "|tstats count", "   | inputlookup hosts.csv", "\n| rest /services"],
)
def test_normalize_query_keeps_generating_pipelines(query: str):
    assert normalize_query(query) == query


@pytest.mark.parametrize("query", ["", "   ", "\n\t"])
def test_normalize_query_rejects_empty_query(query: str):
    with pytest.raises(EmptyQueryError):
        normalize_query(query)


def test_build_search_form_omits_missing_time_bounds():
    assert build_search_form("index=main") == {
        "search": "search index=main",
        "output_mode": "json",
    }


def test_build_search_form_forwards_time_bounds_verbatim():
    form = build_search_form("| makeresults", earliest="-1h@h", latest="now")

    assert form == {
        "search": "| makeresults",
        "earliest_time": "-1h@h",
        "latest_time": "now",
        "output_mode": "json",
    }


def test_start_search_returns_sid_and_sends_normalized_query():
    adapter = _JobsAdapterStub()

    sid = start_search(adapter, "index=main", earliest="-15m")

    assert sid == "12345.1"
    assert adapter.forms == [
        {"search": "search index=main", "earliest_time": "-15m", "output_mode": "json"}
    ]


def test_start_search_fails_before_any_request_on_empty_query():
    adapter = _JobsAdapterStub()

    with pytest.raises(EmptyQueryError):
        start_search(adapter, "  ")

    assert adapter.forms == []


def test_cancel_search_calls_adapter_once():
    adapter = _JobsAdapterStub()

    cancel_search(adapter, "12345.1")

    assert adapter.cancelled == ["12345.1"]


def test_job_status_collects_fatal_and_error_messages_case_insensitively():
    status = JobStatus(
        sid="s1",
        is_done=True,
        dispatch_state="FAILED",
        messages=(
            JobMessage("INFO", "parsed"),
            JobMessage("error", "Unknown search command 'foo'."),
            JobMessage("WARN", "slow"),
            JobMessage("Fatal", "Search process died."),
        ),
    )

    assert status.failed is True
    assert status.error_messages() == ["Unknown search command 'foo'.", "Search process died."]
    with pytest.raises(JobFailedError) as excinfo:
        status.raise_for_failure()
    assert str(excinfo.value) == (
        "search job s1 failed with errors:"
        "\n  - Unknown search command 'foo'."
        "\n  - Search process died."
    )


def test_job_status_failure_without_error_messages_uses_generic_message():
    status = JobStatus(
        sid="s2", is_done=True, dispatch_state="FAILED", messages=(JobMessage("INFO", "x"),)
    )

    with pytest.raises(JobFailedError, match=r"^search job s2 failed$"):
        status.raise_for_failure()


@pytest.mark.parametrize("state", ["DONE", "FINALIZING", "PAUSED", "", "failed"])
def test_job_status_done_with_non_failed_state_is_not_a_failure(state: str):
    status = JobStatus(sid="s3", is_done=True, dispatch_state=state)

    assert status.failed is False
    status.raise_for_failure()
