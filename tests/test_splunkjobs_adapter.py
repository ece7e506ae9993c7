import pytest
import requests

from splunkcli.core.adapters.splunkjobs import SplunkJobsAdapter
from splunkcli.core.config import ConnectionConfig
from splunkcli.core.errors import (
    APIError,
    CancelError,
    ConfigurationError,
    JobNotFoundError,
    TransportError,
)
from splunkcli.core.results import fetch_results

CFG = ConnectionConfig(host="https://splunk.example.com:8089/", token="t0ken-abcdef", http_timeout=7.0)


class _Response:
    def __init__(self, status_code=200, payload=None, text="", reason="OK", headers=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text or ("" if payload is None else str(payload))
        self.reason = reason
        self.headers = headers or {}

    def json(self):
        if self._payload is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class _SessionStub:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict]] = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


def _adapter(*responses, cfg: ConnectionConfig = CFG) -> tuple[SplunkJobsAdapter, _SessionStub]:
    session = _SessionStub(*responses)
    return SplunkJobsAdapter(cfg, session=session), session


def _status_payload(**content):
    return {"entry": [{"content": content}]}


def test_create_job_posts_form_to_services_jobs_endpoint():
    adapter, session = _adapter(_Response(201, {"sid": "12345.1"}, reason="Created"))

    sid = adapter.create_job({"search": "search index=main", "output_mode": "json"})

    assert sid == "12345.1"
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://splunk.example.com:8089/services/search/jobs"
    assert kwargs["data"] == {"search": "search index=main", "output_mode": "json"}
    assert kwargs["timeout"] == 7.0


def test_create_job_uses_app_namespace_with_default_owner():
    cfg = ConnectionConfig(host="https://splunk:8089", token="t", app="search")
    adapter, session = _adapter(_Response(201, {"sid": "1"}), cfg=cfg)

    adapter.create_job({"search": "| makeresults"})

    assert session.calls[0][1] == "https://splunk:8089/servicesNS/nobody/search/search/jobs"


def test_create_job_uses_configured_owner():
    cfg = ConnectionConfig(host="https://splunk:8089", token="t", app="my app", owner="admin")
    adapter, session = _adapter(_Response(201, {"sid": "1"}), cfg=cfg)

    adapter.create_job({"search": "| makeresults"})

    assert session.calls[0][1] == "https://splunk:8089/servicesNS/admin/my%20app/search/jobs"


def test_create_job_rejects_non_created_status_with_body():
    adapter, _ = _adapter(
        _Response(400, text='{"messages":[{"type":"FATAL","text":"bad"}]}', reason="Bad Request")
    )

    with pytest.raises(APIError) as excinfo:
        adapter.create_job({"search": "search x"})

    assert excinfo.value.status_code == 400
    assert excinfo.value.status == "400 Bad Request"
    assert '"text":"bad"' in excinfo.value.body
    assert "API request failed with status 400 Bad Request" in str(excinfo.value)


def test_create_job_treats_200_as_failure():
    adapter, _ = _adapter(_Response(200, {"sid": "1"}))

    with pytest.raises(APIError):
        adapter.create_job({"search": "search x"})


def test_get_job_parses_status_content():
    payload = _status_payload(
        isDone=True,
        dispatchState="DONE",
        messages=[{"type": "INFO", "text": "ok"}],
        resultCount=42,
    )
    adapter, session = _adapter(_Response(200, payload))

    status = adapter.get_job("scheduler__admin__search__RMD5")

    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url.endswith("/services/search/jobs/scheduler__admin__search__RMD5")
    assert kwargs["params"] == {"output_mode": "json"}
    assert status.is_done is True
    assert status.dispatch_state == "DONE"
    assert status.result_count == 42
    assert status.messages[0].text == "ok"


def test_get_job_raises_job_not_found_on_empty_entry():
    adapter, _ = _adapter(_Response(200, {"entry": []}))

    with pytest.raises(JobNotFoundError) as excinfo:
        adapter.get_job("gone")

    assert excinfo.value.sid == "gone"


def test_get_job_reports_undecodable_body():
    adapter, _ = _adapter(_Response(200, None, text="<html>proxy</html>"))

    with pytest.raises(APIError, match="proxy"):
        adapter.get_job("sid")


def test_get_results_page_sends_offset_and_count():
    adapter, session = _adapter(_Response(200, {"results": [{"a": 1}, {"a": 2}]}))

    page = adapter.get_results_page("sid", 50000, 20000)

    assert page == [{"a": 1}, {"a": 2}]
    _, url, kwargs = session.calls[0]
    assert url.endswith("/services/search/jobs/sid/results")
    assert kwargs["params"] == {"output_mode": "json", "offset": 50000, "count": 20000}


def test_get_results_page_accepts_empty_results_list():
    adapter, _ = _adapter(_Response(200, {"results": []}))

    assert adapter.get_results_page("sid", 0, 10) == []


def test_get_results_page_rejects_body_without_results_list():
    body = {"messages": [{"type": "WARN", "text": "results expired"}]}
    adapter, _ = _adapter(_Response(200, body, text='{"messages":[{"text":"results expired"}]}'))

    with pytest.raises(APIError) as excinfo:
        adapter.get_results_page("sid", 0, 3)

    assert excinfo.value.status_code == 200
    assert "results expired" in excinfo.value.body


def test_fetch_results_aborts_when_a_page_has_no_results_list():
    adapter, _ = _adapter(
        _Response(200, _status_payload(isDone=True, dispatchState="DONE", resultCount=3)),
        _Response(200, {"messages": []}, text='{"messages":[]}'),
    )

    with pytest.raises(APIError, match="no results list"):
        fetch_results(adapter, "sid")


def test_cancel_job_posts_cancel_action():
    adapter, session = _adapter(_Response(200, text="ok"))

    adapter.cancel_job("sid")

    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url.endswith("/services/search/jobs/sid/control")
    assert kwargs["data"] == {"action": "cancel"}


def test_cancel_job_failure_carries_status_and_body():
    adapter, _ = _adapter(_Response(404, text="Unknown sid.", reason="Not Found"))

    with pytest.raises(CancelError) as excinfo:
        adapter.cancel_job("sid")

    assert excinfo.value.status_code == 404
    assert excinfo.value.body == "Unknown sid."
    assert str(excinfo.value) == "failed to cancel job 404 Not Found. Response: Unknown sid."


def test_network_failures_become_transport_errors():
    adapter, _ = _adapter(requests.ConnectionError("connection refused"))

    with pytest.raises(TransportError, match="connection refused"):
        adapter.get_job("sid")


def test_adapter_rejects_malformed_host_before_any_request():
    with pytest.raises(ConfigurationError, match="invalid host URL"):
        SplunkJobsAdapter(ConnectionConfig(host="splunk:8089", token="t"), session=_SessionStub())


def test_debug_logging_masks_token():
    lines: list[str] = []

    class _Log:
        def debug(self, msg):
            lines.append(msg)

        info = warn = error = debug

    cfg = ConnectionConfig(host="https://splunk:8089", token="t0ken-abcdef", debug=True)
    session = _SessionStub(_Response(201, {"sid": "1"}))
    adapter = SplunkJobsAdapter(cfg, session=session, log=_Log())

    adapter.create_job({"search": "search token=t0ken-abcdef"})

    assert any(line.startswith("Request: POST https://splunk:8089/services/search/jobs") for line in lines)
    assert all("t0ken-abcdef" not in line for line in lines)
