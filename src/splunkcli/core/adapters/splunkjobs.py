from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlencode

import requests

from splunkcli.core.auth import api_base_url, build_session
from splunkcli.core.config import ConnectionConfig
from splunkcli.core.errors import APIError, CancelError, JobNotFoundError, TransportError
from splunkcli.core.jobs import JobMessage, JobStatus
from splunkcli.core.log import NULL_LOGGER, Logger


class SplunkJobsAdapter:
    """Adapter around the Splunk search job REST endpoints."""

    def __init__(
        self,
        cfg: ConnectionConfig,
        session: requests.Session | None = None,
        log: Logger = NULL_LOGGER,
    ):
        """Create a jobs adapter; builds its own session unless one is given."""
        self.cfg = cfg
        self.log = log
        self._base_url = api_base_url(cfg)
        self.session = session if session is not None else build_session(cfg)

    def _url(self, *segments: str) -> str:
        """Return the endpoint URL for the given path segments."""
        path = "/".join(quote(s, safe="") for s in segments)
        return f"{self._base_url}/{path}"

    def _mask(self, text: str) -> str:
        if self.cfg.token:
            return text.replace(self.cfg.token, "<TOKEN>")
        return text

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
    ) -> requests.Response:
        """Send one request with the per-request timeout applied."""
        if self.cfg.debug:
            shown = f"{url}?{urlencode(params)}" if params else url
            self.log.debug(f"Request: {method} {shown}")
            if data:
                self.log.debug(f"Body: {self._mask(urlencode(data))}")
        try:
            return self.session.request(
                method,
                url,
                params=params,
                data=data,
                timeout=self.cfg.http_timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    def _check(
        self, resp: requests.Response, expected: int, error_cls: type[APIError] = APIError
    ) -> None:
        """Raise an APIError unless the response carries the expected status."""
        if resp.status_code == expected:
            return
        if self.cfg.debug:
            self.log.debug("Response Headers:")
            for key, value in resp.headers.items():
                self.log.debug(f"  {key}: {value}")
        status = f"{resp.status_code} {resp.reason or ''}".rstrip()
        prefix = (
            "failed to cancel job"
            if error_cls is CancelError
            else "API request failed with status"
        )
        raise error_cls(
            f"{prefix} {status}. Response: {resp.text}",
            status_code=resp.status_code,
            reason=resp.reason,
            body=resp.text,
        )

    def _json(self, resp: requests.Response, what: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise APIError(
                f"failed to decode {what} JSON: {exc}. Received: {resp.text}",
                status_code=resp.status_code,
                reason=resp.reason,
                body=resp.text,
            ) from exc

    def create_job(self, form: dict[str, str]) -> str:
        """Create a search job and return its SID."""
        resp = self._request("POST", self._url("search", "jobs"), data=form)
        self._check(resp, 201)
        payload = self._json(resp, "job creation")
        sid = payload.get("sid") if isinstance(payload, dict) else None
        if not sid:
            raise APIError(
                f"job creation response carries no sid. Received: {resp.text}",
                status_code=resp.status_code,
                reason=resp.reason,
                body=resp.text,
            )
        return str(sid)

    def get_job(self, sid: str) -> JobStatus:
        """Return the current status for a search job."""
        resp = self._request(
            "GET", self._url("search", "jobs", sid), params={"output_mode": "json"}
        )
        self._check(resp, 200)
        payload = self._json(resp, "job status")

        entries = payload.get("entry") if isinstance(payload, dict) else None
        if not entries:
            raise JobNotFoundError(sid)
        content = entries[0].get("content") or {}

        messages = tuple(
            JobMessage(type=str(m.get("type", "")), text=str(m.get("text", "")))
            for m in content.get("messages") or []
            if isinstance(m, dict)
        )
        try:
            result_count = int(content.get("resultCount") or 0)
        except (TypeError, ValueError):
            result_count = 0

        return JobStatus(
            sid=sid,
            is_done=bool(content.get("isDone", False)),
            dispatch_state=str(content.get("dispatchState") or ""),
            messages=messages,
            result_count=result_count,
        )

    def get_results_page(self, sid: str, offset: int, count: int) -> list[Any]:
        """Return the records of one results page."""
        resp = self._request(
            "GET",
            self._url("search", "jobs", sid, "results"),
            params={"output_mode": "json", "offset": offset, "count": count},
        )
        self._check(resp, 200)
        payload = self._json(resp, "results")
        records = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            raise APIError(
                f"results response carries no results list. Received: {resp.text}",
                status_code=resp.status_code,
                reason=resp.reason,
                body=resp.text,
            )
        return records

    def cancel_job(self, sid: str) -> None:
        """Send the cancel control action for a search job."""
        resp = self._request(
            "POST",
            self._url("search", "jobs", sid, "control"),
            data={"action": "cancel"},
        )
        self._check(resp, 200, CancelError)
