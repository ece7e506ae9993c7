"""Paginated retrieval of search job results."""

from __future__ import annotations

import json
from typing import Any

from splunkcli.core.jobs import SearchJobsAdapter, job_status
from splunkcli.core.log import NULL_LOGGER, Logger

MAX_PAGE_SIZE = 50_000


def fetch_count(total: int, limit: int = 0) -> int:
    """Return how many records to retrieve: `limit` when 0 < limit <= total, else all."""
    if 0 < limit <= total:
        return limit
    return max(total, 0)


def plan_pages(count: int, page_size: int = MAX_PAGE_SIZE) -> list[tuple[int, int]]:
    """
    Split `count` records into (offset, count) page requests.

    Offsets advance in `page_size` strides; the last page is clipped so the
    pages cover exactly `[0, count)`.
    """
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return [
        (offset, min(page_size, count - offset)) for offset in range(0, count, page_size)
    ]


def fetch_results(
    adapter: SearchJobsAdapter,
    sid: str,
    limit: int = 0,
    log: Logger = NULL_LOGGER,
    page_size: int = MAX_PAGE_SIZE,
) -> dict[str, list[Any]]:
    """
    Fetch the results of a finished job, page by page.

    The total is read from a fresh status request. Pages are requested
    sequentially and concatenated in server order. Any failing page aborts the
    whole fetch; no partial result set is returned.

    Args:
        adapter: Splunk jobs adapter used for status and result requests.
        sid: Search ID of the finished job.
        limit: Maximum number of records (0 for all).
        log: Logger receiving progress lines.
        page_size: Maximum records per request.

    Returns:
        A mapping `{"results": [...]}`.
    """
    total = job_status(adapter, sid).result_count
    wanted = fetch_count(total, limit)
    pages = plan_pages(wanted, page_size)
    log.debug(f"Fetching {wanted} of {total} result(s) in {len(pages)} page(s)")

    records: list[Any] = []
    for offset, count in pages:
        page = adapter.get_results_page(sid, offset, count)
        if len(page) != count:
            # The result count can move between the status read and the fetch.
            log.debug(f"Page at offset {offset} returned {len(page)} of {count} record(s)")
        records.extend(page)

    return {"results": records}


def format_results(results: dict[str, list[Any]]) -> str:
    """Render a result set as JSON indented by two spaces."""
    return json.dumps(results, indent=2, ensure_ascii=False)
