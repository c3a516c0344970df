"""HTTP job source: POSTs search filters with a cursor and parses the JSON reply."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from job_browser.jobs import parse_job
from job_browser.models import DEFAULT_BATCH_SIZE, Job
from job_browser.services.interfaces import FetchError, PageResult

logger = logging.getLogger(__name__)

HTTP_SOURCE_TIMEOUT = 30
HTTP_SOURCE_USER_AGENT = "job-browser/1.0"


def build_request_body(
    filter_spec: dict[str, Any],
    cursor: str | None,
    batch_size: int,
) -> dict[str, Any]:
    """Merge the caller's filters with the pagination block for one request."""
    body = dict(filter_spec)
    body["pagination"] = {"after": cursor or "0", "first": batch_size}
    return body


def _first_present(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def parse_page_payload(payload: Any) -> PageResult[Job]:
    """Parse ``{"jobs": [...], "nextCursor": ..., "hasMore": ...}``.

    ``records`` is accepted in place of ``jobs``, and snake_case keys
    (``next_cursor``, ``has_more``) are accepted too.

    Raises:
        FetchError: The payload does not have the expected shape.
    """
    if not isinstance(payload, dict):
        raise FetchError(f"expected a JSON object, got {type(payload).__name__}")
    raw_jobs = _first_present(payload, "jobs", "records")
    if not isinstance(raw_jobs, list):
        raise FetchError("response has no 'jobs' or 'records' list")

    jobs: list[Job] = []
    for raw in raw_jobs:
        if not isinstance(raw, dict):
            raise FetchError(f"job entry is not an object: {raw!r:.60}")
        try:
            jobs.append(parse_job(raw))
        except ValueError as exc:
            raise FetchError(str(exc)) from exc

    next_cursor = _first_present(payload, "nextCursor", "next_cursor")
    if next_cursor is not None and not isinstance(next_cursor, str):
        next_cursor = str(next_cursor)
    has_more = _first_present(payload, "hasMore", "has_more")
    if not isinstance(has_more, bool):
        has_more = next_cursor is not None
    return PageResult(records=jobs, next_cursor=next_cursor, has_more=has_more)


class HttpJobSource:
    """Cursor-paginated job source over HTTP.

    Uses the shared ``httpx.AsyncClient`` when one is given, otherwise a
    temporary client per request.
    """

    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        api_token: str = "",
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout_seconds: int = HTTP_SOURCE_TIMEOUT,
    ) -> None:
        self.url = url
        self.client = client
        self._api_token = api_token
        self.batch_size = batch_size
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": HTTP_SOURCE_USER_AGENT, "Accept": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    async def fetch_page(
        self,
        filter_spec: dict[str, Any],
        cursor: str | None,
    ) -> PageResult[Job]:
        body = build_request_body(filter_spec, cursor, self.batch_size)
        if self.client is not None:
            response = await self.client.post(
                self.url,
                json=body,
                headers=self._headers(),
                timeout=self.timeout_seconds,
            )
        else:
            async with httpx.AsyncClient() as tmp_client:
                response = await tmp_client.post(
                    self.url,
                    json=body,
                    headers=self._headers(),
                    timeout=self.timeout_seconds,
                )

        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError("response body is not valid JSON") from exc
        result = parse_page_payload(payload)
        logger.debug(
            "Fetched %d jobs after cursor %r (next=%r, has_more=%s)",
            len(result.records),
            cursor,
            result.next_cursor,
            result.has_more,
        )
        return result


__all__ = [
    "HTTP_SOURCE_TIMEOUT",
    "HTTP_SOURCE_USER_AGENT",
    "HttpJobSource",
    "build_request_body",
    "parse_page_payload",
]
