"""Tests for job sources and the startup fetch."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from job_browser.services import (
    FETCH_ERRORS,
    FetchError,
    FileJobSource,
    HttpJobSource,
    JobSource,
    PageResult,
    fetch_initial_batch,
    load_job_file,
    parse_page_payload,
)
from job_browser.services.http_source import HTTP_SOURCE_USER_AGENT, build_request_body

URL = "https://jobs.example/search"


def _response(status_code: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", URL), **kwargs)


def _client(response: httpx.Response) -> SimpleNamespace:
    return SimpleNamespace(post=AsyncMock(return_value=response))


# ── Payload parsing ──────────────────────────────────────────────────────────


def test_build_request_body_adds_pagination_without_mutating_filters():
    filters = {"query": "python"}

    body = build_request_body(filters, None, 50)

    assert body == {"query": "python", "pagination": {"after": "0", "first": 50}}
    assert filters == {"query": "python"}
    assert build_request_body(filters, "abc", 10)["pagination"]["after"] == "abc"


def test_parse_page_payload_camel_and_snake_case():
    camel = parse_page_payload({"jobs": [{"id": "1"}], "nextCursor": "c2", "hasMore": True})
    snake = parse_page_payload({"jobs": [], "next_cursor": 9, "has_more": False})

    assert [job.id for job in camel.records] == ["1"]
    assert (camel.next_cursor, camel.has_more) == ("c2", True)
    assert (snake.next_cursor, snake.has_more) == ("9", False)


def test_parse_page_payload_accepts_records_key():
    result = parse_page_payload({"records": [{"id": "7"}], "nextCursor": "c8"})

    assert [job.id for job in result.records] == ["7"]
    assert result.has_more is True


def test_parse_page_payload_infers_has_more_from_cursor():
    assert parse_page_payload({"jobs": [], "nextCursor": "x"}).has_more is True
    assert parse_page_payload({"jobs": []}).has_more is False


@pytest.mark.parametrize(
    "payload",
    [[], {"items": []}, {"jobs": "nope"}, {"records": None}, {"jobs": [1]}, {"jobs": [{"title": "no id"}]}],
)
def test_parse_page_payload_rejects_bad_shapes(payload):
    with pytest.raises(FetchError):
        parse_page_payload(payload)


# ── HttpJobSource ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_http_source_posts_filters_and_cursor():
    client = _client(_response(json={"jobs": [{"id": "1"}], "nextCursor": "c2", "hasMore": True}))
    source = HttpJobSource(URL, client=client, api_token="tok", batch_size=25)

    result = await source.fetch_page({"query": "python"}, "c1")

    assert isinstance(source, JobSource)
    assert result.next_cursor == "c2"
    _, kwargs = client.post.call_args
    assert client.post.call_args[0][0] == URL
    assert kwargs["json"]["pagination"] == {"after": "c1", "first": 25}
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["headers"]["User-Agent"] == HTTP_SOURCE_USER_AGENT


@pytest.mark.asyncio
async def test_http_source_omits_auth_header_without_token():
    client = _client(_response(json={"jobs": []}))

    await HttpJobSource(URL, client=client).fetch_page({}, None)

    assert "Authorization" not in client.post.call_args[1]["headers"]


@pytest.mark.asyncio
async def test_http_source_raises_status_errors():
    source = HttpJobSource(URL, client=_client(_response(503)))

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await source.fetch_page({}, None)
    assert exc_info.value.response.status_code == 503
    assert isinstance(exc_info.value, FETCH_ERRORS)


@pytest.mark.asyncio
async def test_http_source_wraps_invalid_json():
    source = HttpJobSource(URL, client=_client(_response(text="<html>")))

    with pytest.raises(FetchError, match="not valid JSON"):
        await source.fetch_page({}, None)


@pytest.mark.asyncio
async def test_http_source_uses_temporary_client_when_none_shared():
    client = _client(_response(json={"jobs": [{"id": "5"}]}))
    with patch("job_browser.services.http_source.httpx.AsyncClient") as client_cls:
        client_cls.return_value.__aenter__.return_value = client
        client_cls.return_value.__aexit__.return_value = None
        result = await HttpJobSource(URL).fetch_page({}, None)

    assert [job.id for job in result.records] == ["5"]
    client_cls.assert_called_once_with()


# ── FileJobSource ────────────────────────────────────────────────────────────


def test_load_job_file_accepts_list_and_object(tmp_path):
    as_list = tmp_path / "list.json"
    as_list.write_text(json.dumps([{"id": "1"}, {"id": "2"}]), encoding="utf-8")
    as_object = tmp_path / "object.json"
    as_object.write_text(json.dumps({"jobs": [{"id": "3"}]}), encoding="utf-8")

    assert [job.id for job in load_job_file(as_list)] == ["1", "2"]
    assert [job.id for job in load_job_file(as_object)] == ["3"]


def test_load_job_file_errors(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")

    with pytest.raises(FetchError):
        load_job_file(bad)
    with pytest.raises(OSError):
        load_job_file(tmp_path / "missing.json")


@pytest.mark.asyncio
async def test_file_source_pages_with_offset_cursor(make_jobs):
    source = FileJobSource(make_jobs(5), batch_size=2)

    first = await source.fetch_page({}, None)
    second = await source.fetch_page({}, first.next_cursor)
    last = await source.fetch_page({}, "4")
    repeat = await source.fetch_page({}, first.next_cursor)

    assert [job.id for job in first.records] == ["0", "1"]
    assert (first.next_cursor, first.has_more) == ("2", True)
    assert [job.id for job in second.records] == ["2", "3"]
    assert (last.next_cursor, last.has_more) == (None, False)
    assert [job.id for job in repeat.records] == ["2", "3"]


@pytest.mark.asyncio
async def test_file_source_rejects_garbage_cursor(make_jobs):
    with pytest.raises(FetchError):
        await FileJobSource(make_jobs(2)).fetch_page({}, "abc")


# ── fetch_initial_batch ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_initial_batch_retries_until_something_survives(stub_source, make_jobs):
    source = stub_source(
        [
            PageResult(records=make_jobs(3), next_cursor="3", has_more=True),
            PageResult(records=make_jobs(3, start=3), next_cursor="6", has_more=True),
        ]
    )

    def drop_first_three(batch):
        return [job for job in batch if int(job.id) >= 3]

    result = await fetch_initial_batch(source, {"q": 1}, transform=drop_first_three)

    assert [job.id for job in result.records] == ["3", "4", "5"]
    assert result.next_cursor == "6"
    assert [cursor for _, cursor in source.calls] == [None, "3"]
    assert source.calls[0][0] == {"q": 1}


@pytest.mark.asyncio
async def test_initial_batch_stops_after_max_attempts(stub_source, make_jobs):
    source = stub_source(
        [PageResult(records=make_jobs(1, start=i), next_cursor=str(i), has_more=True) for i in range(5)]
    )

    result = await fetch_initial_batch(source, {}, transform=lambda batch: [], max_attempts=2)

    assert result.records == []
    assert result.has_more is True
    assert len(source.calls) == 2


@pytest.mark.asyncio
async def test_initial_batch_empty_source(stub_source):
    result = await fetch_initial_batch(stub_source(), {})
    assert result.records == []
    assert result.has_more is False


@pytest.mark.asyncio
async def test_initial_batch_propagates_errors(stub_source):
    with pytest.raises(httpx.ConnectError):
        await fetch_initial_batch(stub_source([httpx.ConnectError("down")]), {})


def test_fetch_errors_cover_network_and_data_failures():
    request = httpx.Request("POST", URL)
    for exc in (FetchError("x"), httpx.ReadTimeout("t", request=request), OSError(), ValueError()):
        assert isinstance(exc, FETCH_ERRORS)
    assert not isinstance(RuntimeError(), FETCH_ERRORS)
