"""Tests for brightsites_export.brightsites_client."""

from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from brightsites_export.brightsites_client import BrightSitesClient, build_query, extract_records
from brightsites_export.exceptions import RequestError


def _client(store, handler, **kwargs):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("retry_delay", 0)
    return BrightSitesClient(store, http=http, **kwargs)


# ---------------------------------------------------------------------------
# Response shapes
# ---------------------------------------------------------------------------


def test_extract_records_bare_array():
    assert extract_records([{"id": 1}]) == [{"id": 1}]


@pytest.mark.parametrize("key", ["orders", "items", "data", "results"])
def test_extract_records_known_envelopes(key):
    assert extract_records({key: [{"id": 1}], "total": 1}) == [{"id": 1}]


def test_extract_records_known_envelope_beats_other_arrays():
    assert extract_records({"links": ["x"], "data": [{"id": 1}]}) == [{"id": 1}]


def test_extract_records_first_array_property():
    assert extract_records({"meta": {}, "shipments": [{"id": 9}]}) == [{"id": 9}]


@pytest.mark.parametrize("body", [None, "text", 3, {"count": 2}])
def test_extract_records_unknown_shapes(body):
    assert extract_records(body) == []


def test_build_query_drops_unset_values():
    assert build_query({"a": 1, "b": None, "c": "", "d": "x"}) == {"a": "1", "d": "x"}


# ---------------------------------------------------------------------------
# request_json
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_request_json_builds_url_with_token(store):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = _client(store, handler)
    body = await client.request_json("/orders/7", {"status": "open", "empty": None})

    assert body == {"ok": True}
    url = seen[0].url
    assert url.host == "acme.mybrightsites.com"
    assert url.path == "/api/v2.6.1/orders/7"
    assert url.params["token"] == "tok-1"
    assert url.params["status"] == "open"
    assert "empty" not in url.params


@pytest.mark.asyncio
async def test_request_json_retries_then_raises(store):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, text="unavailable")

    client = _client(store, handler, retries=2)
    with pytest.raises(RequestError) as exc_info:
        await client.request_json("/orders")

    assert len(calls) == 3
    assert exc_info.value.status_code == 503
    assert "HTTP 503" in str(exc_info.value)
    assert "unavailable" in str(exc_info.value)


@pytest.mark.asyncio
async def test_request_json_recovers_after_transient_failure(store):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=[1, 2])

    client = _client(store, handler, retries=2)
    assert await client.request_json("/orders") == [1, 2]
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_request_json_transport_error_has_no_status(store):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(store, handler, retries=0)
    with pytest.raises(RequestError) as exc_info:
        await client.request_json("/orders")
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_request_json_invalid_json_is_not_retried(store):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, text="<html>")

    client = _client(store, handler, retries=2)
    with pytest.raises(RequestError, match="Invalid JSON"):
        await client.request_json("/orders")
    assert len(calls) == 1


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_all_pages_stops_on_short_page(store, fake_api):
    fake_api.orders = [{"id": i} for i in range(1, 6)]
    client = BrightSitesClient(store, http=fake_api.http(), page_size=2, retry_delay=0)

    records = await client.fetch_all_pages("/orders")

    assert [r["id"] for r in records] == [1, 2, 3, 4, 5]
    assert len(fake_api.requests) == 3
    assert [r.url.params["page"] for r in fake_api.requests] == ["1", "2", "3"]
    assert all(r.url.params["per_page"] == "2" for r in fake_api.requests)


@pytest.mark.asyncio
async def test_fetch_all_pages_full_last_page_needs_empty_page(store, fake_api):
    fake_api.orders = [{"id": i} for i in range(1, 5)]
    client = BrightSitesClient(store, http=fake_api.http(), page_size=2, retry_delay=0)

    records = await client.fetch_all_pages("/orders")

    assert len(records) == 4
    assert len(fake_api.requests) == 3


@pytest.mark.asyncio
async def test_fetch_all_pages_empty_collection(store, fake_api):
    client = BrightSitesClient(store, http=fake_api.http(), retry_delay=0)
    assert await client.fetch_all_pages("/orders") == []
    assert len(fake_api.requests) == 1


@pytest.mark.asyncio
async def test_fetch_all_pages_keeps_records_when_a_page_fails(store):
    def handler(request):
        if request.url.params["page"] == "2":
            return httpx.Response(500, text="boom")
        return httpx.Response(200, json=[{"id": 1}, {"id": 2}])

    client = _client(store, handler, page_size=2, retries=1)
    records = await client.fetch_all_pages("/orders")

    assert records == [{"id": 1}, {"id": 2}]


# ---------------------------------------------------------------------------
# Resource loaders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_loaders_skip_requests_without_id(store, fake_api):
    client = BrightSitesClient(store, http=fake_api.http(), retry_delay=0)
    assert await client.load_order(None) == {}
    assert await client.load_line_items("") == []
    assert await client.load_shipments(None) == []
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_load_order_raises_after_retries(store, fake_api):
    client = BrightSitesClient(store, http=fake_api.http(), retries=1, retry_delay=0)
    with pytest.raises(RequestError):
        await client.load_order("404")
    assert len(fake_api.requests) == 2


@pytest.mark.asyncio
async def test_loaders_read_each_collection(store, fake_api):
    fake_api.details = {"7": {"id": 7, "status": "shipped"}}
    fake_api.line_items = {"7": [{"id": 70}]}
    fake_api.shipments = {"7": [{"id": 700, "tracking_number": "1Z"}]}
    client = BrightSitesClient(store, http=fake_api.http(), retry_delay=0)

    assert await client.load_order(7) == {"id": 7, "status": "shipped"}
    assert await client.load_line_items(7) == [{"id": 70}]
    assert await client.load_shipments(7) == [{"id": 700, "tracking_number": "1Z"}]


@pytest.mark.asyncio
async def test_owned_http_client_is_closed(store):
    client = BrightSitesClient(store)
    async with client:
        pass
    assert client._http.is_closed


@pytest.mark.asyncio
async def test_retry_delay_is_constant(store):
    def handler(request):
        return httpx.Response(502, text="bad gateway")

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = BrightSitesClient(store, http=http)

    with patch("brightsites_export.brightsites_client.asyncio.sleep", new_callable=AsyncMock) as sleep:
        with pytest.raises(RequestError):
            await client.request_json("/orders")

    assert sleep.await_args_list == [call(0.5), call(0.5)]
