"""Tests for the remote feed client, served by httpx.MockTransport."""

import json

import httpx
import pytest

from src.catalog.errors import DecodeError, NetworkError
from src.catalog.feed import FeedFetcher, decode_feed
from src.catalog.models import Item

FEED_URL = "http://feed.test/memeslist"


def _fetcher(handler) -> FeedFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FeedFetcher(FEED_URL, timeout=5.0, client=client)


async def test_fetch_parses_items_in_order() -> None:
    payload = [
        {"source": "https://x/1.gif", "tags": ["silly", "cat"]},
        {"source": "https://x/2.gif", "tags": [], "extra": 1},
    ]
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=payload)

    items = await _fetcher(handler).fetch()

    assert items == [
        Item.create("https://x/1.gif", ["silly", "cat"]),
        Item.create("https://x/2.gif", []),
    ]
    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert str(seen[0].url) == FEED_URL


async def test_http_error_status_is_network_error() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(503, text="down"))
    with pytest.raises(NetworkError) as info:
        await fetcher.fetch()
    assert info.value.details["status"] == 503


async def test_transport_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(NetworkError):
        await _fetcher(handler).fetch()


async def test_timeout_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(NetworkError):
        await _fetcher(handler).fetch()


async def test_bad_payload_is_decode_error() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, text="<html>nope</html>"))
    with pytest.raises(DecodeError):
        await fetcher.fetch()


@pytest.mark.parametrize(
    "payload",
    [
        {"source": "u1", "tags": []},
        [{"source": "u1"}],
        [{"tags": ["a"]}],
        [{"source": 1, "tags": ["a"]}],
        [{"source": "u1", "tags": "a, b"}],
        [{"source": "u1", "tags": ["a", 2]}],
        ["u1"],
    ],
)
def test_decode_feed_rejects_other_shapes(payload) -> None:
    with pytest.raises(DecodeError):
        decode_feed(json.dumps(payload))


def test_decode_feed_empty_list() -> None:
    assert decode_feed(b"[]") == []
