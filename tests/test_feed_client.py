"""HTTP feed transport tests."""

import httpx
import pytest

from libs.core.application.errors import TransportFailure
from services.api_gateway.infrastructure.feed_client import HttpFeedTransport

URL = "https://feeds.example.com/alerts.csv"


@pytest.mark.asyncio
async def test_fetch_returns_body_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == URL
        return httpx.Response(200, text="timestamp\n2025-05-10T08:00:00Z\n")

    feed = HttpFeedTransport(URL, transport=httpx.MockTransport(handler))

    assert await feed.fetch_text() == "timestamp\n2025-05-10T08:00:00Z\n"


@pytest.mark.asyncio
async def test_non_success_status_is_transport_failure() -> None:
    feed = HttpFeedTransport(
        URL,
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )

    with pytest.raises(TransportFailure, match="503"):
        await feed.fetch_text()


@pytest.mark.asyncio
async def test_connection_error_is_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route to host", request=request)

    feed = HttpFeedTransport(URL, transport=httpx.MockTransport(handler))

    with pytest.raises(TransportFailure):
        await feed.fetch_text()


@pytest.mark.asyncio
async def test_empty_body_is_returned_for_caller_to_classify() -> None:
    feed = HttpFeedTransport(
        URL,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="")),
    )

    assert await feed.fetch_text() == ""
