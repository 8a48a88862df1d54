"""HTTP transport for the remote alert CSV export."""

from __future__ import annotations

import httpx

from libs.common.logger import get_logger
from libs.core.application.errors import TransportFailure

logger = get_logger(__name__)


class HttpFeedTransport:
    """Fetches the alert feed as text with a single GET."""

    def __init__(
        self,
        url: str,
        timeout_sec: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout_sec = timeout_sec
        self._transport = transport

    async def fetch_text(self) -> str:
        logger.info(f"Fetching alert feed from {self._url}")
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_sec,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(self._url)
        except httpx.HTTPError as error:
            logger.error(f"Feed request failed: {error}")
            raise TransportFailure(f"Feed request failed: {error}") from error

        if not response.is_success:
            logger.warning(f"Feed returned HTTP {response.status_code}")
            raise TransportFailure(
                f"Network response was not ok: {response.status_code}"
            )
        return response.text
