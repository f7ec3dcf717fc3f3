"""HTTP client for the published product feed."""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class FeedFetchError(Exception):
    """The feed could not be downloaded."""


class FeedClient:
    """Downloads the CSV product feed."""

    def __init__(
        self,
        feed_url: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the feed client.

        Args:
            feed_url: Published CSV URL (e.g. a spreadsheet exported as CSV)
            timeout: Request timeout in seconds
            transport: Custom httpx transport
        """
        self.feed_url = feed_url
        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={
                "User-Agent": "storefront-mcp-server/0.1.0",
                "Accept": "text/csv,text/plain;q=0.9,*/*;q=0.8",
            },
        )

    async def fetch(self) -> str:
        """
        Download the feed text.

        Returns:
            Raw feed contents

        Raises:
            FeedFetchError: If no URL is configured or the request fails
        """
        if not self.feed_url:
            raise FeedFetchError("Feed URL is not configured")

        logger.info(f"Fetching product feed: {self.feed_url}")
        try:
            response = await self.client.get(self.feed_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FeedFetchError(f"Could not fetch feed: {e}") from e

        logger.info(f"Feed response: status={response.status_code}, bytes={len(response.content)}")
        return response.text

    async def aclose(self) -> None:
        await self.client.aclose()
