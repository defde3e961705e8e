from __future__ import annotations

import httpx
import structlog

from app.core.config import settings
from app.core.errors import FetchError
from app.scraping.extractor import extract
from app.scraping.snapshot import ProductSnapshot

logger = structlog.get_logger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


class CashifyScraper:
    """Downloads a product page and runs the field extractor over it."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self._client = client
        self._timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    async def fetch_html(self, url: str) -> str:
        if self._client is not None:
            return await self._get(self._client, url)

        async with httpx.AsyncClient(
            headers=BROWSER_HEADERS,
            follow_redirects=True,
            timeout=self._timeout,
        ) as client:
            return await self._get(client, url)

    async def _get(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            response = await client.get(url, headers=BROWSER_HEADERS)
        except httpx.HTTPError as exc:
            logger.warning("fetch.transport_error", url=url, error=str(exc))
            raise FetchError(f"Could not reach {url}: {exc}") from exc

        if response.is_error:
            logger.warning("fetch.http_error", url=url, status=response.status_code)
            raise FetchError(f"HTTP error! status: {response.status_code}")

        return response.text

    async def scrape(self, url: str) -> ProductSnapshot:
        html = await self.fetch_html(url)
        return extract(html, url)
