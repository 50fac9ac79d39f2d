import asyncio
import logging

import httpx

from backend.config import SCRAPER_TIMEOUT_SECONDS
from backend.models import Platform, ScrapeMethod, ScrapeResult
from backend.scrapers.base import BaseScraper, ScrapeError
from backend.scrapers.extract import build_result

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "fr-FR,fr;q=0.9,en;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


class StaticScraper(BaseScraper):
    """Single GET of the page, parsed without running any JavaScript."""

    method = ScrapeMethod.HTTP

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = SCRAPER_TIMEOUT_SECONDS,
    ):
        self._transport = transport
        self._timeout = timeout

    async def fetch(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                headers=HEADERS,
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPError as e:
            logger.error("HTTP request failed for %s: %s", url, e)
            raise ScrapeError("Impossible d'accéder au site web") from e

    async def scrape(
        self, url: str, platform: Platform, category: str = ""
    ) -> ScrapeResult:
        logger.info("Static scrape: %s", url)
        html = await self.fetch(url)
        return await asyncio.to_thread(
            build_result, html, url, platform, category, self.method
        )
