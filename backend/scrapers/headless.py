import asyncio
import logging

from backend.config import HEADLESS_SETTLE_MS, HEADLESS_TIMEOUT_SECONDS
from backend.models import Platform, ScrapeMethod, ScrapeResult
from backend.scrapers.base import BaseScraper, ScrapeError
from backend.scrapers.browser import accept_cookies, create_stealth_browser
from backend.scrapers.extract import build_result

logger = logging.getLogger(__name__)


class HeadlessScraper(BaseScraper):
    """Render the page in Chromium first, for storefronts built client-side."""

    method = ScrapeMethod.BROWSER

    def __init__(
        self,
        timeout: float = HEADLESS_TIMEOUT_SECONDS,
        settle_ms: int = HEADLESS_SETTLE_MS,
    ):
        self._timeout_ms = int(timeout * 1000)
        self._settle_ms = settle_ms

    async def scrape(
        self, url: str, platform: Platform, category: str = ""
    ) -> ScrapeResult:
        """Run the synchronous Playwright session in a thread."""
        logger.info("Headless scrape: %s", url)
        html = await asyncio.to_thread(self._render_sync, url)
        return await asyncio.to_thread(
            build_result, html, url, platform, category, self.method
        )

    def _render_sync(self, url: str) -> str:
        try:
            with create_stealth_browser() as page:
                page.goto(url, wait_until="networkidle", timeout=self._timeout_ms)
                accept_cookies(page)
                page.wait_for_timeout(self._settle_ms)
                return page.content()
        except Exception as e:
            logger.error("Headless render failed for %s: %s", url, e)
            raise ScrapeError(f"Rendu impossible: {e}") from e
