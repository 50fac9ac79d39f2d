import asyncio
import logging

from backend import config
from backend.database import get_cached_result, set_cached_result
from backend.models import Platform, ScrapeResult
from backend.scrapers.base import BaseScraper, ScrapeError
from backend.scrapers.headless import HeadlessScraper
from backend.scrapers.parsing import clean_and_validate_url
from backend.scrapers.platforms import detect_platform
from backend.scrapers.static import StaticScraper
from backend.services.fallback import get_fallback_data

logger = logging.getLogger(__name__)

STATIC_SCRAPER = StaticScraper()
HEADLESS_SCRAPER = HeadlessScraper()

# Server-rendered storefronts: a headless pass would not find anything more.
_STATIC_ONLY = frozenset({Platform.SHOPIFY, Platform.WOOCOMMERCE})


async def _run_scrapers(
    url: str,
    platform: Platform,
    category: str,
    static: BaseScraper,
    headless: BaseScraper,
    headless_fallback: bool,
) -> ScrapeResult:
    try:
        return await static.scrape(url, platform, category)
    except ScrapeError:
        if not headless_fallback or platform in _STATIC_ONLY:
            raise
        logger.info("Static scrape failed, retrying %s in a headless browser", url)
        return await headless.scrape(url, platform, category)


async def scrape_website(
    url: str,
    category: str = "",
    *,
    static: BaseScraper | None = None,
    headless: BaseScraper | None = None,
    headless_fallback: bool | None = None,
) -> ScrapeResult:
    """Scrape the products of the storefront at *url*.

    An invalid URL raises :class:`InvalidUrlError`. Every other failure is
    logged and answered with demo data (``method == "fallback"``,
    ``failed == True``).
    """
    clean_url = clean_and_validate_url(url)
    platform = detect_platform(clean_url)
    logger.info("Scraping %s (platform: %s)", clean_url, platform.value)

    if headless_fallback is None:
        headless_fallback = config.HEADLESS_FALLBACK

    try:
        result = await _run_scrapers(
            clean_url,
            platform,
            category,
            static or STATIC_SCRAPER,
            headless or HEADLESS_SCRAPER,
            headless_fallback,
        )
    except Exception as e:
        logger.error("Scrape error for %s: %s", clean_url, e)
        return get_fallback_data(url, category, error=str(e) or type(e).__name__)

    logger.info("Scrape done: %d products found on %s", len(result.products), clean_url)
    return result


async def get_scrape_result(
    url: str, category: str = "", refresh: bool = False
) -> ScrapeResult:
    """Cached entry point used by the API. Only live results are cached."""
    clean_url = clean_and_validate_url(url)

    if not refresh:
        cached = await get_cached_result(clean_url, category)
        if cached is not None:
            logger.info("Cache hit for %s / %s", clean_url, category or "-")
            return ScrapeResult.model_validate_json(cached)

    try:
        result = await asyncio.wait_for(
            scrape_website(clean_url, category),
            timeout=config.SCRAPE_DEADLINE_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.warning("Scrape of %s timed out", clean_url)
        return get_fallback_data(url, category, error="timeout")

    if not result.failed:
        await set_cached_result(clean_url, category, result.model_dump_json(by_alias=True))
    return result
