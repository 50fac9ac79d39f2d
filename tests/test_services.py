"""Tests for scrape orchestration, demo fallback, result cache and API."""

import asyncio
import os
import tempfile
import unittest
from unittest.mock import AsyncMock, patch

import httpx
from fastapi.testclient import TestClient

from backend import config, database
from backend.main import app
from backend.models import Platform, ScrapedProduct, ScrapeMethod, ScrapeResult
from backend.scrapers.base import BaseScraper, InvalidUrlError, ScrapeError
from backend.scrapers.static import StaticScraper
from backend.services.fallback import DEMO_PRODUCT_NAMES, get_fallback_data
from backend.services.scrape import get_scrape_result, scrape_website

SHOPIFY_PAGE = """
<html>
<head>
  <title>Boutique Démo - Accueil</title>
  <meta name="description" content="Vêtements éthiques">
  <meta property="og:site_name" content="Boutique Démo">
</head>
<body>
  {cards}
</body>
</html>
"""

SHOPIFY_CARD = """
<div class="product-card">
  <a class="product-card__link" href="/products/{slug}">
    <img src="//cdn.shopify.com/s/files/{slug}.jpg" alt="{name}">
  </a>
  <h3 class="product-card__title">{name}</h3>
  <span class="money">{price} €</span>
</div>
"""

_ITEMS = [
    ("pull-marin", "Pull Marin", "49,90"),
    ("bonnet-laine", "Bonnet en Laine", "19,00"),
    ("chemise-lin", "Chemise en Lin", "59,50"),
    ("jean-brut", "Jean Brut", "79,00"),
    ("tote-bag", "Tote Bag", "15,00"),
]


def _shopify_html() -> str:
    cards = "".join(
        SHOPIFY_CARD.format(slug=slug, name=name, price=price)
        for slug, name, price in _ITEMS
    )
    return SHOPIFY_PAGE.format(cards=cards)


def _run(coro):
    return asyncio.run(coro)


def _static(handler) -> StaticScraper:
    return StaticScraper(transport=httpx.MockTransport(handler))


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class _StubScraper(BaseScraper):
    method = ScrapeMethod.BROWSER

    def __init__(self, result: ScrapeResult | None = None):
        self.result = result
        self.calls: list[str] = []

    async def scrape(self, url, platform, category=""):
        self.calls.append(url)
        if self.result is None:
            raise ScrapeError("render failed")
        return self.result


def _live_result(url: str = "https://example.com/") -> ScrapeResult:
    return ScrapeResult(
        products=[
            ScrapedProduct(
                id="scraped_1_abc", name="Lampe", price=25.0,
                image="https://example.com/lampe.jpg", url=url,
            )
        ],
        total_found=1,
        method=ScrapeMethod.BROWSER,
        source_url=url,
    )


class TestScrapeWebsite(unittest.TestCase):
    def test_shopify_fixture(self):
        requested: list[str] = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, text=_shopify_html())

        result = _run(scrape_website("demo.myshopify.com", "fashion", static=_static(handler)))

        self.assertEqual(requested, ["https://demo.myshopify.com/"])
        self.assertNotEqual(result.method, ScrapeMethod.FALLBACK)
        self.assertGreaterEqual(len(result.products), 3)
        self.assertEqual(result.platform, Platform.SHOPIFY)
        self.assertEqual(result.source_url, "https://demo.myshopify.com/")
        self.assertFalse(result.failed)
        self.assertEqual(result.metadata.site_name, "Boutique Démo")

        first = result.products[0]
        self.assertEqual(first.name, "Pull Marin")
        self.assertEqual(first.price, 49.9)
        self.assertEqual(first.image, "https://cdn.shopify.com/s/files/pull-marin.jpg")
        self.assertEqual(first.url, "https://demo.myshopify.com/products/pull-marin")
        self.assertEqual(first.category, "fashion")

    def test_network_failure_returns_demo_data(self):
        result = _run(
            scrape_website(
                "https://example.com",
                "beauty",
                static=_static(_refuse),
                headless_fallback=False,
            )
        )

        self.assertEqual(result.method, ScrapeMethod.FALLBACK)
        self.assertTrue(4 <= len(result.products) <= 6)
        self.assertTrue(all(p.is_demo for p in result.products))
        self.assertTrue(result.failed)
        self.assertEqual(result.error, "Impossible d'accéder au site web")
        self.assertEqual(result.products[0].name, DEMO_PRODUCT_NAMES["beauty"][0])

    def test_http_error_status_returns_demo_data(self):
        result = _run(
            scrape_website(
                "https://example.com",
                static=_static(lambda r: httpx.Response(503)),
                headless_fallback=False,
            )
        )
        self.assertEqual(result.method, ScrapeMethod.FALLBACK)
        self.assertTrue(result.failed)

    def test_invalid_url_is_raised(self):
        with self.assertRaises(InvalidUrlError):
            _run(scrape_website("   ", static=_static(_refuse)))

    def test_headless_fallback_for_generic_sites(self):
        headless = _StubScraper(_live_result())
        result = _run(
            scrape_website(
                "example.com",
                static=_static(_refuse),
                headless=headless,
                headless_fallback=True,
            )
        )
        self.assertEqual(headless.calls, ["https://example.com/"])
        self.assertEqual(result.method, ScrapeMethod.BROWSER)
        self.assertFalse(result.failed)

    def test_no_headless_fallback_for_shopify(self):
        headless = _StubScraper(_live_result())
        result = _run(
            scrape_website(
                "demo.myshopify.com",
                static=_static(_refuse),
                headless=headless,
                headless_fallback=True,
            )
        )
        self.assertEqual(headless.calls, [])
        self.assertEqual(result.method, ScrapeMethod.FALLBACK)

    def test_headless_disabled(self):
        headless = _StubScraper(_live_result())
        _run(
            scrape_website(
                "example.com",
                static=_static(_refuse),
                headless=headless,
                headless_fallback=False,
            )
        )
        self.assertEqual(headless.calls, [])

    def test_headless_fallback_on_by_default(self):
        headless = _StubScraper(_live_result())
        with patch.object(config, "HEADLESS_FALLBACK", True):
            result = _run(
                scrape_website("example.com", static=_static(_refuse), headless=headless)
            )
        self.assertEqual(headless.calls, ["https://example.com/"])
        self.assertEqual(result.method, ScrapeMethod.BROWSER)

    def test_headless_failure_returns_demo_data(self):
        result = _run(
            scrape_website(
                "example.com",
                static=_static(_refuse),
                headless=_StubScraper(None),
                headless_fallback=True,
            )
        )
        self.assertEqual(result.method, ScrapeMethod.FALLBACK)
        self.assertEqual(result.error, "render failed")


class TestConfig(unittest.TestCase):
    def test_headless_fallback_flag_defaults_on(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertTrue(config.env_flag("SCRAPER_HEADLESS_FALLBACK", True))

    def test_headless_fallback_flag_can_be_disabled(self):
        for value in ("0", "false", "No", " off "):
            with patch.dict(os.environ, {"SCRAPER_HEADLESS_FALLBACK": value}):
                self.assertFalse(config.env_flag("SCRAPER_HEADLESS_FALLBACK", True), value)

    def test_headless_fallback_flag_enabled(self):
        with patch.dict(os.environ, {"SCRAPER_HEADLESS_FALLBACK": "yes"}):
            self.assertTrue(config.env_flag("SCRAPER_HEADLESS_FALLBACK", False))

    def test_deadline_outlasts_static_then_headless(self):
        worst_case = (
            config.SCRAPER_TIMEOUT_SECONDS
            + config.HEADLESS_TIMEOUT_SECONDS
            + config.HEADLESS_SETTLE_MS / 1000
        )
        self.assertGreater(config.SCRAPE_DEADLINE_SECONDS, worst_case)


class TestFallbackData(unittest.TestCase):
    def test_known_category(self):
        result = get_fallback_data("https://a.com", "home")
        self.assertEqual(
            [p.name for p in result.products], DEMO_PRODUCT_NAMES["home"]
        )
        for p in result.products:
            self.assertTrue(p.is_demo)
            self.assertEqual(p.category, "home")
            self.assertEqual(p.url, "https://a.com")
            self.assertTrue(p.image.startswith("https://picsum.photos/400/400?random="))
            self.assertGreaterEqual(p.price, 30)
            self.assertLess(p.price, 230)

    def test_unknown_category_uses_electronics(self):
        result = get_fallback_data("https://a.com", "gardening")
        self.assertEqual(
            [p.name for p in result.products], DEMO_PRODUCT_NAMES["electronics"]
        )
        self.assertEqual(result.products[0].category, "gardening")

    def test_result_fields(self):
        result = get_fallback_data("https://a.com", error="timeout")
        self.assertEqual(result.method, ScrapeMethod.FALLBACK)
        self.assertEqual(result.total_found, len(result.products))
        self.assertEqual(result.metadata.site_name, "Demo Store")
        self.assertEqual(result.products[0].category, "general")
        self.assertTrue(result.failed)
        self.assertEqual(result.error, "timeout")


class TestScrapeCache(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self._db_patch = patch.object(
            database, "DB_PATH", os.path.join(self._tmp.name, "cache.db")
        )
        self._db_patch.start()
        await database.close_db()

    async def asyncTearDown(self):
        await database.close_db()
        self._db_patch.stop()
        self._tmp.cleanup()

    async def test_live_result_is_cached(self):
        scrape = AsyncMock(return_value=_live_result())
        with patch("backend.services.scrape.scrape_website", scrape):
            first = await get_scrape_result("example.com", "home")
            second = await get_scrape_result("https://example.com/", "home")

        scrape.assert_awaited_once()
        self.assertEqual(first.products, second.products)
        self.assertEqual(second.method, ScrapeMethod.BROWSER)

    async def test_refresh_bypasses_cache(self):
        scrape = AsyncMock(return_value=_live_result())
        with patch("backend.services.scrape.scrape_website", scrape):
            await get_scrape_result("example.com")
            await get_scrape_result("example.com", refresh=True)
        self.assertEqual(scrape.await_count, 2)

    async def test_category_is_part_of_key(self):
        scrape = AsyncMock(return_value=_live_result())
        with patch("backend.services.scrape.scrape_website", scrape):
            await get_scrape_result("example.com", "home")
            await get_scrape_result("example.com", "sports")
        self.assertEqual(scrape.await_count, 2)

    async def test_demo_data_is_not_cached(self):
        scrape = AsyncMock(return_value=get_fallback_data("https://example.com/"))
        with patch("backend.services.scrape.scrape_website", scrape):
            await get_scrape_result("example.com")
            await get_scrape_result("example.com")
        self.assertEqual(scrape.await_count, 2)

    async def test_invalid_url(self):
        with self.assertRaises(InvalidUrlError):
            await get_scrape_result("   ")


class TestApi(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_scrape(self):
        result = get_fallback_data("https://example.com", "sports")
        with patch("backend.main.get_scrape_result", AsyncMock(return_value=result)) as mock:
            resp = self.client.post(
                "/api/scrape", json={"url": "example.com", "category": "sports"}
            )
        self.assertEqual(resp.status_code, 200)
        mock.assert_awaited_once_with("example.com", "sports", refresh=False)
        data = resp.json()
        self.assertEqual(data["method"], "fallback")
        self.assertEqual(data["totalFound"], len(result.products))
        self.assertTrue(data["failed"])
        self.assertTrue(all(p["isDemo"] for p in data["products"]))

    def test_scrape_refresh_flag(self):
        with patch(
            "backend.main.get_scrape_result", AsyncMock(return_value=_live_result())
        ) as mock:
            resp = self.client.post("/api/scrape?refresh=true", json={"url": "example.com"})
        self.assertEqual(resp.status_code, 200)
        mock.assert_awaited_once_with("example.com", "", refresh=True)

    def test_scrape_invalid_url(self):
        with patch(
            "backend.main.get_scrape_result",
            AsyncMock(side_effect=InvalidUrlError("URL invalide:    ")),
        ):
            resp = self.client.post("/api/scrape", json={"url": "   "})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "URL invalide:    ")

    def test_scrape_requires_url(self):
        resp = self.client.post("/api/scrape", json={"category": "home"})
        self.assertEqual(resp.status_code, 422)

    def test_platform(self):
        resp = self.client.get("/api/platform", params={"url": "SHOP.MYSHOPIFY.COM"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["url"], "https://shop.myshopify.com/")
        self.assertEqual(data["platform"], "shopify")
        self.assertIn(".product-card", data["selectors"]["productContainer"])

    def test_platform_invalid_url(self):
        resp = self.client.get("/api/platform", params={"url": "ftp://example.com"})
        self.assertEqual(resp.status_code, 400)


if __name__ == "__main__":
    unittest.main()
