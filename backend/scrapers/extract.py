"""Turn a parsed landing page into a list of products."""

import logging
import random
import re
import string
import time

from bs4 import BeautifulSoup, Tag

from backend.config import (
    MAX_CONTAINERS,
    MAX_GENERIC_PRODUCTS,
    MAX_PRODUCTS,
    MIN_PRODUCTS,
)
from backend.models import (
    Platform,
    ScrapedProduct,
    ScrapeMethod,
    ScrapeResult,
    SelectorSet,
    SiteMetadata,
)
from backend.scrapers.parsing import extract_price_from_text, make_absolute_url
from backend.scrapers.platforms import get_selectors

logger = logging.getLogger(__name__)

# Images that usually belong to a product card when nothing better matched.
_GENERIC_IMAGE_SELECTORS = [
    'img[alt*="produit"], img[alt*="product"]',
    'img[src*="product"], img[src*="item"]',
    '[class*="product"] img',
    ".card img, .item img",
]


def _millis() -> int:
    return int(time.time() * 1000)


def _random_suffix(length: int = 9) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def _text(el: Tag | None) -> str:
    if el is None:
        return ""
    return re.sub(r"\s+", " ", el.get_text(" ", strip=True))


def _image_src(img: Tag | None) -> str:
    if img is None:
        return ""
    return img.get("src") or img.get("data-src") or img.get("data-lazy-src") or ""


def _parse_container(
    el: Tag, selectors: SelectorSet, base_url: str, category: str
) -> ScrapedProduct | None:
    name = _text(el.select_one(selectors.name))
    if not name:
        return None

    image = make_absolute_url(_image_src(el.select_one(selectors.image)), base_url)
    if not image:
        return None

    link_el = el.select_one(selectors.link)
    link = link_el.get("href", "") if link_el is not None else ""
    # A container that is itself the link (WooCommerce loop links).
    if not link and el.name == "a":
        link = el.get("href", "")

    return ScrapedProduct(
        id=f"scraped_{_millis()}_{_random_suffix()}",
        name=name[:100],
        description=f"{name} - Produit trouvé automatiquement",
        price=extract_price_from_text(_text(el.select_one(selectors.price))),
        image=image,
        url=make_absolute_url(link, base_url),
        category=category or "general",
    )


def extract_products(
    soup: BeautifulSoup, selectors: SelectorSet, base_url: str, category: str = ""
) -> list[ScrapedProduct]:
    """Read products out of the platform's product containers."""
    products: list[ScrapedProduct] = []
    seen: set[tuple[str, str]] = set()

    for el in soup.select(selectors.product_container, limit=MAX_CONTAINERS):
        try:
            product = _parse_container(el, selectors, base_url, category)
        except Exception as e:
            logger.debug("Container parse error: %s", e)
            continue
        if product is None or (product.name, product.image) in seen:
            continue
        seen.add((product.name, product.image))
        products.append(product)

    return products


def extract_generic_products(
    soup: BeautifulSoup,
    base_url: str,
    category: str = "",
    taken_images: set[str] | None = None,
) -> list[ScrapedProduct]:
    """Fallback pass: treat captioned product-looking images as products.

    Images listed in *taken_images* (absolute URLs) are already products and
    are skipped.
    """
    products: list[ScrapedProduct] = []
    seen: set[str] = set(taken_images or ())

    for selector in _GENERIC_IMAGE_SELECTORS:
        for img in soup.select(selector):
            if len(products) >= MAX_GENERIC_PRODUCTS:
                return products
            src = img.get("src") or img.get("data-src")
            alt = (img.get("alt") or "").strip()
            if not src or len(alt) <= 2:
                continue
            image = make_absolute_url(src, base_url)
            if image in seen:
                continue
            seen.add(image)
            products.append(
                ScrapedProduct(
                    id=f"generic_{_millis()}_{_random_suffix()}",
                    name=alt[:50],
                    description=f"Produit {alt}",
                    price=float(random.randint(20, 219)),
                    image=image,
                    url=base_url,
                    category=category or "general",
                    is_generic=True,
                )
            )

    return products


def extract_metadata(soup: BeautifulSoup) -> SiteMetadata:
    title = _text(soup.title)
    description_tag = soup.select_one('meta[name="description"]')
    site_name_tag = soup.select_one('meta[property="og:site_name"]')

    site_name = site_name_tag.get("content", "").strip() if site_name_tag else ""
    if not site_name:
        site_name = title.split("-")[0].strip() or "Site E-commerce"

    return SiteMetadata(
        title=title,
        description=description_tag.get("content", "").strip() if description_tag else "",
        site_name=site_name,
    )


def build_result(
    html: str,
    url: str,
    platform: Platform,
    category: str,
    method: ScrapeMethod,
) -> ScrapeResult:
    """Parse *html* and assemble a capped :class:`ScrapeResult`."""
    soup = BeautifulSoup(html, "lxml")
    products = extract_products(soup, get_selectors(platform), url, category)

    if len(products) < MIN_PRODUCTS:
        logger.info(
            "Only %d products via %s selectors, trying generic images",
            len(products),
            platform.value,
        )
        taken = {p.image for p in products}
        products.extend(extract_generic_products(soup, url, category, taken))

    return ScrapeResult(
        products=products[:MAX_PRODUCTS],
        total_found=len(products),
        method=method,
        metadata=extract_metadata(soup),
        source_url=url,
        platform=platform,
    )
