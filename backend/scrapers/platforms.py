from types import MappingProxyType
from urllib.parse import urlsplit

from backend.models import Platform, SelectorSet

# Hostname fragments checked in order; the first hit wins.
_PLATFORM_MARKERS: tuple[tuple[Platform, tuple[str, ...]], ...] = (
    (Platform.SHOPIFY, ("shopify", "myshopify.com")),
    (Platform.WOOCOMMERCE, ("woocommerce", "wc-api")),
    (Platform.PRESTASHOP, ("prestashop",)),
    (Platform.MAGENTO, ("magento",)),
    (Platform.FRENCH_RETAIL, ("cdiscount", "fnac", "darty", "boulanger")),
)

_GENERIC = SelectorSet(
    product_container='[class*="product"], [class*="item"], .card, article',
    name='h1, h2, h3, h4, [class*="title"], [class*="name"]',
    price='[class*="price"], [class*="cost"], [class*="euro"], [class*="amount"]',
    image="img",
    link="a",
)

SELECTORS: MappingProxyType[Platform, SelectorSet] = MappingProxyType({
    Platform.SHOPIFY: SelectorSet(
        product_container=".product-item, .product, .grid__item, .product-card",
        name=".product-title, .product__title, .product-item__title, h3",
        price=".price, .product-price, .money, .product__price",
        image=".product-item__image img, .product__image img, img",
        link=".product-item__link, .product__link, a",
    ),
    Platform.WOOCOMMERCE: SelectorSet(
        product_container=".product, .woocommerce-LoopProduct-link, .type-product",
        name=".woocommerce-loop-product__title, .product-title, h2",
        price=".price, .woocommerce-Price-amount, .amount",
        image=".wp-post-image, .attachment-woocommerce_thumbnail",
        link=".woocommerce-loop-product__link, a",
    ),
    Platform.PRESTASHOP: SelectorSet(
        product_container=".product-miniature, .js-product-miniature, .ajax_block_product",
        name=".product-title, .product-name, h3, h2",
        price=".price, .product-price, [itemprop='price']",
        image=".product-thumbnail img, .product_img_link img, img",
        link=".product-thumbnail, .product-title a, a",
    ),
    Platform.MAGENTO: SelectorSet(
        product_container=".product-item, .item.product, .product-item-info",
        name=".product-item-link, .product-item-name, .product-name, h2",
        price=".price, .price-wrapper, [data-price-type='finalPrice']",
        image=".product-image-photo, .product-image img, img",
        link=".product-item-link, .product-item-photo, a",
    ),
    Platform.GENERIC: _GENERIC,
})


def detect_platform(url: str) -> Platform:
    """Guess the e-commerce engine behind *url* from its hostname alone."""
    try:
        hostname = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return Platform.GENERIC
    for platform, markers in _PLATFORM_MARKERS:
        if any(marker in hostname for marker in markers):
            return platform
    return Platform.GENERIC


def get_selectors(platform: Platform) -> SelectorSet:
    return SELECTORS.get(platform, _GENERIC)
