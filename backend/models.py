from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Platform(str, Enum):
    SHOPIFY = "shopify"
    WOOCOMMERCE = "woocommerce"
    PRESTASHOP = "prestashop"
    MAGENTO = "magento"
    FRENCH_RETAIL = "french_retail"
    GENERIC = "generic"


class ScrapeMethod(str, Enum):
    HTTP = "http"
    BROWSER = "browser"
    FALLBACK = "fallback"


class ApiModel(BaseModel):
    """Base for everything sent over the wire: camelCase out, either case in."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SelectorSet(ApiModel):
    model_config = ConfigDict(frozen=True)

    product_container: str
    name: str
    price: str
    image: str
    link: str


class ScrapedProduct(ApiModel):
    id: str
    name: str
    description: str = ""
    price: float
    image: str
    url: str
    category: str = "general"
    in_stock: bool = True
    scraped_at: datetime = Field(default_factory=_now)
    is_demo: bool = False
    is_generic: bool = False


class SiteMetadata(ApiModel):
    title: str = ""
    description: str = ""
    site_name: str = ""


class ScrapeResult(ApiModel):
    products: list[ScrapedProduct]
    total_found: int
    method: ScrapeMethod
    metadata: SiteMetadata = SiteMetadata()
    scraped_at: datetime = Field(default_factory=_now)
    source_url: str
    platform: Platform = Platform.GENERIC
    failed: bool = False
    error: str | None = None


class ScrapeRequest(ApiModel):
    url: str = Field(..., min_length=1)
    category: str = ""


class PlatformInfo(ApiModel):
    url: str
    platform: Platform
    selectors: SelectorSet
