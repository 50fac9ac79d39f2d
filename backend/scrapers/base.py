from abc import ABC, abstractmethod

from backend.models import Platform, ScrapeMethod, ScrapeResult


class InvalidUrlError(ValueError):
    """Raised when a target URL cannot be turned into an absolute http(s) URL."""


class ScrapeError(Exception):
    """Raised when a page could not be fetched or rendered."""


class BaseScraper(ABC):
    method: ScrapeMethod

    @abstractmethod
    async def scrape(
        self, url: str, platform: Platform, category: str = ""
    ) -> ScrapeResult:
        """Fetch *url* and extract its products using the *platform* selectors."""
