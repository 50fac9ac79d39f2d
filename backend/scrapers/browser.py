"""Shared headless-browser utilities with stealth support."""

import logging
import os
import random
from contextlib import contextmanager
from urllib.parse import urlparse

from playwright.sync_api import Page, sync_playwright
from playwright_stealth import Stealth

logger = logging.getLogger(__name__)

# Modern Chrome user agents (rotated to reduce fingerprinting)
_USER_AGENTS = [
    (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    (
        "Mozilla/5.0 (X11; Linux x86_64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/130.0.0.0 Safari/537.36"
    ),
]

_stealth = Stealth()

# Consent banners seen on French storefronts, most common first.
_COOKIE_BUTTONS = [
    "#onetrust-accept-btn-handler",
    "#didomi-notice-agree-button",
    "#axeptio_btn_acceptAll",
    "[data-testid='accept-cookies']",
    "button[class*='cookie']",
    ".cookie-consent button",
    "button:has-text('Tout accepter')",
    "button:has-text('Accepter')",
    "button:has-text('Accept all')",
]


def get_proxy_config() -> dict | None:
    """Build Playwright proxy config from environment variables."""
    proxy_url = os.environ.get("HTTPS_PROXY") or os.environ.get("HTTP_PROXY")
    if not proxy_url:
        return None
    parsed = urlparse(proxy_url)
    config: dict = {"server": f"{parsed.scheme}://{parsed.hostname}:{parsed.port}"}
    if parsed.username:
        config["username"] = parsed.username
    if parsed.password:
        config["password"] = parsed.password
    return config


@contextmanager
def create_stealth_browser():
    """Yield a stealth-enabled Playwright page, closing the browser afterwards.

    Usage::

        with create_stealth_browser() as page:
            page.goto(...)
    """
    with _stealth.use_sync(sync_playwright()) as pw:
        browser = pw.chromium.launch(
            headless=True,
            args=[
                "--no-sandbox",
                "--disable-setuid-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
                "--disable-blink-features=AutomationControlled",
            ],
            proxy=get_proxy_config(),
        )
        context = browser.new_context(
            user_agent=random.choice(_USER_AGENTS),
            locale="fr-FR",
            ignore_https_errors=True,
            viewport={"width": 1920, "height": 1080},
        )
        try:
            yield context.new_page()
        finally:
            browser.close()


def accept_cookies(page: Page, timeout: int = 3000) -> bool:
    """Click the first visible consent button, if any. Returns True on click."""
    for sel in _COOKIE_BUTTONS:
        try:
            btn = page.locator(sel).first
            if btn.is_visible(timeout=timeout):
                btn.click(timeout=3000)
                page.wait_for_timeout(500)
                return True
        except Exception:
            continue
    return False
