import os
from pathlib import Path


def env_flag(name: str, default: bool) -> bool:
    """Read a yes/no switch from the environment."""
    raw = (os.environ.get(name) or "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}


BASE_DIR = Path(__file__).resolve().parent.parent
DB_PATH = Path(os.environ.get("VITRINESCAN_DB", BASE_DIR / "vitrinescan.db"))
CACHE_TTL_SECONDS = 60 * 60  # 1 hour

SCRAPER_TIMEOUT_SECONDS = 10
HEADLESS_TIMEOUT_SECONDS = 30
HEADLESS_SETTLE_MS = 3000
# A timed-out headless render keeps running in its worker thread, so the
# overall deadline must outlast a static attempt followed by a full render.
SCRAPE_DEADLINE_SECONDS = (
    SCRAPER_TIMEOUT_SECONDS + HEADLESS_TIMEOUT_SECONDS + HEADLESS_SETTLE_MS / 1000 + 15
)

# Retry failed static scrapes in a headless browser unless explicitly disabled.
HEADLESS_FALLBACK = env_flag("SCRAPER_HEADLESS_FALLBACK", True)

MAX_CONTAINERS = 50
MAX_PRODUCTS = 30
MAX_GENERIC_PRODUCTS = 10
MIN_PRODUCTS = 3
