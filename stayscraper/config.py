"""
Single-source configuration: paths, browser settings, scroll behaviour,
retry policy, search queries, and Google Maps CSS selectors.

Tunables live here as module constants. Values that differ per deployment
(database, proxy, pacing) come from the environment via ``get_settings()``.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger


# ── Project Paths ─────────────────────────────────────────────────────────────

ROOT_DIR = Path(__file__).resolve().parent.parent
LOGS_DIR = ROOT_DIR / "logs"


# ── Browser ───────────────────────────────────────────────────────────────────

HEADLESS: bool = False
VIEWPORT_WIDTH: int = 1280
VIEWPORT_HEIGHT: int = 900
LOCALE: str = "en-IN"
TIMEZONE_ID: str = "Asia/Kolkata"
ACCEPT_LANGUAGE: str = "en-IN,en;q=0.9"

USER_AGENTS: list = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) "
    "Gecko/20100101 Firefox/121.0",
]

BROWSER_ARGS: list = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
]

# ── Timeouts (milliseconds for Playwright) ────────────────────────────────────

DEFAULT_TIMEOUT: int = 10_000            # un-waited locator actions
NAVIGATION_TIMEOUT: int = 30_000         # 30 s
SEARCH_NAV_TIMEOUT: int = 25_000         # 25 s
PLACE_NAV_TIMEOUT: int = 20_000          # 20 s
FEED_WAIT_TIMEOUT: int = 15_000          # 15 s
PANEL_WAIT_TIMEOUT: int = 10_000         # 10 s
FIELD_WAIT_TIMEOUT: int = 3_000          # per-field visibility wait
FALLBACK_WAIT_TIMEOUT: int = 2_000       # secondary-selector wait

# ── Human-like pacing (milliseconds) ──────────────────────────────────────────

DELAY_MIN_MS: int = 2_000
DELAY_MAX_MS: int = 5_000

# ── Scroll behaviour ─────────────────────────────────────────────────────────

SCROLL_STEP: int = 400                   # pixels per feed scroll
MAX_STABLE_ROUNDS: int = 3               # unchanged count -> stop
MAX_SCROLL_ITERATIONS: int = 100

# ── Retry / resilience ───────────────────────────────────────────────────────

SEARCH_MAX_ATTEMPTS: int = 3
SEARCH_INITIAL_DELAY_MS: int = 3_000
PLACE_MAX_ATTEMPTS: int = 2
PLACE_INITIAL_DELAY_MS: int = 2_000

# ── Extraction ────────────────────────────────────────────────────────────────

MAX_IMAGE_CANDIDATES: int = 5
MAX_IMAGES: int = 3
UNKNOWN_NAME: str = "Unknown"

# ── Persistence ───────────────────────────────────────────────────────────────

DB_BATCH_SIZE: int = 50

# ── Diagnostics ───────────────────────────────────────────────────────────────

ENABLE_SCREENSHOTS: bool = True

# ── Search queries ────────────────────────────────────────────────────────────

GOOGLE_MAPS_BASE: str = "https://www.google.com"
GOOGLE_MAPS_SEARCH_URL: str = "https://www.google.com/maps/search/{query}"

SEARCH_QUERIES: list = [
    {"q": "resorts in Varkala", "category": "resort"},
    {"q": "homestays in Varkala", "category": "homestay"},
    {"q": "hotels in Varkala", "category": "hotel"},
]

# ── Google Maps selectors (CSS) ──────────────────────────────────────────────
#
#    When Google changes the UI, update these constants.
#    Every module reads from here – nothing is hard-coded elsewhere.

SIDEBAR_FEED: str = 'div[role="feed"]'
RESULT_CARD: str = 'div[role="feed"] a[href*="/maps/place/"]'
END_OF_LIST: str = "p.fontBodyMedium > span > span"
ACCEPT_COOKIES: str = 'button[aria-label="Accept all"]'

# ── Result-card preview selectors (relative to a card link) ──────────────────
CARD_NAME: str = '[role="heading"], h1, .fontHeadlineSmall, .qBF1Pd'

# ── Detail panel selectors ───────────────────────────────────────────────────
MAIN_PANEL: str = '[role="main"]'
PLACE_NAME: str = "h1"
ADDRESS_BUTTON: str = (
    'button[data-item-id="address"], a[data-item-id="address"], '
    '[data-tooltip="Copy address"]'
)
ADDRESS_FALLBACK: str = '[data-item-id="address"]'
PHONE_LINK: str = 'a[href^="tel:"]'
PHONE_BUTTON: str = 'button[data-item-id*="phone"]'
WEBSITE_LINK: str = 'a[data-item-id="authority"]'
OUTBOUND_LINKS: str = 'a[href^="http"]'
RATING_LABEL: str = '[aria-label*="stars"]'
RATING_SPAN: str = 'span[role="img"][aria-label*="stars"]'
REVIEWS_CONTROL: str = 'button[aria-label*="reviews"], a[aria-label*="reviews"]'
REVIEWS_SPAN: str = 'span[aria-label*="reviews"]'
PHOTO_IMAGES: str = (
    'a[href*="/maps/place/"] img[src], button[aria-label*="Photo"] img'
)


# ── Environment settings ─────────────────────────────────────────────────────

class ConfigError(RuntimeError):
    """Raised when required configuration is missing or unusable."""


@dataclass(frozen=True)
class Settings:
    database_url: str
    proxy_url: Optional[str] = None
    delay_min_ms: int = DELAY_MIN_MS
    delay_max_ms: int = DELAY_MAX_MS
    headless: bool = HEADLESS
    log_dir: Path = LOGS_DIR

    def require_database_url(self) -> str:
        if not self.database_url:
            raise ConfigError("DATABASE_URL is required")
        return self.database_url


def _positive_int(raw: Optional[str], default: int) -> int:
    """Parse a positive integer, falling back to *default* on bad input."""
    try:
        value = int(raw) if raw else 0
    except ValueError:
        logger.warning("Ignoring non-numeric value '{}', using {}", raw, default)
        return default
    return value if value > 0 else default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables (and ``.env``)."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    proxy_url = os.getenv("PROXY_URL") or None
    delay_min_ms = _positive_int(os.getenv("DELAY_MIN_MS"), DELAY_MIN_MS)
    delay_max_ms = _positive_int(os.getenv("DELAY_MAX_MS"), DELAY_MAX_MS)
    headless = os.getenv("HEADLESS", "false").lower() in {"1", "true", "yes"}
    log_dir_raw = os.getenv("SCRAPER_LOG_DIR")
    log_dir = Path(log_dir_raw) if log_dir_raw else LOGS_DIR

    if delay_min_ms > delay_max_ms:
        logger.warning(
            "DELAY_MIN_MS ({}) exceeds DELAY_MAX_MS ({}); swapping",
            delay_min_ms,
            delay_max_ms,
        )
        delay_min_ms, delay_max_ms = delay_max_ms, delay_min_ms

    if not database_url:
        logger.warning("DATABASE_URL is not set; saving results will fail.")

    return Settings(
        database_url=database_url,
        proxy_url=proxy_url,
        delay_min_ms=delay_min_ms,
        delay_max_ms=delay_max_ms,
        headless=headless,
        log_dir=log_dir,
    )
