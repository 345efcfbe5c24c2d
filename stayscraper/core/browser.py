"""
Browser factory -- launches Playwright Chromium with stealth injection,
plus the search navigation that every query starts from.
"""

import random
import urllib.parse
from dataclasses import dataclass

from loguru import logger
from playwright.sync_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    sync_playwright,
)
from playwright_stealth import Stealth

import stayscraper.config as cfg
from stayscraper.config import Settings
from stayscraper.utils.delay import pause
from stayscraper.utils.retry import RetryPolicy, retry


# Hides the automation flag from page scripts
_HIDE_WEBDRIVER_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
"""


@dataclass
class BrowserSession:
    """Everything owned by one scrape run; released by ``close_browser()``."""

    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page


def pick_user_agent() -> str:
    """Pick one user agent from the rotation pool."""
    return random.choice(cfg.USER_AGENTS)


def launch_browser(settings: Settings) -> BrowserSession:
    """
    Launch Chromium with anti-detection settings and open the run's page.

    Failure here is fatal to the run, so nothing is retried.
    """
    pw = sync_playwright().start()

    launch_opts: dict = {
        "headless": settings.headless,
        "args": list(cfg.BROWSER_ARGS),
        "ignore_default_args": ["--enable-automation"],
    }
    if settings.proxy_url:
        launch_opts["proxy"] = {"server": settings.proxy_url}

    try:
        browser = pw.chromium.launch(**launch_opts)
        context = browser.new_context(
            user_agent=pick_user_agent(),
            viewport={
                "width": cfg.VIEWPORT_WIDTH,
                "height": cfg.VIEWPORT_HEIGHT,
            },
            locale=cfg.LOCALE,
            timezone_id=cfg.TIMEZONE_ID,
            permissions=["geolocation"],
            extra_http_headers={"Accept-Language": cfg.ACCEPT_LANGUAGE},
        )
        context.set_default_timeout(cfg.DEFAULT_TIMEOUT)
        context.set_default_navigation_timeout(cfg.NAVIGATION_TIMEOUT)
        context.add_init_script(_HIDE_WEBDRIVER_JS)
        page = context.new_page()
        Stealth().apply_stealth_sync(page)
    except Exception:
        pw.stop()
        raise

    logger.info(
        "Browser launched (headless={}) {}",
        settings.headless,
        "with proxy" if settings.proxy_url else "without proxy",
    )
    return BrowserSession(pw, browser, context, page)


def search_url(query: str) -> str:
    """Build the Maps search URL for *query*."""
    return cfg.GOOGLE_MAPS_SEARCH_URL.format(query=urllib.parse.quote(query))


def search_maps(page: Page, query: str) -> None:
    """
    Navigate to Google Maps search results for *query*.

    Navigation is retried with backoff. Whether the results feed actually
    renders is left to the scroller, which treats a missing feed as an
    empty result set.
    """
    url = search_url(query)
    policy = RetryPolicy(
        max_attempts=cfg.SEARCH_MAX_ATTEMPTS,
        initial_delay_ms=cfg.SEARCH_INITIAL_DELAY_MS,
    )

    # Google Maps streams tiles forever, so "networkidle" never fires.
    retry(
        lambda: page.goto(
            url, wait_until="domcontentloaded", timeout=cfg.SEARCH_NAV_TIMEOUT
        ),
        policy,
    )
    logger.info("Navigated to search results for '{}'", query)

    dismiss_cookie_banner(page)


def dismiss_cookie_banner(page: Page) -> bool:
    """Click the consent banner away if it is showing."""
    try:
        accept_btn = page.locator(cfg.ACCEPT_COOKIES)
        if accept_btn.is_visible(timeout=3000):
            accept_btn.click()
            logger.info("Cookie consent dismissed")
            pause(1000)
            return True
    except Exception as exc:
        logger.debug("No cookie banner handled: {}", exc)
    return False


def close_browser(session: BrowserSession | None) -> None:
    """Shut down the browser and Playwright; never raises."""
    if session is None:
        return
    try:
        session.browser.close()
    except Exception as exc:
        logger.debug("Browser close failed: {}", exc)
    try:
        session.playwright.stop()
    except Exception as exc:
        logger.debug("Playwright stop failed: {}", exc)
    logger.info("Browser closed")
