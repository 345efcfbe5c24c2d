"""
Scrape pipeline: search each configured query, scroll the feed, open every
place and build ``Stay`` records, then de-duplicate the whole run.
"""

from typing import Iterable, List, Optional, Set

from loguru import logger
from playwright.sync_api import Page

import stayscraper.config as cfg
from stayscraper.config import Settings
from stayscraper.core.browser import close_browser, launch_browser, search_maps
from stayscraper.core.dedupe import dedupe_stays
from stayscraper.core.error_handler import ErrorHandler
from stayscraper.core.parser import (
    extract_name,
    extract_rating_and_reviews,
    parse_detail_panel,
)
from stayscraper.core.scroller import collect_place_cards, scroll_feed_until_done
from stayscraper.models.stay import PlaceCard, SearchQuery, Stay
from stayscraper.utils.delay import delay
from stayscraper.utils.retry import RetryPolicy, retry


def _place_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=cfg.PLACE_MAX_ATTEMPTS,
        initial_delay_ms=cfg.PLACE_INITIAL_DELAY_MS,
    )


def scrape_one_place(
    page: Page,
    place_url: str,
    category: str,
    settings: Settings,
    card: Optional[PlaceCard] = None,
    error_handler: Optional[ErrorHandler] = None,
) -> Optional[Stay]:
    """
    Open one place and turn its panel into a ``Stay``.

    Values missing from the panel fall back to the results-card preview.
    Returns None when the place has neither a name nor an address, or
    when anything about the place fails outright.
    """
    try:
        retry(
            lambda: page.goto(
                place_url,
                wait_until="domcontentloaded",
                timeout=cfg.PLACE_NAV_TIMEOUT,
            ),
            _place_policy(),
        )
        delay(settings.delay_min_ms, settings.delay_max_ms)

        name = extract_name(page)
        rating, total_reviews = extract_rating_and_reviews(page)
        details = parse_detail_panel(page, place_url)

        if card is not None:
            name = name or card.name
            rating = rating if rating is not None else card.rating
            if total_reviews is None:
                total_reviews = card.total_reviews

        if not name and not details.address:
            logger.warning("Skipping place with no name/address: {}", place_url)
            return None

        return Stay(
            name=name or cfg.UNKNOWN_NAME,
            rating=rating,
            total_reviews=total_reviews,
            address=details.address,
            phone=details.phone,
            website=details.website,
            category=category,
            latitude=details.latitude,
            longitude=details.longitude,
            google_maps_url=place_url,
            image_urls=details.image_urls,
        )
    except Exception as exc:
        logger.error("Failed to scrape place {}: {}", place_url, exc)
        if error_handler is not None:
            error_handler.take_screenshot(page, "place_failure")
        return None


def scrape_query(
    page: Page,
    query: SearchQuery,
    settings: Settings,
    seen_urls: Set[str],
    error_handler: Optional[ErrorHandler] = None,
) -> List[Stay]:
    """Run one search and scrape every place not already seen this run."""
    logger.info("Searching: {}", query.q)
    search_maps(page, query.q)
    delay(settings.delay_min_ms, settings.delay_max_ms)

    scroll_feed_until_done(page, settings.delay_min_ms, settings.delay_max_ms)
    cards = collect_place_cards(page)

    stays: List[Stay] = []
    total = len(cards)
    for index, (url, card) in enumerate(cards.items(), start=1):
        if url in seen_urls:
            continue
        seen_urls.add(url)
        logger.info("Place {}/{} ({}): {}...", index, total, query.category, url[:60])

        stay = scrape_one_place(
            page, url, query.category, settings, card=card, error_handler=error_handler
        )
        if stay is not None:
            stays.append(stay)

        delay(settings.delay_min_ms, settings.delay_max_ms)

    logger.info("Query '{}' produced {} stays", query.q, len(stays))
    return stays


def default_queries() -> List[SearchQuery]:
    return [SearchQuery(**item) for item in cfg.SEARCH_QUERIES]


def run_scraper(
    settings: Settings,
    queries: Optional[Iterable[SearchQuery]] = None,
    error_handler: Optional[ErrorHandler] = None,
) -> List[Stay]:
    """
    Full scrape: launch the browser, run every query, de-duplicate.

    The browser is closed even if a query fails; such failures propagate.
    """
    queries = list(queries) if queries is not None else default_queries()
    session = launch_browser(settings)

    all_stays: List[Stay] = []
    seen_urls: Set[str] = set()
    try:
        for query in queries:
            all_stays.extend(
                scrape_query(session.page, query, settings, seen_urls, error_handler)
            )
    except Exception:
        if error_handler is not None:
            error_handler.take_screenshot(session.page, "run_failure")
        raise
    finally:
        close_browser(session)

    deduped = dedupe_stays(all_stays)
    logger.info("Scraped {} places, deduped to {}", len(all_stays), len(deduped))
    return deduped
