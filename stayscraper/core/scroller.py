"""
Infinite-scroll engine for the Google Maps results feed, and the link
collector that runs once the feed has stopped growing.
"""

from typing import Dict, List

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

import stayscraper.config as cfg
from stayscraper.core.parser import parse_place_card, to_absolute_url, wait_visible
from stayscraper.models.stay import PlaceCard, canonical_url
from stayscraper.utils.delay import delay

_SCROLL_FEED_JS = "(el, step) => { el.scrollTop = el.scrollTop + step; }"


def _end_of_list_visible(page: Page) -> bool:
    """True when Maps shows its "You've reached the end of the list" note."""
    try:
        end_marker = page.locator(cfg.END_OF_LIST)
        return bool(end_marker.count()) and end_marker.first.is_visible()
    except PlaywrightError:
        return False


def scroll_feed_until_done(
    page: Page,
    delay_min_ms: int = cfg.DELAY_MIN_MS,
    delay_max_ms: int = cfg.DELAY_MAX_MS,
    stable_threshold: int = cfg.MAX_STABLE_ROUNDS,
    max_iterations: int = cfg.MAX_SCROLL_ITERATIONS,
) -> int:
    """
    Scroll the results feed until no new place links load.

    Stops when the link count has stayed the same for *stable_threshold*
    consecutive checks, when the end-of-list marker shows, or after
    *max_iterations* checks.

    Parameters
    ----------
    page : Page
        Playwright page on a Maps search result.
    delay_min_ms, delay_max_ms : int
        Range of the random pause after each scroll.
    stable_threshold : int
        Unchanged counts in a row that end the scroll.
    max_iterations : int
        Hard cap on count/scroll rounds.

    Returns
    -------
    int
        Number of place links seen on the last check (0 if the feed never
        appeared).
    """
    feed = page.locator(cfg.SIDEBAR_FEED).first
    if not wait_visible(feed, cfg.FEED_WAIT_TIMEOUT):
        logger.warning("Results feed not found -- treating search as empty")
        return 0

    last_count = 0
    stable_rounds = 0

    for iteration in range(1, max_iterations + 1):
        count = page.locator(cfg.RESULT_CARD).count()
        logger.debug(
            "Scroll check {}: {} links (previous: {}, stable rounds: {})",
            iteration,
            count,
            last_count,
            stable_rounds,
        )

        if count == last_count:
            stable_rounds += 1
            if stable_rounds >= stable_threshold:
                logger.info(
                    "No new results for {} rounds -- stopping at {} links",
                    stable_rounds,
                    count,
                )
                break
        else:
            stable_rounds = 0
        last_count = count

        if _end_of_list_visible(page):
            logger.info("Reached end of list ({} links loaded)", count)
            break

        feed.evaluate(_SCROLL_FEED_JS, cfg.SCROLL_STEP)
        delay(delay_min_ms, delay_max_ms)
    else:
        logger.info("Scroll cap of {} iterations reached", max_iterations)

    logger.info("Scroll finished, found {} place links", last_count)
    return last_count


def collect_place_cards(page: Page, preview: bool = True) -> Dict[str, PlaceCard]:
    """
    Gather every place link in the feed, keyed by canonical URL in the
    order first seen.

    With *preview* the name/rating/reviews shown on each card are parsed
    too; otherwise each ``PlaceCard`` carries only its URL.
    """
    cards: Dict[str, PlaceCard] = {}

    for link in page.locator(cfg.RESULT_CARD).all():
        try:
            href = link.get_attribute("href")
        except PlaywrightError as exc:
            logger.debug("Skipping unreadable link: {}", exc)
            continue
        if not href:
            continue

        url = canonical_url(to_absolute_url(href))
        if url in cards:
            continue
        if preview:
            cards[url] = parse_place_card(link, url)
        else:
            cards[url] = PlaceCard(google_maps_url=url)

    return cards


def collect_place_urls(page: Page) -> List[str]:
    """Unique canonical place URLs currently in the feed, in feed order."""
    return list(collect_place_cards(page, preview=False))
