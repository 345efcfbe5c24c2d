"""
Data extraction -- turns an opened Google Maps place panel into
``PlaceDetails`` and results-list cards into ``PlaceCard`` previews.

Every field is read by an ordered list of small strategies. Each strategy
returns a value or ``None``; Playwright errors (timeouts, detached or
missing elements) are swallowed per strategy so one broken selector never
costs the other fields.
"""

import re
from typing import Callable, Iterable, Optional, Tuple, TypeVar

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

import stayscraper.config as cfg
from stayscraper.models.stay import PlaceCard, PlaceDetails

T = TypeVar("T")

# ── Regex patterns ────────────────────────────────────────────────────────────

_NUMBER_RE = re.compile(r"(\d+\.?\d*)")
_STARS_RE = re.compile(r"(\d+\.?\d*)\s*stars?", re.IGNORECASE)
_REVIEWS_RE = re.compile(r"(\d[\d,]*)\s*reviews?", re.IGNORECASE)

# Card line: "4.6(1,234)" or "4.6 (23)"
_CARD_RATING_RE = re.compile(r"(\d\.\d)\s*\((\d[\d,]*)\)")

# "@8.734,76.703,14z" segment of a place URL
_COORDS_RE = re.compile(r"@(-?\d+\.?\d*),(-?\d+\.?\d*)")

_ADDRESS_LABEL_RE = re.compile(r"^(?:copy address|address:?)\s*", re.IGNORECASE)
_PHONE_LABEL_RE = re.compile(r"^(?:phone:?)\s*", re.IGNORECASE)
_WEBSITE_TEXT_RE = re.compile(r"website|web|visit|open", re.IGNORECASE)

_IMAGE_SOURCES_JS = """
(els, limit) => els.slice(0, limit)
    .map(el => el.getAttribute('src') || el.getAttribute('data-src'))
    .filter(Boolean)
"""


# ── Text-parsing helpers ─────────────────────────────────────────────────────

def parse_rating(text: Optional[str]) -> Optional[float]:
    """First decimal number in *text*, if it is a valid 0-5 star rating."""
    if not text:
        return None
    match = _NUMBER_RE.search(text)
    if not match:
        return None
    rating = float(match.group(1))
    if not 0.0 <= rating <= 5.0:
        return None
    return rating


def parse_review_count(text: Optional[str]) -> Optional[int]:
    """Review count from text like "120 reviews" or "4.2 · 1,204 reviews"."""
    if not text:
        return None
    match = _REVIEWS_RE.search(text)
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


def parse_rating_text(text: Optional[str]) -> Tuple[Optional[float], Optional[int]]:
    """Split "4.2 · 120 reviews" into ``(4.2, 120)``."""
    return parse_rating(text), parse_review_count(text)


def parse_card_rating(text: Optional[str]) -> Tuple[Optional[float], Optional[int]]:
    """
    Rating and review count from a results card, e.g. "4.6(1,234)" or
    "4.6 stars · 1,234 reviews".

    Only rating-shaped text counts; stray digits in the name or address
    never become a rating.
    """
    if not text:
        return None, None
    match = _CARD_RATING_RE.search(text)
    if match:
        return parse_rating(match.group(1)), int(match.group(2).replace(",", ""))
    stars = _STARS_RE.search(text)
    rating = parse_rating(stars.group(1)) if stars else None
    return rating, parse_review_count(text)


def parse_coords_from_url(url: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """Latitude/longitude from the ``@lat,lng`` segment of a place URL."""
    if not url:
        return None, None
    match = _COORDS_RE.search(url)
    if not match:
        return None, None
    return float(match.group(1)), float(match.group(2))


def clean_address(raw: Optional[str]) -> Optional[str]:
    """Drop the "Address:" / "Copy address" label Google prefixes."""
    if not raw:
        return None
    cleaned = _ADDRESS_LABEL_RE.sub("", raw.strip()).strip()
    return cleaned or None


def clean_phone(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    cleaned = raw.strip()
    if cleaned.lower().startswith("tel:"):
        cleaned = cleaned[4:]
    cleaned = _PHONE_LABEL_RE.sub("", cleaned).strip()
    return cleaned or None


def to_absolute_url(href: str) -> str:
    """Prefix relative Maps links with the Google origin."""
    if href.startswith("http"):
        return href
    return f"{cfg.GOOGLE_MAPS_BASE}{href}"


# ── Strategy plumbing ────────────────────────────────────────────────────────

def _is_empty(value) -> bool:
    return value is None or value == "" or value == []


def first_available(strategies: Iterable[Callable[..., Optional[T]]], *args) -> Optional[T]:
    """
    Call each of *strategies* with *args* in order and return the first
    non-empty result.

    A strategy that raises a Playwright error counts as "no value".
    """
    for strategy in strategies:
        try:
            value = strategy(*args)
        except PlaywrightError as exc:
            logger.debug(
                "Strategy {} failed: {}",
                getattr(strategy, "__name__", strategy),
                exc,
            )
            continue
        if not _is_empty(value):
            return value
    return None


def wait_visible(locator: Locator, timeout: int) -> bool:
    """True once *locator* is visible, False if it never shows up."""
    try:
        locator.wait_for(state="visible", timeout=timeout)
        return True
    except PlaywrightError:
        return False


def get_text_safe(locator: Locator, timeout: int = cfg.FALLBACK_WAIT_TIMEOUT) -> Optional[str]:
    """Trimmed text of a visible element, or None."""
    if not wait_visible(locator, timeout):
        return None
    text = locator.text_content()
    return text.strip() if text and text.strip() else None


# ── Field strategies ─────────────────────────────────────────────────────────

def _address_from_label(page: Page) -> Optional[str]:
    button = page.locator(cfg.ADDRESS_BUTTON).first
    if not wait_visible(button, cfg.FIELD_WAIT_TIMEOUT):
        return None
    return clean_address(button.get_attribute("aria-label"))


def _address_from_text(page: Page) -> Optional[str]:
    button = page.locator(cfg.ADDRESS_BUTTON).first
    if not button.is_visible():
        return None
    return clean_address(button.text_content())


def _address_from_panel(page: Page) -> Optional[str]:
    panel = page.locator(cfg.MAIN_PANEL).first
    return clean_address(get_text_safe(panel.locator(cfg.ADDRESS_FALLBACK).first))


def _phone_from_tel_link(page: Page) -> Optional[str]:
    link = page.locator(cfg.PHONE_LINK).first
    if not wait_visible(link, cfg.FIELD_WAIT_TIMEOUT):
        return None
    return clean_phone(link.get_attribute("href"))


def _phone_from_button(page: Page) -> Optional[str]:
    return clean_phone(get_text_safe(page.locator(cfg.PHONE_BUTTON).first))


def _website_from_authority(page: Page) -> Optional[str]:
    link = page.locator(cfg.WEBSITE_LINK).first
    if not wait_visible(link, cfg.FIELD_WAIT_TIMEOUT):
        return None
    return link.get_attribute("href") or None


def _website_from_outbound_links(page: Page) -> Optional[str]:
    for link in page.locator(cfg.OUTBOUND_LINKS).all():
        href = link.get_attribute("href")
        if not href or "google.com" in href:
            continue
        text = link.text_content() or ""
        if _WEBSITE_TEXT_RE.search(text):
            return href
    return None


def _rating_from_stars_label(page: Page) -> Optional[float]:
    label = page.locator(cfg.RATING_LABEL).first
    if not wait_visible(label, cfg.FIELD_WAIT_TIMEOUT):
        return None
    match = _STARS_RE.search(label.get_attribute("aria-label") or "")
    return parse_rating(match.group(1)) if match else None


def _rating_from_stars_span(page: Page) -> Optional[float]:
    return parse_rating(get_text_safe(page.locator(cfg.RATING_SPAN).first))


def _reviews_from_control(page: Page) -> Optional[int]:
    control = page.locator(cfg.REVIEWS_CONTROL).first
    if not wait_visible(control, cfg.FALLBACK_WAIT_TIMEOUT):
        return None
    return parse_review_count(control.get_attribute("aria-label"))


def _reviews_from_span(page: Page) -> Optional[int]:
    return parse_review_count(get_text_safe(page.locator(cfg.REVIEWS_SPAN).first))


def _reviews_from_panel_text(page: Page) -> Optional[int]:
    return parse_review_count(page.locator(cfg.MAIN_PANEL).first.text_content())


def _name_from_heading(page: Page) -> Optional[str]:
    return get_text_safe(page.locator(cfg.PLACE_NAME).first)


def _image_urls(page: Page) -> list:
    sources = page.locator(cfg.PHOTO_IMAGES).evaluate_all(
        _IMAGE_SOURCES_JS, cfg.MAX_IMAGE_CANDIDATES
    )
    return list(sources or [])[: cfg.MAX_IMAGES]


# ── Field extractors ─────────────────────────────────────────────────────────

def extract_address(page: Page) -> Optional[str]:
    return first_available(
        [_address_from_label, _address_from_text, _address_from_panel], page
    )


def extract_phone(page: Page) -> Optional[str]:
    return first_available([_phone_from_tel_link, _phone_from_button], page)


def extract_website(page: Page) -> Optional[str]:
    return first_available(
        [_website_from_authority, _website_from_outbound_links], page
    )


def extract_rating_and_reviews(page: Page) -> Tuple[Optional[float], Optional[int]]:
    """Star rating and review count shown in the place header."""
    rating = first_available(
        [_rating_from_stars_label, _rating_from_stars_span], page
    )
    total_reviews = first_available(
        [_reviews_from_control, _reviews_from_span, _reviews_from_panel_text], page
    )
    return rating, total_reviews


def extract_name(page: Page) -> Optional[str]:
    return first_available([_name_from_heading], page)


def extract_images(page: Page) -> list:
    return first_available([_image_urls], page) or []


# ── Main extraction ──────────────────────────────────────────────────────────

def parse_detail_panel(page: Page, current_url: str = "") -> PlaceDetails:
    """
    Read address, phone, website, coordinates and photos from the
    currently open place panel.

    Parameters
    ----------
    page : Page
        Playwright page showing a place detail panel.
    current_url : str
        Place URL used for coordinates; ``page.url`` is tried when it
        carries none.

    Returns
    -------
    PlaceDetails
        Fields that could not be found are left as None / empty.
    """
    panel = page.locator(cfg.MAIN_PANEL).first
    if not wait_visible(panel, cfg.PANEL_WAIT_TIMEOUT):
        logger.debug("Detail panel not visible; extracting what is there")

    latitude, longitude = parse_coords_from_url(current_url)
    if latitude is None:
        # Maps redirects to a URL carrying the "@lat,lng" segment
        latitude, longitude = parse_coords_from_url(page.url)

    return PlaceDetails(
        address=extract_address(page),
        phone=extract_phone(page),
        website=extract_website(page),
        latitude=latitude,
        longitude=longitude,
        image_urls=extract_images(page),
    )


def parse_place_card(link: Locator, google_maps_url: str) -> PlaceCard:
    """
    Preview data from one results-list link: the name from its aria-label
    (or heading), and rating/reviews from the surrounding card text.
    """
    name = first_available([
        lambda: (link.get_attribute("aria-label") or "").strip(),
        lambda: get_text_safe(link.locator(cfg.CARD_NAME).first),
    ])
    card_text = first_available([
        lambda: link.locator("xpath=..").inner_text(timeout=cfg.FALLBACK_WAIT_TIMEOUT),
    ])
    rating, total_reviews = parse_card_rating(card_text)

    return PlaceCard(
        name=name,
        rating=rating,
        total_reviews=total_reviews,
        google_maps_url=google_maps_url,
    )
