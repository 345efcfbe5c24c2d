from types import SimpleNamespace

import pytest

import stayscraper.config as cfg
from stayscraper.config import Settings
from stayscraper.core import scraper
from stayscraper.models.stay import PlaceCard, SearchQuery, Stay
from stayscraper.utils import retry as retry_mod

PLACE_URL = "https://www.google.com/maps/place/Cliff+Stay/@8.734,76.703,14z"
SETTINGS = Settings(database_url="postgres://localhost/stays", delay_min_ms=1, delay_max_ms=2)


@pytest.fixture(autouse=True)
def instant(monkeypatch):
    monkeypatch.setattr(scraper, "delay", lambda low, high: None)
    monkeypatch.setattr(retry_mod, "pause", lambda ms: None)


class RecordingHandler:
    def __init__(self):
        self.shots = []

    def take_screenshot(self, page, error_name):
        self.shots.append(error_name)


def detail_page(element, fake_page_factory, **kwargs):
    elements = {
        cfg.PLACE_NAME: [element(text="Cliff Stay")],
        cfg.ADDRESS_BUTTON: [element(attrs={"aria-label": "Address: North Cliff"})],
        cfg.RATING_LABEL: [element(attrs={"aria-label": "4.4 stars"})],
        cfg.REVIEWS_CONTROL: [element(attrs={"aria-label": "310 reviews"})],
        cfg.PHONE_LINK: [element(attrs={"href": "tel:+914702600000"})],
    }
    return fake_page_factory(elements=elements, **kwargs)


# -- scrape_one_place ------------------------------------------------------

def test_scrape_one_place_builds_stay(element, fake_page_factory):
    page = detail_page(element, fake_page_factory)

    stay = scraper.scrape_one_place(page, PLACE_URL, "resort", SETTINGS)

    assert page.visited == [PLACE_URL]
    assert stay.name == "Cliff Stay"
    assert stay.address == "North Cliff"
    assert stay.rating == 4.4
    assert stay.total_reviews == 310
    assert stay.phone == "+914702600000"
    assert stay.category == "resort"
    assert (stay.latitude, stay.longitude) == (8.734, 76.703)
    assert stay.google_maps_url == PLACE_URL
    assert stay.image_urls == []


def test_scrape_one_place_retries_navigation(element, fake_page_factory):
    page = detail_page(element, fake_page_factory, goto_failures=1)

    stay = scraper.scrape_one_place(page, PLACE_URL, "resort", SETTINGS)

    assert page.visited == [PLACE_URL, PLACE_URL]
    assert stay is not None


def test_scrape_one_place_gives_up_after_navigation_failures(fake_page_factory):
    page = fake_page_factory(goto_failures=5)
    handler = RecordingHandler()

    stay = scraper.scrape_one_place(page, PLACE_URL, "hotel", SETTINGS, error_handler=handler)

    assert stay is None
    assert len(page.visited) == cfg.PLACE_MAX_ATTEMPTS
    assert handler.shots == ["place_failure"]


def test_place_without_name_or_address_is_dropped(element, fake_page_factory):
    page = fake_page_factory(elements={
        cfg.PHONE_LINK: [element(attrs={"href": "tel:+910000000000"})],
        cfg.RATING_LABEL: [element(attrs={"aria-label": "4.9 stars"})],
    })

    assert scraper.scrape_one_place(page, PLACE_URL, "homestay", SETTINGS) is None


def test_address_only_place_gets_unknown_name(element, fake_page_factory):
    page = fake_page_factory(elements={
        cfg.ADDRESS_BUTTON: [element(attrs={"aria-label": "Address: Temple Road"})],
    })

    stay = scraper.scrape_one_place(page, PLACE_URL, "homestay", SETTINGS)

    assert stay.name == cfg.UNKNOWN_NAME
    assert stay.address == "Temple Road"


def test_card_preview_fills_missing_fields(fake_page_factory):
    page = fake_page_factory()
    card = PlaceCard(name="Beach Hut", rating=4.2, total_reviews=57, google_maps_url=PLACE_URL)

    stay = scraper.scrape_one_place(page, PLACE_URL, "homestay", SETTINGS, card=card)

    assert stay.name == "Beach Hut"
    assert stay.rating == 4.2
    assert stay.total_reviews == 57
    assert stay.address is None


# -- run_scraper -----------------------------------------------------------

def make_stay(url, name, address="Varkala"):
    return Stay(name=name, address=address, category="resort", google_maps_url=url)


@pytest.fixture
def pipeline(monkeypatch):
    state = SimpleNamespace(closed=0, searched=[], scraped=[], fail_on=None)
    page = object()
    session = SimpleNamespace(page=page)

    monkeypatch.setattr(scraper, "launch_browser", lambda settings: session)

    def fake_close(sess):
        assert sess is session
        state.closed += 1

    def fake_search(pg, q):
        if q == state.fail_on:
            raise RuntimeError("search exploded")
        state.searched.append(q)

    urls_by_query = {
        "resorts in Varkala": ["u/A", "u/B"],
        "hotels in Varkala": ["u/B", "u/C", "u/D"],
    }

    def fake_cards(pg):
        q = state.searched[-1]
        return {url: PlaceCard(google_maps_url=url) for url in urls_by_query[q]}

    def fake_scrape(pg, url, category, settings, card=None, error_handler=None):
        state.scraped.append(url)
        if url == "u/C":
            return None
        # D duplicates A by name + address
        name = "Cliff Stay" if url in ("u/A", "u/D") else f"Stay {url}"
        return make_stay(f"https://www.google.com/maps/place/{url}", name)

    monkeypatch.setattr(scraper, "close_browser", fake_close)
    monkeypatch.setattr(scraper, "search_maps", fake_search)
    monkeypatch.setattr(scraper, "scroll_feed_until_done", lambda pg, low, high: 0)
    monkeypatch.setattr(scraper, "collect_place_cards", fake_cards)
    monkeypatch.setattr(scraper, "scrape_one_place", fake_scrape)
    return state


QUERIES = [
    SearchQuery(q="resorts in Varkala", category="resort"),
    SearchQuery(q="hotels in Varkala", category="hotel"),
]


def test_run_scraper_skips_seen_urls_and_dedupes(pipeline):
    stays = scraper.run_scraper(SETTINGS, QUERIES)

    assert pipeline.searched == ["resorts in Varkala", "hotels in Varkala"]
    assert pipeline.scraped == ["u/A", "u/B", "u/C", "u/D"]
    assert [s.google_maps_url for s in stays] == [
        "https://www.google.com/maps/place/u/A",
        "https://www.google.com/maps/place/u/B",
    ]
    assert pipeline.closed == 1


def test_run_scraper_closes_browser_on_failure(pipeline):
    pipeline.fail_on = "hotels in Varkala"
    handler = RecordingHandler()

    with pytest.raises(RuntimeError, match="search exploded"):
        scraper.run_scraper(SETTINGS, QUERIES, error_handler=handler)

    assert pipeline.closed == 1
    assert handler.shots == ["run_failure"]


def test_default_queries_cover_all_categories():
    categories = [q.category for q in scraper.default_queries()]
    assert categories == ["resort", "homestay", "hotel"]
