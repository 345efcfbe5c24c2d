from typing import Dict, List, Optional

import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

import stayscraper.config as cfg


class FakeElement:
    def __init__(self, text="", attrs=None, visible=True, children=None):
        self.text = text
        self.attrs = attrs or {}
        self.visible = visible
        self.children: Dict[str, List["FakeElement"]] = children or {}


class FakeLocator:
    def __init__(self, page, selector, elements):
        self.page = page
        self.selector = selector
        self.elements = list(elements)

    def _element(self) -> FakeElement:
        if not self.elements:
            raise PlaywrightTimeoutError(f"Timeout waiting for {self.selector}")
        return self.elements[0]

    @property
    def first(self):
        return FakeLocator(self.page, self.selector, self.elements[:1])

    def wait_for(self, state="visible", timeout=None):
        if not self.elements or not self.elements[0].visible:
            raise PlaywrightTimeoutError(f"Timeout waiting for {self.selector}")

    def is_visible(self, timeout=None):
        return bool(self.elements) and self.elements[0].visible

    def click(self):
        self.page.clicks.append(self.selector)

    def count(self):
        return self.page.count_for(self.selector, len(self.elements))

    def all(self):
        return [FakeLocator(self.page, self.selector, [el]) for el in self.elements]

    def locator(self, selector):
        children = []
        for el in self.elements[:1]:
            children.extend(el.children.get(selector, []))
        return FakeLocator(self.page, selector, children)

    def get_attribute(self, name):
        return self._element().attrs.get(name)

    def text_content(self):
        return self._element().text

    def inner_text(self, timeout=None):
        return self._element().text

    def evaluate(self, expression, arg=None):
        self._element()
        self.page.scrolls += 1

    def evaluate_all(self, expression, arg=None):
        limit = arg if arg is not None else len(self.elements)
        sources = [el.attrs.get("src") or el.attrs.get("data-src") for el in self.elements[:limit]]
        return [src for src in sources if src]


class FakePage:
    def __init__(self, elements=None, url="about:blank", counts=None, goto_failures=0):
        self.elements: Dict[str, List[FakeElement]] = elements or {}
        self.url = url
        self.counts: Optional[List[int]] = list(counts) if counts else None
        self.goto_failures = goto_failures
        self.visited: List[str] = []
        self.scrolls = 0
        self.clicks: List[str] = []
        self.screenshots: List[str] = []

    def locator(self, selector):
        return FakeLocator(self, selector, self.elements.get(selector, []))

    def count_for(self, selector, default):
        if selector == cfg.RESULT_CARD and self.counts is not None:
            if len(self.counts) > 1:
                return self.counts.pop(0)
            return self.counts[0]
        return default

    def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.goto_failures > 0:
            self.goto_failures -= 1
            raise PlaywrightTimeoutError(f"Timeout navigating to {url}")
        self.url = url

    def screenshot(self, path=None, full_page=False):
        self.screenshots.append(path)


@pytest.fixture
def fake_page_factory():
    return FakePage


@pytest.fixture
def element():
    return FakeElement


@pytest.fixture
def no_sleep(monkeypatch):
    """Make every pause instant and record the requested durations."""
    slept: List[float] = []
    monkeypatch.setattr("stayscraper.utils.delay.time.sleep", slept.append)
    return slept
