"""Rendered-page queries.

Scrapers never run JavaScript closures against the live DOM. They capture the
rendered HTML once and query it with CSS selectors through BeautifulSoup, so
the same extraction code runs against a live page or an HTML fixture.
"""

import re
from dataclasses import dataclass
from urllib.parse import urljoin

from bs4 import BeautifulSoup


@dataclass(frozen=True)
class Anchor:
    href: str
    aria_label: str | None
    text: str
    image_src: str | None


class PageSnapshot:

    def __init__(self, html: str, url: str = ""):
        self.url = url
        self.soup = BeautifulSoup(html or "", "lxml")

    @classmethod
    async def capture(cls, page) -> "PageSnapshot":
        """Snapshot a live browser page."""
        return cls(await page.content(), page.url)

    def first_match(self, selectors) -> str | None:
        """Return the first selector that matches any element, else None."""
        for selector in selectors:
            if self.soup.select_one(selector) is not None:
                return selector
        return None

    def anchors(self, selectors) -> list[Anchor]:
        """Anchors matching any selector, in document order, hrefs made absolute."""
        if isinstance(selectors, str):
            selectors = [selectors]
        anchors = []
        for el in self.soup.select(", ".join(selectors)):
            if el.name != "a" or not el.get("href"):
                continue
            img = el.find("img")
            image_src = None
            if img is not None:
                image_src = img.get("src") or img.get("data-src")
                if image_src:
                    image_src = urljoin(self.url, image_src)
            anchors.append(
                Anchor(
                    href=urljoin(self.url, el["href"]),
                    aria_label=(el.get("aria-label") or "").strip() or None,
                    text=el.get_text(" ", strip=True),
                    image_src=image_src,
                )
            )
        return anchors

    def text_of(self, selector: str) -> str | None:
        el = self.soup.select_one(selector)
        if el is None:
            return None
        return el.get_text(" ", strip=True) or None

    def body_text(self) -> str:
        root = self.soup.body or self.soup
        return root.get_text(" ", strip=True)

    def search_text(self, pattern: re.Pattern) -> str | None:
        match = pattern.search(self.body_text())
        return match.group(0).strip() if match else None

    def links(self, prefix: str = "http") -> list[str]:
        hrefs = []
        for el in self.soup.select(f'a[href^="{prefix}"]'):
            hrefs.append(el["href"])
        return hrefs
