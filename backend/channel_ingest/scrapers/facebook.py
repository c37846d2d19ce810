"""Facebook page scraper.

Facebook pages are JS-rendered, so every run drives the shared browser:
    1. open the base page and bail out early if a login wall is shown
    2. for each requested content type, open its tab, scroll to load lazy
       content, snapshot the HTML and pull items out of matching anchors
A content type that fails is logged and skipped; the other types still run.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

from channel_ingest.errors import AccessGatedError
from channel_ingest.models.enums import ALL_CONTENT_TYPES, ContentType, Source
from channel_ingest.schemas.content import ContactItem, EventItem, PhotoItem, VideoItem
from channel_ingest.scrapers.base import BaseScraper
from channel_ingest.scrapers.browser import (
    detect_login_wall,
    navigate_with_retry,
    scroll_to_load,
)
from channel_ingest.scrapers.page import PageSnapshot
from channel_ingest.scrapers.registry import register_scraper

logger = logging.getLogger(__name__)

FACEBOOK_BASE = "https://www.facebook.com"
MAX_ITEMS_PER_TYPE = 50
SETTLE_MS = 2000

PHONE_RE = re.compile(r"\+?\d[\d\s\-().]{7,}\d")
EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
SOCIAL_HOSTS = ("facebook.com", "instagram.com")


@dataclass(frozen=True)
class ListingSpec:
    """How to find one content type's items on its tab."""

    content_type: ContentType
    section: str
    selectors: tuple[str, ...]
    id_patterns: tuple[re.Pattern, ...]
    fallback_title: str | None
    scrolls: int
    scroll_delay_ms: int = 1500


LISTING_SPECS = {
    ContentType.VIDEOS: ListingSpec(
        content_type=ContentType.VIDEOS,
        section="videos",
        selectors=(
            'a[href*="/videos/"]',
            'a[href*="/watch/"]',
            '[data-pagelet*="ProfileTimeline"] a[aria-label]',
        ),
        id_patterns=(re.compile(r"/videos/(\d+)"), re.compile(r"/watch/\?v=(\d+)")),
        fallback_title="Untitled Video",
        scrolls=5,
    ),
    ContentType.PHOTOS: ListingSpec(
        content_type=ContentType.PHOTOS,
        section="photos",
        selectors=('a[href*="/photo"]',),
        id_patterns=(re.compile(r"fbid=(\d+)"),),
        fallback_title=None,
        scrolls=5,
    ),
    ContentType.EVENTS: ListingSpec(
        content_type=ContentType.EVENTS,
        section="events",
        selectors=('a[href*="/events/"]',),
        id_patterns=(re.compile(r"/events/(\d+)"),),
        fallback_title="Untitled Event",
        scrolls=3,
    ),
}


def resolve_page_url(channel_handle: str) -> str:
    """Full URL passes through, numeric id -> profile.php, otherwise vanity name."""
    handle = channel_handle.strip()
    if handle.startswith("http"):
        return handle.rstrip("/")
    if handle.isdigit():
        return f"{FACEBOOK_BASE}/profile.php?id={handle}"
    return f"{FACEBOOK_BASE}/{handle.lstrip('@')}"


def section_url(base_url: str, section: str) -> str:
    if "profile.php" in base_url:
        return f"{base_url}&sk={section}"
    return f"{base_url}/{section}"


def extract_listing(snapshot: PageSnapshot, listing: ListingSpec, limit: int = MAX_ITEMS_PER_TYPE) -> list[dict[str, Any]]:
    """Pull unique items out of anchors whose href carries a numeric id."""
    items = []
    seen = set()
    for anchor in snapshot.anchors(listing.selectors):
        remote_id = None
        for pattern in listing.id_patterns:
            match = pattern.search(anchor.href)
            if match:
                remote_id = match.group(1)
                break
        if not remote_id or remote_id in seen:
            continue
        seen.add(remote_id)

        item = {"id": remote_id, "url": anchor.href, "thumbnail": anchor.image_src}
        if listing.fallback_title is not None:
            item["title"] = anchor.aria_label or anchor.text or listing.fallback_title
        items.append(item)

        if len(items) >= limit:
            break
    return items


def extract_contact(snapshot: PageSnapshot) -> dict[str, Any]:
    """Best-effort contact card from an about page."""
    contact: dict[str, Any] = {}

    page_name = snapshot.text_of("h1")
    if page_name:
        contact["pageName"] = page_name

    phone = snapshot.search_text(PHONE_RE)
    if phone:
        contact["phone"] = phone

    email = snapshot.search_text(EMAIL_RE)
    if email:
        contact["email"] = email

    for href in snapshot.links("http"):
        if not any(host in href for host in SOCIAL_HOSTS):
            contact["website"] = href
            break

    return contact


@register_scraper(Source.FACEBOOK)
class FacebookScraper(BaseScraper):

    async def _navigate(self, page, url: str) -> None:
        await navigate_with_retry(
            page,
            url,
            timeout=self.settings.navigation_timeout_ms,
            retries=self.settings.navigation_retries,
            delay_ms=self.settings.navigation_retry_delay_ms,
        )
        await page.wait_for_timeout(SETTLE_MS)

    async def extract(self, channel_handle, types=None):
        requested = [ContentType(t) for t in types] if types else list(ALL_CONTENT_TYPES)
        base_url = resolve_page_url(channel_handle)
        logger.info(f"[facebook/{channel_handle}] Resolved page URL {base_url}, types={[t.value for t in requested]}")

        async with self.browser.context() as context:
            page = await context.new_page()

            await self._navigate(page, base_url)
            marker = await detect_login_wall(page)
            if marker:
                raise AccessGatedError(
                    f"Facebook requires authentication to access {base_url} "
                    f"(login form detected: {marker}). Public scraping is not possible."
                )

            for content_type in requested:
                try:
                    raw_items = await self._collect(page, base_url, content_type)
                except Exception as e:
                    logger.warning(f"[facebook/{channel_handle}] Failed to scrape {content_type.value}: {e}")
                    continue

                logger.info(f"[facebook/{channel_handle}] Extracted {len(raw_items)} {content_type.value}")
                for raw in raw_items:
                    yield raw

    async def _collect(self, page, base_url: str, content_type: ContentType) -> list[dict[str, Any]]:
        if content_type == ContentType.CONTACTS:
            await self._navigate(page, section_url(base_url, "about"))
            snapshot = await PageSnapshot.capture(page)
            contact = extract_contact(snapshot)
            return [{"kind": ContentType.CONTACTS.value, **contact}]

        listing = LISTING_SPECS[content_type]
        await self._navigate(page, section_url(base_url, listing.section))
        await scroll_to_load(page, scrolls=listing.scrolls, delay_ms=listing.scroll_delay_ms)
        snapshot = await PageSnapshot.capture(page)
        return [{"kind": content_type.value, **item} for item in extract_listing(snapshot, listing)]

    def normalize(self, raw, channel_handle):
        kind = ContentType(raw["kind"])
        meta = {k: v for k, v in raw.items() if k != "kind"}

        if kind == ContentType.VIDEOS:
            return VideoItem(
                source=Source.FACEBOOK,
                channel_handle=channel_handle,
                remote_id=raw["id"],
                title=raw.get("title") or "Untitled Video",
                remote_url=raw["url"],
                thumbnail_source=raw.get("thumbnail"),
                raw_meta=meta,
            )
        if kind == ContentType.PHOTOS:
            return PhotoItem(
                source=Source.FACEBOOK,
                channel_handle=channel_handle,
                remote_id=raw["id"],
                remote_url=raw["url"],
                thumbnail_source=raw.get("thumbnail"),
                raw_meta=meta,
            )
        if kind == ContentType.EVENTS:
            return EventItem(
                source=Source.FACEBOOK,
                channel_handle=channel_handle,
                remote_id=raw["id"],
                title=raw.get("title") or "Untitled Event",
                remote_url=raw["url"],
                thumbnail_source=raw.get("thumbnail"),
                raw_meta=meta,
            )
        return ContactItem(
            source=Source.FACEBOOK,
            channel_handle=channel_handle,
            page_name=raw.get("pageName"),
            phone=raw.get("phone"),
            email=raw.get("email"),
            website=raw.get("website"),
            address=raw.get("address"),
            raw_meta=meta,
        )
