"""
Syndication feed parsing.

Feeds are downloaded with the shared fetcher (browser headers, sub-call
timeout) and parsed with feedparser, which handles RSS 0.9x/1.0/2.0 and
Atom. Each entry becomes a FeedItem keyed by its link, falling back to guid.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup
import feedparser
import httpx

from ..config import FetchConfig
from ..core.errors import FetchFailed
from ..core.types import FeedItem
from ..fetch.fetcher import fetch_url
from ..utils.logging import log_event


logger = logging.getLogger(__name__)

_ENCLOSURE_IMAGE_RE = re.compile(r"\.(jpg|png|webp)$", re.IGNORECASE)


def fetch_feed(
    feed_url: str,
    cfg: FetchConfig | None = None,
    transport: httpx.BaseTransport | None = None,
) -> list[FeedItem]:
    """Download and parse a feed.

    Raises:
        FetchFailed: The feed could not be downloaded
    """
    cfg = cfg or FetchConfig()
    result = fetch_url(feed_url, cfg, timeout=cfg.sub_timeout_seconds, transport=transport)
    if not result.ok:
        raise FetchFailed(feed_url, result.error or "empty response", result.status_code)
    return parse_feed(result.content if result.content is not None else (result.text or ""))


def parse_feed(data: bytes | str) -> list[FeedItem]:
    """Parse feed XML into FeedItems, keeping entries without a URL out."""
    parsed = feedparser.parse(data)
    if parsed.bozo and not parsed.entries:
        log_event(logger, "Feed could not be parsed", event="feed_parse_error", error=str(parsed.get("bozo_exception")))
        return []

    items: list[FeedItem] = []
    for entry in parsed.entries:
        items.append(_parse_entry(entry))
    return items


def _parse_entry(entry) -> FeedItem:
    url = (entry.get("link") or entry.get("id") or "").strip()
    content_html = ""
    contents = entry.get("content") or []
    if contents:
        content_html = contents[0].get("value") or ""
    summary_html = entry.get("summary") or ""
    if not content_html:
        content_html = summary_html

    return FeedItem(
        title=(entry.get("title") or "").strip(),
        url=url,
        content_html=content_html,
        summary=_plain_text(summary_html),
        author=(entry.get("author") or "").strip() or None,
        published=entry.get("published") or entry.get("updated"),
        enclosure_url=_first_enclosure(entry),
    )


def _first_enclosure(entry) -> str | None:
    for enclosure in entry.get("enclosures") or []:
        href = (enclosure.get("href") or enclosure.get("url") or "").strip()
        if href:
            return href
    return None


def item_image_url(item: FeedItem) -> str | None:
    """Image for a feed item: an image enclosure, else the first <img> in its HTML."""
    if item.enclosure_url and _ENCLOSURE_IMAGE_RE.search(item.enclosure_url):
        return item.enclosure_url
    if not item.content_html:
        return None
    soup = BeautifulSoup(item.content_html, "html.parser")
    img = soup.find("img", src=True)
    if img is None:
        return None
    return img["src"].strip() or None


def _plain_text(html: str) -> str:
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text(" ", strip=True)
