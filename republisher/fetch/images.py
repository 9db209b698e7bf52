"""
Image discovery for imported articles.

Page images are tried first, in priority order: Open Graph, Twitter card,
the first in-article image, then the first image whose size hints look
large. When the page offers nothing, a stock image search can be run from
the title keywords. Every path is best-effort: failures yield None or an
empty list, never an exception.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import os
import re
from typing import Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag
import httpx

from ..cache import FailedUrlCache
from ..config import FetchConfig, ImageConfig
from ..core.text import IMAGE_STOP_WORDS
from ..core.types import StockImage
from ..utils.logging import log_event
from .fetcher import fetch_url
from .markdown import is_valid_image_src


logger = logging.getLogger(__name__)

_ARTICLE_IMG_SELECTOR = "article img, .article-content img, .post-content img"
_CONTENT_ROOT_SELECTOR = "article, .article-content, .post-content, main"
_LAZY_SRC_ATTRS = ("data-src", "data-original", "data-lazy-src")
_SKIP_IMAGE_RE = re.compile(r"\.svg(\?|$)|logo|icon|avatar|sprite|pixel", re.IGNORECASE)
_DIMENSION_RE = re.compile(r"\s*(\d+)")
_KEYWORD_PUNCT_RE = re.compile(r"[?!.,;:'\"]")
_PLACEHOLDER_RE = re.compile(r"\[IMAGE_PLACEHOLDER_\d+\]")
_H2_RE = re.compile(r"^##\s.+$", re.MULTILINE)


class PageImageFinder:
    """Find images on a page, fetching it when HTML is not supplied.

    Attributes:
        cfg: Size thresholds and default limits
        fetch_cfg: Fetch settings; page fetches use the sub-call timeout
        failed_cache: Pages that recently failed are not fetched again
    """

    def __init__(
        self,
        cfg: ImageConfig | None = None,
        fetch_cfg: FetchConfig | None = None,
        failed_cache: FailedUrlCache | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.cfg = cfg or ImageConfig()
        self.fetch_cfg = fetch_cfg or FetchConfig()
        self.failed_cache = failed_cache
        self.transport = transport

    def find_main_image(self, url: str, html: str | None = None) -> str | None:
        soup = self._load(url, html)
        if soup is None:
            return None

        for attrs in (
            {"property": "og:image"},
            {"name": "twitter:image"},
            {"property": "twitter:image"},
        ):
            node = soup.find("meta", attrs=attrs)
            if isinstance(node, Tag):
                content = (node.get("content") or "").strip()
                if is_valid_image_src(content):
                    return _absolute(content, url)

        for img in soup.select(_ARTICLE_IMG_SELECTOR):
            src = _image_src(img)
            if src:
                return _absolute(src, url)

        for img in soup.find_all("img"):
            src = _image_src(img)
            if src and self._looks_large(img):
                return _absolute(src, url)

        log_event(logger, "No page image found", event="image_not_found", url=url)
        return None

    def find_content_images(self, url: str, html: str | None = None, max_images: int | None = None) -> list[str]:
        limit = self.cfg.max_content_images if max_images is None else max_images
        if limit <= 0:
            return []
        soup = self._load(url, html)
        if soup is None:
            return []

        root = soup.select_one(_CONTENT_ROOT_SELECTOR) or soup
        found: list[str] = []
        for img in root.find_all("img"):
            src = _image_src(img)
            if not src or _SKIP_IMAGE_RE.search(src):
                continue
            absolute = _absolute(src, url)
            if absolute in found:
                continue
            found.append(absolute)
            if len(found) >= limit:
                break
        return found

    def _looks_large(self, img: Tag) -> bool:
        width = _dimension(img.get("width"))
        height = _dimension(img.get("height"))
        width_pass = width is None or width > self.cfg.min_width
        height_pass = height is None or height > self.cfg.min_height
        return width_pass or height_pass

    def _load(self, url: str, html: str | None) -> BeautifulSoup | None:
        if html is None:
            if self.failed_cache is not None and self.failed_cache.is_failed(url):
                log_event(logger, "Skipping recently failed page", event="image_page_skipped", url=url)
                return None
            result = fetch_url(
                url,
                self.fetch_cfg,
                timeout=self.fetch_cfg.sub_timeout_seconds,
                transport=self.transport,
            )
            if not result.ok:
                if self.failed_cache is not None:
                    self.failed_cache.mark_failed(url)
                return None
            html = result.text or ""
        if not html.strip():
            return None
        return BeautifulSoup(html, "html.parser")


def find_main_image(url: str, html: str | None = None, **kwargs) -> str | None:
    """Return the representative image URL of a page, or None."""
    return PageImageFinder(**kwargs).find_main_image(url, html)


def find_content_images(url: str, html: str | None = None, max_images: int = 5, **kwargs) -> list[str]:
    """Return up to ``max_images`` distinct in-content image URLs."""
    return PageImageFinder(**kwargs).find_content_images(url, html, max_images)


class ImageSearchProvider(ABC):
    """Stock image search backend."""

    @abstractmethod
    def search(self, query: str, count: int) -> list[StockImage]:
        raise NotImplementedError


class UnsplashImageProvider(ImageSearchProvider):
    """Unsplash photo search; empty result on missing key or any error."""

    def __init__(
        self,
        cfg: ImageConfig | None = None,
        fetch_cfg: FetchConfig | None = None,
        access_key: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.cfg = cfg or ImageConfig()
        self.fetch_cfg = fetch_cfg or FetchConfig()
        self.access_key = access_key or os.getenv(self.cfg.unsplash_access_key_env)
        self.transport = transport

    def search(self, query: str, count: int) -> list[StockImage]:
        if not self.access_key:
            log_event(logger, "Unsplash key missing, skipping image search", event="stock_search_skipped")
            return []
        if not query.strip():
            return []

        params = {
            "query": query,
            "per_page": str(count),
            "orientation": "landscape",
            "content_filter": "high",
        }
        headers = {"Authorization": f"Client-ID {self.access_key}", "Accept-Version": "v1"}
        try:
            with httpx.Client(
                timeout=self.fetch_cfg.sub_timeout_seconds,
                trust_env=self.fetch_cfg.trust_env,
                transport=self.transport,
            ) as client:
                resp = client.get(f"{self.cfg.unsplash_base_url}/search/photos", params=params, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log_event(logger, "Unsplash search failed", event="stock_search_failed", query=query, error=str(exc))
            return []

        images: list[StockImage] = []
        for item in data.get("results") or []:
            url = ((item.get("urls") or {}).get("regular") or "").strip()
            if not url:
                continue
            user = (item.get("user") or {}).get("name") or "Unknown"
            images.append(
                StockImage(
                    url=url,
                    alt_text=item.get("alt_description") or item.get("description") or query,
                    attribution=f"Photo by {user} on Unsplash",
                )
            )
        log_event(logger, "Unsplash search done", event="stock_search", query=query, results=len(images))
        return images


def extract_image_keywords(title: str) -> str:
    """Reduce a title to at most five meaningful words for image search."""
    cleaned = _KEYWORD_PUNCT_RE.sub("", title)
    words = [
        word
        for word in cleaned.lower().split()
        if len(word) > 2 and word not in IMAGE_STOP_WORDS
    ]
    keywords = " ".join(words[:5])
    if len(keywords) < 10:
        keywords = cleaned.strip()
    return keywords


def search_stock_images(
    title: str,
    provider: ImageSearchProvider,
    translate: Callable[[str], str | None] | None = None,
    count: int = 3,
) -> list[StockImage]:
    """Search stock images for a title; best-effort.

    Args:
        title: Article title
        provider: Stock image backend
        translate: Optional keyword translator (usually a text-generation call)
        count: Number of results requested

    Returns:
        Stock images, empty when anything fails
    """
    keywords = extract_image_keywords(title)
    query = keywords
    if translate is not None:
        try:
            translated = translate(keywords)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, "Keyword translation failed", event="keyword_translate_failed", error=str(exc))
            translated = None
        if translated and translated.strip():
            query = translated.strip().splitlines()[0].strip().strip("\"'")
    try:
        return provider.search(query, count)
    except Exception as exc:  # noqa: BLE001
        log_event(logger, "Stock image search error", event="stock_search_failed", query=query, error=str(exc))
        return []


def caption_for_image(title: str, generate: Callable[[str], str | None] | None = None) -> tuple[str, str]:
    """Return ``(caption, alt)`` for an article's illustration.

    The generator is asked for ``CAPTION:`` and ``ALT:`` lines. Without a
    generator, on errors or on an empty answer, the caption falls back to
    "Hình minh họa: <topic>" where topic is the title before its first colon.
    """
    topic = title.split(":")[0].strip()
    fallback = (f"Hình minh họa: {topic}", topic)
    if generate is None:
        return fallback
    try:
        response = generate(title)
    except Exception as exc:  # noqa: BLE001
        log_event(logger, "Caption generation failed", event="caption_failed", error=str(exc))
        return fallback
    if not response or not response.strip():
        return fallback

    caption_match = re.search(r"CAPTION:\s*(.+)", response, re.IGNORECASE)
    alt_match = re.search(r"ALT:\s*(.+)", response, re.IGNORECASE)
    if caption_match and alt_match:
        return _strip_quotes(caption_match.group(1)), _strip_quotes(alt_match.group(1))
    return response.strip().split("\n")[0].strip() or topic, topic


def place_image(content: str, image_url: str, alt: str, caption: str) -> str:
    """Insert an illustration into markdown content.

    ``[IMAGE_PLACEHOLDER_1]`` is replaced when present; otherwise the image
    goes after the first ``## `` heading. Content without either, or that
    already shows ``image_url``, gets no inline image. Remaining placeholders
    are removed.
    """
    alt = alt.replace("[", "").replace("]", "")
    block = f"![{alt}]({image_url})\n*{caption}*"
    match = _H2_RE.search(content)
    if image_url in content:
        log_event(logger, "Image already in content", event="image_present", url=image_url)
    elif "[IMAGE_PLACEHOLDER_1]" in content:
        content = content.replace("[IMAGE_PLACEHOLDER_1]", f"\n\n{block}\n\n", 1)
    elif match is not None:
        head, tail = content[: match.end()], content[match.end() :].lstrip("\n")
        content = f"{head}\n\n{block}\n\n{tail}"
    content = _PLACEHOLDER_RE.sub("", content)
    return re.sub(r"\n{3,}", "\n\n", content).strip()


def _image_src(img: Tag) -> str | None:
    src = (img.get("src") or "").strip()
    if is_valid_image_src(src):
        return src
    for attr in _LAZY_SRC_ATTRS:
        value = (img.get(attr) or "").strip()
        if is_valid_image_src(value):
            return value
    return None


def _absolute(src: str, base_url: str) -> str:
    if src.startswith("//"):
        return "https:" + src
    return urljoin(base_url, src)


def _dimension(value) -> int | None:
    if value is None:
        return None
    match = _DIMENSION_RE.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


def _strip_quotes(value: str) -> str:
    return re.sub(r"^[\"']|[\"']$", "", value.strip()).strip()
