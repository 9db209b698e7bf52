"""
Site-aware article extraction with generic fallback strategies.

Extraction runs in two stages:
1. Profile path: for hostnames with a SiteSelectorProfile, strip noise,
   take the first content selector with enough HTML, clean it and convert
   it to Markdown. Preferred whenever it yields enough content.
2. Generic path: a chain of extraction methods over the full page:
   - readability: Mozilla's readability algorithm (default)
   - trafilatura: Purpose-built article extractor
   - bs4: <article>/<main>/<body> through the Markdown converter
   The first candidate above the length floor wins; otherwise the longest
   non-empty candidate is returned.

Failures never raise out of ``ArticleExtractor.extract``; they return None.
"""

from __future__ import annotations

import logging
import re
from typing import Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag
import httpx
from readability import Document
import trafilatura

from ..config import ExtractConfig, FetchConfig
from ..core.errors import ExtractionInsufficient, FetchFailed
from ..core.types import ScrapedArticle, SiteSelectorProfile
from ..utils.logging import log_event
from .fetcher import fetch_url
from .markdown import clean_markdown, is_valid_image_src, to_markdown
from .sites import build_profiles, lookup_profile, normalize_host


logger = logging.getLogger(__name__)

_PROFILE_NOISE = (
    'script, style, iframe, .advertisement, .ads, .banner, [class*="ad-"], [id*="ad-"]'
)
_CLEAN_NOISE = (
    "script, style, iframe, noscript, "
    '.advertisement, .ads, .banner, [class*="ad-"], [id*="ad-"], '
    ".social-share, .share-buttons, .related-articles, .related-news, "
    '.comment, .comments, table[id*="adsense"]'
)
_LAZY_SRC_ATTRS = ("data-src", "data-original", "data-lazy-src")
_MD_IMAGE_RE = re.compile(r'!\[[^\]]*\]\(\s*([^)\s]*)(?:\s+"[^"]*")?\s*\)')


class ArticleExtractor:
    """Turn fetched HTML into a ScrapedArticle.

    Attributes:
        cfg: Extraction thresholds and method order
        profiles: Hostname -> SiteSelectorProfile table
    """

    def __init__(
        self,
        cfg: ExtractConfig | None = None,
        profiles: dict[str, SiteSelectorProfile] | None = None,
    ):
        self.cfg = cfg or ExtractConfig()
        self.profiles = profiles if profiles is not None else build_profiles(self.cfg.site_profiles)

    def extract(self, url: str, html: str) -> ScrapedArticle | None:
        """Extract title, markdown content and excerpt from a page.

        Args:
            url: Page URL, used for profile lookup and resolving relative links
            html: Raw page HTML

        Returns:
            ScrapedArticle, or None when neither path produces content
        """
        if not html or not html.strip():
            return None

        profile = lookup_profile(url, self.profiles)
        if profile is not None:
            try:
                article = self._extract_with_profile(url, html, profile)
            except Exception as exc:  # noqa: BLE001
                log_event(logger, "Profile extraction error", event="extract_profile_error", url=url, error=str(exc))
                article = None
            if article is not None:
                return article
            log_event(logger, "Profile extraction insufficient, falling back", event="extract_fallback", url=url)

        return self._extract_generic(url, html)

    def _extract_with_profile(
        self, url: str, html: str, profile: SiteSelectorProfile
    ) -> ScrapedArticle | None:
        soup = BeautifulSoup(html, "html.parser")
        for selector in profile.remove_selectors:
            _remove_all(soup, selector)
        _remove_all(soup, _PROFILE_NOISE)

        title = ""
        if profile.title_selector:
            node = soup.select_one(profile.title_selector)
            if node is not None:
                title = node.get_text(" ", strip=True)
        if not title:
            title = _first_text(soup, "h1") or _first_text(soup, "title")

        content_html = ""
        matched = None
        for selector in profile.content_selectors:
            node = soup.select_one(selector)
            if node is None:
                continue
            content_html = node.decode_contents()
            if len(content_html) >= self.cfg.min_selector_html:
                matched = selector
                break
        if matched is None:
            return None

        cleaned = clean_html(content_html, url)
        if len(cleaned) < self.cfg.min_profile_html:
            return None

        markdown = to_markdown(cleaned)
        if not markdown:
            return None

        log_event(
            logger,
            "Extracted with site profile",
            event="extract_profile",
            url=url,
            selector=matched,
            chars=len(markdown),
        )
        return ScrapedArticle(
            title=title or "Untitled",
            content=markdown,
            excerpt=markdown[: self.cfg.excerpt_chars].strip(),
            site_name=normalize_host(url),
        )

    def _extract_generic(self, url: str, html: str) -> ScrapedArticle | None:
        order = [self.cfg.primary] + [name for name in self.cfg.fallback if name != self.cfg.primary]
        best: tuple[str, str] | None = None
        chosen: tuple[str, str] | None = None
        for method in order:
            extractor = _get_extractor(method)
            if extractor is None:
                continue
            try:
                markdown = extractor(html) or ""
            except Exception as exc:  # noqa: BLE001
                log_event(logger, "Extractor failed", event="extract_method_error", url=url, method=method, error=str(exc))
                continue
            if not markdown:
                continue
            if len(markdown) >= self.cfg.min_generic_chars:
                chosen = (method, markdown)
                break
            if best is None or len(markdown) > len(best[1]):
                best = (method, markdown)

        result = chosen or best
        if result is None:
            log_event(logger, "All extractors failed", event="extract_failed", url=url)
            return None

        method, markdown = result
        meta = _page_meta(html)
        excerpt = meta.get("description") or markdown[: self.cfg.excerpt_chars].strip()
        log_event(
            logger,
            "Extracted with generic method",
            event="extract_generic",
            url=url,
            method=method,
            chars=len(markdown),
            below_floor=chosen is None,
        )
        return ScrapedArticle(
            title=meta.get("title") or "Untitled",
            content=markdown,
            excerpt=excerpt,
            author=meta.get("author"),
            published_time=meta.get("published_time"),
            site_name=meta.get("site_name") or normalize_host(url),
        )


class Scraper:
    """Fetch a URL and extract it, raising pipeline errors on failure."""

    def __init__(
        self,
        fetch_cfg: FetchConfig | None = None,
        extractor: ArticleExtractor | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.fetch_cfg = fetch_cfg or FetchConfig()
        self.extractor = extractor or ArticleExtractor()
        self.transport = transport

    def fetch_html(self, url: str) -> str:
        result = fetch_url(url, self.fetch_cfg, transport=self.transport)
        if not result.ok:
            raise FetchFailed(url, result.error or "empty response", result.status_code)
        return result.text or ""

    def scrape(self, url: str, html: str | None = None) -> tuple[ScrapedArticle, str]:
        """Return the extracted article and the HTML it came from.

        Raises:
            FetchFailed: The page could not be downloaded
            ExtractionInsufficient: No extraction path produced content
        """
        if html is None:
            html = self.fetch_html(url)
        article = self.extractor.extract(url, html)
        if article is None:
            raise ExtractionInsufficient(url)
        return article, html


def scrape_full_article(
    url: str,
    fetch_cfg: FetchConfig | None = None,
    extract_cfg: ExtractConfig | None = None,
    transport: httpx.BaseTransport | None = None,
) -> ScrapedArticle | None:
    """Fetch and extract an article; None on any failure."""
    scraper = Scraper(fetch_cfg, ArticleExtractor(extract_cfg), transport=transport)
    try:
        article, _ = scraper.scrape(url)
    except (FetchFailed, ExtractionInsufficient) as exc:
        log_event(logger, "Scrape failed", event="scrape_failed", url=url, error=str(exc))
        return None
    return article


def clean_html(html: str, base_url: str) -> str:
    """Prepare profile-selected HTML for Markdown conversion.

    Removes ads, share and comment blocks, resolves relative image and link
    URLs against ``base_url``, drops broken images, unwraps ``<figure>``
    (the figcaption becomes the image title) and drops empty blocks.

    Args:
        html: Inner HTML of the selected content element
        base_url: URL of the page the HTML came from

    Returns:
        Cleaned HTML string
    """
    soup = BeautifulSoup(html, "html.parser")
    _remove_all(soup, _CLEAN_NOISE)

    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if not is_valid_image_src(src):
            src = next(
                (img.get(attr).strip() for attr in _LAZY_SRC_ATTRS if is_valid_image_src(img.get(attr))),
                "",
            )
        if not is_valid_image_src(src):
            img.decompose()
            continue
        img["src"] = _absolute_url(src, base_url)
        if not img.get("alt"):
            img["alt"] = "Image"

    for link in soup.find_all("a"):
        href = (link.get("href") or "").strip()
        if href and not href.startswith(("#", "mailto:", "javascript:", "tel:")):
            link["href"] = _absolute_url(href, base_url)

    for figure in soup.find_all("figure"):
        if figure.decomposed:
            continue
        img = figure.find("img")
        if img is None:
            figure.decompose()
            continue
        caption = figure.find("figcaption")
        caption_text = caption.get_text(" ", strip=True) if caption is not None else ""
        if caption_text:
            img["title"] = caption_text
        figure.replace_with(img.extract())

    for block in soup.find_all(["p", "div"]):
        if block.decomposed:
            continue
        if not block.get_text(strip=True) and block.find("img") is None:
            block.decompose()

    return str(soup)


def _absolute_url(value: str, base_url: str) -> str:
    if value.startswith("//"):
        return "https:" + value
    return urljoin(base_url, value)


def _remove_all(soup: BeautifulSoup, selector: str) -> None:
    for node in soup.select(selector):
        if not node.decomposed:
            node.decompose()


def _first_text(soup: BeautifulSoup, name: str) -> str:
    node = soup.find(name)
    if node is None:
        return ""
    return node.get_text(" ", strip=True)


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    node = soup.find("meta", attrs=attrs)
    if not isinstance(node, Tag):
        return None
    content = (node.get("content") or "").strip()
    return content or None


def _page_meta(html: str) -> dict[str, str | None]:
    soup = BeautifulSoup(html, "html.parser")
    title = (
        _meta_content(soup, property="og:title")
        or _first_text(soup, "title")
        or _first_text(soup, "h1")
    )
    return {
        "title": title or None,
        "description": _meta_content(soup, property="og:description")
        or _meta_content(soup, name="description"),
        "author": _meta_content(soup, name="author") or _meta_content(soup, property="article:author"),
        "published_time": _meta_content(soup, property="article:published_time"),
        "site_name": _meta_content(soup, property="og:site_name"),
    }


def _get_extractor(name: str) -> Callable[[str], str | None] | None:
    """Get the extractor function for a given method name.

    Args:
        name: The name of the extraction method ("trafilatura", "readability", "bs4")

    Returns:
        The corresponding extractor function, or None if name is unrecognized
    """
    if name == "readability":
        return _extract_readability
    if name == "trafilatura":
        return _extract_trafilatura
    if name == "bs4":
        return _extract_bs4
    return None


def _extract_readability(html: str) -> str | None:
    """Extract the main content block with Mozilla's readability algorithm."""
    doc = Document(html)
    return to_markdown(doc.summary(html_partial=True))


def _extract_trafilatura(html: str) -> str | None:
    """Extract article content using trafilatura's markdown output.

    Trafilatura emits image markdown as-is, so broken image sources are
    filtered before cleanup.
    """
    text = trafilatura.extract(
        html,
        output_format="markdown",
        include_images=True,
        include_links=True,
        include_tables=True,
        include_comments=False,
    )
    if not text:
        return None
    return clean_markdown(_drop_invalid_image_markdown(text))


def _extract_bs4(html: str) -> str | None:
    """Convert the <article>, <main> or <body> element; last resort."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "nav", "header", "footer", "aside", "form"]):
        if not tag.decomposed:
            tag.decompose()
    root = soup.find("article") or soup.find("main") or soup.body or soup
    return to_markdown(str(root))


def _drop_invalid_image_markdown(text: str) -> str:
    def replace(match: re.Match) -> str:
        return match.group(0) if is_valid_image_src(match.group(1)) else ""

    return _MD_IMAGE_RE.sub(replace, text)
