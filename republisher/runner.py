"""
Pipeline orchestration for URL and feed imports.

A URL import runs every stage in order:
1. Fetch and extract the page (profile selectors, then generic fallback)
2. Optionally rewrite the body, taking SEO title, description and tags
3. Find an illustration (page image, else stock search) and place it
4. Insert internal links
5. Return the payload (preview) or hand it to the store (save)

A feed import parses the feed, skips known items and stores each new one
unpublished, optionally replacing the feed content with a full scrape.
Fetch, extraction, rewrite and image failures never abort a run; they
become warnings or per-item errors.
"""

from __future__ import annotations

from dataclasses import dataclass
import html as html_lib
import logging
from urllib.parse import urlparse

import httpx
from rich.console import Console

from .cache import FailedUrlCache
from .config import AppConfig
from .core.dedup import dedup_items
from .core.errors import ExtractionInsufficient, FetchFailed, RewriteFailed, StorageError
from .core.text import to_slug, truncate_description
from .core.types import ArticlePayload, FeedImportResult, FeedItem, ImportResult
from .feeds.parser import fetch_feed, item_image_url
from .fetch.extractor import ArticleExtractor, Scraper
from .fetch.images import (
    ImageSearchProvider,
    PageImageFinder,
    UnsplashImageProvider,
    caption_for_image,
    place_image,
    search_stock_images,
)
from .fetch.markdown import to_markdown
from .linking.engine import KeywordLinker
from .llm.tracing import set_span_output, start_span
from .rewrite.orchestrator import RewriteOrchestrator
from .storage import ArticleStore
from .utils.logging import log_event


logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Collaborators shared by the imports of one run.

    Attributes:
        cfg: Application configuration
        scraper: Fetch + extract stage
        image_finder: Page image discovery
        linker: Internal link insertion
        rewriter: Rewrite orchestrator; None disables rewriting and captions
        stock_provider: Stock image backend; None disables stock search
        store: Storage collaborator; required for saving and feed de-duplication
    """

    cfg: AppConfig
    scraper: Scraper
    image_finder: PageImageFinder
    linker: KeywordLinker
    rewriter: RewriteOrchestrator | None = None
    stock_provider: ImageSearchProvider | None = None
    store: ArticleStore | None = None


def build_context(
    cfg: AppConfig,
    store: ArticleStore | None = None,
    llm_logger: logging.Logger | None = None,
    transport: httpx.BaseTransport | None = None,
) -> PipelineContext:
    failed_cache = FailedUrlCache(
        ttl_seconds=cfg.images.failed_url_ttl_seconds,
        max_entries=cfg.images.failed_url_max_entries,
    )
    stock_provider = None
    if cfg.images.stock_search:
        stock_provider = UnsplashImageProvider(cfg.images, cfg.fetch, transport=transport)
    return PipelineContext(
        cfg=cfg,
        scraper=Scraper(cfg.fetch, ArticleExtractor(cfg.extract), transport=transport),
        image_finder=PageImageFinder(cfg.images, cfg.fetch, failed_cache, transport=transport),
        linker=KeywordLinker(
            cfg.linking,
            cfg.site,
            related_lookup=store.find_related_by_tags if store is not None else None,
        ),
        rewriter=RewriteOrchestrator.from_config(cfg, llm_logger=llm_logger, transport=transport),
        stock_provider=stock_provider,
        store=store,
    )


def import_url(
    url: str,
    ctx: PipelineContext,
    category: str | None = None,
    rewrite: bool = False,
    provider: str | None = None,
    tone: str | None = None,
    save: bool = False,
) -> ImportResult:
    """Import one article from a URL.

    Args:
        url: Article URL
        ctx: Pipeline collaborators
        category: Article category, defaults to the site default
        rewrite: Run the AI rewrite when the content is long enough
        provider: Requested rewrite provider
        tone: Rewrite tone
        save: Persist through the store; otherwise only preview

    Returns:
        ImportResult with the payload, or human-readable errors

    Raises:
        ProviderNotConfigured: Rewrite requested but no provider has credentials
    """
    cfg = ctx.cfg
    if not _is_http_url(url):
        return ImportResult(success=False, errors=["Invalid URL format"])
    if save and ctx.store is None:
        return ImportResult(success=False, errors=["No article store configured for saving"])

    category = category or cfg.site.default_category
    warnings: list[str] = []

    with start_span(
        "republisher.import_url",
        kind="chain",
        input_value={"url": url},
        attributes={"import.rewrite": rewrite, "import.save": save},
    ) as span:
        log_event(logger, "URL import start", event="import_url_start", url=url, rewrite=rewrite, save=save)
        try:
            article, page_html = ctx.scraper.scrape(url)
        except FetchFailed as exc:
            log_event(logger, "URL import failed", event="import_url_failed", url=url, error=str(exc))
            return ImportResult(success=False, errors=[f"Failed to scrape URL: {exc.reason}"])
        except ExtractionInsufficient:
            log_event(logger, "URL import failed", event="import_url_failed", url=url, error="extraction")
            return ImportResult(success=False, errors=["Could not extract title or content from URL"])

        title = html_lib.unescape(article.title)
        content = article.content
        description = truncate_description(article.excerpt or content)
        image_url = ctx.image_finder.find_main_image(url, page_html)
        tags: list[str] = []

        if rewrite:
            if ctx.rewriter is None:
                warnings.append("AI rewrite is not available, using original content")
            elif len(content) <= cfg.rewrite.min_input_chars:
                warnings.append("Content too short for AI rewrite, using original content")
            else:
                try:
                    result = ctx.rewriter.rewrite(title, content, tone=tone, provider=provider)
                except RewriteFailed as exc:
                    warnings.append(f"AI rewrite failed, using original content: {exc}")
                else:
                    content = result.rewritten_content
                    title = result.seo_title or title
                    description = result.seo_description or description
                    tags = result.tags

        slug = to_slug(title)
        if save and ctx.store.slug_exists(slug):
            return ImportResult(
                success=False,
                errors=[f'Slug "{slug}" already exists. Please edit the title.'],
            )

        if image_url is None:
            image_url = _stock_image(title, ctx)
        if image_url:
            caption_source = ctx.rewriter.caption if ctx.rewriter and cfg.images.generate_caption else None
            caption, alt = caption_for_image(title, caption_source)
            content = place_image(content, image_url, alt, caption)
        else:
            warnings.append("No image found for this article")

        content = ctx.linker.add_links(content, title, None, tags, category, slug)

        payload = ArticlePayload(
            title=title,
            slug=slug,
            description=description,
            content=content,
            image_url=image_url,
            category=category,
            author=cfg.site.default_author,
            tags=tags,
            published=False,
            source_url=url,
        )

        saved = False
        if save:
            try:
                ctx.store.save(payload)
            except StorageError as exc:
                return ImportResult(success=False, article=payload, errors=[str(exc)], warnings=warnings)
            saved = True

        log_event(
            logger,
            "URL import complete",
            event="import_url_complete",
            url=url,
            slug=slug,
            chars=len(content),
            saved=saved,
            warnings=len(warnings),
        )
        set_span_output(span, {"slug": slug, "saved": saved, "chars": len(content)})
        return ImportResult(success=True, article=payload, warnings=warnings, saved=saved)


def import_feed(
    feed_url: str,
    ctx: PipelineContext,
    name: str,
    category: str | None = None,
    scrape_full: bool = False,
    max_items: int | None = None,
    save: bool = True,
) -> FeedImportResult:
    """Import new items from a syndication feed.

    Args:
        feed_url: Feed URL
        ctx: Pipeline collaborators
        name: Feed display name, used as the author
        category: Category for every imported article
        scrape_full: Replace feed content with a full page scrape when longer
        max_items: Items processed per run, defaults to the feed config
        save: Persist new items through the store

    Returns:
        FeedImportResult with counters and per-item errors
    """
    cfg = ctx.cfg
    category = category or cfg.site.default_category
    limit = max_items if max_items is not None else cfg.feed.max_items
    result = FeedImportResult(feed_name=name)

    with start_span(
        "republisher.import_feed",
        kind="chain",
        input_value={"feed_url": feed_url, "name": name},
        attributes={"feed.scrape_full": scrape_full, "feed.max_items": limit},
    ) as span:
        try:
            items = fetch_feed(feed_url, cfg.fetch, transport=ctx.scraper.transport)
        except FetchFailed as exc:
            result.errors.append(f"Failed to fetch RSS: {exc.reason}")
            log_event(logger, "Feed fetch failed", event="feed_fetch_failed", url=feed_url, error=str(exc))
            return result

        result.total_items = len(items)
        batch = items[:limit]
        if cfg.feed.dedup_enabled:
            unique = dedup_items(batch, cfg.feed.title_similarity_threshold)
            result.skipped_items += len(batch) - len(unique)
            batch = unique

        for item in batch:
            try:
                if not item.url:
                    result.skipped_items += 1
                    continue
                if ctx.store is not None and ctx.store.has_source_url(item.url):
                    result.skipped_items += 1
                    continue

                payload = _feed_payload(item, ctx, name, category, scrape_full)
                if save and ctx.store is not None:
                    try:
                        ctx.store.save(payload)
                    except StorageError as exc:
                        result.errors.append(f'Failed to create article "{payload.title}": {exc}')
                        continue
                result.articles.append(payload)
                result.new_articles += 1
            except Exception as exc:  # noqa: BLE001
                log_event(logger, "Feed item failed", event="feed_item_failed", url=item.url, error=str(exc))
                result.errors.append(f"Error processing item: {exc}")

        result.success = True
        log_event(
            logger,
            "Feed import complete",
            event="import_feed_complete",
            feed=name,
            total=result.total_items,
            new=result.new_articles,
            skipped=result.skipped_items,
            errors=len(result.errors),
        )
        set_span_output(
            span,
            {"new": result.new_articles, "skipped": result.skipped_items, "errors": len(result.errors)},
        )
    return result


def render_feed_summary(result: FeedImportResult, console: Console) -> None:
    console.print(
        f"[bold]{result.feed_name}[/bold]: "
        f"total={result.total_items}, new={result.new_articles}, "
        f"skipped={result.skipped_items}, errors={len(result.errors)}"
    )


def _feed_payload(
    item: FeedItem,
    ctx: PipelineContext,
    name: str,
    category: str,
    scrape_full: bool,
) -> ArticlePayload:
    title = item.title or "Untitled"
    description = item.summary
    content = to_markdown(item.content_html)
    image_url = item_image_url(item)
    author = name

    if scrape_full:
        try:
            article, page_html = ctx.scraper.scrape(item.url)
        except (FetchFailed, ExtractionInsufficient) as exc:
            # Keep the feed content.
            log_event(logger, "Full scrape failed", event="feed_scrape_failed", url=item.url, error=str(exc))
        else:
            if len(article.content) > len(content):
                content = article.content
            if article.title:
                title = html_lib.unescape(article.title)
            if len(article.excerpt) > len(description):
                description = article.excerpt
            if article.author:
                author = f"{article.author} ({name})"
            if not image_url:
                image_url = ctx.image_finder.find_main_image(item.url, page_html)

    return ArticlePayload(
        title=title,
        slug=to_slug(title),
        description=description[: ctx.cfg.feed.description_chars],
        content=content,
        image_url=image_url,
        category=category,
        author=author,
        tags=[],
        published=False,
        source_url=item.url,
    )


def _stock_image(title: str, ctx: PipelineContext) -> str | None:
    if ctx.stock_provider is None:
        return None
    translate = None
    if ctx.rewriter is not None and ctx.cfg.images.translate_keywords:
        translate = ctx.rewriter.translate_keywords
    images = search_stock_images(title, ctx.stock_provider, translate, ctx.cfg.images.per_page)
    if not images:
        return None
    return images[0].url


def _is_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
