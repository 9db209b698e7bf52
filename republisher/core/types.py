"""
Core data types for the republishing pipeline.

This module defines the data structures passed between pipeline stages:
- ScrapedArticle: Clean article content produced by the extractor
- SiteSelectorProfile: Per-domain extraction selectors
- RewriteRequest / RewriteResult: Input and output of the rewrite stage
- TagLink / KeywordLinkPlan: Derived state of the linking engine
- StockImage: Result of a stock image search
- FeedItem: One parsed syndication feed entry
- ArticlePayload: Candidate article handed to the storage collaborator
- ImportResult / FeedImportResult: User-facing outcome of an import run
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ScrapedArticle:
    """Article content produced by the extractor.

    Attributes:
        title: Article headline
        content: Article body as markdown
        excerpt: Short prefix of the body (or the page description)
        author: Byline when the page exposes one
        published_time: Publication timestamp when the page exposes one
        site_name: Hostname or publication name of the source
    """

    title: str
    content: str
    excerpt: str
    author: str | None = None
    published_time: str | None = None
    site_name: str | None = None


@dataclass(frozen=True)
class SiteSelectorProfile:
    """Selectors for one supported news domain.

    Attributes:
        content_selectors: CSS selectors tried in order for the article body
        title_selector: CSS selector for the headline
        remove_selectors: CSS selectors of elements stripped before extraction
    """

    content_selectors: tuple[str, ...]
    title_selector: str | None = None
    remove_selectors: tuple[str, ...] = ()


@dataclass
class RewriteRequest:
    title: str
    content: str
    tone: str = "professional"
    provider: str = "google"


@dataclass
class RewriteResult:
    """Outcome of a successful rewrite.

    Attributes:
        rewritten_content: Rewritten markdown body, at least the configured floor long
        tokens_used: Provider-reported or estimated token count
        cost_estimate: Formatted cost ("$0.0012") or "FREE"
        provider_used: Provider that produced the output
        model_used: Model that produced the output
        seo_title: SEO title parsed from the output metadata block
        seo_description: SEO description parsed from the output metadata block
        tags: Tags parsed from the output metadata block
    """

    rewritten_content: str
    tokens_used: int
    cost_estimate: str
    provider_used: str
    model_used: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TagLink:
    tag: str
    target_slug: str


@dataclass
class KeywordLinkPlan:
    """Per-article linking decisions, reproducible from the same inputs.

    Attributes:
        main_keyword: Anchor text for the self link
        home_sentence_variant: Index of the brand sentence template
        category_sentence_variant: Index of the category sentence template
        tag_links: Tag anchors and the related article each one points to
    """

    main_keyword: str
    home_sentence_variant: int
    category_sentence_variant: int
    tag_links: list[TagLink] = field(default_factory=list)


@dataclass(frozen=True)
class RelatedArticle:
    slug: str
    title: str = ""
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class StockImage:
    url: str
    alt_text: str
    attribution: str


@dataclass
class FeedItem:
    """One entry parsed from a syndication feed.

    Attributes:
        title: Entry title
        url: Canonical URL (link, else guid)
        content_html: Full content HTML, else the summary HTML
        summary: Plain summary text
        author: Entry author
        published: Publication timestamp as given by the feed
        enclosure_url: URL of the first enclosure, if any
    """

    title: str
    url: str
    content_html: str = ""
    summary: str = ""
    author: str | None = None
    published: str | None = None
    enclosure_url: str | None = None


@dataclass
class ArticlePayload:
    """Candidate article record handed to storage."""

    title: str
    slug: str
    description: str
    content: str
    image_url: str | None
    category: str
    author: str
    tags: list[str] = field(default_factory=list)
    published: bool = False
    source_url: str | None = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "content": self.content,
            "image_url": self.image_url,
            "category": self.category,
            "author": self.author,
            "tags": list(self.tags),
            "published": self.published,
            "source_url": self.source_url,
        }


@dataclass
class ImportResult:
    success: bool
    article: ArticlePayload | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    saved: bool = False


@dataclass
class FeedImportResult:
    feed_name: str
    success: bool = False
    total_items: int = 0
    new_articles: int = 0
    skipped_items: int = 0
    errors: list[str] = field(default_factory=list)
    articles: list[ArticlePayload] = field(default_factory=list)
