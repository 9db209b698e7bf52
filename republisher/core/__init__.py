"""
Core domain models and shared helpers.

This package contains data types, the error taxonomy and text helpers
that are independent of any specific pipeline stage.
"""

from .dedup import dedup_items
from .errors import (
    ExtractionInsufficient,
    FetchFailed,
    PipelineError,
    ProviderError,
    ProviderNotConfigured,
    RewriteFailed,
    RewriteQuotaExceeded,
    RewriteTooShort,
    StorageError,
    classify_provider_error,
)
from .text import category_slug, stable_index, tags_match, to_slug
from .types import (
    ArticlePayload,
    FeedImportResult,
    FeedItem,
    ImportResult,
    KeywordLinkPlan,
    RelatedArticle,
    RewriteRequest,
    RewriteResult,
    ScrapedArticle,
    SiteSelectorProfile,
    StockImage,
    TagLink,
)

__all__ = [
    "ArticlePayload",
    "FeedImportResult",
    "FeedItem",
    "ImportResult",
    "KeywordLinkPlan",
    "RelatedArticle",
    "RewriteRequest",
    "RewriteResult",
    "ScrapedArticle",
    "SiteSelectorProfile",
    "StockImage",
    "TagLink",
    "PipelineError",
    "FetchFailed",
    "ExtractionInsufficient",
    "ProviderError",
    "ProviderNotConfigured",
    "RewriteFailed",
    "RewriteQuotaExceeded",
    "RewriteTooShort",
    "StorageError",
    "classify_provider_error",
    "category_slug",
    "stable_index",
    "tags_match",
    "to_slug",
    "dedup_items",
]
