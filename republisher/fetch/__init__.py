"""
Content fetching and extraction.

This package turns a URL into a clean ScrapedArticle and finds images
for it.
"""

from .extractor import ArticleExtractor, Scraper, clean_html, scrape_full_article
from .fetcher import FetchResult, fetch_url
from .images import (
    ImageSearchProvider,
    PageImageFinder,
    UnsplashImageProvider,
    caption_for_image,
    extract_image_keywords,
    find_content_images,
    find_main_image,
    place_image,
    search_stock_images,
)
from .markdown import clean_markdown, to_markdown
from .sites import SITE_PROFILES, lookup_profile

__all__ = [
    "ArticleExtractor",
    "Scraper",
    "clean_html",
    "scrape_full_article",
    "FetchResult",
    "fetch_url",
    "ImageSearchProvider",
    "PageImageFinder",
    "UnsplashImageProvider",
    "caption_for_image",
    "extract_image_keywords",
    "find_content_images",
    "find_main_image",
    "place_image",
    "search_stock_images",
    "clean_markdown",
    "to_markdown",
    "SITE_PROFILES",
    "lookup_profile",
]
