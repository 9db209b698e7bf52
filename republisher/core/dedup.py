"""
Feed item deduplication using URL matching and fuzzy title comparison.

Items are removed when they repeat:
1. An exact URL already seen in the batch
2. A title similar enough to an already kept item (syndicated copies)
"""

from __future__ import annotations

from rapidfuzz import fuzz

from .types import FeedItem


def dedup_items(items: list[FeedItem], threshold: int = 92) -> list[FeedItem]:
    """Remove duplicate feed items, preserving original order.

    Args:
        items: Parsed feed items
        threshold: Similarity threshold (0-100) for fuzzy title matching

    Returns:
        Items with URL and near-identical title duplicates dropped
    """
    seen_urls: set[str] = set()
    kept: list[FeedItem] = []
    titles: list[str] = []

    for item in items:
        if item.url in seen_urls:
            continue
        if item.title and _is_similar_title(item.title, titles, threshold):
            continue
        seen_urls.add(item.url)
        if item.title:
            titles.append(item.title)
        kept.append(item)

    return kept


def _is_similar_title(title: str, titles: list[str], threshold: int) -> bool:
    for existing in titles:
        if fuzz.ratio(title, existing) >= threshold:
            return True
    return False
