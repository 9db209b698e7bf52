"""Tests for feed item deduplication."""

from republisher.core.dedup import dedup_items
from republisher.core.types import FeedItem


def test_dedup_by_url_and_title():
    items = [
        FeedItem(title="Giá xăng giảm mạnh từ chiều nay", url="https://a.example.com/1"),
        FeedItem(title="Một tin khác", url="https://a.example.com/1"),
        FeedItem(title="Giá xăng giảm mạnh từ chiều nay!", url="https://b.example.com/2"),
        FeedItem(title="Thời tiết cuối tuần", url="https://a.example.com/3"),
    ]

    kept = dedup_items(items)

    assert [item.url for item in kept] == ["https://a.example.com/1", "https://a.example.com/3"]


def test_untitled_items_only_dedup_by_url():
    items = [
        FeedItem(title="", url="https://a.example.com/1"),
        FeedItem(title="", url="https://a.example.com/2"),
    ]

    assert len(dedup_items(items)) == 2
