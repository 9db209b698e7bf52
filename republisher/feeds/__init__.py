"""Syndication feed input."""

from .parser import fetch_feed, item_image_url, parse_feed

__all__ = ["fetch_feed", "item_image_url", "parse_feed"]
