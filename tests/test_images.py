"""Tests for page image discovery, stock search and image placement."""

from __future__ import annotations

import httpx

from republisher.cache import FailedUrlCache
from republisher.config import FetchConfig, ImageConfig
from republisher.core.types import StockImage
from republisher.fetch.images import (
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


URL = "https://example.com/news/1"


def test_og_image_has_priority():
    html = """
    <html><head>
      <meta name="twitter:image" content="https://cdn.example.com/twitter.jpg">
      <meta property="og:image" content="https://cdn.example.com/og.jpg">
    </head><body><article><img src="/body.jpg"></article></body></html>
    """

    assert find_main_image(URL, html) == "https://cdn.example.com/og.jpg"


def test_twitter_image_when_no_og():
    html = '<meta name="twitter:image" content="/twitter.jpg"><article><img src="/body.jpg"></article>'

    assert find_main_image(URL, html) == "https://example.com/twitter.jpg"


def test_article_image_before_large_page_image():
    html = """
    <img src="/banner.jpg" width="1200" height="600">
    <div class="article-content"><img src="/in-article.jpg" width="50" height="50"></div>
    """

    assert find_main_image(URL, html) == "https://example.com/in-article.jpg"


def test_large_image_rule_treats_missing_dimension_as_passing():
    html = """
    <img src="/tiny.png" width="100" height="100">
    <img src="/wide.jpg" width="800">
    """

    assert find_main_image(URL, html) == "https://example.com/wide.jpg"


def test_large_image_rule_accepts_either_dimension():
    html = '<img src="/small.png" width="50" height="50"><img src="/tall.jpg" width="100" height="600">'

    assert find_main_image(URL, html) == "https://example.com/tall.jpg"


def test_no_image_returns_none():
    html = '<img src="/a.png" width="10" height="10"><img src="#">'

    assert find_main_image(URL, html) is None


def test_lazy_source_is_used():
    html = '<article><img src="data:image/gif;base64,R0lG" data-src="//cdn.example.com/lazy.jpg"></article>'

    assert find_main_image(URL, html) == "https://cdn.example.com/lazy.jpg"


def test_content_images_are_distinct_and_bounded():
    html = """
    <article>
      <img src="/logo.png">
      <img src="/a.jpg"><img src="/a.jpg">
      <img src="/b.jpg"><img src="/icon-share.svg"><img src="/c.jpg">
    </article>
    """

    images = find_content_images(URL, html, max_images=2)

    assert images == ["https://example.com/a.jpg", "https://example.com/b.jpg"]


def test_page_fetch_failure_is_cached():
    calls = []

    def handler(request):
        calls.append(str(request.url))
        return httpx.Response(503, text="down")

    cache = FailedUrlCache(ttl_seconds=600)
    finder = PageImageFinder(
        ImageConfig(),
        FetchConfig(retries=0),
        failed_cache=cache,
        transport=httpx.MockTransport(handler),
    )

    assert finder.find_main_image(URL) is None
    assert finder.find_main_image(URL) is None
    assert calls == [URL]
    assert URL in cache


def test_page_is_fetched_when_html_missing():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text='<meta property="og:image" content="https://cdn.example.com/og.jpg">')
    )
    finder = PageImageFinder(fetch_cfg=FetchConfig(retries=0), transport=transport)

    assert finder.find_main_image(URL) == "https://cdn.example.com/og.jpg"


def test_unsplash_search_maps_results():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["authorization"]
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "results": [
                    {
                        "urls": {"regular": "https://images.unsplash.com/photo-1"},
                        "alt_description": "electric car charging",
                        "user": {"name": "Jane Doe"},
                    },
                    {"urls": {}, "user": {"name": "Nobody"}},
                ]
            },
        )

    provider = UnsplashImageProvider(access_key="test-key", transport=httpx.MockTransport(handler))

    images = provider.search("electric car", 3)

    assert images == [
        StockImage(
            url="https://images.unsplash.com/photo-1",
            alt_text="electric car charging",
            attribution="Photo by Jane Doe on Unsplash",
        )
    ]
    assert seen["auth"] == "Client-ID test-key"
    assert seen["params"]["orientation"] == "landscape"
    assert seen["params"]["content_filter"] == "high"
    assert seen["params"]["per_page"] == "3"


def test_unsplash_without_key_returns_empty(monkeypatch):
    monkeypatch.delenv("UNSPLASH_ACCESS_KEY", raising=False)

    assert UnsplashImageProvider().search("car", 3) == []


def test_unsplash_error_returns_empty():
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"errors": ["bad key"]}))

    assert UnsplashImageProvider(access_key="k", transport=transport).search("car", 3) == []


class _RecordingProvider(ImageSearchProvider):
    def __init__(self, fail: bool = False):
        self.queries = []
        self.fail = fail

    def search(self, query, count):
        self.queries.append((query, count))
        if self.fail:
            raise RuntimeError("backend down")
        return [StockImage(url="https://img.example.com/1.jpg", alt_text=query, attribution="x")]


def test_extract_image_keywords_drops_stop_words():
    keywords = extract_image_keywords("Giá xe điện của VinFast tăng mạnh trong năm nay!")

    assert keywords == "giá điện vinfast tăng mạnh"


def test_extract_image_keywords_falls_back_to_title():
    assert extract_image_keywords("Xe ô tô") == "Xe ô tô"


def test_search_stock_images_uses_translation():
    provider = _RecordingProvider()

    images = search_stock_images("Giá xe điện tăng mạnh", provider, translate=lambda kw: '"electric car price"\n', count=2)

    assert provider.queries == [("electric car price", 2)]
    assert images[0].url == "https://img.example.com/1.jpg"


def test_search_stock_images_is_best_effort():
    def broken_translate(keywords):
        raise RuntimeError("quota")

    provider = _RecordingProvider(fail=True)

    assert search_stock_images("Giá xe điện tăng mạnh", provider, translate=broken_translate) == []
    assert provider.queries[0][0] == "giá điện tăng mạnh"


def test_caption_fallback_without_generator():
    assert caption_for_image("VinFast VF 3: mẫu xe mới") == ("Hình minh họa: VinFast VF 3", "VinFast VF 3")


def test_caption_parses_generator_output():
    caption, alt = caption_for_image(
        "VinFast VF 3",
        generate=lambda title: 'CAPTION: "Mẫu VF 3 tại showroom"\nALT: Xe VinFast VF 3 màu vàng',
    )

    assert caption == "Mẫu VF 3 tại showroom"
    assert alt == "Xe VinFast VF 3 màu vàng"


def test_caption_falls_back_on_generator_error():
    def broken(title):
        raise RuntimeError("boom")

    assert caption_for_image("Tin nóng", generate=broken) == ("Hình minh họa: Tin nóng", "Tin nóng")


def test_place_image_replaces_placeholder():
    content = "Mở đầu.\n\n[IMAGE_PLACEHOLDER_1]\n\nThân bài.\n\n[IMAGE_PLACEHOLDER_2]"

    result = place_image(content, "https://img.example.com/a.jpg", "Xe", "Chú thích")

    assert result == "Mở đầu.\n\n![Xe](https://img.example.com/a.jpg)\n*Chú thích*\n\nThân bài."


def test_place_image_after_first_subheading():
    content = "Mở đầu.\n\n## Phần một\nNội dung.\n\n## Phần hai"

    result = place_image(content, "https://img.example.com/a.jpg", "Xe", "Chú thích")

    assert result == (
        "Mở đầu.\n\n## Phần một\n\n![Xe](https://img.example.com/a.jpg)\n*Chú thích*\n\n"
        "Nội dung.\n\n## Phần hai"
    )


def test_place_image_needs_heading_or_placeholder():
    content = "Chỉ có một đoạn.\n\n[IMAGE_PLACEHOLDER_2]"

    result = place_image(content, "https://img.example.com/a.jpg", "Xe", "Chú thích")

    assert result == "Chỉ có một đoạn."


def test_place_image_skips_image_already_in_content():
    content = "![Image](https://x.vn/a.jpg)\n\n## Phần một\n\nĐoạn một."

    result = place_image(content, "https://x.vn/a.jpg", "[Xe]", "Chú thích")

    assert result == content
    assert result.count("https://x.vn/a.jpg") == 1
