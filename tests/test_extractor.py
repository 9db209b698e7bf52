"""Tests for site-aware extraction and the generic fallback chain."""

from __future__ import annotations

import httpx
import pytest

from republisher.config import ExtractConfig, FetchConfig
from republisher.core.errors import ExtractionInsufficient, FetchFailed
from republisher.fetch import extractor as extractor_module
from republisher.fetch.extractor import ArticleExtractor, Scraper, clean_html, scrape_full_article
from republisher.fetch.sites import build_profiles, lookup_profile, normalize_host


PARA_1 = (
    "Giá xe điện tại Việt Nam giảm mạnh trong quý ba khi nhiều hãng đồng loạt "
    "tung ra chương trình ưu đãi, hỗ trợ lệ phí trước bạ và tặng gói sạc miễn phí "
    "cho khách hàng mua xe trong tháng này. Các đại lý cho biết lượng khách đến "
    "xem xe vào cuối tuần tăng rõ rệt so với những tháng đầu năm."
)
PARA_2 = (
    "Theo số liệu của hiệp hội các nhà sản xuất ô tô, doanh số xe điện tăng gần gấp "
    "đôi so với cùng kỳ năm trước, trong đó phân khúc xe cỡ nhỏ chiếm tỷ trọng lớn "
    "nhất nhờ mức giá dễ tiếp cận với người mua lần đầu. Giới phân tích dự báo "
    "xu hướng này sẽ còn kéo dài đến hết năm sau."
)


def _vnexpress_page() -> str:
    return f"""
    <html><head><title>Trang tin</title></head><body>
    <h1 class="title-detail">Giá xe điện giảm mạnh</h1>
    <article class="fck_detail">
      <p class="Normal">{PARA_1}</p>
      <figure><img src="/images/xe.jpg"><figcaption>Xe điện tại đại lý</figcaption></figure>
      <p class="Normal">{PARA_2}</p>
      <div class="box_comment">Bình luận của bạn đọc</div>
      <div class="ads">Quảng cáo</div>
      <p></p>
    </article>
    </body></html>
    """


def test_profile_path_extracts_and_cleans():
    article = ArticleExtractor().extract("https://vnexpress.net/gia-xe-dien-123.html", _vnexpress_page())

    assert article is not None
    assert article.title == "Giá xe điện giảm mạnh"
    assert article.site_name == "vnexpress.net"
    assert article.content == (
        f"{PARA_1}\n\n"
        '![Image](https://vnexpress.net/images/xe.jpg "Xe điện tại đại lý")\n\n'
        f"{PARA_2}"
    )
    assert "Bình luận" not in article.content
    assert "Quảng cáo" not in article.content
    assert article.excerpt == article.content[:500].strip()


def test_profile_applies_to_subdomains():
    article = ArticleExtractor().extract("https://m.vnexpress.net/gia-xe-dien-123.html", _vnexpress_page())

    assert article is not None
    assert article.title == "Giá xe điện giảm mạnh"


def test_short_profile_content_falls_back_to_generic(monkeypatch):
    page = f"""
    <html><body>
    <div class="fck_detail"><p>Ngắn.</p></div>
    <article><p>{PARA_1}</p><p>{PARA_2}</p></article>
    </body></html>
    """
    calls = []
    original = ArticleExtractor._extract_generic

    def spy(self, url, html):
        calls.append(url)
        return original(self, url, html)

    monkeypatch.setattr(ArticleExtractor, "_extract_generic", spy)
    extractor = ArticleExtractor(ExtractConfig(primary="bs4", fallback=[]))

    article = extractor.extract("https://vnexpress.net/a.html", page)

    assert calls == ["https://vnexpress.net/a.html"]
    assert article is not None
    assert PARA_1 in article.content
    assert PARA_2 in article.content
    assert article.content != "Ngắn."


def test_unprofiled_short_page_returns_best_generic_candidate():
    html = (
        "<article><h1>Test</h1>"
        "<p>Giá xe tăng mạnh trong năm 2025 do nguồn cung khan hiếm.</p>"
        '<img src="#"></article>'
    )

    article = ArticleExtractor().extract("https://example.com/news/1", html)

    assert article is not None
    assert "Giá xe tăng mạnh trong năm 2025 do nguồn cung khan hiếm." in article.content
    assert "![" not in article.content
    assert article.excerpt == article.content[:500].strip()


def test_generic_prefers_first_candidate_over_floor(monkeypatch):
    long_text = "x" * 150
    monkeypatch.setattr(extractor_module, "_extract_readability", lambda html: "short")
    monkeypatch.setattr(extractor_module, "_extract_trafilatura", lambda html: long_text)
    monkeypatch.setattr(extractor_module, "_extract_bs4", lambda html: long_text + "yyy")

    article = ArticleExtractor().extract("https://example.com/a", "<html><title>T</title></html>")

    assert article is not None
    assert article.content == long_text
    assert article.title == "T"


def test_generic_survives_failing_extractors(monkeypatch):
    def boom(html):
        raise RuntimeError("parser crashed")

    monkeypatch.setattr(extractor_module, "_extract_readability", boom)
    monkeypatch.setattr(extractor_module, "_extract_trafilatura", lambda html: None)
    monkeypatch.setattr(extractor_module, "_extract_bs4", lambda html: "")

    assert ArticleExtractor().extract("https://example.com/a", "<p>x</p>") is None


def test_generic_uses_page_metadata():
    html = f"""
    <html><head>
      <meta property="og:title" content="Tiêu đề OG">
      <meta name="description" content="Mô tả trang">
      <meta name="author" content="Nguyễn Văn A">
    </head><body><article><p>{PARA_1}</p></article></body></html>
    """
    extractor = ArticleExtractor(ExtractConfig(primary="bs4", fallback=[]))

    article = extractor.extract("https://example.com/a", html)

    assert article.title == "Tiêu đề OG"
    assert article.excerpt == "Mô tả trang"
    assert article.author == "Nguyễn Văn A"
    assert article.site_name == "example.com"


def test_empty_html_returns_none():
    assert ArticleExtractor().extract("https://example.com/a", "   ") is None


def test_clean_html_resolves_urls_and_lazy_images():
    html = (
        '<p><img data-src="//cdn.example.com/lazy.jpg" src="data:image/gif;base64,R0lG"></p>'
        '<p><a href="/tin-khac">Tin khác</a></p>'
        '<div class="social-share">Chia sẻ</div>'
        "<div></div>"
    )

    cleaned = clean_html(html, "https://example.com/news/1")

    assert 'src="https://cdn.example.com/lazy.jpg"' in cleaned
    assert 'alt="Image"' in cleaned
    assert 'href="https://example.com/tin-khac"' in cleaned
    assert "Chia sẻ" not in cleaned
    assert "<div></div>" not in cleaned


def test_site_profiles_from_config():
    profiles = build_profiles({"www.Example.org": {"content": ".story", "title": "h1.headline"}})

    profile = lookup_profile("https://news.example.org/a", profiles)

    assert profile is not None
    assert profile.content_selectors == (".story",)
    assert profile.title_selector == "h1.headline"
    assert lookup_profile("https://unknown.test/a", profiles) is None
    assert normalize_host("https://WWW.VnExpress.net/x") == "vnexpress.net"


def test_scraper_raises_fetch_failed():
    transport = httpx.MockTransport(lambda request: httpx.Response(404, text="missing"))
    scraper = Scraper(FetchConfig(retries=0), transport=transport)

    with pytest.raises(FetchFailed) as excinfo:
        scraper.scrape("https://example.com/missing")

    assert excinfo.value.status_code == 404


def test_scraper_raises_when_nothing_extracted(monkeypatch):
    monkeypatch.setattr(ArticleExtractor, "extract", lambda self, url, html: None)
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html></html>"))
    scraper = Scraper(FetchConfig(retries=0), transport=transport)

    with pytest.raises(ExtractionInsufficient):
        scraper.scrape("https://example.com/empty")


def test_scrape_full_article_returns_none_on_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="error"))

    assert scrape_full_article("https://example.com/a", FetchConfig(retries=0), transport=transport) is None


def test_fetch_sends_browser_headers():
    seen = {}

    def handler(request):
        seen.update(request.headers)
        return httpx.Response(200, text=_vnexpress_page())

    scraper = Scraper(FetchConfig(retries=0), transport=httpx.MockTransport(handler))
    article, html = scraper.scrape("https://vnexpress.net/a.html")

    assert article.title == "Giá xe điện giảm mạnh"
    assert "Mozilla/5.0" in seen["user-agent"]
    assert seen["accept-language"].startswith("vi-VN")
