"""Tests for the JSONL article store."""

from __future__ import annotations

import json

import pytest

from republisher.core.errors import StorageError
from republisher.core.types import ArticlePayload, RelatedArticle
from republisher.storage import JsonlArticleStore


def _payload(slug: str, tags=None, source_url=None) -> ArticlePayload:
    return ArticlePayload(
        title=f"Bài {slug}",
        slug=slug,
        description="Mô tả",
        content="Nội dung",
        image_url=None,
        category="Công nghệ",
        author="Ctrl Z",
        tags=list(tags or []),
        source_url=source_url,
    )


def _write_records(path, records):
    path.write_text("\n".join(json.dumps(r, ensure_ascii=False) for r in records) + "\n", encoding="utf-8")


def test_save_appends_unpublished_record(tmp_path):
    path = tmp_path / "data" / "articles.jsonl"
    store = JsonlArticleStore(path)

    record = store.save(_payload("xe-dien", tags=["xe điện"], source_url="https://example.com/a"))

    assert record["published"] is False
    assert record["views"] == 0
    assert record["id"]
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert "xe điện" in lines[0]
    assert store.slug_exists("xe-dien")
    assert store.has_source_url("https://example.com/a")

    reloaded = JsonlArticleStore(path)
    assert reloaded.slug_exists("xe-dien")


def test_duplicate_slug_is_rejected(tmp_path):
    store = JsonlArticleStore(tmp_path / "articles.jsonl")
    store.save(_payload("xe-dien"))

    with pytest.raises(StorageError, match="already exists"):
        store.save(_payload("xe-dien"))


def test_related_lookup_returns_published_matches_newest_first(tmp_path):
    path = tmp_path / "articles.jsonl"
    _write_records(
        path,
        [
            {"slug": "cu", "title": "Cũ", "tags": ["xe điện"], "published": True},
            {"slug": "nhap", "title": "Nháp", "tags": ["xe điện"], "published": False},
            {"slug": "ban-than", "title": "Bản thân", "tags": ["xe điện"], "published": True},
            {"slug": "khac", "title": "Khác", "tags": ["bóng đá"], "published": True},
            {"slug": "moi", "title": "Mới", "tags": ["Xe Điện VinFast"], "published": True},
        ],
    )
    store = JsonlArticleStore(path)

    related = store.find_related_by_tags(["xe điện"], exclude_slug="ban-than")

    assert related == [
        RelatedArticle(slug="moi", title="Mới", tags=("Xe Điện VinFast",)),
        RelatedArticle(slug="cu", title="Cũ", tags=("xe điện",)),
    ]
    assert len(store.find_related_by_tags(["xe điện"], limit=1)) == 1


def test_unreadable_lines_are_skipped(tmp_path):
    path = tmp_path / "articles.jsonl"
    path.write_text('{"slug": "ok"}\nnot json\n\n', encoding="utf-8")

    store = JsonlArticleStore(path)

    assert store.slug_exists("ok")
    assert len(store.records) == 1


def test_missing_file_is_empty(tmp_path):
    store = JsonlArticleStore(tmp_path / "missing.jsonl")

    assert not store.slug_exists("x")
    assert store.find_related_by_tags(["x"]) == []
