"""Tests for the command-line entry points."""

from __future__ import annotations

from typer.testing import CliRunner

from republisher import cli
from republisher.core.types import FeedImportResult


runner = CliRunner()


def test_import_url_rejects_invalid_url(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(cli.app, ["import-url", "not-a-url", "--store", str(tmp_path / "a.jsonl")])

    assert result.exit_code == 1
    assert "Invalid URL format" in result.output


def test_import_url_missing_provider_exits_with_code_2(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def raise_not_configured(*args, **kwargs):
        raise cli.ProviderNotConfigured("No text provider is configured.")

    monkeypatch.setattr(cli, "import_url", raise_not_configured)

    result = runner.invoke(cli.app, ["import-url", "https://example.com/a", "--rewrite", "--store", str(tmp_path / "a.jsonl")])

    assert result.exit_code == 2
    assert "No text provider is configured." in result.output


def test_import_feed_prints_summary(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    seen = {}

    def fake_import_feed(feed_url, ctx, name, category=None, scrape_full=False, max_items=None, save=True):
        seen.update(feed_url=feed_url, name=name, max_items=max_items, save=save)
        return FeedImportResult(feed_name=name, success=True, total_items=2, new_articles=1, skipped_items=1)

    monkeypatch.setattr(cli, "import_feed", fake_import_feed)

    result = runner.invoke(
        cli.app,
        ["import-feed", "https://example.com/rss", "--name", "Tin Nhanh", "--max-items", "3", "--preview",
         "--store", str(tmp_path / "a.jsonl")],
    )

    assert result.exit_code == 0
    assert seen == {"feed_url": "https://example.com/rss", "name": "Tin Nhanh", "max_items": 3, "save": False}
    assert "total=2, new=1, skipped=1, errors=0" in result.output
