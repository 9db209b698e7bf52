"""
Command-line interface for the republisher.

Uses Typer for the two import commands. API keys are read from the
environment, and a .env file in the working directory is loaded first.
"""

from __future__ import annotations

from dataclasses import asdict
import json
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
import typer

from .config import AppConfig, load_config
from .core.errors import ProviderNotConfigured
from .llm.tracing import flush, setup_langfuse
from .runner import build_context, import_feed, import_url, render_feed_summary
from .storage import JsonlArticleStore
from .utils.logging import setup_llm_logger, setup_logging

app = typer.Typer(add_completion=False)
console = Console()


def _prepare(
    config: Path | None,
    log_level: str | None,
    log_dir: Path | None,
) -> AppConfig:
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    if log_dir is not None:
        cfg.logging.file = True
    setup_logging(cfg.logging, log_dir)
    setup_langfuse(cfg.langfuse)
    return cfg


def _print_json(payload: dict) -> None:
    console.print_json(json.dumps(payload, ensure_ascii=False))


@app.command("import-url")
def import_url_command(
    url: str = typer.Argument(..., help="Article URL to import."),
    category: str | None = typer.Option(None, "--category", help="Article category."),
    rewrite: bool = typer.Option(False, "--rewrite/--no-rewrite", help="Rewrite the body with AI."),
    provider: str | None = typer.Option(None, "--provider", help="Rewrite provider: google or openai."),
    tone: str | None = typer.Option(None, "--tone", help="professional, casual, formal or engaging."),
    save: bool = typer.Option(False, "--save/--preview", help="Save the article instead of previewing it."),
    store: Path = typer.Option(Path("articles.jsonl"), "--store", help="JSONL article store."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_dir: Path | None = typer.Option(None, "--log-dir", help="Write JSONL logs to this directory."),
):
    """Import one article from a URL and print the resulting payload."""
    cfg = _prepare(config, log_level, log_dir)
    ctx = build_context(
        cfg,
        store=JsonlArticleStore(store),
        llm_logger=setup_llm_logger(cfg.logging, log_dir),
    )
    try:
        result = import_url(url, ctx, category=category, rewrite=rewrite, provider=provider, tone=tone, save=save)
    except ProviderNotConfigured as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc
    finally:
        flush()

    _print_json(asdict(result))
    if not result.success:
        raise typer.Exit(code=1)


@app.command("import-feed")
def import_feed_command(
    feed_url: str = typer.Argument(..., help="RSS or Atom feed URL."),
    name: str = typer.Option(..., "--name", help="Feed name, used as the author."),
    category: str | None = typer.Option(None, "--category", help="Category for imported articles."),
    scrape_full: bool = typer.Option(False, "--scrape-full/--no-scrape-full", help="Scrape each item's page."),
    max_items: int | None = typer.Option(None, "--max-items", help="Items processed per run."),
    save: bool = typer.Option(True, "--save/--preview", help="Save new items to the store."),
    store: Path = typer.Option(Path("articles.jsonl"), "--store", help="JSONL article store."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_dir: Path | None = typer.Option(None, "--log-dir", help="Write JSONL logs to this directory."),
):
    """Import new items from a feed into the article store."""
    cfg = _prepare(config, log_level, log_dir)
    ctx = build_context(cfg, store=JsonlArticleStore(store))
    try:
        result = import_feed(
            feed_url,
            ctx,
            name=name,
            category=category,
            scrape_full=scrape_full,
            max_items=max_items,
            save=save,
        )
    finally:
        flush()

    render_feed_summary(result, console)
    _print_json(asdict(result))
    if not result.success:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
