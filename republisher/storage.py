"""
Storage collaborator boundary.

The pipeline only needs a handful of operations from storage: slug
uniqueness, saving an unpublished article, de-duplicating feed items by
source URL, and finding published articles that share tags for the
linking engine. ``JsonlArticleStore`` implements them over an append-only
JSONL file, one article per line.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any
import uuid

from .core.errors import StorageError
from .core.text import tags_match
from .core.types import ArticlePayload, RelatedArticle
from .utils.logging import log_event


logger = logging.getLogger(__name__)


class ArticleStore(ABC):
    @abstractmethod
    def slug_exists(self, slug: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def has_source_url(self, url: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def save(self, article: ArticlePayload) -> dict[str, Any]:
        """Persist ``article`` and return the stored record.

        Raises:
            StorageError: Slug already taken or the write failed
        """
        raise NotImplementedError

    @abstractmethod
    def find_related_by_tags(
        self,
        tags: list[str],
        exclude_slug: str | None = None,
        limit: int = 10,
    ) -> list[RelatedArticle]:
        raise NotImplementedError


class JsonlArticleStore(ArticleStore):
    """Article store backed by a JSONL file.

    Records are loaded once on first access and appended on save. Pipeline
    saves are always unpublished; published records come from editing the
    file (or a previous publish step) and are the only ones the related
    lookup returns.

    Attributes:
        path: JSONL file holding one article record per line
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._records: list[dict[str, Any]] | None = None

    @property
    def records(self) -> list[dict[str, Any]]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def _load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        records: list[dict[str, Any]] = []
        with self.path.open("r", encoding="utf-8") as handle:
            for line_no, line in enumerate(handle, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(json.loads(line))
                except json.JSONDecodeError:
                    log_event(
                        logger,
                        "Skipping unreadable store record",
                        event="store_bad_record",
                        path=str(self.path),
                        line=line_no,
                    )
        return records

    def slug_exists(self, slug: str) -> bool:
        return any(record.get("slug") == slug for record in self.records)

    def has_source_url(self, url: str) -> bool:
        return any(record.get("source_url") == url for record in self.records)

    def save(self, article: ArticlePayload) -> dict[str, Any]:
        if self.slug_exists(article.slug):
            raise StorageError(f'Slug "{article.slug}" already exists. Please edit the title.')

        now = datetime.now(timezone.utc).isoformat()
        record = article.to_dict()
        record.update(
            {
                "id": str(uuid.uuid4()),
                "published": False,
                "views": 0,
                "created_at": now,
                "updated_at": now,
            }
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record, ensure_ascii=False))
                handle.write("\n")
        except OSError as exc:
            raise StorageError(f'Failed to create article "{article.title}": {exc}') from exc

        self.records.append(record)
        log_event(logger, "Article saved", event="article_saved", slug=article.slug, path=str(self.path))
        return record

    def find_related_by_tags(
        self,
        tags: list[str],
        exclude_slug: str | None = None,
        limit: int = 10,
    ) -> list[RelatedArticle]:
        related: list[RelatedArticle] = []
        for record in reversed(self.records):
            if not record.get("published") or record.get("slug") == exclude_slug:
                continue
            record_tags = [str(tag) for tag in record.get("tags") or []]
            if not any(tags_match(tag, other) for tag in tags for other in record_tags):
                continue
            related.append(
                RelatedArticle(
                    slug=record["slug"],
                    title=record.get("title", ""),
                    tags=tuple(record_tags),
                )
            )
            if len(related) >= limit:
                break
        return related
