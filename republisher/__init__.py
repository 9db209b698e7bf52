"""
Republisher - news import pipeline.

Turns an article URL or a syndication feed into unpublished article
records: site-aware extraction to markdown, optional AI rewriting with
provider/model/key fallback, image discovery and internal linking.

Main entry point is the CLI:

Example:
    $ republisher import-url https://vnexpress.net/some-article.html --rewrite
    $ republisher import-feed https://example.com/rss --name "Example" --category "Ô tô"
"""

__all__ = [
    "__version__",
    "ArticleExtractor",
    "KeywordLinker",
    "RewriteOrchestrator",
    "add_links",
    "import_feed",
    "import_url",
    "to_markdown",
]
__version__ = "0.1.0"

from .fetch.extractor import ArticleExtractor
from .fetch.markdown import to_markdown
from .linking.engine import KeywordLinker, add_links
from .rewrite.orchestrator import RewriteOrchestrator
from .runner import import_feed, import_url
