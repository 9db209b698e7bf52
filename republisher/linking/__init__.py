"""Internal link insertion."""

from .engine import KeywordLinker, RelatedLookup, add_links, derive_main_keyword, link_first_occurrence

__all__ = ["KeywordLinker", "RelatedLookup", "add_links", "derive_main_keyword", "link_first_occurrence"]
