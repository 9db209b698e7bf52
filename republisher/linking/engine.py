"""
Internal link insertion for finished article bodies.

The engine works line by line on markdown and performs four best-effort
steps, each of which may be skipped without failing the others:
- tag links to related articles found through the store lookup
- one self link anchored on the article's main keyword
- one brand sentence linking to the home page
- one category sentence linking to the category listing

Template choice is seeded by the article slug, so the same inputs always
produce byte-identical output.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Callable, Sequence

from ..config import LinkingConfig, SiteConfig
from ..core.text import category_slug, is_linkable_tag, stable_index, tags_match
from ..core.types import KeywordLinkPlan, RelatedArticle, TagLink
from ..utils.logging import log_event
from .templates import CATEGORY_TEMPLATES, HOME_TEMPLATES


logger = logging.getLogger(__name__)

# (tags, exclude_slug, limit) -> related articles
RelatedLookup = Callable[[list[str], str | None, int], Sequence[RelatedArticle]]

_TITLE_SPLIT_RE = re.compile(r"[\s:\-–—]+")
_NUMERIC_RE = re.compile(r"^\d+$")
# Spans where a new link must never start: links, images, inline code, bare URLs.
_PROTECTED_RE = re.compile(r"!?\[[^\]]*\]\([^)]*\)|`[^`]*`|https?://\S+")
_LIST_RE = re.compile(r"^(?:[-+]\s|\d+[.)]\s)")


@dataclass
class _Paragraph:
    """A run of consecutive non-blank lines.

    ``start`` and ``end`` are inclusive line indices; ``number`` is the
    paragraph's position among all paragraphs.
    """

    start: int
    end: int
    number: int
    eligible: bool


def derive_main_keyword(title: str, tags: Sequence[str]) -> str:
    """First meaningful tag, else the first two words of the title."""
    for tag in tags:
        cleaned = tag.strip()
        if len(cleaned) > 3 and not _NUMERIC_RE.match(cleaned):
            return cleaned
    words = [word for word in _TITLE_SPLIT_RE.split(title.strip()) if word]
    return " ".join(words[:2])


def keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(keyword)}(?!\w)", re.IGNORECASE)


def link_first_occurrence(line: str, keyword: str, target: str) -> str:
    """Link the first whole-word ``keyword`` outside any protected span.

    Returns the line unchanged when no such occurrence exists.
    """
    if not keyword:
        return line
    protected = [match.span() for match in _PROTECTED_RE.finditer(line)]
    for match in keyword_pattern(keyword).finditer(line):
        start, end = match.span()
        if any(start < p_end and end > p_start for p_start, p_end in protected):
            continue
        return f"{line[:start]}[{match.group(0)}]({target}){line[end:]}"
    return line


def fence_mask(lines: Sequence[str]) -> list[bool]:
    """True for fence delimiters and every line between them."""
    mask: list[bool] = []
    inside = False
    for line in lines:
        if line.strip().startswith("```"):
            mask.append(True)
            inside = not inside
        else:
            mask.append(inside)
    return mask


class KeywordLinker:
    """Plan and apply internal links for one site.

    Attributes:
        cfg: Link paths, caps and placement distances
        site: Brand name used as the home link anchor
        related_lookup: Store query used to resolve tag link targets
    """

    def __init__(
        self,
        cfg: LinkingConfig | None = None,
        site: SiteConfig | None = None,
        related_lookup: RelatedLookup | None = None,
    ):
        self.cfg = cfg or LinkingConfig()
        self.site = site or SiteConfig()
        self.related_lookup = related_lookup

    # Link targets

    def article_href(self, slug: str) -> str:
        return f"{self.cfg.articles_path}{slug}"

    def category_href(self, category: str) -> str:
        return f"{self.cfg.category_path}{category_slug(category)}"

    def _internal_markers(self) -> tuple[str, ...]:
        return (
            f"]({self.cfg.articles_path}",
            f"]({self.cfg.category_path}",
            f"]({self.cfg.home_path})",
        )

    # Planning

    def plan(
        self,
        title: str,
        tags: Sequence[str],
        slug: str,
        article_identifier: str | None = None,
    ) -> KeywordLinkPlan:
        return KeywordLinkPlan(
            main_keyword=derive_main_keyword(title, tags),
            home_sentence_variant=stable_index(slug, "home", len(HOME_TEMPLATES)),
            category_sentence_variant=stable_index(slug, "category", len(CATEGORY_TEMPLATES)),
            tag_links=self.resolve_tag_links(tags, slug, article_identifier),
        )

    def resolve_tag_links(
        self,
        tags: Sequence[str],
        slug: str,
        article_identifier: str | None = None,
    ) -> list[TagLink]:
        """Match the article's own tags to related articles, one target per tag."""
        if self.related_lookup is None:
            return []
        candidates = [
            tag.strip()
            for tag in list(tags)[: self.cfg.max_tags_considered]
            if is_linkable_tag(tag)
        ]
        if not candidates:
            return []
        exclude = article_identifier or slug
        try:
            related = list(self.related_lookup(candidates, exclude, self.cfg.related_limit))
        except Exception as exc:  # noqa: BLE001
            log_event(logger, "Related lookup failed", event="related_lookup_failed", error=str(exc))
            return []

        links: list[TagLink] = []
        used: set[str] = set()
        for tag in candidates:
            for article in related:
                if article.slug in used or article.slug in (slug, article_identifier):
                    continue
                if any(tags_match(tag, other) for other in article.tags):
                    links.append(TagLink(tag=tag, target_slug=article.slug))
                    used.add(article.slug)
                    break
        return links

    # Application

    def add_links(
        self,
        content: str,
        title: str,
        article_identifier: str | None,
        tags: Sequence[str],
        category: str,
        slug: str,
    ) -> str:
        """Insert tag, self, home and category links into ``content``.

        Every step is best-effort; content that admits no valid position for
        a link type is returned without that link.
        """
        if not content.strip():
            return content
        plan = self.plan(title, tags, slug, article_identifier)
        return self.apply(content, plan, category, slug)

    def apply(self, content: str, plan: KeywordLinkPlan, category: str, slug: str) -> str:
        lines = content.split("\n")
        tag_count = self._apply_tag_links(lines, plan.tag_links)
        self_done = self._apply_self_link(lines, plan.main_keyword, slug)
        home_done, category_done = self._insert_sentences(lines, plan, category)
        log_event(
            logger,
            "Links applied",
            event="links_applied",
            slug=slug,
            tag_links=tag_count,
            self_link=self_done,
            home=home_done,
            category=category_done,
        )
        return "\n".join(lines)

    def _is_text_line(self, line: str, in_fence: bool) -> bool:
        stripped = line.strip()
        if not stripped or in_fence:
            return False
        if stripped.startswith(("#", "![", "*")):
            return False
        return not any(marker in stripped for marker in self._internal_markers())

    def _apply_tag_links(self, lines: list[str], tag_links: Sequence[TagLink]) -> int:
        count = 0
        for tag_link in tag_links:
            if count >= self.cfg.max_tag_links:
                break
            href = self.article_href(tag_link.target_slug)
            if any(f"]({href})" in line for line in lines):
                continue
            mask = fence_mask(lines)
            for index, line in enumerate(lines):
                if not self._is_text_line(line, mask[index]) or "](" in line:
                    continue
                linked = link_first_occurrence(line, tag_link.tag, href)
                if linked != line:
                    lines[index] = linked
                    count += 1
                    break
        return count

    def _apply_self_link(self, lines: list[str], keyword: str, slug: str) -> bool:
        href = self.article_href(slug)
        if not keyword or any(f"]({href})" in line for line in lines):
            return False
        mask = fence_mask(lines)
        for index, line in enumerate(lines):
            if not self._is_text_line(line, mask[index]):
                continue
            if "](/" in line:
                continue
            linked = link_first_occurrence(line, keyword, href)
            if linked != line:
                lines[index] = linked
                return True
        return False

    # Sentence placement

    def _prose_line(self, line: str, in_fence: bool) -> bool:
        stripped = line.strip()
        return (
            self._is_text_line(line, in_fence)
            and not stripped.startswith((">", "|"))
            and not _LIST_RE.match(stripped)
        )

    def _layout(self, lines: Sequence[str]) -> list[_Paragraph]:
        mask = fence_mask(lines)
        layout: list[_Paragraph] = []
        start = None
        for index in range(len(lines) + 1):
            blank = index == len(lines) or not lines[index].strip()
            if not blank:
                if start is None:
                    start = index
                continue
            if start is None:
                continue
            eligible = all(self._prose_line(lines[i], mask[i]) for i in range(start, index))
            layout.append(_Paragraph(start=start, end=index - 1, number=len(layout), eligible=eligible))
            start = None
        return layout

    def _pick_home(self, lines: Sequence[str], layout: Sequence[_Paragraph]) -> _Paragraph | None:
        total = len(lines)
        low, high = int(total * 0.3), int(total * 0.7)
        middle = [entry for entry in layout if entry.eligible and low <= entry.start <= high]
        keywords = [keyword.lower() for keyword in self.cfg.info_keywords]
        for entry in middle:
            text = " ".join(lines[entry.start : entry.end + 1]).lower()
            if any(keyword in text for keyword in keywords):
                return entry
        return middle[0] if middle else None

    def _pick_category(
        self,
        lines: Sequence[str],
        layout: Sequence[_Paragraph],
        home: _Paragraph | None,
    ) -> _Paragraph | None:
        eligible = [entry for entry in layout if entry.eligible]
        if home is not None:
            eligible = [entry for entry in eligible if entry.number != home.number]
        if not eligible:
            return None

        def far_enough(entry: _Paragraph, minimum: int) -> bool:
            return home is None or abs(entry.number - home.number) >= minimum

        half = len(lines) / 2
        if home is not None and home.start < half:
            primary = [entry for entry in eligible if entry.start >= half]
        else:
            primary = [entry for entry in eligible if entry.start < half]
        for entry in primary:
            if far_enough(entry, self.cfg.min_distance):
                return entry

        after_intro = [entry for entry in eligible if 2 <= entry.start <= 14]
        for entry in after_intro:
            if far_enough(entry, self.cfg.fallback_min_distance):
                return entry

        for entry in eligible[-10:]:
            if far_enough(entry, self.cfg.fallback_min_distance):
                return entry
        return None

    def _insert_sentences(
        self,
        lines: list[str],
        plan: KeywordLinkPlan,
        category: str,
    ) -> tuple[bool, bool]:
        text = "\n".join(lines)
        home_href = self.cfg.home_path
        cat_href = self.category_href(category) if category else None
        want_home = f"]({home_href})" not in text
        want_category = cat_href is not None and f"]({cat_href})" not in text

        layout = self._layout(lines)
        home = self._pick_home(lines, layout) if want_home else None
        eligible_count = sum(1 for entry in layout if entry.eligible)
        if home is not None and eligible_count < self.cfg.min_paragraphs_for_both:
            want_category = False
        chosen_category = None
        if want_category:
            anchor = home
            if anchor is None and not want_home:
                anchor = _existing_anchor(layout, lines, f"]({home_href})")
            chosen_category = self._pick_category(lines, layout, anchor)

        insertions: list[tuple[int, str]] = []
        if home is not None:
            brand_link = f"[{self.site.name}]({home_href})"
            sentence = HOME_TEMPLATES[plan.home_sentence_variant].format(brand_link=brand_link)
            insertions.append((home.end, sentence))
        if chosen_category is not None:
            category_link = f"[{category}]({cat_href})"
            sentence = CATEGORY_TEMPLATES[plan.category_sentence_variant].format(
                category_link=category_link
            )
            insertions.append((chosen_category.end, sentence))

        for index, sentence in sorted(insertions, reverse=True):
            block = ["", sentence]
            following = index + 1
            if following < len(lines) and lines[following].strip():
                block.append("")
            lines[following:following] = block
        return home is not None, chosen_category is not None


def _existing_anchor(
    layout: Sequence[_Paragraph], lines: Sequence[str], marker: str
) -> _Paragraph | None:
    for entry in layout:
        if any(marker in line for line in lines[entry.start : entry.end + 1]):
            return entry
    return None


def add_links(
    content: str,
    title: str,
    article_identifier: str | None,
    tags: Sequence[str],
    category: str,
    slug: str,
    related_lookup: RelatedLookup | None = None,
    cfg: LinkingConfig | None = None,
    site: SiteConfig | None = None,
) -> str:
    """Convenience wrapper around ``KeywordLinker.add_links``."""
    linker = KeywordLinker(cfg=cfg, site=site, related_lookup=related_lookup)
    return linker.add_links(content, title, article_identifier, tags, category, slug)
