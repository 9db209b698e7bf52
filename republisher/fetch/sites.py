"""Per-domain extraction profiles for supported Vietnamese news sites.

Adding a site is a data change: put a new hostname in ``SITE_PROFILES`` or
in ``extract.site_profiles`` of the YAML config.
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlparse

from ..core.types import SiteSelectorProfile


SITE_PROFILES: dict[str, SiteSelectorProfile] = {
    "vnexpress.net": SiteSelectorProfile(
        content_selectors=(
            "article.fck_detail",
            ".fck_detail",
            ".sidebar_1 .Normal",
            "article .Normal",
        ),
        title_selector="h1.title-detail",
        remove_selectors=(
            ".box_comment",
            ".box-emotion",
            ".box-category-footer",
            ".box-share-top",
            ".width_common.the_new",
            ".ads-tag",
            ".box-tinlienquanv2",
        ),
    ),
    "thanhnien.vn": SiteSelectorProfile(
        content_selectors=(
            "#main-detail .detail-cmain",
            ".detail-cmain",
            "article .pswp-content",
        ),
        title_selector="h1.detail-title",
        remove_selectors=(
            ".details__tags",
            ".details__author",
            ".box-category-content",
            ".article-relate",
        ),
    ),
    "tuoitre.vn": SiteSelectorProfile(
        content_selectors=(
            "#main-detail-content",
            ".detail-content",
            "article .content",
        ),
        title_selector="h1.article-title",
        remove_selectors=(
            ".box-comm",
            ".box-category-link-detail",
            ".VCSortableInPreviewMode",
        ),
    ),
    "zingnews.vn": SiteSelectorProfile(
        content_selectors=(
            ".the-article-body",
            "article .article-content",
            ".detail-content",
        ),
        title_selector="h1.article-title",
        remove_selectors=(
            ".article-relate",
            ".box-category",
            ".box-comment",
        ),
    ),
    "dantri.com.vn": SiteSelectorProfile(
        content_selectors=(
            ".singular-content",
            "article .e-magazine",
            ".detail-content",
        ),
        title_selector="h1.title-page",
        remove_selectors=(
            ".dt-thumbnail-ads",
            ".box-category",
        ),
    ),
}


def normalize_host(url: str) -> str:
    """Return the lowercase hostname of ``url`` without a leading ``www.``."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def profile_from_dict(raw: Mapping[str, Any]) -> SiteSelectorProfile:
    """Build a profile from a YAML mapping with ``content``, ``title`` and ``remove`` keys."""
    content = raw.get("content") or raw.get("content_selectors") or []
    if isinstance(content, str):
        content = [content]
    remove = raw.get("remove") or raw.get("remove_selectors") or []
    if isinstance(remove, str):
        remove = [remove]
    return SiteSelectorProfile(
        content_selectors=tuple(content),
        title_selector=raw.get("title") or raw.get("title_selector"),
        remove_selectors=tuple(remove),
    )


def build_profiles(extra: Mapping[str, Mapping[str, Any]] | None = None) -> dict[str, SiteSelectorProfile]:
    profiles = dict(SITE_PROFILES)
    for host, raw in (extra or {}).items():
        profiles[host.lower().removeprefix("www.")] = profile_from_dict(raw)
    return profiles


def lookup_profile(
    url: str, profiles: Mapping[str, SiteSelectorProfile] | None = None
) -> SiteSelectorProfile | None:
    """Find the profile for a URL, exact host first, then parent domains.

    ``m.vnexpress.net`` resolves to the ``vnexpress.net`` profile.
    """
    table = SITE_PROFILES if profiles is None else profiles
    host = normalize_host(url)
    if not host:
        return None
    if host in table:
        return table[host]
    parts = host.split(".")
    for idx in range(1, len(parts) - 1):
        parent = ".".join(parts[idx:])
        if parent in table:
            return table[parent]
    return None
