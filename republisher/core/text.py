"""Slug, hashing and keyword helpers shared by the pipeline stages."""

from __future__ import annotations

import hashlib
import re
import unicodedata


CATEGORY_SLUGS: dict[str, str] = {
    "Công nghệ": "cong-nghe",
    "Thể thao": "the-thao",
    "Sức khỏe": "suc-khoe",
    "Ô tô": "o-to",
    "Giải trí": "giai-tri",
    "Kinh doanh": "kinh-doanh",
    "Du lịch": "du-lich",
    "Giáo dục": "giao-duc",
    "Thời trang": "thoi-trang",
    "Ẩm thực": "am-thuc",
}

CATEGORIES: list[str] = list(CATEGORY_SLUGS)

# Tags and keywords that never make useful link anchors.
STOP_WORDS: frozenset[str] = frozenset(
    {
        "của", "và", "là", "có", "để", "được", "trong", "tại", "với", "cho",
        "từ", "về", "theo", "đã", "sẽ", "thì", "này", "đó", "hay", "hoặc",
        "the", "and", "for", "with", "new", "all", "more",
    }
)

# Words dropped when building stock image queries from a title.
IMAGE_STOP_WORDS: frozenset[str] = STOP_WORDS | frozenset(
    {
        "các", "những", "một", "vào", "ra", "đến", "lên", "xuống", "bị", "làm",
        "khi", "nếu", "vì", "như", "nhưng", "mà", "bằng", "không", "sau", "trước",
    }
)

_NUMERIC_RE = re.compile(r"^\d+$")


def strip_diacritics(text: str) -> str:
    """Fold Vietnamese text to ASCII (``đ`` becomes ``d``)."""
    text = text.replace("đ", "d").replace("Đ", "D")
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def to_slug(text: str, max_length: int = 100) -> str:
    """Convert a title to a URL slug.

    Args:
        text: Title or name, Vietnamese diacritics allowed
        max_length: Maximum slug length

    Returns:
        Lowercase ASCII slug with single hyphens, "untitled" when empty
    """
    slug = strip_diacritics(text).lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug)
    slug = slug[:max_length].strip("-")
    return slug or "untitled"


def category_slug(category: str) -> str:
    return CATEGORY_SLUGS.get(category) or to_slug(category)


def stable_index(seed: str, salt: str, modulo: int) -> int:
    """Pick an index in ``range(modulo)`` from a stable hash of ``salt:seed``."""
    if modulo <= 0:
        return 0
    digest = hashlib.md5(f"{salt}:{seed}".encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % modulo


def is_linkable_tag(tag: str) -> bool:
    """Return True when a tag can serve as link anchor text."""
    cleaned = tag.strip().lower()
    if _NUMERIC_RE.match(cleaned):
        return False
    if len(cleaned) < 3:
        return False
    return cleaned not in STOP_WORDS


def tags_match(a: str, b: str) -> bool:
    """Case-insensitive tag match: equal, or either one contains the other."""
    left = a.strip().lower()
    right = b.strip().lower()
    if not left or not right:
        return False
    return left in right or right in left


def truncate_description(text: str, limit: int = 160, cap: int = 200) -> str:
    flat = re.sub(r"\s+", " ", text).strip()
    if len(flat) <= limit:
        return flat
    return (flat[:limit] + "...")[:cap]
