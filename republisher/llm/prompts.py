"""Prompt loading and rendering helpers for text providers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path


_PROMPT_DIR = Path(__file__).resolve().parent.parent / "prompts"

TONE_INSTRUCTIONS: dict[str, str] = {
    "professional": "Giọng văn chuyên nghiệp, khách quan, phù hợp cho tin tức.",
    "casual": "Giọng văn thân thiện, gần gũi, dễ hiểu.",
    "formal": "Giọng văn trang trọng, học thuật.",
    "engaging": "Giọng văn hấp dẫn, thu hút, có nhiều câu hỏi và ví dụ.",
}

REWRITE_SYSTEM_MESSAGE = (
    "Bạn là một biên tập viên tin tức chuyên nghiệp, giỏi viết lại nội dung "
    "một cách độc đáo và hấp dẫn."
)


@lru_cache(maxsize=None)
def _load_template(name: str) -> str:
    path = _PROMPT_DIR / f"{name}.md"
    return path.read_text(encoding="utf-8").strip()


def _render_template(name: str, **values: str) -> str:
    template = _load_template(name)
    return template.format(**values)


def tone_instruction(tone: str) -> str:
    return TONE_INSTRUCTIONS.get(tone, TONE_INSTRUCTIONS["professional"])


def build_rewrite_prompt(
    title: str,
    content: str,
    tone: str,
    max_chars: int,
    generate_metadata: bool = True,
) -> str:
    metadata_block = f"\n{_load_template('rewrite_metadata')}\n\n" if generate_metadata else ""
    return _render_template(
        "rewrite",
        tone_instruction=tone_instruction(tone),
        title=title,
        content=content[:max_chars],
        metadata_block=metadata_block,
    )


def build_caption_prompt(title: str) -> str:
    return _render_template("image_caption", title=title)


def build_translate_keywords_prompt(keywords: str) -> str:
    return _render_template("translate_keywords", keywords=keywords)
