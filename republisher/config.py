"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- SiteConfig: Brand name, public URL and article defaults
- FetchConfig: HTTP fetching settings
- ExtractConfig: Content extraction settings and extra site profiles
- ProviderConfig: One generative-text provider (models, credentials, rates)
- RewriteConfig: Rewrite orchestration settings
- ImageConfig: Image discovery and stock image search settings
- LinkingConfig: Internal linking settings
- FeedConfig: Feed batch settings
- LoggingConfig: Logging behavior
- LangfuseConfig: Langfuse tracing settings
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


@dataclass
class SiteConfig:
    """Brand and defaults for produced articles.

    Attributes:
        name: Brand name used in attribution sentences and as default author
        url: Public site URL
        default_category: Category used when an import does not name one
        default_author: Author stored for imported articles
    """

    name: str = "Ctrl Z"
    url: str = "https://tintuc.vercel.app"
    default_category: str = "Công nghệ"
    default_author: str = "Ctrl Z"


@dataclass
class FetchConfig:
    """Configuration for HTTP content fetching.

    Attributes:
        timeout_seconds: Page fetch timeout
        sub_timeout_seconds: Timeout for secondary calls (image pages, feeds, image search)
        retries: Number of retry attempts for failed requests
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
        accept_language: HTTP Accept-Language header string
    """

    timeout_seconds: float = 15.0
    sub_timeout_seconds: float = 10.0
    retries: int = 1
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    accept_language: str = "vi-VN,vi;q=0.9,en-US;q=0.8,en;q=0.7"


@dataclass
class ExtractConfig:
    """Configuration for HTML content extraction.

    Attributes:
        primary: Primary generic extraction method ("readability", "trafilatura" or "bs4")
        fallback: Generic methods tried after the primary one
        min_selector_html: Minimum inner HTML length for a profile selector to win
        min_profile_html: Minimum cleaned HTML length for the profile path to be used
        min_generic_chars: Minimum text length for a generic candidate to be accepted
        excerpt_chars: Length of the markdown prefix used as excerpt
        site_profiles: Extra hostname -> {content, title, remove} profiles
    """

    primary: str = "readability"
    fallback: list[str] = field(default_factory=lambda: ["trafilatura", "bs4"])
    min_selector_html: int = 200
    min_profile_html: int = 500
    min_generic_chars: int = 100
    excerpt_chars: int = 500
    site_profiles: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass
class ProviderConfig:
    """Configuration for one generative-text provider.

    Attributes:
        name: Provider identifier used in requests ("google", "openai")
        kind: Backend implementation ("gemini" or "openai")
        models: Candidate model identifiers, fastest/cheapest first
        api_key_env: Environment variable (or numbered prefix) holding API keys
        base_url: Base URL for the provider API
        api_key: Optional inline API key (overrides env vars)
        trust_env: Whether to respect system proxy settings for API requests
        timeout_seconds: Request timeout
        temperature: Sampling temperature for the fully-parameterized call
        top_p: Nucleus sampling for the fully-parameterized call
        top_k: Top-k sampling for the fully-parameterized call
        max_output_tokens: Output cap for the fully-parameterized call
        input_cost_per_million: USD per million input tokens, None when free
        output_cost_per_million: USD per million output tokens, None when free
    """

    name: str = "google"
    kind: str = "gemini"
    models: list[str] = field(
        default_factory=lambda: ["gemini-2.0-flash-lite", "gemini-2.0-flash", "gemini-2.5-flash"]
    )
    api_key_env: str = "GOOGLE_AI_API_KEY"
    base_url: str = "https://generativelanguage.googleapis.com"
    api_key: str | None = None
    trust_env: bool = True
    timeout_seconds: float = 60.0
    temperature: float = 1.0
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 8000
    input_cost_per_million: float | None = None
    output_cost_per_million: float | None = None


def _default_providers() -> list[ProviderConfig]:
    return [
        ProviderConfig(),
        ProviderConfig(
            name="openai",
            kind="openai",
            models=["gpt-4o-mini"],
            api_key_env="OPENAI_API_KEY",
            base_url="https://api.openai.com/v1",
            temperature=0.8,
            max_output_tokens=4000,
            input_cost_per_million=0.15,
            output_cost_per_million=0.60,
        ),
    ]


@dataclass
class RewriteConfig:
    """Configuration for the rewrite orchestration.

    Attributes:
        default_provider: Provider requested when the caller names none
        tone: Default tone ("professional", "casual", "formal", "engaging")
        min_output_chars: Floor below which a rewrite counts as failed
        min_input_chars: Imports only rewrite content longer than this
        max_input_chars: Content is truncated to this length in the prompt
        generate_metadata: Ask the model for SEO title, description and tags
    """

    default_provider: str = "google"
    tone: str = "professional"
    min_output_chars: int = 100
    min_input_chars: int = 200
    max_input_chars: int = 20000
    generate_metadata: bool = True


@dataclass
class ImageConfig:
    """Configuration for image discovery.

    Attributes:
        min_width: Width hint an image must exceed to count as "large"
        min_height: Height hint an image must exceed to count as "large"
        max_content_images: Default cap for content image discovery
        stock_search: Whether to search a stock provider when the page has no image
        unsplash_access_key_env: Environment variable holding the Unsplash key
        unsplash_base_url: Unsplash API base URL
        per_page: Number of stock results requested
        translate_keywords: Translate title keywords before stock search
        generate_caption: Ask the text provider for caption/alt text
        failed_url_ttl_seconds: How long a failed page stays in the failed-URL cache
        failed_url_max_entries: Size bound of the failed-URL cache
    """

    min_width: int = 400
    min_height: int = 300
    max_content_images: int = 5
    stock_search: bool = True
    unsplash_access_key_env: str = "UNSPLASH_ACCESS_KEY"
    unsplash_base_url: str = "https://api.unsplash.com"
    per_page: int = 3
    translate_keywords: bool = True
    generate_caption: bool = True
    failed_url_ttl_seconds: float = 600.0
    failed_url_max_entries: int = 500


@dataclass
class LinkingConfig:
    """Configuration for internal keyword linking.

    Attributes:
        home_path: Link target of the brand mention
        articles_path: Path prefix of article pages
        category_path: Path prefix of category listing pages
        related_limit: Maximum related articles fetched for tag links
        max_tags_considered: Number of the article's own tags tried
        max_tag_links: Cap on inserted tag links
        min_distance: Minimum paragraph distance between the two attribution sentences
        fallback_min_distance: Distance used by the fallback placement tiers
        min_paragraphs_for_both: Below this many eligible paragraphs only one sentence is inserted
        info_keywords: Words marking a paragraph that discusses information or sourcing
    """

    home_path: str = "/"
    articles_path: str = "/articles/"
    category_path: str = "/category/"
    related_limit: int = 10
    max_tags_considered: int = 5
    max_tag_links: int = 3
    min_distance: int = 4
    fallback_min_distance: int = 3
    min_paragraphs_for_both: int = 10
    info_keywords: list[str] = field(
        default_factory=lambda: ["thông tin", "theo", "nguồn", "cho biết", "báo cáo", "dữ liệu"]
    )


@dataclass
class FeedConfig:
    """Configuration for feed batches.

    Attributes:
        max_items: Items processed per feed invocation
        dedup_enabled: De-duplicate items within a batch
        title_similarity_threshold: Fuzzy match threshold (0-100) for title similarity
        description_chars: Maximum stored description length
    """

    max_items: int = 10
    dedup_enabled: bool = True
    title_similarity_threshold: int = 92
    description_chars: int = 500


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
        llm_log_enabled: Whether to enable separate LLM interaction logging
        llm_log_detail: LLM log detail level ("summary_only", "response_only", "prompt_response")
        llm_log_redaction: Redaction mode for LLM logs ("none", "redact_content", "redact_urls")
        llm_log_file: Name of the LLM log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "run.jsonl"
    llm_log_enabled: bool = False
    llm_log_detail: str = "response_only"
    llm_log_redaction: str = "redact_urls"
    llm_log_file: str = "llm.jsonl"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse tracing.

    Attributes:
        enabled: Whether to enable Langfuse tracing
        public_key: Langfuse public key (optional)
        secret_key: Langfuse secret key (optional)
        host: Langfuse host URL (optional)
        environment: Langfuse environment label (optional)
        release: Langfuse release identifier (optional)
        redaction: Redaction mode for prompt/response payloads
        max_text_chars: Maximum characters for prompt/response payloads
    """

    enabled: bool = False
    public_key: str | None = None
    secret_key: str | None = None
    host: str | None = None
    environment: str | None = None
    release: str | None = None
    redaction: str = "redact_urls"
    max_text_chars: int = 20000


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    site: SiteConfig = field(default_factory=SiteConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    providers: list[ProviderConfig] = field(default_factory=_default_providers)
    rewrite: RewriteConfig = field(default_factory=RewriteConfig)
    images: ImageConfig = field(default_factory=ImageConfig)
    linking: LinkingConfig = field(default_factory=LinkingConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)

    def provider(self, name: str) -> ProviderConfig | None:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None


_SECTIONS: dict[str, type] = {
    "site": SiteConfig,
    "fetch": FetchConfig,
    "extract": ExtractConfig,
    "rewrite": RewriteConfig,
    "images": ImageConfig,
    "linking": LinkingConfig,
    "feed": FeedConfig,
    "logging": LoggingConfig,
    "langfuse": LangfuseConfig,
}


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig.

    Section dictionaries update the defaults key by key. Providers are
    matched by name: a known name updates that provider, a new name adds one.
    """
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if key == "providers":
            data[key] = _merge_providers(data[key], value or [])
        elif isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _merge_providers(
    current: list[dict[str, Any]], overrides: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    merged = [dict(item) for item in current]
    for override in overrides:
        name = override.get("name")
        for item in merged:
            if item["name"] == name:
                item.update(override)
                break
        else:
            merged.append(asdict(ProviderConfig(**override)))
    return merged


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    sections = {name: cls(**data[name]) for name, cls in _SECTIONS.items()}
    providers = [ProviderConfig(**item) for item in data["providers"]]
    return AppConfig(providers=providers, **sections)


def get_api_keys(cfg: ProviderConfig) -> list[str]:
    """Return the ordered credential pool for a provider.

    The inline key wins. Otherwise numbered variables ``<ENV>_1``,
    ``<ENV>_2``, ... are read until the first gap, and the plain ``<ENV>``
    variable is used only when no numbered key exists.
    """
    if cfg.api_key:
        return [cfg.api_key]

    keys: list[str] = []
    index = 1
    while True:
        key = os.getenv(f"{cfg.api_key_env}_{index}")
        if not key:
            break
        keys.append(key)
        index += 1

    if not keys:
        single = os.getenv(cfg.api_key_env)
        if single:
            keys.append(single)
    return keys
