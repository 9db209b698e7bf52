"""Provider factory and registry for hot-swappable text backends."""

from __future__ import annotations

import logging

import httpx

from ...config import AppConfig, LoggingConfig, ProviderConfig, get_api_keys
from .base import TextProvider
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider


ProviderBuilder = type[TextProvider]

_PROVIDER_REGISTRY: dict[str, ProviderBuilder] = {
    "gemini": GeminiProvider,
    "google": GeminiProvider,
    "openai": OpenAICompatibleProvider,
    "openai_compatible": OpenAICompatibleProvider,
    "openai-compatible": OpenAICompatibleProvider,
}


def available_providers() -> list[str]:
    """Return the set of registered backend names."""
    return sorted(_PROVIDER_REGISTRY.keys())


def create_provider(
    provider_cfg: ProviderConfig,
    log_cfg: LoggingConfig | None = None,
    llm_logger: logging.Logger | None = None,
    transport: httpx.BaseTransport | None = None,
) -> TextProvider:
    """Build a provider instance from runtime config.

    The provider is built even without credentials; callers check
    ``provider.configured`` before using it.
    """
    kind = provider_cfg.kind.lower().strip()
    builder = _PROVIDER_REGISTRY.get(kind)
    if builder is None:
        supported = ", ".join(available_providers())
        raise ValueError(f"Unsupported provider: {provider_cfg.kind}. Supported: {supported}")
    return builder(provider_cfg, get_api_keys(provider_cfg), log_cfg, llm_logger, transport)


def create_providers(
    cfg: AppConfig,
    llm_logger: logging.Logger | None = None,
    transport: httpx.BaseTransport | None = None,
) -> list[TextProvider]:
    """Build every configured provider in config order."""
    return [create_provider(item, cfg.logging, llm_logger, transport) for item in cfg.providers]
