"""Tests for hot-swappable LLM provider factory."""

import pytest

from republisher.config import AppConfig, LoggingConfig, ProviderConfig
from republisher.llm.providers.factory import available_providers, create_provider, create_providers
from republisher.llm.providers.gemini import GeminiProvider
from republisher.llm.providers.openai_compatible import OpenAICompatibleProvider


def test_available_providers_contains_expected_backends():
    names = available_providers()
    assert "gemini" in names
    assert "openai" in names
    assert "openai_compatible" in names


def test_create_provider_gemini():
    provider = create_provider(
        ProviderConfig(
            name="google",
            kind="gemini",
            models=["gemini-2.0-flash-lite"],
            api_key="test-key",
            base_url="https://generativelanguage.googleapis.com",
        ),
        LoggingConfig(),
        llm_logger=None,
    )
    assert isinstance(provider, GeminiProvider)
    assert provider.api_keys == ["test-key"]
    assert provider.variants == ["minimal", "full"]


def test_create_provider_openai_compatible():
    provider = create_provider(
        ProviderConfig(
            name="openai",
            kind="openai",
            models=["gpt-4o-mini", "gpt-4o"],
            api_key="test-key",
            base_url="https://api.openai.com/v1",
        ),
        LoggingConfig(),
        llm_logger=None,
    )
    assert isinstance(provider, OpenAICompatibleProvider)
    assert provider.models == ["gpt-4o-mini"]
    assert provider.variants == ["full"]


def test_create_provider_without_keys_is_unconfigured(monkeypatch):
    monkeypatch.delenv("NO_SUCH_KEY", raising=False)
    monkeypatch.delenv("NO_SUCH_KEY_1", raising=False)

    provider = create_provider(ProviderConfig(api_key_env="NO_SUCH_KEY"))

    assert not provider.configured


def test_create_provider_rejects_unknown_backend():
    with pytest.raises(ValueError, match="Unsupported provider"):
        create_provider(
            ProviderConfig(
                name="unknown-provider",
                kind="unknown-provider",
                api_key="test-key",
                base_url="https://example.com",
            ),
            LoggingConfig(),
            llm_logger=None,
        )


def test_create_providers_keeps_config_order():
    providers = create_providers(AppConfig())

    assert [provider.name for provider in providers] == ["google", "openai"]
