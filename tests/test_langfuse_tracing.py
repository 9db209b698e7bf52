"""Tests for Langfuse tracing setup behavior."""

from __future__ import annotations

import sys
import types

from republisher.config import LangfuseConfig
from republisher.llm import tracing


def test_setup_langfuse_reads_keys_and_host_from_env(monkeypatch):
    captured: dict = {}

    class DummyLangfuse:
        def __init__(self, **kwargs):
            captured.update(kwargs)

    fake_module = types.SimpleNamespace(Langfuse=DummyLangfuse)
    monkeypatch.setitem(sys.modules, "langfuse", fake_module)
    monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-test")
    monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-test")
    monkeypatch.setenv("LANGFUSE_HOST", "https://us.cloud.langfuse.com")

    tracing.setup_langfuse(LangfuseConfig(enabled=True, environment="staging"))

    assert captured["public_key"] == "pk-test"
    assert captured["secret_key"] == "sk-test"
    assert captured["host"] == "https://us.cloud.langfuse.com"
    assert captured["environment"] == "staging"
    assert tracing.get_tracer() is not None

    tracing.setup_langfuse(LangfuseConfig())


def test_setup_langfuse_disables_tracer_when_keys_missing(monkeypatch):
    monkeypatch.delenv("LANGFUSE_PUBLIC_KEY", raising=False)
    monkeypatch.delenv("LANGFUSE_SECRET_KEY", raising=False)

    tracing.setup_langfuse(LangfuseConfig(enabled=True))

    assert tracing.get_tracer() is None


def test_span_helpers_are_noops_without_tracer():
    tracing.setup_langfuse(LangfuseConfig())

    with tracing.start_span("import_url", kind="chain", input_value={"url": "https://example.com"}) as span:
        tracing.set_span_output(span, "done")
        tracing.record_span_error(span, RuntimeError("boom"))

    assert span is None
    tracing.flush()
