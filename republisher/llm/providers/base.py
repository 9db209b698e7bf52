"""Abstract interface for generative-text backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

import httpx

from ...config import LoggingConfig, ProviderConfig
from ...core.errors import ProviderError, classify_provider_error
from ...utils.logging import log_event, redact_text, truncate_text
from ..tracing import record_span_error, set_span_output, start_span


@dataclass
class Generation:
    """Text returned by one provider call.

    Attributes:
        text: Generated text
        tokens_used: Provider-reported total tokens, None when not reported
    """

    text: str
    tokens_used: int | None = None


class TextProvider(ABC):
    """A text-generation backend with an ordered credential pool.

    Subclasses implement ``_request``; ``complete`` adds tracing, LLM
    logging and error classification around it.

    Attributes:
        cfg: Provider configuration (models, rates, sampling parameters)
        api_keys: Ordered credentials; iterated in order on every call
        supports_variants: Whether minimal and fully-parameterized calls are
            both attempted per model
    """

    supports_variants: bool = False

    def __init__(
        self,
        cfg: ProviderConfig,
        api_keys: list[str],
        log_cfg: LoggingConfig | None = None,
        llm_logger: logging.Logger | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.cfg = cfg
        self.api_keys = list(api_keys)
        self.log_cfg = log_cfg or LoggingConfig()
        self.llm_logger = llm_logger
        self.transport = transport

    @property
    def name(self) -> str:
        return self.cfg.name

    @property
    def configured(self) -> bool:
        return bool(self.api_keys)

    @property
    def models(self) -> list[str]:
        if self.supports_variants:
            return list(self.cfg.models)
        return list(self.cfg.models[:1])

    @property
    def variants(self) -> list[str]:
        return ["minimal", "full"] if self.supports_variants else ["full"]

    def complete(
        self,
        prompt: str,
        model: str,
        key_index: int,
        variant: str = "full",
        system: str | None = None,
    ) -> Generation:
        """Run one call with credential ``key_index``.

        Raises:
            ProviderError: Any failure, with ``quota_exceeded`` set for quota errors
        """
        api_key = self.api_keys[key_index]
        with start_span(
            f"{self.cfg.kind}.generate",
            kind="llm",
            input_value=prompt,
            attributes={
                "llm.provider": self.name,
                "llm.model": model,
                "llm.variant": variant,
                "llm.key_number": key_index + 1,
            },
        ) as span:
            try:
                generation = self._request(prompt, model, api_key, variant, system)
            except Exception as exc:  # noqa: BLE001
                error = classify_provider_error(exc)
                record_span_error(span, error)
                self._log_call(model, key_index, variant, "quota_exceeded" if error.quota_exceeded else "error", prompt, str(error))
                raise error from exc
            set_span_output(span, generation.text)
            self._log_call(model, key_index, variant, "ok", prompt, generation.text)
            return generation

    @abstractmethod
    def _request(
        self,
        prompt: str,
        model: str,
        api_key: str,
        variant: str,
        system: str | None,
    ) -> Generation:
        """Perform the HTTP call and return the generated text."""
        raise NotImplementedError

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.cfg.timeout_seconds,
            trust_env=self.cfg.trust_env,
            transport=self.transport,
        )

    def _log_call(
        self,
        model: str,
        key_index: int,
        variant: str,
        status: str,
        prompt: str,
        content: str,
    ) -> None:
        if self.llm_logger is None:
            return
        detail = self.log_cfg.llm_log_detail
        redaction = self.log_cfg.llm_log_redaction
        payload = {
            "event": "llm_generate",
            "status": status,
            "provider": self.name,
            "model": model,
            "variant": variant,
            "key_number": key_index + 1,
        }
        if detail == "prompt_response":
            payload["raw_prompt"] = truncate_text(redact_text(prompt, redaction))
        if detail != "summary_only":
            payload["raw_response"] = truncate_text(redact_text(content, redaction))
        log_event(self.llm_logger, "LLM call", **payload)


def require_text(text: str | None, status_code: int | None = None) -> str:
    if not text or not text.strip():
        raise ProviderError("Provider returned empty content", status_code=status_code)
    return text
