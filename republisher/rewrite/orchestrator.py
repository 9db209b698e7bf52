"""
Rewrite orchestration across providers, models and credentials.

One rewrite is an explicit walk over ``(model, credential, variant)``
attempts for the chosen provider:
- Variant providers (Gemini): models outer, credentials inner, a minimal
  call then a fully-parameterized call per credential. A quota error on the
  minimal call moves straight to the next credential.
- Single-model providers (OpenAI): one call per credential. Quota errors
  move to the next credential; any other error aborts at once.

Accepted output is stripped of code fences, its SEO metadata block is
parsed off, and the remaining body must meet the length floor.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re

from ..config import AppConfig, ProviderConfig, RewriteConfig
from ..core.errors import (
    ProviderError,
    ProviderNotConfigured,
    RewriteFailed,
    RewriteQuotaExceeded,
    RewriteTooShort,
)
from ..core.types import RewriteRequest, RewriteResult
from ..llm.prompts import (
    REWRITE_SYSTEM_MESSAGE,
    build_caption_prompt,
    build_rewrite_prompt,
    build_translate_keywords_prompt,
)
from ..llm.providers.base import Generation, TextProvider
from ..llm.providers.factory import create_providers
from ..llm.tracing import record_span_error, set_span_output, start_span
from ..utils.logging import log_event


logger = logging.getLogger(__name__)

_FENCE_START_RE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_FENCE_END_RE = re.compile(r"\n?```$")
_METADATA_RE = re.compile(
    r"---\s*SEO_TITLE:\s*(.+?)\s+SEO_DESC:\s*(.+?)\s+TAGS:\s*\[(.+?)\]\s*(?:---)?\s*$",
    re.DOTALL,
)
_METADATA_START_RE = re.compile(r"---\s*SEO_TITLE:.*$", re.DOTALL)


@dataclass
class Attempt:
    model: str
    key_index: int
    variant: str


class RewriteOrchestrator:
    """Rewrite article bodies through pluggable text providers.

    Attributes:
        providers: Providers in preference order, keyed by name
        cfg: Rewrite settings (floor, default provider, metadata)
    """

    def __init__(self, providers: list[TextProvider], cfg: RewriteConfig | None = None):
        self.providers = {provider.name: provider for provider in providers}
        self.cfg = cfg or RewriteConfig()

    @classmethod
    def from_config(cls, cfg: AppConfig, llm_logger=None, transport=None) -> "RewriteOrchestrator":
        return cls(create_providers(cfg, llm_logger=llm_logger, transport=transport), cfg.rewrite)

    def resolve_provider(self, requested: str | None) -> TextProvider:
        """Requested provider when it has credentials, else the first one that does.

        Raises:
            ProviderNotConfigured: No provider has any credential
        """
        name = requested or self.cfg.default_provider
        provider = self.providers.get(name)
        if provider is not None and provider.configured:
            return provider
        for candidate in self.providers.values():
            if candidate.configured:
                log_event(
                    logger,
                    "Requested provider not configured, falling back",
                    event="provider_fallback",
                    requested=name,
                    actual=candidate.name,
                )
                return candidate
        raise ProviderNotConfigured(
            "No text provider is configured. Set GOOGLE_AI_API_KEY_1, GOOGLE_AI_API_KEY_2, ... "
            "or OPENAI_API_KEY."
        )

    def rewrite(
        self,
        title: str,
        content: str,
        tone: str | None = None,
        provider: str | None = None,
    ) -> RewriteResult:
        """Rewrite an article body.

        Args:
            title: Original title
            content: Original markdown body
            tone: "professional", "casual", "formal" or "engaging"
            provider: Requested provider name

        Returns:
            RewriteResult whose content meets the length floor

        Raises:
            ProviderNotConfigured: No provider has credentials
            RewriteQuotaExceeded: Every attempt failed on quota
            RewriteTooShort: Accepted output is below the floor
            RewriteFailed: Any other failure
        """
        request = RewriteRequest(
            title=title,
            content=content,
            tone=tone or self.cfg.tone,
            provider=provider or self.cfg.default_provider,
        )
        chosen = self.resolve_provider(request.provider)
        prompt = build_rewrite_prompt(
            request.title,
            request.content,
            request.tone,
            self.cfg.max_input_chars,
            self.cfg.generate_metadata,
        )

        with start_span(
            "rewrite",
            kind="chain",
            input_value={"title": title, "chars": len(content)},
            attributes={"rewrite.provider": chosen.name, "rewrite.tone": request.tone},
        ) as span:
            try:
                generation, attempt = self._generate(chosen, prompt)
                result = self._build_result(chosen, attempt, request, generation)
            except RewriteFailed as exc:
                record_span_error(span, exc)
                raise
            set_span_output(span, {"model": result.model_used, "chars": len(result.rewritten_content)})

        log_event(
            logger,
            "Rewrite completed",
            event="rewrite_ok",
            provider=result.provider_used,
            model=result.model_used,
            tokens=result.tokens_used,
            cost=result.cost_estimate,
            chars=len(result.rewritten_content),
        )
        return result

    def generate_text(self, prompt: str, provider: str | None = None) -> str | None:
        """Best-effort single generation for small helper prompts."""
        try:
            chosen = self.resolve_provider(provider)
            generation, _ = self._generate(chosen, prompt, system=None)
        except (RewriteFailed, ProviderNotConfigured) as exc:
            log_event(logger, "Helper generation failed", event="generate_failed", error=str(exc))
            return None
        return generation.text.strip()

    def caption(self, title: str) -> str | None:
        return self.generate_text(build_caption_prompt(title))

    def translate_keywords(self, keywords: str) -> str | None:
        return self.generate_text(build_translate_keywords_prompt(keywords))

    def _generate(
        self,
        provider: TextProvider,
        prompt: str,
        system: str | None = REWRITE_SYSTEM_MESSAGE,
    ) -> tuple[Generation, Attempt]:
        failures: list[ProviderError] = []
        for model in provider.models:
            for key_index in range(len(provider.api_keys)):
                for variant in provider.variants:
                    attempt = Attempt(model=model, key_index=key_index, variant=variant)
                    try:
                        return provider.complete(prompt, model, key_index, variant, system), attempt
                    except ProviderError as exc:
                        failures.append(exc)
                        log_event(
                            logger,
                            "Provider attempt failed",
                            event="rewrite_attempt_failed",
                            provider=provider.name,
                            model=model,
                            key_number=key_index + 1,
                            variant=variant,
                            quota=exc.quota_exceeded,
                            error=str(exc)[:300],
                        )
                        if exc.quota_exceeded:
                            break
                        if not provider.supports_variants:
                            raise RewriteFailed(f"{provider.name} request failed: {exc}") from exc

        if not failures:
            raise RewriteFailed(f"{provider.name} has no model or credential to try")
        if all(failure.quota_exceeded for failure in failures):
            raise RewriteQuotaExceeded(
                f"All {provider.name} credentials exceeded their quota. Wait for the reset or add credits/keys."
            )
        raise RewriteFailed(f"All {provider.name} attempts failed: {failures[-1]}")

    def _build_result(
        self,
        provider: TextProvider,
        attempt: Attempt,
        request: RewriteRequest,
        generation: Generation,
    ) -> RewriteResult:
        raw = strip_code_fence(generation.text)
        body, seo_title, seo_description, tags = (raw, None, None, [])
        if self.cfg.generate_metadata:
            body, seo_title, seo_description, tags = split_metadata(raw)

        if len(body) < self.cfg.min_output_chars:
            raise RewriteTooShort(len(body), self.cfg.min_output_chars)

        tokens = generation.tokens_used
        if tokens is None:
            tokens = (len(request.content) + len(generation.text)) // 4
        return RewriteResult(
            rewritten_content=body,
            tokens_used=tokens,
            cost_estimate=estimate_cost(tokens, provider.cfg),
            provider_used=provider.name,
            model_used=attempt.model,
            seo_title=seo_title,
            seo_description=seo_description,
            tags=tags,
        )


def strip_code_fence(text: str) -> str:
    """Remove a code fence wrapping the whole model output."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_START_RE.sub("", cleaned, count=1)
        cleaned = _FENCE_END_RE.sub("", cleaned)
    return cleaned.strip()


def split_metadata(text: str) -> tuple[str, str | None, str | None, list[str]]:
    """Split a trailing SEO metadata block off the body.

    Returns:
        (body, seo_title, seo_description, tags); the body is unchanged when
        no complete block is found
    """
    match = _METADATA_RE.search(text)
    if match is None:
        return text, None, None, []
    tags = [
        tag.strip().strip("\"'").lower()
        for tag in match.group(3).split(",")
    ]
    tags = [tag for tag in tags if 0 < len(tag) < 50]
    body = _METADATA_START_RE.sub("", text).strip()
    return body, match.group(1).strip(), match.group(2).strip(), tags


def estimate_cost(tokens: int, cfg: ProviderConfig) -> str:
    """Format the cost of ``tokens`` on a 50/50 input/output split."""
    if cfg.input_cost_per_million is None or cfg.output_cost_per_million is None:
        return "FREE"
    half = tokens * 0.5
    total = half / 1_000_000 * cfg.input_cost_per_million + half / 1_000_000 * cfg.output_cost_per_million
    return f"${total:.4f}"
