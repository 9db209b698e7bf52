"""OpenAI-compatible chat completions provider."""

from __future__ import annotations

from typing import Any

from .base import Generation, TextProvider, require_text


class OpenAICompatibleProvider(TextProvider):
    """Single-model chat backend (OpenAI or any compatible endpoint)."""

    supports_variants = False

    def _request(
        self,
        prompt: str,
        model: str,
        api_key: str,
        variant: str,
        system: str | None,
    ) -> Generation:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {"model": model, "messages": messages}
        if variant == "full":
            payload["temperature"] = self.cfg.temperature
            payload["max_tokens"] = self.cfg.max_output_tokens

        url = f"{self.cfg.base_url.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {api_key}"}
        with self._client() as client:
            resp = client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
            data = resp.json()

        text = require_text(_extract_text(data), resp.status_code)
        usage = data.get("usage") or {}
        total = usage.get("total_tokens")
        return Generation(text=text, tokens_used=int(total) if isinstance(total, int) else None)


def _extract_text(data: dict[str, Any]) -> str:
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        return ""
