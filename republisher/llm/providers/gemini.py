"""Google Gemini provider over the public generateContent REST API."""

from __future__ import annotations

from typing import Any

from .base import Generation, TextProvider, require_text


class GeminiProvider(TextProvider):
    """Gemini backend; tries each model with a minimal then a full config.

    Some models reject explicit sampling parameters, so the minimal call
    sends only the prompt and the full call adds temperature, top-p, top-k
    and the output token cap.
    """

    supports_variants = True

    def _request(
        self,
        prompt: str,
        model: str,
        api_key: str,
        variant: str,
        system: str | None,
    ) -> Generation:
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        if variant == "full":
            payload["generationConfig"] = {
                "temperature": self.cfg.temperature,
                "maxOutputTokens": self.cfg.max_output_tokens,
                "topP": self.cfg.top_p,
                "topK": self.cfg.top_k,
            }

        url = f"{self.cfg.base_url}/v1beta/models/{model}:generateContent"
        with self._client() as client:
            resp = client.post(url, params={"key": api_key}, json=payload)
            resp.raise_for_status()
            data = resp.json()

        text = require_text(_extract_text(data), resp.status_code)
        return Generation(text=text, tokens_used=_extract_tokens(data))


def _extract_text(data: dict[str, Any]) -> str:
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def _extract_tokens(data: dict[str, Any]) -> int | None:
    usage = data.get("usageMetadata") or {}
    total = usage.get("totalTokenCount")
    return int(total) if isinstance(total, int) else None
