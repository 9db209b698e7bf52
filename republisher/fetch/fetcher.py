"""
HTTP page fetching for source articles, images and feeds.

Requests carry a browser-like User-Agent and a Vietnamese-first
Accept-Language so news sites serve the regular article page. Network
errors and 5xx responses are retried; other non-2xx responses fail at once.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time

import httpx

from ..config import FetchConfig
from ..utils.logging import log_event


logger = logging.getLogger(__name__)

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        text: The response body text, or None on error
        error: Error message if fetch failed, None on success
        final_url: URL after redirects
        content: Raw response body, kept for feed parsing
    """

    url: str
    status_code: int | None
    text: str | None
    error: str | None
    final_url: str | None = None
    content: bytes | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


def build_headers(cfg: FetchConfig) -> dict[str, str]:
    return {
        "User-Agent": cfg.user_agent,
        "Accept": _ACCEPT,
        "Accept-Language": cfg.accept_language,
    }


def fetch_url(
    url: str,
    cfg: FetchConfig,
    timeout: float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> FetchResult:
    """Fetch a URL using httpx with retry logic.

    Args:
        url: The URL to fetch
        cfg: Fetch settings (headers, retries, proxy behavior)
        timeout: Override of ``cfg.timeout_seconds`` for sub-calls
        transport: Optional httpx transport, used by tests to stub the network

    Returns:
        FetchResult with text on success or error message on failure
    """
    headers = build_headers(cfg)
    last_error: str | None = None
    last_status: int | None = None
    effective_timeout = timeout if timeout is not None else cfg.timeout_seconds

    for attempt in range(cfg.retries + 1):
        try:
            with httpx.Client(
                timeout=effective_timeout,
                headers=headers,
                follow_redirects=True,
                trust_env=cfg.trust_env,
                transport=transport,
            ) as client:
                resp = client.get(url)
        except httpx.HTTPError as exc:
            last_error = f"{type(exc).__name__}: {exc}"
            last_status = None
        else:
            if resp.is_success:
                return FetchResult(
                    url=url,
                    status_code=resp.status_code,
                    text=resp.text,
                    error=None,
                    final_url=str(resp.url),
                    content=resp.content,
                )
            last_status = resp.status_code
            last_error = f"HTTP {resp.status_code}: {resp.reason_phrase}"
            if resp.status_code < 500:
                break
        if attempt < cfg.retries:
            time.sleep(0.5 * (attempt + 1))

    log_event(logger, "Fetch failed", event="fetch_failed", url=url, status_code=last_status, error=last_error)
    return FetchResult(url=url, status_code=last_status, text=None, error=last_error)
