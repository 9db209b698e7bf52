"""
Error taxonomy for the republishing pipeline.

Fetch and extraction errors are absorbed by the import layer and turned into
human-readable reasons. Rewrite errors fall back to the unrewritten content.
Only ProviderNotConfigured is meant to reach the operator.
"""

from __future__ import annotations

import httpx


_QUOTA_MARKERS = (
    "429",
    "quota",
    "too many requests",
    "resource_exhausted",
    "insufficient_quota",
)


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class FetchFailed(PipelineError):
    def __init__(self, url: str, reason: str, status_code: int | None = None):
        super().__init__(f"Could not fetch {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class ExtractionInsufficient(PipelineError):
    def __init__(self, url: str):
        super().__init__(f"Could not extract article content from {url}")
        self.url = url


class ProviderError(PipelineError):
    """A single failed call to a text-generation backend."""

    def __init__(self, message: str, status_code: int | None = None, quota_exceeded: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.quota_exceeded = quota_exceeded


class ProviderNotConfigured(PipelineError):
    pass


class RewriteFailed(PipelineError):
    pass


class RewriteQuotaExceeded(RewriteFailed):
    pass


class RewriteTooShort(RewriteFailed):
    def __init__(self, length: int, minimum: int):
        super().__init__(f"Rewritten content too short ({length} < {minimum} characters)")
        self.length = length
        self.minimum = minimum


def is_quota_message(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _QUOTA_MARKERS)


def classify_provider_error(exc: Exception) -> ProviderError:
    """Wrap any backend failure into a ProviderError with its quota class.

    Args:
        exc: Exception raised by a provider call

    Returns:
        ProviderError whose ``quota_exceeded`` flag is set for HTTP 429 or
        for messages that mention quota or rate limiting.
    """
    if isinstance(exc, ProviderError):
        return exc

    status_code = None
    message = f"{type(exc).__name__}: {exc}"
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        body = exc.response.text[:500]
        message = f"HTTP {status_code}: {body}"

    quota = status_code == 429 or is_quota_message(message)
    return ProviderError(message, status_code=status_code, quota_exceeded=quota)


class StorageError(PipelineError):
    """The storage collaborator refused or failed to persist an article."""
