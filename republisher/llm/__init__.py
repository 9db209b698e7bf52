"""Text generation backends, prompts and observability."""

from .providers.base import Generation, TextProvider
from .providers.factory import available_providers, create_provider, create_providers
from .providers.gemini import GeminiProvider
from .providers.openai_compatible import OpenAICompatibleProvider
from .tracing import flush, record_span_error, set_span_output, setup_langfuse, start_span

__all__ = [
    "Generation",
    "TextProvider",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "create_provider",
    "create_providers",
    "available_providers",
    "setup_langfuse",
    "flush",
    "start_span",
    "set_span_output",
    "record_span_error",
]
