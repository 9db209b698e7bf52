"""Text-generation backends."""

from .base import Generation, TextProvider
from .factory import available_providers, create_provider, create_providers
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider

__all__ = [
    "Generation",
    "TextProvider",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "available_providers",
    "create_provider",
    "create_providers",
]
