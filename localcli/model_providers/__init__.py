"""Provider abstractions for model backends."""

from .base import ModelError, ModelProvider
from .adapters import (
    LlamaCppProvider,
    OllamaProvider,
    OpenAIProvider,
    ServerProvider,
    create_provider,
)

__all__ = [
    "ModelProvider",
    "ModelError",
    "OllamaProvider",
    "ServerProvider",
    "OpenAIProvider",
    "LlamaCppProvider",
    "create_provider",
]
