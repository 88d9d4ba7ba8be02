"""Model providers package."""

from .ollama_provider import OllamaProvider
from .open_router_provider import OpenRouterProvider
from .base_model_provider import BaseModelProvider
from .exceptions import ProviderError, ProviderRateLimitError

PROVIDER_CLASSES: dict[str, type[BaseModelProvider]] = {
    "ollama": OllamaProvider,
    "openrouter": OpenRouterProvider,
}

__all__ = [
    "PROVIDER_CLASSES",
    "OllamaProvider",
    "OpenRouterProvider",
    "BaseModelProvider",
    "ProviderError",
    "ProviderRateLimitError",
]
