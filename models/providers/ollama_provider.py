import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from openai import AsyncOpenAI, OpenAIError

from .base_model_provider import BaseModelProvider
from .exceptions import ProviderError

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletion
    from config.settings import SystemConfig, ModelConfig

logger = logging.getLogger(__name__)


class OllamaProvider(BaseModelProvider):
    """Ollama model provider implementation."""

    def __init__(self, system_config: "SystemConfig", client: AsyncOpenAI | None = None):
        super().__init__(system_config)
        self._ollama_base_url = system_config.ollama.base_url
        self._client = client or AsyncOpenAI(
            base_url=f"{self._ollama_base_url}/v1",
            api_key="ollama",  # Ollama doesn't require real API key
            timeout=120.0,  # Allow for model loading on first request
            max_retries=0,
        )

    @property
    def provider_name(self) -> str:
        return "ollama"

    def _params(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], overrides: dict[str, Any]
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": model_config.name,
            "messages": messages,
            "max_tokens": overrides.get("max_tokens", model_config.max_tokens),
            "temperature": overrides.get("temperature", model_config.temperature),
        }

        # Add Ollama-specific parameters to extra_body
        ollama_config = self.system_config.ollama
        extra_body = {}
        if ollama_config.keep_alive is not None:
            extra_body["keep_alive"] = ollama_config.keep_alive
        if ollama_config.repeat_penalty is not None:
            extra_body["repeat_penalty"] = ollama_config.repeat_penalty
        if extra_body:
            params["extra_body"] = extra_body
        return params

    async def generate_response(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], **overrides
    ) -> str:
        """Generate a response using Ollama."""
        params = self._params(model_config, messages, overrides)
        try:
            response: "ChatCompletion" = await self._client.chat.completions.create(**params)
        except OpenAIError as e:
            logger.error(f"Ollama generation failed for {model_config.name}: {e}")
            raise ProviderError(self.provider_name, str(e)) from e

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated {len(content)} chars from Ollama model {model_config.name}")
        return content.strip()

    def validate_model_config(self, model_config: "ModelConfig") -> bool:
        """Validate Ollama model configuration."""
        return model_config.provider == "ollama"

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[dict[str, str]],
        cancel_event: asyncio.Event | None = None,
        **overrides,
    ) -> AsyncIterator[str]:
        """Stream a response from Ollama's OpenAI-compatible endpoint."""
        params = self._params(model_config, messages, overrides)
        try:
            stream = await self._client.chat.completions.create(stream=True, **params)
            async with stream:
                async for chunk in stream:
                    if cancel_event is not None and cancel_event.is_set():
                        logger.debug(f"Ollama stream for {model_config.name} cancelled")
                        return
                    if not chunk.choices:
                        continue
                    content_chunk = chunk.choices[0].delta.content
                    if content_chunk:
                        yield content_chunk
        except OpenAIError as e:
            logger.error(f"Ollama streaming failed for {model_config.name}: {e}")
            raise ProviderError(self.provider_name, str(e)) from e
