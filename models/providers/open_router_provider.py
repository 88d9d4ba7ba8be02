import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import httpx

from .base_model_provider import BaseModelProvider
from .exceptions import ProviderError, ProviderRateLimitError

if TYPE_CHECKING:
    from config.settings import SystemConfig, ModelConfig

logger = logging.getLogger(__name__)


class OpenRouterProvider(BaseModelProvider):
    """OpenRouter model provider implementation."""

    def __init__(
        self,
        system_config: "SystemConfig",
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(system_config)
        self._http_client = http_client

        # Get API key from config or environment
        self._api_key = system_config.openrouter.api_key or os.getenv("OPENROUTER_API_KEY")
        if not self._api_key:
            logger.warning(
                "No OpenRouter API key found. Set OPENROUTER_API_KEY or configure in system settings."
            )

    @property
    def provider_name(self) -> str:
        return "openrouter"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if self.system_config.openrouter.site_url:
            headers["HTTP-Referer"] = self.system_config.openrouter.site_url
        if self.system_config.openrouter.app_name:
            headers["X-Title"] = self.system_config.openrouter.app_name
        return headers

    def _payload(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], overrides: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "model": model_config.name,
            "messages": messages,
            "max_tokens": overrides.get("max_tokens", model_config.max_tokens),
            "temperature": overrides.get("temperature", model_config.temperature),
            "reasoning": {"exclude": True},
        }

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self.system_config.openrouter.timeout)

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise ProviderRateLimitError(
                self.provider_name, float(retry_after) if retry_after else None
            )
        response.raise_for_status()

    async def generate_response(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], **overrides
    ) -> str:
        """Generate a response using OpenRouter."""
        if not self._api_key:
            raise ProviderError(self.provider_name, "client not initialized - check API key")

        payload = self._payload(model_config, messages, overrides)
        client = self._client()
        try:
            http_response = await client.post(
                f"{self.system_config.openrouter.base_url}/chat/completions",
                json=payload,
                headers=self._headers(),
            )
            self._raise_for_status(http_response)
            response_data = http_response.json()
            content = response_data["choices"][0]["message"]["content"] or ""
        except ProviderError:
            raise
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.error(f"OpenRouter generation failed for {model_config.name}: {e}")
            raise ProviderError(self.provider_name, str(e)) from e
        finally:
            if client is not self._http_client:
                await client.aclose()

        if not content.strip():
            logger.warning(f"OpenRouter model {model_config.name} returned empty content")
        else:
            logger.debug(f"Generated {len(content)} chars from OpenRouter model {model_config.name}")

        return content.strip()

    def validate_model_config(self, model_config: "ModelConfig") -> bool:
        """Validate OpenRouter model configuration."""
        return model_config.provider == "openrouter"

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[dict[str, str]],
        cancel_event: asyncio.Event | None = None,
        **overrides,
    ) -> AsyncIterator[str]:
        """Generate a streaming response using OpenRouter with SSE.

        Leaving the ``async with client.stream(...)`` block closes the
        upstream connection, so setting ``cancel_event`` or closing this
        generator stops the request rather than merely ignoring it.
        """
        if not self._api_key:
            raise ProviderError(self.provider_name, "client not initialized - check API key")

        payload = self._payload(model_config, messages, overrides)
        payload["stream"] = True

        client = self._client()
        try:
            async with client.stream(
                "POST",
                f"{self.system_config.openrouter.base_url}/chat/completions",
                json=payload,
                headers=self._headers(),
            ) as response:
                self._raise_for_status(response)

                async for line in response.aiter_lines():
                    if cancel_event is not None and cancel_event.is_set():
                        logger.debug(f"OpenRouter stream for {model_config.name} cancelled")
                        return

                    line = line.strip()
                    # Skip empty lines and comments
                    if not line or line.startswith(":"):
                        continue
                    if not line.startswith("data:"):
                        continue

                    data = line[5:].strip()
                    if data == "[DONE]":
                        return

                    try:
                        parsed = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug(f"Skipping invalid JSON in stream: {data[:100]}...")
                        continue

                    if "error" in parsed:
                        error_msg = parsed["error"].get("message", "Unknown streaming error")
                        raise ProviderError(self.provider_name, f"Streaming error: {error_msg}")

                    choices = parsed.get("choices") or []
                    if not choices:
                        continue
                    content_chunk = (choices[0].get("delta") or {}).get("content")
                    if content_chunk:
                        yield content_chunk
                    if choices[0].get("finish_reason"):
                        return
        except ProviderError:
            raise
        except httpx.HTTPError as e:
            logger.error(f"OpenRouter streaming failed for {model_config.name}: {e}")
            raise ProviderError(self.provider_name, str(e)) from e
        finally:
            if client is not self._http_client:
                await client.aclose()
