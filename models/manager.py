"""Routes generation requests for named models to their providers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TypeAlias

from config.settings import ModelConfig, SystemConfig

from .providers import PROVIDER_CLASSES
from .providers.base_model_provider import BaseModelProvider

MessageList: TypeAlias = list[dict[str, str]]

logger = logging.getLogger(__name__)


def prompt_messages(prompt: str) -> MessageList:
    """Wrap a single prompt as a one-message conversation."""
    return [{"role": "user", "content": prompt}]


class ModelManager:
    """Maps model ids such as ``debate`` or ``synthesis`` to a config and provider.

    Providers are created lazily, one per provider name, and shared by every
    model registered against them.
    """

    def __init__(self, system_config: SystemConfig):
        self._system_config = system_config
        self._model_configs: dict[str, ModelConfig] = {}
        self._providers: dict[str, BaseModelProvider] = {}

    def _get_provider(self, provider_name: str) -> BaseModelProvider:
        provider = self._providers.get(provider_name)
        if provider is None:
            if provider_name not in PROVIDER_CLASSES:
                raise ValueError(
                    f"Unknown provider: {provider_name}. Available: {list(PROVIDER_CLASSES)}"
                )
            provider = PROVIDER_CLASSES[provider_name](self._system_config)
            self._providers[provider_name] = provider
        return provider

    def register_model(self, model_id: str, config: ModelConfig) -> None:
        provider = self._get_provider(config.provider)
        if not provider.validate_model_config(config):
            logger.error(f"Model {model_id} does not fit provider {config.provider}")
            raise ValueError(f"Invalid model config for provider {config.provider}")

        self._model_configs[model_id] = config
        logger.info(f"Registered model {model_id}: {config.name} ({config.provider})")

    def _resolve(self, model_id: str) -> tuple[ModelConfig, BaseModelProvider]:
        config = self._model_configs.get(model_id)
        if config is None:
            raise ValueError(f"Model {model_id} not registered")
        return config, self._get_provider(config.provider)

    async def generate_response(self, model_id: str, prompt: str, **overrides: object) -> str:
        config, provider = self._resolve(model_id)
        response = await provider.generate_response(config, prompt_messages(prompt), **overrides)
        logger.debug(f"Generated {len(response)} chars from {model_id} ({config.provider})")
        return response

    async def generate_response_stream(
        self,
        model_id: str,
        prompt: str,
        cancel_event: asyncio.Event | None = None,
        **overrides: object,
    ) -> AsyncIterator[str]:
        """Stream reply fragments from the model registered as ``model_id``."""
        config, provider = self._resolve(model_id)
        async for fragment in provider.generate_response_stream(
            config, prompt_messages(prompt), cancel_event=cancel_event, **overrides
        ):
            yield fragment
