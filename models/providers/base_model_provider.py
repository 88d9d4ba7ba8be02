import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from config.settings import SystemConfig, ModelConfig

Messages = list[dict[str, str]]


class BaseModelProvider(ABC):
    """Common interface of the text generation backends."""

    def __init__(self, system_config: "SystemConfig"):
        self.system_config = system_config

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @abstractmethod
    async def generate_response(
        self, model_config: "ModelConfig", messages: Messages, **overrides
    ) -> str:
        """Return the complete reply for ``messages``."""

    @abstractmethod
    def validate_model_config(self, model_config: "ModelConfig") -> bool:
        """Whether ``model_config`` targets this provider."""

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: Messages,
        cancel_event: asyncio.Event | None = None,
        **overrides,
    ) -> AsyncIterator[str]:
        """Yield reply fragments in arrival order.

        Providers without native streaming inherit this version, which yields
        the full reply once unless ``cancel_event`` was set while waiting.
        Streaming providers must stop reading upstream once ``cancel_event``
        is set.
        """
        reply = await self.generate_response(model_config, messages, **overrides)
        if reply and not (cancel_event and cancel_event.is_set()):
            yield reply
