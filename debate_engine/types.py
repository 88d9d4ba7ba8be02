"""Shared types and enums for the debate engine."""

import asyncio
from collections.abc import AsyncIterator
from enum import Enum
from typing import Protocol, TypedDict


class DebateState(Enum):
    """Lifecycle states of a debate session."""

    VALIDATING = "validating"
    RUNNING = "running"
    STOPPING = "stopping"
    ENDED = "ended"


class DebateEvent(str, Enum):
    """Server-sent event names."""

    TURN_START = "turn-start"
    TURN_DELTA = "turn-delta"
    TURN_END = "turn-end"
    INFO = "info"
    ERROR = "error"
    END = "end"


class TurnStartEventData(TypedDict):
    """Data structure for turn-start events."""

    agentId: str
    round: int


class TurnDeltaEventData(TypedDict):
    """Data structure for turn-delta events."""

    agentId: str
    delta: str


class TurnEndEventData(TypedDict):
    """Data structure for turn-end events."""

    agentId: str
    message: str
    round: int


class InfoEventData(TypedDict):
    """Data structure for orchestrator info events."""

    orchestratorStop: bool
    reason: str


class ErrorEventData(TypedDict):
    """Data structure for error events."""

    error: str
    detail: str


class EndEventData(TypedDict):
    """Data structure for the terminal end event."""

    ok: bool


EventPayload = (
    TurnStartEventData
    | TurnDeltaEventData
    | TurnEndEventData
    | InfoEventData
    | ErrorEventData
    | EndEventData
)


class GenerationBackend(Protocol):
    """What the debate engine needs from a text generation backend.

    ``ModelManager`` satisfies this; tests substitute scripted fakes.
    """

    async def generate_response(self, model_id: str, prompt: str, **overrides: object) -> str:
        ...

    def generate_response_stream(
        self,
        model_id: str,
        prompt: str,
        cancel_event: asyncio.Event | None = None,
        **overrides: object,
    ) -> AsyncIterator[str]:
        ...


class EventSink(Protocol):
    """Destination for orchestrator events."""

    def emit(self, event: DebateEvent, payload: EventPayload) -> None:
        ...

    def close(self) -> None:
        ...
