"""Server-sent event encoding and the per-session event stream."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from .types import DebateEvent, EventPayload

logger = logging.getLogger(__name__)


def encode_sse(event: str, data: Any) -> str:
    """Serialize one event as a server-sent-event record."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class EventStream:
    """Single-writer queue of encoded SSE records.

    ``emit`` never blocks and records are delivered in emit order. After
    ``close`` further events are dropped and iteration finishes once the
    queue drains.
    """

    def __init__(self):
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: DebateEvent, payload: EventPayload) -> None:
        name = event.value if isinstance(event, DebateEvent) else str(event)
        if self._closed:
            logger.debug(f"Dropping '{name}' event emitted after close")
            return
        self._queue.put_nowait(encode_sse(name, payload))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            record = await self._queue.get()
            if record is None:
                return
            yield record
