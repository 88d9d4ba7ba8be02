"""Concurrency and timeout gates guarding calls to the generation backend."""

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from .exceptions import BusyError, GenerationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Permit:
    """A held slot on a gate key. Releasing more than once is a no-op."""

    def __init__(self, gate: "ConcurrencyGate", key: str):
        self._gate = gate
        self.key = key
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._gate._decrement(self.key)


class ConcurrencyGate:
    """Process-wide named counters bounding in-flight operations per key.

    A caller that finds a key at its limit fails immediately with
    ``BusyError``; there is no queueing.
    """

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def acquire(self, key: str, limit: int) -> Permit:
        with self._lock:
            current = self._counters.get(key, 0)
            if current >= limit:
                logger.info(f"Gate '{key}' busy ({current}/{limit})")
                raise BusyError(key, limit)
            self._counters[key] = current + 1
        return Permit(self, key)

    def _decrement(self, key: str) -> None:
        with self._lock:
            self._counters[key] = max(self._counters.get(key, 1) - 1, 0)

    @contextmanager
    def hold(self, key: str, limit: int) -> Iterator[Permit]:
        """Hold a slot for the duration of the block."""
        permit = self.acquire(key, limit)
        try:
            yield permit
        finally:
            permit.release()

    def in_flight(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)


async def with_timeout(operation: Awaitable[T], seconds: float) -> T:
    """Await ``operation``, cancelling it if it takes longer than ``seconds``.

    Cancellation is delivered into the operation, so a streaming read wrapped
    here closes its upstream response instead of running on in the background.
    """
    try:
        return await asyncio.wait_for(operation, timeout=seconds)
    except TimeoutError as e:
        raise GenerationTimeoutError(seconds) from e


def remaining_budget(seconds: float, deadline: float | None) -> float:
    """Clamp a per-call timeout to the time left before ``deadline``."""
    if deadline is None:
        return seconds
    return max(0.0, min(seconds, deadline - time.monotonic()))


# Global gate instance
concurrency_gate = ConcurrencyGate()
