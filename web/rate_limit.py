"""Per-client fixed-window request limiting."""

import logging
import math
import threading
import time
from dataclasses import dataclass

from fastapi import Request

from config.settings import RateLimitConfig

logger = logging.getLogger(__name__)


@dataclass
class RateRecord:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    retry_after: int = 0


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For entry, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = forwarded.split(",")[0].strip()
    if ip:
        return ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimiter:
    """In-memory fixed-window counter keyed by client."""

    def __init__(self, config: RateLimitConfig):
        self.config = config
        self._records: dict[str, RateRecord] = {}
        self._lock = threading.Lock()

    def check(self, client_key: str, now: float | None = None) -> RateDecision:
        if not self.config.enabled:
            return RateDecision(allowed=True)

        now = time.monotonic() if now is None else now
        key = f"anon:{client_key}"
        with self._lock:
            record = self._records.get(key)
            if record is None or now > record.reset_at:
                self._records[key] = RateRecord(count=1, reset_at=now + self.config.window_seconds)
                return RateDecision(allowed=True)

            if record.count >= self.config.max_requests:
                retry_after = math.ceil(max(0.0, record.reset_at - now))
                logger.info(f"Rate limit hit for {key}, retry in {retry_after}s")
                return RateDecision(allowed=False, retry_after=retry_after)

            record.count += 1
            return RateDecision(allowed=True)

    def cleanup_expired(self, now: float | None = None) -> int:
        """Drop windows that have already reset. Returns how many were removed."""
        now = time.monotonic() if now is None else now
        with self._lock:
            expired = [key for key, record in self._records.items() if now > record.reset_at]
            for key in expired:
                del self._records[key]
        return len(expired)
