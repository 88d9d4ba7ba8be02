"""Client for the PRD debate API."""

from .debate_client import DebateClient, DebateClientError, RateLimitedError
from .sse_parser import DebateFeed, SSEEvent, SSEParser

__all__ = [
    "DebateClient",
    "DebateClientError",
    "RateLimitedError",
    "DebateFeed",
    "SSEEvent",
    "SSEParser",
]
