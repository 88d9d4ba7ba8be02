"""HTTP client for the PRD debate API."""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from .sse_parser import DebateFeed, SSEEvent, SSEParser

logger = logging.getLogger(__name__)


class DebateClientError(Exception):
    """The server rejected a request or returned an unusable response."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


class RateLimitedError(DebateClientError):
    """The server answered 429."""

    def __init__(self, detail: str, retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(429, detail)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code == 429:
        retry_after = response.headers.get("Retry-After")
        raise RateLimitedError(
            _error_detail(response),
            int(retry_after) if retry_after and retry_after.isdigit() else None,
        )
    if response.status_code >= 400:
        raise DebateClientError(response.status_code, _error_detail(response))


class DebateClient:
    """Async client for selecting experts, streaming debates and synthesizing PRDs."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ):
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "DebateClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def select_agents(self, prd: str) -> list[str]:
        response = await self._client.post("/api/select-agents", json={"prd": prd})
        _raise_for_status(response)
        return list(response.json().get("agents", []))

    async def stream_debate(self, prd: str, agents: list[str]) -> AsyncIterator[SSEEvent]:
        """Start a debate and yield its events as they arrive."""
        parser = SSEParser()
        async with self._client.stream(
            "POST",
            "/api/debate",
            json={"prd": prd, "agents": agents},
            headers={"Accept": "text/event-stream"},
        ) as response:
            if response.status_code >= 400:
                await response.aread()
                _raise_for_status(response)

            async for chunk in response.aiter_text():
                for event in parser.feed(chunk):
                    yield event
            for event in parser.flush():
                yield event

    async def run_debate(self, prd: str, agents: list[str]) -> DebateFeed:
        """Run a debate to completion and return the rebuilt transcript."""
        feed = DebateFeed()
        async for event in self.stream_debate(prd, agents):
            feed.apply(event)
        if not feed.ended:
            logger.warning("Debate stream closed without an end event")
        return feed

    async def synthesize_prd(self, prd: str, debate: list[tuple[str, str]]) -> str:
        payload: dict[str, Any] = {
            "prd": prd,
            "debate": [{"name": name, "message": message} for name, message in debate],
        }
        response = await self._client.post("/api/synthesize-prd", json=payload)
        _raise_for_status(response)
        return str(response.json().get("improvedPrd", ""))
