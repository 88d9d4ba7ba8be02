"""Tests for the OpenRouter and Ollama providers and the model manager."""

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from config.settings import ModelConfig, OpenRouterConfig, SystemConfig
from models.manager import ModelManager
from models.providers import OllamaProvider, OpenRouterProvider, ProviderError, ProviderRateLimitError

MODEL = ModelConfig(name="google/gemini-2.0-flash-001", provider="openrouter", max_tokens=100)


def sse_body(*chunks: object) -> bytes:
    lines = [": OPENROUTER PROCESSING", ""]
    for chunk in chunks:
        lines.append(f"data: {chunk if isinstance(chunk, str) else json.dumps(chunk)}")
        lines.append("")
    return ("\n".join(lines) + "\n").encode()


def delta(text: str, finish: str | None = None) -> dict:
    return {"choices": [{"delta": {"content": text}, "finish_reason": finish}]}


def openrouter(handler, requests: list[httpx.Request] | None = None) -> OpenRouterProvider:
    def recording_handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    system = SystemConfig(openrouter=OpenRouterConfig(api_key="test-key", app_name="PRD Debate"))
    client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return OpenRouterProvider(system, http_client=client)


async def collect(stream) -> list[str]:
    return [fragment async for fragment in stream]


def test_openrouter_streams_deltas_until_done() -> None:
    requests: list[httpx.Request] = []
    provider = openrouter(
        lambda _: httpx.Response(
            200,
            content=sse_body(delta("Hello "), "not json", delta("world"), "[DONE]", delta("ignored")),
            headers={"content-type": "text/event-stream"},
        ),
        requests,
    )

    fragments = asyncio.run(
        collect(provider.generate_response_stream(MODEL, [{"role": "user", "content": "hi"}], temperature=0.3))
    )

    assert fragments == ["Hello ", "world"]
    payload = json.loads(requests[0].content)
    assert payload["stream"] is True
    assert payload["temperature"] == 0.3
    assert payload["max_tokens"] == 100
    assert requests[0].headers["Authorization"] == "Bearer test-key"
    assert requests[0].headers["X-Title"] == "PRD Debate"


def test_openrouter_stream_stops_when_cancelled() -> None:
    provider = openrouter(
        lambda _: httpx.Response(200, content=sse_body(delta("one "), delta("two "), delta("three")))
    )
    cancel_event = asyncio.Event()

    async def scenario() -> list[str]:
        fragments = []
        async for fragment in provider.generate_response_stream(MODEL, [], cancel_event=cancel_event):
            fragments.append(fragment)
            cancel_event.set()
        return fragments

    assert asyncio.run(scenario()) == ["one "]


def test_openrouter_stream_error_payload_raises() -> None:
    provider = openrouter(
        lambda _: httpx.Response(200, content=sse_body({"error": {"message": "model overloaded"}}))
    )

    with pytest.raises(ProviderError, match="model overloaded"):
        asyncio.run(collect(provider.generate_response_stream(MODEL, [])))


def test_openrouter_rate_limit_is_typed() -> None:
    provider = openrouter(lambda _: httpx.Response(429, headers={"Retry-After": "12"}))

    with pytest.raises(ProviderRateLimitError) as exc_info:
        asyncio.run(provider.generate_response(MODEL, []))

    assert exc_info.value.retry_after == 12.0


def test_openrouter_http_error_is_wrapped() -> None:
    provider = openrouter(lambda _: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(ProviderError):
        asyncio.run(collect(provider.generate_response_stream(MODEL, [])))


def test_openrouter_generate_response() -> None:
    provider = openrouter(
        lambda _: httpx.Response(200, json={"choices": [{"message": {"content": "  Ship it.  "}}]})
    )

    assert asyncio.run(provider.generate_response(MODEL, [])) == "Ship it."


def test_openrouter_without_key_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    provider = OpenRouterProvider(SystemConfig())

    with pytest.raises(ProviderError, match="API key"):
        asyncio.run(provider.generate_response(MODEL, []))


class FakeChatStream:
    """Async context manager and iterator over scripted chunks."""

    def __init__(self, texts: list[str | None]):
        self._chunks = [
            SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))]) for text in texts
        ]
        self.closed = False

    async def __aenter__(self) -> "FakeChatStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            yield chunk


class FakeCompletions:
    def __init__(self, reply: str = "", stream: FakeChatStream | None = None):
        self.reply = reply
        self.stream = stream
        self.requests: list[dict] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if kwargs.get("stream"):
            return self.stream
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))])


def ollama(completions: FakeCompletions) -> OllamaProvider:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OllamaProvider(SystemConfig(), client=client)


def test_ollama_generate_response_passes_extra_body() -> None:
    completions = FakeCompletions(reply=" Ready. ")
    model = ModelConfig(name="llama3.2:3b", provider="ollama")

    reply = asyncio.run(ollama(completions).generate_response(model, [], temperature=0.2))

    assert reply == "Ready."
    assert completions.requests[0]["temperature"] == 0.2
    assert completions.requests[0]["extra_body"] == {"keep_alive": "5m", "repeat_penalty": 1.1}


def test_ollama_streams_and_closes() -> None:
    stream = FakeChatStream(["Hel", None, "lo"])
    model = ModelConfig(name="llama3.2:3b", provider="ollama")

    fragments = asyncio.run(collect(ollama(FakeCompletions(stream=stream)).generate_response_stream(model, [])))

    assert fragments == ["Hel", "lo"]
    assert stream.closed is True


def test_model_manager_routes_by_model_id() -> None:
    manager = ModelManager(SystemConfig())
    completions = FakeCompletions(reply="Routed.")
    manager._providers["ollama"] = ollama(completions)

    manager.register_model("debate", ModelConfig(name="llama3.2:3b", provider="ollama"))
    reply = asyncio.run(manager.generate_response("debate", "Say something"))

    assert reply == "Routed."
    assert completions.requests[0]["messages"] == [{"role": "user", "content": "Say something"}]


def test_model_manager_unknown_model() -> None:
    manager = ModelManager(SystemConfig())

    with pytest.raises(ValueError, match="not registered"):
        asyncio.run(manager.generate_response("synthesis", "prompt"))
