"""Tests for single-turn generation: streaming, word cap, fallback."""

import asyncio
from collections.abc import AsyncIterator

from config.settings import DebateLimitsConfig
from debate_engine.models import Turn
from debate_engine.turn_generator import TurnGenerator
from debate_engine.utils import count_words
from fakes import FakeBackend, RecordingSink

PRD = "Project: Team Calendar."
ROSTER = ["UX Lead", "Backend Engineer"]


def run_turn(
    backend: object,
    sink: RecordingSink,
    limits: DebateLimitsConfig,
    transcript: list[Turn] | None = None,
) -> Turn:
    generator = TurnGenerator(backend, sink, limits)
    return asyncio.run(
        generator.generate_turn("UX Lead", "You champion the user.", 1, transcript or [], PRD, ROSTER)
    )


class PartialThenHangBackend:
    """Streams a few words, then stalls; the fallback call fails."""

    def __init__(self):
        self.fallback_calls = 0

    async def generate_response(self, model_id: str, prompt: str, **overrides: object) -> str:
        self.fallback_calls += 1
        raise RuntimeError("fallback unavailable")

    async def generate_response_stream(
        self, model_id: str, prompt: str, cancel_event: asyncio.Event | None = None, **overrides: object
    ) -> AsyncIterator[str]:
        yield "Partial   answer "
        await asyncio.sleep(3600)


def test_streamed_turn_emits_start_deltas_end(
    fake_backend: FakeBackend, sink: RecordingSink, fast_limits: DebateLimitsConfig
) -> None:
    turn = run_turn(fake_backend, sink, fast_limits)

    assert turn == Turn(agent_id="UX Lead", message="Solid point about scope.", round_number=1)
    assert sink.names() == ["turn-start", "turn-delta", "turn-delta", "turn-end"]
    assert sink.payloads("turn-start") == [{"agentId": "UX Lead", "round": 1}]
    assert [p["delta"] for p in sink.payloads("turn-delta")] == ["Solid point ", "about scope."]
    assert sink.payloads("turn-end") == [
        {"agentId": "UX Lead", "message": "Solid point about scope.", "round": 1}
    ]
    assert fake_backend.fallback_calls == 0


def test_word_cap_cancels_stream_and_limits_deltas(
    sink: RecordingSink, fast_limits: DebateLimitsConfig
) -> None:
    backend = FakeBackend(streams=[[f"w{i} " for i in range(200)]])

    turn = run_turn(backend, sink, fast_limits)

    forwarded = "".join(str(p["delta"]) for p in sink.payloads("turn-delta"))
    assert count_words(turn.message) == fast_limits.max_turn_words
    assert count_words(forwarded) <= fast_limits.max_turn_words
    assert backend.cancel_events[0] is not None and backend.cancel_events[0].is_set()
    assert backend.closed_streams == 1


def test_stream_error_uses_fallback(sink: RecordingSink, fast_limits: DebateLimitsConfig) -> None:
    backend = FakeBackend(
        streams=[["Half a thought ", RuntimeError("connection reset")]],
        fallbacks=["A complete   fallback answer."],
    )

    turn = run_turn(backend, sink, fast_limits)

    assert turn.message == "A complete fallback answer."
    assert backend.fallback_calls == 1
    assert sink.names()[-1] == "turn-end"


def test_empty_stream_uses_fallback(sink: RecordingSink, fast_limits: DebateLimitsConfig) -> None:
    backend = FakeBackend(streams=[[]], fallbacks=["Fallback text."])

    turn = run_turn(backend, sink, fast_limits)

    assert turn.message == "Fallback text."


def test_timeout_keeps_partial_text_when_fallback_fails(
    sink: RecordingSink, fast_limits: DebateLimitsConfig
) -> None:
    limits = fast_limits.model_copy(update={"turn_timeout": 0.05})
    backend = PartialThenHangBackend()

    turn = run_turn(backend, sink, limits)

    assert turn.message == "Partial answer"
    assert backend.fallback_calls == 1
    assert sink.payloads("turn-end")[0]["message"] == "Partial answer"


def test_total_failure_still_ends_turn(sink: RecordingSink) -> None:
    limits = DebateLimitsConfig(turn_timeout=0.02, turn_pause_seconds=0.0)

    turn = run_turn(FakeBackend(hang=True), sink, limits)

    assert turn.message == ""
    assert sink.names() == ["turn-start", "turn-end"]


def test_turn_prompt_carries_transcript_and_persona(
    fake_backend: FakeBackend, sink: RecordingSink, fast_limits: DebateLimitsConfig
) -> None:
    transcript = [Turn(agent_id="Backend Engineer", message="Use a queue.", round_number=1)]

    run_turn(fake_backend, sink, fast_limits, transcript)

    prompt = fake_backend.prompts[0]
    assert "Persona for UX Lead: You champion the user." in prompt
    assert "Backend Engineer: Use a queue." in prompt
    assert f"maximum {fast_limits.max_turn_words} words" in prompt
