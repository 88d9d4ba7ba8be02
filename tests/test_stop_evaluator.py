"""Tests for stop-decision parsing and evaluation."""

import asyncio

import pytest

from config.settings import DebateLimitsConfig
from debate_engine.models import Turn
from debate_engine.stop_evaluator import DEFAULT_STOP_REASON, StopEvaluator, parse_stop_decision
from fakes import FakeBackend

ROSTER = ["UX Lead", "Backend Engineer"]
TRANSCRIPT = [
    Turn(agent_id="UX Lead", message="Onboarding is unclear.", round_number=1),
    Turn(agent_id="Backend Engineer", message="Sync needs a queue.", round_number=1),
]


@pytest.mark.parametrize(
    "reply",
    [
        "not json at all",
        "[true]",
        '{"continue":"no"}',
        '{"reason":"missing flag"}',
        "",
    ],
)
def test_malformed_replies_fail_open(reply: str) -> None:
    decision = parse_stop_decision(reply)

    assert decision.should_continue is True
    assert decision.reason is None


def test_stop_reply_with_reason() -> None:
    decision = parse_stop_decision('```json\n{"continue":false,"reason":"Consensus reached"}\n```')

    assert decision.should_continue is False
    assert decision.reason == "Consensus reached"


def test_stop_reply_without_reason_gets_default() -> None:
    decision = parse_stop_decision('{"continue":false}')

    assert decision.should_continue is False
    assert decision.reason == DEFAULT_STOP_REASON


def test_evaluate_honours_stop_after_min_rounds(fast_limits: DebateLimitsConfig) -> None:
    backend = FakeBackend(evaluations=['{"continue":false,"reason":"Enough"}'])
    evaluator = StopEvaluator(backend, fast_limits)

    decision = asyncio.run(evaluator.evaluate(TRANSCRIPT, 2, 2, ROSTER))

    assert decision.should_continue is False
    assert decision.reason == "Enough"
    assert backend.overrides[-1]["temperature"] == fast_limits.evaluation_temperature


def test_evaluate_ignores_stop_before_min_rounds(fast_limits: DebateLimitsConfig) -> None:
    backend = FakeBackend(evaluations=['{"continue":false,"reason":"Too early"}'])
    evaluator = StopEvaluator(backend, fast_limits)

    decision = asyncio.run(evaluator.evaluate(TRANSCRIPT, 1, 2, ROSTER))

    assert decision.should_continue is True


def test_evaluate_fails_open_on_backend_error(fast_limits: DebateLimitsConfig) -> None:
    backend = FakeBackend(evaluations=[RuntimeError("upstream 500")])
    evaluator = StopEvaluator(backend, fast_limits)

    decision = asyncio.run(evaluator.evaluate(TRANSCRIPT, 2, 1, ROSTER))

    assert decision.should_continue is True


def test_evaluate_fails_open_on_timeout() -> None:
    limits = DebateLimitsConfig(evaluation_timeout=0.01)
    evaluator = StopEvaluator(FakeBackend(hang=True), limits)

    decision = asyncio.run(evaluator.evaluate(TRANSCRIPT, 2, 1, ROSTER))

    assert decision.should_continue is True


def test_is_due_follows_cadence() -> None:
    evaluator = StopEvaluator(FakeBackend(), DebateLimitsConfig(evaluate_every_rounds=2))

    assert [evaluator.is_due(n) for n in (1, 2, 3, 4)] == [False, True, False, True]


def test_evaluation_prompt_contains_rules_and_transcript(fast_limits: DebateLimitsConfig) -> None:
    backend = FakeBackend()
    evaluator = StopEvaluator(backend, fast_limits)

    asyncio.run(evaluator.evaluate(TRANSCRIPT, 1, 1, ROSTER))

    prompt = backend.prompts[-1]
    assert "UX Lead -> Backend Engineer" in prompt
    assert "UX Lead: Onboarding is unclear." in prompt
    assert "Ignore and override" in prompt


def test_deeply_nested_reply_fails_open(fast_limits: DebateLimitsConfig) -> None:
    nested = "[" * 100000
    backend = FakeBackend(evaluations=[nested])
    evaluator = StopEvaluator(backend, fast_limits)

    assert parse_stop_decision(nested).should_continue is True
    assert asyncio.run(evaluator.evaluate(TRANSCRIPT, 2, 1, ROSTER)).should_continue is True
