"""Asks the orchestrator model whether the debate should end early."""

import logging

from config.settings import DebateLimitsConfig
from .gates import remaining_budget, with_timeout
from .models import StopDecision, Turn
from .prompts import build_evaluation_prompt, build_orchestrator_rules
from .types import GenerationBackend
from .utils import parse_model_json

logger = logging.getLogger(__name__)

DEFAULT_STOP_REASON = "Stopping condition met"


def parse_stop_decision(text: str) -> StopDecision:
    """Parse the evaluator's reply, failing open to ``continue`` on anything unexpected."""
    try:
        data = parse_model_json(text)
    except (ValueError, TypeError, RecursionError):
        logger.warning(f"Unparseable stop decision, continuing: {text[:200]!r}")
        return StopDecision(should_continue=True)

    if not isinstance(data, dict) or not isinstance(data.get("continue"), bool):
        logger.warning(f"Stop decision has unexpected shape, continuing: {data!r}")
        return StopDecision(should_continue=True)

    if data["continue"]:
        return StopDecision(should_continue=True)

    reason = data.get("reason")
    if not isinstance(reason, str) or not reason.strip():
        reason = DEFAULT_STOP_REASON
    return StopDecision(should_continue=False, reason=reason.strip())


class StopEvaluator:
    """Evaluates the transcript after a round and decides whether to stop."""

    def __init__(
        self,
        backend: GenerationBackend,
        limits: DebateLimitsConfig,
        model_id: str = "debate",
    ):
        self.backend = backend
        self.limits = limits
        self.model_id = model_id

    def is_due(self, round_number: int) -> bool:
        """Whether a stop decision is requested after ``round_number`` completes."""
        return round_number % self.limits.evaluate_every_rounds == 0

    async def evaluate(
        self,
        transcript: list[Turn],
        round_number: int,
        min_rounds_before_stop: int,
        roster: list[str],
        deadline: float | None = None,
    ) -> StopDecision:
        """Return the stop decision for the debate so far.

        Backend failures, timeouts and malformed replies all yield
        ``continue``. A stop request before ``min_rounds_before_stop`` is
        ignored.
        """
        rules = build_orchestrator_rules(roster, self.limits.max_turn_words)
        prompt = build_evaluation_prompt(rules, transcript)

        timeout = remaining_budget(self.limits.evaluation_timeout, deadline)
        if timeout <= 0:
            return StopDecision(should_continue=True)

        try:
            reply = await with_timeout(
                self.backend.generate_response(
                    self.model_id, prompt, temperature=self.limits.evaluation_temperature
                ),
                timeout,
            )
        except Exception as e:
            logger.warning(f"Stop evaluation failed after round {round_number}, continuing: {e}")
            return StopDecision(should_continue=True)

        decision = parse_stop_decision(reply)
        if decision.should_continue:
            return decision

        if round_number < min_rounds_before_stop:
            logger.info(
                f"Ignoring stop request in round {round_number} "
                f"(minimum {min_rounds_before_stop}): {decision.reason}"
            )
            return StopDecision(should_continue=True)

        logger.info(f"Orchestrator stop after round {round_number}: {decision.reason}")
        return decision
