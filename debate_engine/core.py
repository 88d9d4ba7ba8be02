"""Core debate engine: the turn-taking state machine behind /debate."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from config.settings import DebateLimitsConfig
from .agents import AgentRegistry, agent_registry
from .exceptions import DebateValidationError
from .models import DebateSession
from .stop_evaluator import StopEvaluator
from .turn_generator import TurnGenerator
from .types import (
    DebateEvent,
    DebateState,
    EndEventData,
    ErrorEventData,
    EventSink,
    GenerationBackend,
    InfoEventData,
)

logger = logging.getLogger(__name__)

TIME_LIMIT_REASON = "Overall time limit reached"


def validate_debate_request(
    prd: object,
    agents: object,
    limits: DebateLimitsConfig,
    registry: AgentRegistry = agent_registry,
) -> list[str]:
    """Check a start-debate request and return the roster to use.

    Raises:
        DebateValidationError: 400 for a missing PRD or empty roster, 413 for
            an oversized PRD.
    """
    if not isinstance(prd, str) or not prd.strip():
        raise DebateValidationError("Missing PRD or agents")
    if len(prd) > limits.max_prd_chars:
        raise DebateValidationError("PRD too large", status_code=413)
    if not isinstance(agents, list) or not agents:
        raise DebateValidationError("Missing PRD or agents")

    roster = registry.filter_roster(agents, limits.max_agents)
    if not roster:
        raise DebateValidationError("Invalid agent list")
    return roster


class DebateEngine:
    """Runs one debate session, sequencing agents round by round.

    Events go to ``events``; ``run`` always finishes by emitting ``end`` and
    closing the sink, whatever ended the debate.
    """

    def __init__(
        self,
        limits: DebateLimitsConfig,
        backend: GenerationBackend,
        events: EventSink,
        model_id: str = "debate",
        registry: AgentRegistry = agent_registry,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.limits = limits
        self.events = events
        self.registry = registry
        self._sleep = sleep
        self.turn_generator = TurnGenerator(backend, events, limits, model_id=model_id)
        self.stop_evaluator = StopEvaluator(backend, limits, model_id=model_id)

    def create_session(self, prd: str, roster: list[str]) -> DebateSession:
        return DebateSession(
            prd=prd,
            roster=list(roster),
            deadline=time.monotonic() + self.limits.max_session_seconds,
        )

    async def run(self, session: DebateSession) -> DebateSession:
        """Run the session to completion."""
        session.state = DebateState.RUNNING
        start_time = time.monotonic()
        logger.info(
            f"Starting debate with {len(session.roster)} agents: {' -> '.join(session.roster)}"
        )

        try:
            await self._run_rounds(session)
        except Exception as e:
            session.failed = True
            logger.exception(f"Debate failed in round {session.current_round}: {e}")
            self.events.emit(
                DebateEvent.ERROR, ErrorEventData(error="Debate failed", detail=str(e))
            )
        finally:
            session.state = DebateState.ENDED
            self.events.emit(DebateEvent.END, EndEventData(ok=not session.failed))
            self.events.close()
            logger.info(
                f"Debate ended after {session.total_turns} turns in "
                f"{time.monotonic() - start_time:.1f}s"
                + (f" ({session.stop_reason})" if session.stop_reason else "")
            )

        return session

    def _deadline_passed(self, session: DebateSession) -> bool:
        return time.monotonic() >= session.deadline

    def _turn_cap_reached(self, session: DebateSession) -> bool:
        return len(session.transcript) >= self.limits.max_total_turns

    def _stop(self, session: DebateSession, reason: str) -> None:
        session.state = DebateState.STOPPING
        session.stopped = True
        session.stop_reason = reason
        self.events.emit(DebateEvent.INFO, InfoEventData(orchestratorStop=True, reason=reason))

    async def _run_rounds(self, session: DebateSession) -> None:
        for round_number in range(1, self.limits.max_rounds + 1):
            session.current_round = round_number
            if self._deadline_passed(session):
                self._stop(session, TIME_LIMIT_REASON)
                return

            for agent_id in session.roster:
                if self._deadline_passed(session):
                    self._stop(session, TIME_LIMIT_REASON)
                    return
                if self._turn_cap_reached(session):
                    logger.info(f"Turn cap of {self.limits.max_total_turns} reached")
                    return

                profile = self.registry.get_profile(agent_id)
                turn = await self.turn_generator.generate_turn(
                    agent_id,
                    profile.persona,
                    round_number,
                    list(session.transcript),
                    session.prd,
                    session.roster,
                    deadline=session.deadline,
                )
                session.append(turn)
                await self._sleep(self.limits.turn_pause_seconds)

            if self._turn_cap_reached(session) or round_number == self.limits.max_rounds:
                return
            if not self.stop_evaluator.is_due(round_number):
                continue
            if self._deadline_passed(session):
                self._stop(session, TIME_LIMIT_REASON)
                return

            decision = await self.stop_evaluator.evaluate(
                list(session.transcript),
                round_number,
                self.limits.min_rounds_before_stop,
                session.roster,
                deadline=session.deadline,
            )
            if not decision.should_continue:
                self._stop(session, decision.reason or "Stopping condition met")
                return
