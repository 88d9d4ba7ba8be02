"""Service layer behind the debate, role-selection and synthesis endpoints."""

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import suppress

from config.settings import AppConfig, DebateLimitsConfig
from debate_engine.agents import AgentRegistry, agent_registry
from debate_engine.core import DebateEngine, validate_debate_request
from debate_engine.events import EventStream
from debate_engine.exceptions import DebateError
from debate_engine.gates import ConcurrencyGate, Permit, concurrency_gate, with_timeout
from debate_engine.prompts import build_role_selection_prompt, build_synthesis_prompt
from debate_engine.types import GenerationBackend
from debate_engine.utils import parse_model_json

logger = logging.getLogger(__name__)

DEBATE_GATE_KEY = "llm-debate"
DEBATE_GATE_LIMIT = 1
ROLE_GATE_KEY = "llm-role"
ROLE_GATE_LIMIT = 3

DEBATE_MODEL_ID = "debate"
ROLE_MODEL_ID = "role_selection"
SYNTHESIS_MODEL_ID = "synthesis"


class RoleSelectionError(DebateError):
    """The role-selection model did not return a usable JSON array."""


def parse_role_selection(text: str, registry: AgentRegistry, max_agents: int) -> list[str]:
    """Parse a JSON array of role names, keeping only known roles."""
    try:
        data = parse_model_json(text)
    except (ValueError, TypeError, RecursionError) as e:
        raise RoleSelectionError(f"Role selection returned invalid JSON: {e}") from e
    if not isinstance(data, list):
        raise RoleSelectionError(f"Role selection returned {type(data).__name__}, expected a list")
    return registry.filter_roster(data, max_agents)


class DebateManager:
    """Owns the generation backend and runs debates, role selection and synthesis."""

    def __init__(
        self,
        config: AppConfig,
        backend: GenerationBackend,
        gate: ConcurrencyGate = concurrency_gate,
        registry: AgentRegistry = agent_registry,
    ):
        self.config = config
        self.backend = backend
        self.gate = gate
        self.registry = registry
        self.active_debates = 0

    @property
    def limits(self) -> DebateLimitsConfig:
        return self.config.debate

    def open_debate(self, prd: object, agents: object) -> AsyncIterator[str]:
        """Validate the request, claim the debate slot and return the SSE body.

        Raises before anything is streamed, so callers can answer with a
        plain HTTP error:

        Raises:
            DebateValidationError: bad PRD or roster
            BusyError: another debate holds the slot
        """
        roster = validate_debate_request(prd, agents, self.limits, self.registry)
        permit = self.gate.acquire(DEBATE_GATE_KEY, DEBATE_GATE_LIMIT)
        stream = self._stream_debate(str(prd), roster, permit)
        # A body that is never iterated must still give the slot back
        weakref.finalize(stream, permit.release)
        return stream

    async def _stream_debate(self, prd: str, roster: list[str], permit: Permit) -> AsyncIterator[str]:
        events = EventStream()
        engine = DebateEngine(self.limits, self.backend, events, model_id=DEBATE_MODEL_ID, registry=self.registry)
        session = engine.create_session(prd, roster)

        self.active_debates += 1
        task = asyncio.create_task(engine.run(session))
        task.add_done_callback(lambda _: events.close())
        try:
            async for record in events:
                yield record
        finally:
            if not task.done():
                logger.info("Client went away, cancelling debate")
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            self.active_debates -= 1
            permit.release()

    async def select_agents(self, prd: str) -> list[str]:
        """Ask the model which roles should debate the PRD.

        Raises:
            BusyError: too many role selections in flight
            RoleSelectionError: unusable model output
        """
        prompt = build_role_selection_prompt(prd, self.registry.list_agents())
        with self.gate.hold(ROLE_GATE_KEY, ROLE_GATE_LIMIT):
            text = await with_timeout(
                self.backend.generate_response(ROLE_MODEL_ID, prompt, temperature=0.2),
                self.limits.role_selection_timeout,
            )
        agents = parse_role_selection(text, self.registry, self.limits.max_agents)
        logger.info(f"Selected agents: {agents}")
        return agents

    async def synthesize_prd(self, prd: str, debate: list[tuple[str, str]]) -> str:
        """Produce an improved PRD from the original and the debate transcript."""
        lines = [f"{name}: {message}" for name, message in debate]
        prompt = build_synthesis_prompt(prd, lines)
        text = await with_timeout(
            self.backend.generate_response(SYNTHESIS_MODEL_ID, prompt, temperature=0.2),
            self.limits.synthesis_timeout,
        )
        return text.strip()
