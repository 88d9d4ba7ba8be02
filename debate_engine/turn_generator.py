"""Generates one agent's contribution for one speaking slot."""

import asyncio
import logging
import time
from contextlib import aclosing

from config.settings import DebateLimitsConfig
from .gates import remaining_budget, with_timeout
from .models import Turn
from .prompts import build_orchestrator_rules, build_turn_prompt
from .types import (
    DebateEvent,
    EventSink,
    GenerationBackend,
    TurnDeltaEventData,
    TurnEndEventData,
    TurnStartEventData,
)
from .utils import count_words, sanitize_message

logger = logging.getLogger(__name__)


class _TurnBuffer:
    """Text accumulated for a turn; survives cancellation of the stream reader."""

    def __init__(self):
        self.text = ""


class TurnGenerator:
    """Drives a single turn: prompt, streamed generation, fallback, sanitization."""

    def __init__(
        self,
        backend: GenerationBackend,
        events: EventSink,
        limits: DebateLimitsConfig,
        model_id: str = "debate",
    ):
        self.backend = backend
        self.events = events
        self.limits = limits
        self.model_id = model_id

    async def generate_turn(
        self,
        agent_id: str,
        persona: str,
        round_number: int,
        transcript: list[Turn],
        prd: str,
        roster: list[str],
        deadline: float | None = None,
    ) -> Turn:
        """Produce a finalized turn, emitting turn-start, turn-delta and turn-end.

        Never raises for generation failures: if streaming and the fallback
        both fail, the turn carries whatever text was received (possibly none).
        """
        max_words = self.limits.max_turn_words
        rules = build_orchestrator_rules(roster, max_words)
        prompt = build_turn_prompt(
            rules, prd, agent_id, persona, round_number, transcript, max_words
        )

        self.events.emit(
            DebateEvent.TURN_START, TurnStartEventData(agentId=agent_id, round=round_number)
        )

        start_time = time.monotonic()
        buffer = _TurnBuffer()
        try:
            await with_timeout(
                self._stream_turn(agent_id, prompt, buffer),
                remaining_budget(self.limits.turn_timeout, deadline),
            )
            if not buffer.text.strip():
                raise ValueError("stream finished without any text")
        except Exception as e:
            logger.warning(
                f"Streaming failed for {agent_id} in round {round_number}: "
                f"{type(e).__name__}: {e}; falling back to single response"
            )
            await self._fallback(agent_id, prompt, buffer, deadline)

        message = sanitize_message(buffer.text, max_words)
        generation_time = time.monotonic() - start_time

        if not message:
            logger.warning(f"{agent_id} produced an empty turn in round {round_number}")
        logger.info(
            f"Round {round_number}: {agent_id} spoke {count_words(message)} words in {generation_time:.2f}s"
        )

        self.events.emit(
            DebateEvent.TURN_END,
            TurnEndEventData(agentId=agent_id, message=message, round=round_number),
        )
        return Turn(agent_id=agent_id, message=message, round_number=round_number)

    async def _stream_turn(self, agent_id: str, prompt: str, buffer: _TurnBuffer) -> None:
        """Read the stream into ``buffer``, forwarding deltas within the word cap."""
        max_words = self.limits.max_turn_words
        cancel_event = asyncio.Event()
        forwarding = True

        stream = self.backend.generate_response_stream(
            self.model_id,
            prompt,
            cancel_event=cancel_event,
            temperature=self.limits.turn_temperature,
        )
        try:
            async with aclosing(stream):
                async for fragment in stream:
                    if not fragment:
                        continue
                    buffer.text += fragment
                    words = count_words(buffer.text)

                    if forwarding and words <= max_words:
                        self.events.emit(
                            DebateEvent.TURN_DELTA,
                            TurnDeltaEventData(agentId=agent_id, delta=fragment),
                        )
                    else:
                        forwarding = False

                    if words >= max_words:
                        logger.debug(f"{agent_id} reached {max_words} words, cancelling stream")
                        cancel_event.set()
                        break
        finally:
            # Covers timeout cancellation as well as the word cap
            cancel_event.set()

    async def _fallback(
        self, agent_id: str, prompt: str, buffer: _TurnBuffer, deadline: float | None
    ) -> None:
        timeout = remaining_budget(self.limits.turn_timeout, deadline)
        if timeout <= 0:
            logger.warning(f"No time left for a fallback response from {agent_id}")
            return

        try:
            text = await with_timeout(
                self.backend.generate_response(
                    self.model_id, prompt, temperature=self.limits.turn_temperature
                ),
                timeout,
            )
        except Exception as e:
            logger.error(
                f"Fallback generation failed for {agent_id}: {type(e).__name__}: {e}; "
                f"keeping {count_words(buffer.text)} streamed words"
            )
            return

        if text and text.strip():
            buffer.text = text
        else:
            logger.warning(f"Fallback for {agent_id} returned no text")
