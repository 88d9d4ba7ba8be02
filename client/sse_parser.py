"""Incremental parser for the debate event stream."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

RECORD_SEPARATOR = re.compile(r"\r?\n\r?\n")
LINE_SEPARATOR = re.compile(r"\r?\n")


@dataclass(frozen=True)
class SSEEvent:
    """One parsed server-sent event."""

    event: str
    data: str

    def json(self) -> Any:
        """Decode the data field. Raises json.JSONDecodeError on bad payloads."""
        return json.loads(self.data)


class SSEParser:
    """Turns arbitrarily split text chunks into complete events.

    Records are separated by a blank line. Lines starting with ``:`` are
    comments. Multiple ``data:`` lines are concatenated as JSON fragments. Records
    without an ``event:`` name are skipped.
    """

    def __init__(self):
        self._buffer = ""

    def feed(self, chunk: str) -> list[SSEEvent]:
        self._buffer += chunk
        parts = RECORD_SEPARATOR.split(self._buffer)
        self._buffer = parts.pop()
        events: list[SSEEvent] = []
        for part in parts:
            event = self._parse_record(part)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> list[SSEEvent]:
        """Parse whatever is left once the stream has ended."""
        remainder, self._buffer = self._buffer, ""
        if not remainder.strip():
            return []
        event = self._parse_record(remainder)
        return [event] if event is not None else []

    @staticmethod
    def _parse_record(record: str) -> SSEEvent | None:
        name: str | None = None
        data_lines: list[str] = []
        for line in LINE_SEPARATOR.split(record):
            if not line or line.startswith(":"):
                continue
            key, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]
            if key == "event":
                name = value.strip()
            elif key == "data":
                data_lines.append(value)
        if not name:
            return None
        return SSEEvent(event=name, data="".join(data_lines))


@dataclass
class FeedTurn:
    agent_id: str
    message: str = ""
    round: int | None = None
    complete: bool = False


@dataclass
class DebateFeed:
    """Client-side view of a debate, rebuilt from its events.

    Deltas are appended to the open turn; ``turn-end`` replaces that text
    with the final message.
    """

    turns: list[FeedTurn] = field(default_factory=list)
    stop_reason: str | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)
    ended: bool = False
    ok: bool | None = None

    def apply(self, event: SSEEvent) -> None:
        try:
            payload = event.json()
        except json.JSONDecodeError:
            logger.warning(f"Ignoring '{event.event}' event with malformed data")
            return
        if not isinstance(payload, dict):
            return

        if event.event == "turn-start":
            self.turns.append(FeedTurn(agent_id=str(payload.get("agentId", "")), round=payload.get("round")))
        elif event.event == "turn-delta":
            if self.turns and not self.turns[-1].complete:
                self.turns[-1].message += str(payload.get("delta", ""))
        elif event.event == "turn-end":
            agent_id = str(payload.get("agentId", ""))
            if not self.turns or self.turns[-1].complete or self.turns[-1].agent_id != agent_id:
                self.turns.append(FeedTurn(agent_id=agent_id))
            turn = self.turns[-1]
            turn.message = str(payload.get("message", ""))
            turn.round = payload.get("round", turn.round)
            turn.complete = True
        elif event.event == "info":
            if payload.get("orchestratorStop"):
                self.stop_reason = payload.get("reason")
        elif event.event == "error":
            self.errors.append(payload)
        elif event.event == "end":
            self.ended = True
            self.ok = bool(payload.get("ok"))

    def transcript(self) -> list[tuple[str, str]]:
        """Completed turns as (agent, message) pairs, ready for synthesis."""
        return [(turn.agent_id, turn.message) for turn in self.turns if turn.complete]
