"""Data models for the debate engine."""

from dataclasses import dataclass, field

from .types import DebateState


@dataclass(frozen=True)
class Turn:
    """One agent's finalized contribution for one speaking slot."""

    agent_id: str
    message: str
    round_number: int

    def render(self) -> str:
        return f"{self.agent_id}: {self.message}"


@dataclass(frozen=True)
class StopDecision:
    """Parsed verdict of the stop evaluator."""

    should_continue: bool = True
    reason: str | None = None


@dataclass
class DebateSession:
    """Per-request debate state. Lives only as long as its HTTP response."""

    prd: str
    roster: list[str]
    deadline: float
    transcript: list[Turn] = field(default_factory=list)
    current_round: int = 1
    total_turns: int = 0
    stopped: bool = False
    state: DebateState = DebateState.VALIDATING
    stop_reason: str | None = None
    failed: bool = False

    def append(self, turn: Turn) -> None:
        self.transcript.append(turn)
        self.total_turns += 1


def render_transcript(transcript: list[Turn], empty: str = "(none yet)") -> str:
    """Render turns as ``<agent>: <message>`` lines."""
    if not transcript:
        return empty
    return "\n".join(turn.render() for turn in transcript)
