"""Debate orchestration and flow management."""

from .core import DebateEngine, validate_debate_request
from .types import DebateEvent, DebateState
from .models import DebateSession, StopDecision, Turn
from .agents import AgentProfile, agent_registry
from .events import EventStream, encode_sse
from .gates import ConcurrencyGate, concurrency_gate, with_timeout
from .exceptions import BusyError, DebateValidationError, GenerationTimeoutError
from .stop_evaluator import StopEvaluator
from .turn_generator import TurnGenerator

__all__ = [
    "DebateEngine",
    "validate_debate_request",
    "DebateEvent",
    "DebateState",
    "DebateSession",
    "StopDecision",
    "Turn",
    "AgentProfile",
    "agent_registry",
    "EventStream",
    "encode_sse",
    "ConcurrencyGate",
    "concurrency_gate",
    "with_timeout",
    "BusyError",
    "DebateValidationError",
    "GenerationTimeoutError",
    "StopEvaluator",
    "TurnGenerator",
]
