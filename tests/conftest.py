"""Pytest configuration and shared fixtures.

Provides the scripted backend, a recording event sink and fast
debate limits so the orchestration tests run in well under a second.
"""

import pytest

from config.settings import AppConfig, DebateLimitsConfig, RateLimitConfig
from debate_engine.gates import ConcurrencyGate
from fakes import FakeBackend, RecordingSink


@pytest.fixture
def fast_limits() -> DebateLimitsConfig:
    """Debate limits with short timeouts and no pacing delay."""
    return DebateLimitsConfig(
        turn_timeout=0.2,
        evaluation_timeout=0.2,
        synthesis_timeout=0.2,
        role_selection_timeout=0.2,
        max_session_seconds=5.0,
        min_rounds_before_stop=1,
        turn_pause_seconds=0.0,
    )


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def gate() -> ConcurrencyGate:
    """A private gate so tests never share counters with the global one."""
    return ConcurrencyGate()


@pytest.fixture
def app_config(fast_limits: DebateLimitsConfig) -> AppConfig:
    return AppConfig(
        debate=fast_limits,
        rate_limit=RateLimitConfig(window_seconds=60.0, max_requests=100),
    )


@pytest.fixture
def sample_prd() -> str:
    return "Project: Team Calendar. Shared calendar with reminders and Slack notifications."


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
