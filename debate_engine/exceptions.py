"""Debate engine exceptions."""


class DebateError(Exception):
    """Base class for debate engine errors."""


class DebateValidationError(DebateError):
    """Rejected debate input, raised before any stream is opened."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class BusyError(DebateError):
    """A concurrency gate is at its limit."""

    code = "BUSY"

    def __init__(self, key: str, limit: int) -> None:
        self.key = key
        self.limit = limit
        super().__init__(f"Gate '{key}' is busy (limit {limit})")


class GenerationTimeoutError(DebateError, TimeoutError):
    """A generation call did not finish within its time budget."""

    code = "TIMEOUT"

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        super().__init__(f"Operation timed out after {seconds:.1f}s")
