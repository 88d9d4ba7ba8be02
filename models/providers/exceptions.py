"""Provider-level exceptions."""


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class ProviderRateLimitError(ProviderError):
    """Raised when the upstream API answers 429."""

    def __init__(self, provider_name: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        detail = "rate limited"
        if retry_after is not None:
            detail += f" (retry after {retry_after:.0f}s)"
        super().__init__(provider_name, detail)
