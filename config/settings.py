"""Configuration settings and data models."""

import json
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

# Canonical debate limits. Older deployments ran with 65 words per turn and
# an every-4-turns stop check; both are now plain configuration.
MAX_TURN_WORDS = 80
MAX_ROUNDS = 3
MAX_TOTAL_TURNS = 24
MAX_AGENTS = 6
MAX_PRD_CHARS = 8000
MAX_SESSION_SECONDS = 90.0

CONFIG_ENV_VAR = "PRD_DEBATE_CONFIG"


class ModelConfig(BaseModel):
    """Configuration for a generation model."""

    name: str = Field(..., description="Model name (e.g. 'google/gemini-2.0-flash-001' for OpenRouter)")
    provider: str = Field(default="openrouter", description="Model provider (openrouter, ollama)")
    max_tokens: int = Field(default=400, description="Maximum tokens per response")
    temperature: float = Field(default=0.3, description="Model temperature")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        valid_providers = {"ollama", "openrouter"}
        if v not in valid_providers:
            raise ValueError(f"Provider must be one of: {valid_providers}")
        return v


class DebateLimitsConfig(BaseModel):
    """Budgets and pacing for a single debate session."""

    max_turn_words: int = Field(default=MAX_TURN_WORDS, ge=1, description="Word cap per turn")
    max_rounds: int = Field(default=MAX_ROUNDS, ge=1, description="Maximum number of rounds")
    max_total_turns: int = Field(default=MAX_TOTAL_TURNS, ge=1, description="Maximum turns per session")
    max_agents: int = Field(default=MAX_AGENTS, ge=1, description="Roster is truncated to this size")
    max_prd_chars: int = Field(default=MAX_PRD_CHARS, ge=1, description="Largest accepted PRD")
    max_session_seconds: float = Field(
        default=MAX_SESSION_SECONDS, gt=0, description="Hard wall-clock budget per session"
    )
    turn_timeout: float = Field(default=20.0, gt=0, description="Seconds per turn generation attempt")
    evaluation_timeout: float = Field(default=15.0, gt=0, description="Seconds for a stop decision")
    synthesis_timeout: float = Field(default=25.0, gt=0, description="Seconds for PRD synthesis")
    role_selection_timeout: float = Field(default=20.0, gt=0, description="Seconds for role selection")
    min_rounds_before_stop: int = Field(
        default=2, ge=1, description="Stop requests before this round are ignored"
    )
    evaluate_every_rounds: int = Field(
        default=1, ge=1, description="Ask for a stop decision after every N completed rounds"
    )
    turn_pause_seconds: float = Field(default=0.3, ge=0, description="Pacing delay after each turn")
    turn_temperature: float = Field(default=0.3, description="Sampling temperature for turns")
    evaluation_temperature: float = Field(default=0.2, description="Sampling temperature for stop decisions")


class RateLimitConfig(BaseModel):
    """Per-client request limiting for the LLM-backed routes."""

    enabled: bool = Field(default=True)
    window_seconds: float = Field(default=60.0, gt=0)
    max_requests: int = Field(default=10, ge=1)


class ServerConfig(BaseModel):
    """HTTP server settings."""

    max_body_bytes: int = Field(default=200_000, description="Largest accepted request body")
    allowed_origins: list[str] | None = Field(
        default=None, description="CORS origins; localhost only when unset"
    )


class OllamaConfig(BaseModel):
    """Ollama-specific configuration."""

    base_url: str = Field(default="http://localhost:11434", description="Ollama API URL")
    keep_alive: str | None = Field(
        default="5m", description="How long to keep models loaded (e.g., '5m', '1h', '0' for immediate unload)"
    )
    repeat_penalty: float | None = Field(default=1.1, description="Penalty for repetition in responses")


class OpenRouterConfig(BaseModel):
    """OpenRouter-specific configuration."""

    api_key: str | None = Field(
        default=None, description="OpenRouter API key (can also be set via OPENROUTER_API_KEY env var)"
    )
    base_url: str = Field(default="https://openrouter.ai/api/v1", description="OpenRouter API base URL")
    site_url: str | None = Field(default=None, description="Your site URL for OpenRouter referrer tracking")
    app_name: str | None = Field(default="PRD Debate", description="App name for OpenRouter tracking")
    timeout: float = Field(default=60.0, description="Transport-level request timeout in seconds")


class SystemConfig(BaseModel):
    """System-wide configuration."""

    ollama: OllamaConfig = Field(default_factory=OllamaConfig, description="Ollama-specific settings")
    openrouter: OpenRouterConfig = Field(
        default_factory=OpenRouterConfig, description="OpenRouter-specific settings"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


class ModelsConfig(BaseModel):
    """Which model serves each kind of request."""

    debate: ModelConfig = Field(
        default_factory=lambda: ModelConfig(name="google/gemini-2.0-flash-001", temperature=0.3)
    )
    role_selection: ModelConfig = Field(
        default_factory=lambda: ModelConfig(name="google/gemini-2.0-flash-lite-001", temperature=0.2)
    )
    synthesis: ModelConfig = Field(
        default_factory=lambda: ModelConfig(
            name="google/gemini-2.0-flash-001", max_tokens=2000, temperature=0.2
        )
    )


class AppConfig(BaseModel):
    """Complete application configuration."""

    debate: DebateLimitsConfig = Field(default_factory=DebateLimitsConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from a JSON or YAML file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
            )


def get_default_config() -> AppConfig:
    """Load configuration from $PRD_DEBATE_CONFIG or debate_config.json, else the template."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return AppConfig.load_from_file(Path(env_path))

    config_path = Path("debate_config.json")
    if config_path.exists():
        return AppConfig.load_from_file(config_path)
    return get_template_config()


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        debate=DebateLimitsConfig(),
        models=ModelsConfig(),
        rate_limit=RateLimitConfig(window_seconds=60.0, max_requests=10),
        server=ServerConfig(max_body_bytes=200_000),
        system=SystemConfig(
            ollama=OllamaConfig(base_url="http://localhost:11434", keep_alive="5m", repeat_penalty=1.1),
            openrouter=OpenRouterConfig(
                api_key=None,  # Set your OpenRouter API key here or use OPENROUTER_API_KEY env var
                base_url="https://openrouter.ai/api/v1",
                site_url=None,
                app_name="PRD Debate",
                timeout=60.0,
            ),
            log_level="INFO",
        ),
    )
