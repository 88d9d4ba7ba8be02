"""FastAPI web application for the PRD debate service."""

import asyncio
import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import AppConfig, get_default_config
from models.manager import ModelManager
from web.debate_manager import (
    DEBATE_MODEL_ID,
    ROLE_MODEL_ID,
    SYNTHESIS_MODEL_ID,
    DebateManager,
)
from web.endpoints.agents import router as agents_router
from web.endpoints.debates import router as debates_router
from web.endpoints.system import router as system_router
from web.rate_limit import RateLimiter

logger: logging.Logger = logging.getLogger(__name__)

RATE_LIMIT_CLEANUP_SECONDS = 300


def build_debate_manager(config: AppConfig) -> DebateManager:
    """Wire a model manager with the configured models into a debate manager."""
    model_manager = ModelManager(config.system)
    model_manager.register_model(DEBATE_MODEL_ID, config.models.debate)
    model_manager.register_model(ROLE_MODEL_ID, config.models.role_selection)
    model_manager.register_model(SYNTHESIS_MODEL_ID, config.models.synthesis)
    return DebateManager(config, model_manager)


async def rate_limit_cleanup_scheduler(limiter: RateLimiter) -> None:
    """Background task to periodically drop expired rate-limit windows."""
    while True:
        try:
            await asyncio.sleep(RATE_LIMIT_CLEANUP_SECONDS)

            cleaned_count = limiter.cleanup_expired()
            if cleaned_count > 0:
                logger.info(f"Rate limit cleanup: removed {cleaned_count} expired windows")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error(f"Error in rate limit cleanup scheduler: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown."""
    logger.info("Starting rate limit cleanup scheduler...")
    cleanup_task = asyncio.create_task(rate_limit_cleanup_scheduler(app.state.rate_limiter))

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    logger.info("Rate limit cleanup scheduler stopped")


def get_allowed_origins(config: AppConfig) -> list[str] | None:
    """Get CORS origins from environment, then config; None means development defaults."""
    env_origins: str | None = os.environ.get("ALLOWED_ORIGINS")
    if env_origins:
        return [origin.strip() for origin in env_origins.split(",") if origin.strip()]
    return config.server.allowed_origins


def create_app(config: AppConfig | None = None, manager: DebateManager | None = None) -> FastAPI:
    """Build the application. Tests pass their own config and manager."""
    config = config or get_default_config()
    manager = manager or build_debate_manager(config)

    app = FastAPI(
        title="PRD Debate Service",
        description="Multi-agent expert debate over product requirement documents",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.debate_manager = manager
    app.state.rate_limiter = RateLimiter(config.rate_limit)

    allowed_origins = get_allowed_origins(config)
    if allowed_origins:
        logger.info(f"Setting CORS allowed origins: {allowed_origins}")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        logger.info("No allowed origins set, using development CORS settings")
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(system_router)
    app.include_router(agents_router)
    app.include_router(debates_router)
    return app
