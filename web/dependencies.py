"""Request dependencies shared by the API routers."""

import logging

from fastapi import HTTPException, Request

from config.settings import AppConfig
from web.debate_manager import DebateManager
from web.rate_limit import RateLimiter, get_client_ip

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."


def get_debate_manager(request: Request) -> DebateManager:
    return request.app.state.debate_manager


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


async def enforce_rate_limit(request: Request) -> None:
    """Reject the request with 429 once the caller's window is used up."""
    limiter = get_rate_limiter(request)
    decision = limiter.check(get_client_ip(request))
    if not decision.allowed:
        raise HTTPException(
            status_code=429,
            detail=RATE_LIMIT_MESSAGE,
            headers={"Retry-After": str(decision.retry_after)},
        )


async def require_json_body(request: Request) -> None:
    """Only accept JSON bodies within the configured size."""
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("application/json"):
        raise HTTPException(status_code=415, detail="Content-Type must be application/json")

    max_bytes = get_app_config(request).server.max_body_bytes
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise HTTPException(status_code=413, detail="Request body too large")

    body = await request.body()
    if len(body) > max_bytes:
        raise HTTPException(status_code=413, detail="Request body too large")
