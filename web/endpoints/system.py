"""System health endpoints."""

import logging

from fastapi import APIRouter, Depends

from web.debate_manager import DebateManager
from web.dependencies import get_debate_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check(manager: DebateManager = Depends(get_debate_manager)):
    """Health check endpoint to verify API is running."""
    return {"isAlive": True, "activeDebates": manager.active_debates}
