"""Debate streaming and PRD synthesis endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from debate_engine.exceptions import BusyError, DebateValidationError
from web.debate_manager import DebateManager
from web.debate_setup_request import DebateSetupRequest
from web.dependencies import (
    RATE_LIMIT_MESSAGE,
    enforce_rate_limit,
    get_debate_manager,
    require_json_body,
)
from web.message_response import SynthesisResponse
from web.synthesis_request import SynthesisRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/debate", dependencies=[Depends(enforce_rate_limit), Depends(require_json_body)])
async def start_debate(
    setup: DebateSetupRequest,
    manager: DebateManager = Depends(get_debate_manager),
):
    """Run a debate and stream its events back as server-sent events."""
    try:
        stream = manager.open_debate(setup.prd, setup.agents)
    except DebateValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except BusyError:
        logger.info("Rejected debate: another debate is in progress")
        raise HTTPException(status_code=429, detail=RATE_LIMIT_MESSAGE)

    return StreamingResponse(stream, media_type="text/event-stream", headers=SSE_HEADERS)


@router.post(
    "/synthesize-prd",
    response_model=SynthesisResponse,
    response_model_by_alias=True,
    dependencies=[Depends(enforce_rate_limit), Depends(require_json_body)],
)
async def synthesize_prd(
    request: SynthesisRequest,
    manager: DebateManager = Depends(get_debate_manager),
):
    """Rewrite the PRD using the finished debate."""
    if not request.prd or not request.prd.strip() or not request.debate:
        raise HTTPException(status_code=400, detail="Missing PRD or debate history")
    if len(request.prd) > manager.limits.max_prd_chars:
        raise HTTPException(status_code=413, detail="PRD too large")

    try:
        improved = await manager.synthesize_prd(
            request.prd, [(entry.name, entry.message) for entry in request.debate]
        )
    except Exception as e:
        logger.error(f"Synthesis failed: {e}")
        raise HTTPException(status_code=500, detail="Synthesis failed")

    return SynthesisResponse(improved_prd=improved)
