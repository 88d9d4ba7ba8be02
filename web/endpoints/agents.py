"""Expert role listing and selection endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from debate_engine.agents import agent_registry
from debate_engine.exceptions import BusyError
from web.debate_manager import DebateManager
from web.dependencies import (
    RATE_LIMIT_MESSAGE,
    enforce_rate_limit,
    get_debate_manager,
    require_json_body,
)
from web.message_response import AgentProfileResponse, AgentsResponse
from web.role_selection_request import RoleSelectionRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/agents")
async def get_agents():
    """List the expert roles a debate can use."""
    profiles: list[AgentProfileResponse] = []
    for name in agent_registry.list_agents():
        profile = agent_registry.get_profile(name)
        profiles.append(
            AgentProfileResponse(
                name=profile.name,
                persona=profile.persona,
                color=profile.color,
                avatar=profile.avatar,
            )
        )
    return {"agents": profiles}


@router.post(
    "/select-agents",
    response_model=AgentsResponse,
    dependencies=[Depends(enforce_rate_limit), Depends(require_json_body)],
)
async def select_agents(
    request: RoleSelectionRequest,
    manager: DebateManager = Depends(get_debate_manager),
):
    """Ask the model which experts should review the PRD."""
    if not request.prd or not request.prd.strip():
        raise HTTPException(status_code=400, detail="Missing PRD")
    if len(request.prd) > manager.limits.max_prd_chars:
        raise HTTPException(status_code=413, detail="PRD too large")

    try:
        agents = await manager.select_agents(request.prd)
    except BusyError:
        raise HTTPException(status_code=429, detail=RATE_LIMIT_MESSAGE)
    except Exception as e:
        logger.error(f"Role selection failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch agents")

    return AgentsResponse(agents=agents)
