from pydantic import BaseModel, Field


class AgentProfileResponse(BaseModel):
    """Response model for a known expert role."""

    name: str
    persona: str
    color: str
    avatar: str


class AgentsResponse(BaseModel):
    """Response model for role selection."""

    agents: list[str]


class SynthesisResponse(BaseModel):
    """Response model for PRD synthesis."""

    improved_prd: str = Field(serialization_alias="improvedPrd")
