from pydantic import BaseModel


class RoleSelectionRequest(BaseModel):
    """Request model for choosing which experts debate a PRD."""

    prd: str | None = None
