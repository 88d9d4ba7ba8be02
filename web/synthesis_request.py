from pydantic import BaseModel


class DebateEntry(BaseModel):
    """One turn of a finished debate, as the client recorded it."""

    name: str
    message: str
    round: int | None = None


class SynthesisRequest(BaseModel):
    """Request model for synthesizing an improved PRD."""

    prd: str | None = None
    debate: list[DebateEntry] | None = None
