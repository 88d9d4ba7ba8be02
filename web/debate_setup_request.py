from typing import Any

from pydantic import BaseModel


class DebateSetupRequest(BaseModel):
    """Request model for starting a streamed debate.

    A missing PRD or roster is answered with 400 by the debate engine, not
    422 here. Unknown agent names are dropped, not rejected.
    """

    prd: str | None = None
    agents: list[Any] | None = None
