from pydantic import BaseModel, ConfigDict, Field

from imposter.logic.enums import Difficulty

SESSION_ID_PATTERN = r"^[a-zA-Z0-9_-]+$"
MAX_SESSION_ID_LENGTH = 50


class CreateSessionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    session_id: str = Field(min_length=1, max_length=MAX_SESSION_ID_LENGTH, pattern=SESSION_ID_PATTERN)
    difficulty: Difficulty | None = None
