from pydantic import BaseModel, Field
from typing import Literal, Optional, Any, Dict

Mood = Literal["humorous", "reflective", "technical"]

INVALID_REQUEST = "invalid request"
INTERNAL_SERVER_ERROR = "internal server error"
TOO_MANY_REQUESTS = "too many requests"


class HaikuRequest(BaseModel):
    commitMessage: str = Field(min_length=1)
    # Validated against Mood by the service, not at binding time
    mood: Optional[str] = ""


class HaikuResponse(BaseModel):
    haiku: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None

    def body(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
