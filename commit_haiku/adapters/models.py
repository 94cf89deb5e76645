from pydantic import BaseModel, ConfigDict
from typing import List, Literal, Optional

ANTHROPIC_VERSION = "bedrock-2023-05-31"

DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7


class ContentBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "text"
    text: str


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: List[ContentBlock]


class MessagesRequest(BaseModel):
    anthropic_version: str = ANTHROPIC_VERSION
    max_tokens: int
    messages: List[Message]
    system: Optional[str] = None
    temperature: Optional[float] = None


class MessagesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: List[ContentBlock]


# Legacy text-completions API
class CompletionRequest(BaseModel):
    prompt: str
    max_tokens_to_sample: int
    temperature: Optional[float] = None


class CompletionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    completion: str


class InvocationOptions(BaseModel):
    """Per-call overrides. None (or an out-of-range value) keeps the default."""

    max_tokens: Optional[int] = None
    temperature: Optional[float] = None  # 0.0-1.0
    system: Optional[str] = None  # task-level instructions


def default_options() -> InvocationOptions:
    return InvocationOptions(
        max_tokens=DEFAULT_MAX_TOKENS,
        temperature=DEFAULT_TEMPERATURE,
        system="",
    )
