import logging
from typing import Optional, Protocol, get_args

from commit_haiku.adapters.models import InvocationOptions
from commit_haiku.core.types import HaikuRequest, HaikuResponse, Mood

log = logging.getLogger("haiku")

MOODS = get_args(Mood)
DEFAULT_MOOD = "reflective"

HAIKU_SYSTEM_PROMPT = """
You are a poetic assistant that writes concise haiku inspired by software commit messages.

Your task is to transform a commit message into a haiku that reflects its meaning, purpose, or mood.
The haiku should:
- Follow the traditional 3-line structure with a 5-7-5 syllable pattern.
- Maintain the reflective, minimal tone of a haiku: simple, vivid, and natural.
- Allow the first line to stand *almost* like a commit message on its own (e.g., "Fix broken pipeline", "Add missing tests"), but this is not a strict requirement.
- Avoid technical jargon unless it contributes to the mood or imagery.
- Never include extra commentary, explanations, or formatting. Output only the haiku text.

Example input and output:

Commit message: "Fix API timeout during deployment"
Haiku:
Fix the waiting thread
time drifts beyond the pipeline
silence in the logs

Commit message: "Add README to project"
Haiku:
First notes on the page
the silence learns to explain
what the code will sing
"""


class HaikuServiceError(Exception):
    """Base exception for haiku generation errors."""

    pass


class InvalidInputError(HaikuServiceError):
    """Raised when the haiku request is invalid (unknown mood)."""

    pass


class GenerationFailedError(HaikuServiceError):
    """Raised when the model could not produce a haiku."""

    pass


class ModelClient(Protocol):
    async def invoke(self, prompt: str, options: Optional[InvocationOptions] = None) -> str: ...


def make_prompt(commit_message: str, mood: str) -> str:
    return f"Create a {mood} haiku from this commit message: {commit_message}"


class HaikuService:
    def __init__(self, client: ModelClient):
        self._client = client

    async def generate(self, req: HaikuRequest) -> HaikuResponse:
        """Turn a commit message into a haiku.

        An empty mood is treated as "reflective"; the request itself is left
        untouched.

        Raises:
            InvalidInputError: If the mood is not one of MOODS.
            GenerationFailedError: If the model call fails for any reason.
        """
        if req.mood and req.mood not in MOODS:
            log.warning("invalid_mood mood=%r", req.mood)
            raise InvalidInputError(f"bad haiku request received: invalid mood {req.mood!r}")

        mood = req.mood or DEFAULT_MOOD
        prompt = make_prompt(req.commitMessage, mood)
        options = InvocationOptions(system=HAIKU_SYSTEM_PROMPT)

        log.info("haiku_prompt mood=%s prompt=%r", mood, prompt)
        try:
            text = await self._client.invoke(prompt, options)
        except Exception as e:
            log.error("haiku_generation_failed mood=%s error=%s", mood, e)
            raise GenerationFailedError(f"error creating commit message haiku: {e}") from e

        log.info("haiku_generated mood=%s chars=%d", mood, len(text))
        return HaikuResponse(haiku=text)
