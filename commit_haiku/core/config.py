# commit_haiku/core/config.py
import os
import json
from dataclasses import dataclass, field
from typing import List
from dotenv import load_dotenv

# Load .env into process environment early
load_dotenv()

API_STYLES = ("messages", "completions")
DEFAULT_MODEL_ID = "global.anthropic.claude-haiku-4-5-20251001-v1:0"


def _get(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v is not None else default


def _get_list(name: str, default_list: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default_list)
    s = raw.strip()
    # Try JSON first
    if s.startswith("[") and s.endswith("]"):
        try:
            parsed = json.loads(s)
            if isinstance(parsed, list):
                return [str(x) for x in parsed]
        except ValueError:
            pass
    # Fallback to CSV
    return [x.strip() for x in s.split(",") if x.strip()]


def _get_int(name: str, default: int) -> int:
    try:
        return int(float(_get(name, str(default)) or default))
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    try:
        return float(_get(name, str(default)) or default)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    BEDROCK_MODEL_ID: str = DEFAULT_MODEL_ID
    BEDROCK_API_STYLE: str = "messages"  # messages | completions
    AWS_REGION: str | None = None
    BEDROCK_TIMEOUT_SECONDS: float = 30.0
    MAX_COMMIT_LENGTH: int = 500
    RATE_LIMIT_PER_MIN: int = 60  # 0 disables
    REDIS_URL: str | None = None
    CORS_ORIGINS: List[str] = field(default_factory=lambda: ["*"])
    LOG_LEVEL: str = "INFO"


def get_settings() -> Settings:
    api_style = (_get("BEDROCK_API_STYLE", "messages") or "messages").strip().lower()
    if api_style not in API_STYLES:
        api_style = "messages"
    region = (_get("AWS_REGION") or "").strip() or None
    redis_url = (_get("REDIS_URL") or "").strip() or None

    return Settings(
        BEDROCK_MODEL_ID=(
            _get("BEDROCK_MODEL_ID", Settings.BEDROCK_MODEL_ID) or Settings.BEDROCK_MODEL_ID
        ).strip(),
        BEDROCK_API_STYLE=api_style,
        AWS_REGION=region,
        BEDROCK_TIMEOUT_SECONDS=_get_float("BEDROCK_TIMEOUT_SECONDS", 30.0),
        MAX_COMMIT_LENGTH=_get_int("MAX_COMMIT_LENGTH", 500),
        RATE_LIMIT_PER_MIN=max(0, _get_int("RATE_LIMIT_PER_MIN", 60)),
        REDIS_URL=redis_url,
        CORS_ORIGINS=_get_list("CORS_ORIGINS", ["*"]),
        LOG_LEVEL=(_get("LOG_LEVEL", "INFO") or "INFO").strip().upper(),
    )
