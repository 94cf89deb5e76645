import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from commit_haiku.adapters.bedrock import BedrockAdapter
from commit_haiku.core.config import Settings, get_settings
from commit_haiku.core.types import (
    INTERNAL_SERVER_ERROR,
    INVALID_REQUEST,
    TOO_MANY_REQUESTS,
    ErrorResponse,
    HaikuRequest,
    HaikuResponse,
)
from commit_haiku.services.haiku_service import HaikuService, InvalidInputError
from commit_haiku.services.rate_limit import allow_ip

router = APIRouter()
log = logging.getLogger("api")


def get_adapter(cfg: Settings = Depends(get_settings)) -> BedrockAdapter:
    return BedrockAdapter(
        model_id=cfg.BEDROCK_MODEL_ID,
        api_style=cfg.BEDROCK_API_STYLE,
        timeout_seconds=cfg.BEDROCK_TIMEOUT_SECONDS,
        region=cfg.AWS_REGION,
    )


def get_haiku_service(adapter: BedrockAdapter = Depends(get_adapter)) -> HaikuService:
    return HaikuService(adapter)


def client_ip(request: Request) -> Optional[str]:
    # API Gateway appends the peer it saw; earlier hops are caller-supplied
    fwd = request.headers.get("x-forwarded-for")
    return (fwd.split(",")[-1].strip() if fwd else None) or (
        request.client.host if request.client else None
    )


def _error(status_code: int, error: str, details=None) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=error, details=details).body(), status_code=status_code)


@router.post(
    "/haiku",
    response_model=HaikuResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def post_haiku(
    req: HaikuRequest,
    request: Request,
    cfg: Settings = Depends(get_settings),
    service: HaikuService = Depends(get_haiku_service),
):
    ip = client_ip(request)
    if not await allow_ip(ip, cfg.RATE_LIMIT_PER_MIN, cfg.REDIS_URL):
        log.warning("rate_limited ip=%s", ip)
        return _error(
            status.HTTP_429_TOO_MANY_REQUESTS,
            TOO_MANY_REQUESTS,
            {"reason": "rate_limited_ip", "retry": 60},
        )

    if len(req.commitMessage) > cfg.MAX_COMMIT_LENGTH:
        log.warning("commit_message_too_long length=%d max=%d", len(req.commitMessage), cfg.MAX_COMMIT_LENGTH)
        return _error(
            status.HTTP_400_BAD_REQUEST,
            INVALID_REQUEST,
            f"commitMessage exceeds {cfg.MAX_COMMIT_LENGTH} characters",
        )

    try:
        return await service.generate(req)
    except InvalidInputError as e:
        log.warning("bad_haiku_request error=%s", e)
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_REQUEST, str(e))
    except Exception as e:
        # Provider diagnostics stay in the logs
        log.error("internal_server_error error=%s cause=%r", e, e.__cause__)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_SERVER_ERROR)
