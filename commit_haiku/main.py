import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum

from commit_haiku.core.config import get_settings
from commit_haiku.core.logging import setup_logging
from commit_haiku.core.types import INTERNAL_SERVER_ERROR, INVALID_REQUEST, ErrorResponse
from commit_haiku.routes import haiku

cfg = get_settings()
setup_logging(cfg.LOG_LEVEL)
log = logging.getLogger("api")

app = FastAPI(title="Commit Haiku", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cfg.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def _describe(errors) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Schema-binding failures are a 400, not FastAPI's default 422
    details = _describe(exc.errors())
    log.warning("request_binding_failed path=%s details=%s", request.url.path, details)
    return JSONResponse(
        ErrorResponse(error=INVALID_REQUEST, details=details).body(),
        status_code=400,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # Last resort for failures outside the route body, e.g. while resolving dependencies
    log.error("unhandled_error path=%s error=%s", request.url.path, exc, exc_info=exc)
    return JSONResponse(ErrorResponse(error=INTERNAL_SERVER_ERROR).body(), status_code=500)


@app.get("/healthz")
async def healthz():
    return {"ok": True}


app.include_router(haiku.router)

# AWS Lambda entry point (API Gateway proxy events)
handler = Mangum(app, lifespan="off")
