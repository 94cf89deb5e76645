import asyncio
import json
import time
import logging
from functools import lru_cache
from typing import Any, Dict, Optional, Protocol

import boto3
from botocore.config import Config
from pydantic import BaseModel, ValidationError

from commit_haiku.adapters.errors import (
    ErrorKind,
    InvalidRequestError,
    ModelInvocationError,
    ResponseParsingError,
    classify_error,
)
from commit_haiku.adapters.models import (
    CompletionRequest,
    CompletionResponse,
    ContentBlock,
    InvocationOptions,
    Message,
    MessagesRequest,
    MessagesResponse,
    default_options,
)
from commit_haiku.core.config import DEFAULT_MODEL_ID

log = logging.getLogger("bedrock")

CONTENT_TYPE = "application/json"


# ---------------------------
# Transport protocol (a boto3 bedrock-runtime client satisfies it)
# ---------------------------
class ModelRuntime(Protocol):
    def invoke_model(self, **kwargs: Any) -> Dict[str, Any]: ...


@lru_cache(maxsize=4)
def runtime_client(region: Optional[str] = None, timeout_seconds: float = 30.0) -> ModelRuntime:
    # No botocore retries: throttling is surfaced to the caller, who owns retry policy.
    return boto3.client(
        "bedrock-runtime",
        region_name=region,
        config=Config(
            retries={"total_max_attempts": 1, "mode": "standard"},
            read_timeout=timeout_seconds,
            connect_timeout=min(timeout_seconds, 10.0),
        ),
    )


# ---------------------------
# Helpers
# ---------------------------

def merge_options(opts: Optional[InvocationOptions]) -> InvocationOptions:
    """Apply caller overrides on top of the defaults, keeping only valid values.

    A zero or empty override never clears a default. Temperature must fall in
    (0, 1]; 0.0 itself is not accepted as an override.
    """
    options = default_options()
    if opts is None:
        return options
    if opts.max_tokens is not None and opts.max_tokens > 0:
        options.max_tokens = opts.max_tokens
    if opts.temperature is not None and 0 < opts.temperature <= 1.0:
        options.temperature = opts.temperature
    if opts.system:
        options.system = opts.system
    return options


def build_request(prompt: str, options: InvocationOptions, api_style: str = "messages") -> BaseModel:
    if api_style == "completions":
        human = f"{options.system}\n\n{prompt}" if options.system else prompt
        return CompletionRequest(
            prompt=f"\n\nHuman: {human}\n\nAssistant:",
            max_tokens_to_sample=options.max_tokens,
            temperature=options.temperature,
        )
    return MessagesRequest(
        max_tokens=options.max_tokens,
        messages=[Message(role="user", content=[ContentBlock(type="text", text=prompt)])],
        system=options.system or None,
        temperature=options.temperature,
    )


def encode_request(request: BaseModel) -> bytes:
    try:
        return json.dumps(request.model_dump(exclude_none=True)).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise InvalidRequestError(f"invalid request: {e}") from e


def _read_body(body: Any) -> bytes:
    # boto3 hands back a StreamingBody; fakes may pass raw bytes or str.
    if hasattr(body, "read"):
        body = body.read()
    if isinstance(body, str):
        body = body.encode("utf-8")
    return body or b""


def parse_response(body: bytes) -> str:
    """Extract the generated text from either provider response shape.

    Messages API: ``{"content": [{"type": "text", "text": ...}, ...]}``, first
    block wins. Legacy completions API: ``{"completion": ...}``.
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise ResponseParsingError(f"failed to parse model response: {e}") from e

    if not isinstance(data, dict):
        raise ResponseParsingError(
            f"failed to parse model response: expected object, got {type(data).__name__}"
        )

    try:
        if "content" in data:
            resp = MessagesResponse.model_validate(data)
            if not resp.content:
                raise ResponseParsingError("failed to parse model response: no content blocks")
            return resp.content[0].text
        if "completion" in data:
            return CompletionResponse.model_validate(data).completion
    except ValidationError as e:
        raise ResponseParsingError(f"failed to parse model response: {e}") from e

    raise ResponseParsingError(
        f"failed to parse model response: unexpected keys {sorted(data)}"
    )


# ---------------------------
# Concrete adapter
# ---------------------------
class BedrockAdapter:
    def __init__(
        self,
        client: Optional[ModelRuntime] = None,
        model_id: str = DEFAULT_MODEL_ID,
        api_style: str = "messages",
        timeout_seconds: float = 30.0,
        region: Optional[str] = None,
    ):
        # Prefer an injected client (useful for tests); otherwise use the shared boto3 one.
        self._client = client if client is not None else runtime_client(region, timeout_seconds)
        self.model_id = model_id
        self.api_style = api_style
        self.timeout_seconds = timeout_seconds

    def _invoke_sync(self, body: bytes) -> bytes:
        output = self._client.invoke_model(
            modelId=self.model_id,
            contentType=CONTENT_TYPE,
            accept=CONTENT_TYPE,
            body=body,
        )
        return _read_body(output.get("body"))

    async def invoke(self, prompt: str, options: Optional[InvocationOptions] = None) -> str:
        """Send one prompt to the model and return its text.

        Raises ``InvalidRequestError`` for an empty prompt before any call,
        ``ModelInvocationError`` for provider failures and for the
        ``timeout_seconds`` deadline, and ``ResponseParsingError`` for an
        unreadable body. Cancelling the calling task is not converted into a
        ``ModelInvocationError``: ``asyncio.CancelledError`` propagates as is.
        """
        if not prompt:
            log.warning("bedrock_invalid_request reason=empty_prompt")
            raise InvalidRequestError("invalid request: prompt cannot be empty")

        merged = merge_options(options)
        body = encode_request(build_request(prompt, merged, self.api_style))

        t0 = time.perf_counter()
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(self._invoke_sync, body),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            log.error("bedrock_timeout model=%s timeout_s=%s", self.model_id, self.timeout_seconds)
            raise ModelInvocationError(
                ErrorKind.MODEL_INVOCATION_FAILED,
                f"model invocation timed out after {self.timeout_seconds}s",
            ) from e
        except Exception as e:
            log.error("bedrock_invoke_failed model=%s error=%s", self.model_id, e)
            raise classify_error(e) from e

        latency_ms = int((time.perf_counter() - t0) * 1000)
        log.info(
            "bedrock_invoke model=%s style=%s max_tokens=%s temperature=%s latency_ms=%d",
            self.model_id, self.api_style, merged.max_tokens, merged.temperature, latency_ms,
        )

        try:
            return parse_response(raw)
        except ResponseParsingError as e:
            log.error("bedrock_parse_failed model=%s error=%s", self.model_id, e)
            raise
