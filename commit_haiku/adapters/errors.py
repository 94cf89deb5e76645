"""Bedrock client errors and the provider error classifier.

Every failure raised by the Bedrock adapter is a ``BedrockError``:

- ``InvalidRequestError``: the request could not be built (empty prompt,
  unserializable payload). Nothing was sent.
- ``ModelInvocationError``: the remote call failed. ``kind`` says how.
- ``ResponseParsingError``: the call succeeded but the body was unusable.
"""

import logging
from enum import Enum
from typing import Optional

from botocore.exceptions import ClientError

log = logging.getLogger("bedrock")

# Bedrock error codes
VALIDATION_EXCEPTION = "ValidationException"
RESOURCE_NOT_FOUND_EXCEPTION = "ResourceNotFoundException"
THROTTLING_EXCEPTION = "ThrottlingException"
SERVICE_QUOTA_EXCEEDED_EXCEPTION = "ServiceQuotaExceededException"
ACCESS_DENIED_EXCEPTION = "AccessDeniedException"
INTERNAL_SERVER_EXCEPTION = "InternalServerException"


class ErrorKind(str, Enum):
    VALIDATION_FAILED = "validation_failed"
    MODEL_UNAVAILABLE = "model_unavailable"
    THROTTLED = "throttled"
    QUOTA_EXCEEDED = "quota_exceeded"
    MODEL_INVOCATION_FAILED = "model_invocation_failed"


# Substring match against the provider code; first match wins.
# AccessDenied is reported as a validation failure, not an auth error.
ERROR_CODE_KINDS = (
    (VALIDATION_EXCEPTION, ErrorKind.VALIDATION_FAILED),
    (RESOURCE_NOT_FOUND_EXCEPTION, ErrorKind.MODEL_UNAVAILABLE),
    (THROTTLING_EXCEPTION, ErrorKind.THROTTLED),
    (SERVICE_QUOTA_EXCEEDED_EXCEPTION, ErrorKind.QUOTA_EXCEEDED),
    (ACCESS_DENIED_EXCEPTION, ErrorKind.VALIDATION_FAILED),
    (INTERNAL_SERVER_EXCEPTION, ErrorKind.MODEL_INVOCATION_FAILED),
)

_KIND_SUMMARY = {
    ErrorKind.VALIDATION_FAILED: "validation error",
    ErrorKind.MODEL_UNAVAILABLE: "model is currently unavailable",
    ErrorKind.THROTTLED: "request was throttled",
    ErrorKind.QUOTA_EXCEEDED: "quota exceeded for model invocation",
    ErrorKind.MODEL_INVOCATION_FAILED: "model invocation failed",
}


class BedrockError(Exception):
    """Base exception for Bedrock adapter errors."""

    pass


class InvalidRequestError(BedrockError):
    """Raised when a model request cannot be built."""

    pass


class ResponseParsingError(BedrockError):
    """Raised when the model response body cannot be parsed."""

    pass


class ModelInvocationError(BedrockError):
    """Raised when the remote model call fails.

    Attributes:
        kind: The classified failure category.
        message: The original provider (or transport) message.
        status_code: HTTP status reported by the provider, if any.
        request_id: Provider request id for correlating with AWS logs, if any.
        error_code: The raw provider error code, if any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.request_id = request_id
        self.error_code = error_code
        super().__init__(str(self))

    def __str__(self) -> str:
        summary = _KIND_SUMMARY[self.kind]
        if self.status_code:
            return (
                f"{summary}: bedrock error (status: {self.status_code}, "
                f"request-id: {self.request_id}): {self.message}"
            )
        return f"{summary}: {self.message}"


def kind_for_code(error_code: str) -> ErrorKind:
    for code, kind in ERROR_CODE_KINDS:
        if code in error_code:
            return kind
    return ErrorKind.MODEL_INVOCATION_FAILED


def classify_error(exc: BaseException) -> ModelInvocationError:
    """Map a transport exception to a ModelInvocationError.

    Only botocore ``ClientError`` carries a provider error code; anything else
    (connection errors, timeouts, unexpected exceptions) is a generic
    invocation failure. The caller is expected to chain the result to ``exc``.
    """
    if not isinstance(exc, ClientError):
        return ModelInvocationError(ErrorKind.MODEL_INVOCATION_FAILED, str(exc) or type(exc).__name__)

    response = exc.response or {}
    error = response.get("Error") or {}
    meta = response.get("ResponseMetadata") or {}

    error_code = str(error.get("Code") or "")
    status_code = meta.get("HTTPStatusCode")
    request_id = meta.get("RequestId")
    kind = kind_for_code(error_code)

    log.warning(
        "bedrock_error code=%s kind=%s status=%s request_id=%s",
        error_code, kind.value, status_code, request_id,
    )
    return ModelInvocationError(
        kind,
        str(error.get("Message") or exc),
        status_code=status_code,
        request_id=request_id,
        error_code=error_code or None,
    )
