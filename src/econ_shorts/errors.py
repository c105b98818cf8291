"""Error kinds and exceptions raised by the studio."""

import json
from enum import Enum

from pydantic import ValidationError

QUOTA_EXCEEDED_MESSAGE = (
    "API 할당량을 모두 소진했습니다. "
    "자신의 API 키를 사용하거나 잠시 후 다시 시도해주세요."
)

_RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED")
_EXHAUSTION_MARKERS = ("limit: 0", "per_day", "quota exceeded")
_INVALID_CREDENTIAL_MARKERS = (
    "entity was not found",
    "401",
    "api key not valid",
    "api_key_invalid",
)


class ErrorKind(str, Enum):
    """Closed set of failure classes used to branch retry and UI behavior."""

    TRANSIENT = "transient"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_CREDENTIAL = "invalid_credential"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"


class StudioError(Exception):
    """Base class for studio errors."""

    kind = ErrorKind.UNKNOWN


class QuotaExceededError(StudioError):
    """Raised when the API allowance is used up; retrying will not help."""

    kind = ErrorKind.QUOTA_EXCEEDED
    is_quota_error = True

    def __init__(self, message: str = QUOTA_EXCEEDED_MESSAGE) -> None:
        super().__init__(message)


class InvalidCredentialError(StudioError):
    """Raised when no usable API key is available or a key is rejected."""

    kind = ErrorKind.INVALID_CREDENTIAL


class EmptyResponseError(StudioError):
    """Raised when the model returns no text."""

    kind = ErrorKind.MALFORMED

    def __init__(self, message: str = "API 응답이 비어있습니다. (empty response)") -> None:
        super().__init__(message)


class MalformedResponseError(StudioError):
    """Raised when the model output does not match the requested schema."""

    kind = ErrorKind.MALFORMED


class NoImageResultError(StudioError):
    def __init__(self, message: str = "이미지 생성 결과가 없습니다.") -> None:
        super().__init__(message)


class NoAudioResultError(StudioError):
    def __init__(self, message: str = "오디오 생성 결과가 없습니다.") -> None:
        super().__init__(message)


class SessionBusyError(StudioError):
    """Raised when an action is submitted while the same action is running."""


def describe_error(exc: BaseException) -> str:
    """Flatten an exception into a single searchable description.

    ``google.genai.errors.APIError`` keeps the HTTP code and status apart
    from the message, so both are folded in when present.
    """
    parts = [str(exc) or type(exc).__name__]
    for attr in ("code", "status"):
        value = getattr(exc, attr, None)
        if value is not None and str(value) not in parts[0]:
            parts.append(str(value))
    return " ".join(parts)


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception to an :class:`ErrorKind`.

    Matching is done on vendor error text, so the result is best-effort.
    """
    if isinstance(exc, StudioError):
        return exc.kind
    if isinstance(exc, (ValidationError, json.JSONDecodeError)):
        return ErrorKind.MALFORMED

    description = describe_error(exc)
    lowered = description.lower()

    if any(marker in description for marker in _RATE_LIMIT_MARKERS):
        if any(marker in lowered for marker in _EXHAUSTION_MARKERS):
            return ErrorKind.QUOTA_EXCEEDED
        return ErrorKind.TRANSIENT

    if any(marker in lowered for marker in _INVALID_CREDENTIAL_MARKERS):
        return ErrorKind.INVALID_CREDENTIAL

    return ErrorKind.UNKNOWN
