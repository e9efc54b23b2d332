"""Exceptions raised by the video generation client."""
from typing import Optional

from google.genai import errors as genai_errors

from common.error_messages import ErrorCode, ERROR_MESSAGES


# Fallback for SDK errors that carry no structured status
CREDENTIAL_ERROR_PATTERNS = (
    "Requested entity was not found",
    "API key not valid",
    "API_KEY_INVALID",
)

CREDENTIAL_ERROR_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}


class VideoGenerationError(Exception):
    """Base class for every failure surfaced by the generation client."""

    error_code: ErrorCode = ErrorCode.VIDEO_GENERATION_FAILED

    def __init__(self, message: Optional[str] = None, error_code: Optional[ErrorCode] = None):
        if error_code is not None:
            self.error_code = error_code
        self.message = message or ERROR_MESSAGES[self.error_code]
        super().__init__(self.message)


class AuthError(VideoGenerationError):
    """Credential missing or rejected by the vendor."""

    error_code = ErrorCode.INVALID_API_KEY


class RemoteOperationError(VideoGenerationError):
    """The vendor rejected the request or reported an operation error."""

    error_code = ErrorCode.GEMINI_API_ERROR


class NetworkError(VideoGenerationError):
    """Downloading the finished video failed."""

    error_code = ErrorCode.VIDEO_DOWNLOAD_FAILED

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class MissingPayloadError(VideoGenerationError):
    """The operation completed without a usable video."""

    error_code = ErrorCode.NO_VIDEO_GENERATED


def is_credential_error(exc: BaseException) -> bool:
    """
    Decide whether an exception means the API key is missing or invalid.

    Structured fields of the SDK error are checked first; message matching
    only covers errors that carry no status.
    """
    if isinstance(exc, AuthError):
        return True

    if isinstance(exc, genai_errors.APIError):
        if exc.code in (401, 403):
            return True
        if exc.status and str(exc.status).upper() in CREDENTIAL_ERROR_STATUSES:
            return True

    message = str(exc)
    return any(pattern in message for pattern in CREDENTIAL_ERROR_PATTERNS)


def is_rate_limit_error(exc: BaseException) -> bool:
    """Whether the vendor rejected a call for rate or quota reasons."""
    if isinstance(exc, genai_errors.APIError) and exc.code == 429:
        return True
    message = str(exc).lower()
    return "rate limit" in message or "quota" in message or "resource_exhausted" in message
