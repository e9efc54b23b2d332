"""
User-friendly error messages and status codes.

This module provides centralized error message definitions that are
user-friendly and avoid exposing technical implementation details.
"""
from typing import Tuple, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for different types of failures."""

    # Credential Errors (401)
    MISSING_API_KEY = "MISSING_API_KEY"
    INVALID_API_KEY = "INVALID_API_KEY"

    # Validation Errors (400)
    EMPTY_REQUEST = "EMPTY_REQUEST"
    INVALID_PARAMETER = "INVALID_PARAMETER"

    # Not Found Errors (404)
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"

    # External API Errors (502, 503)
    GEMINI_API_ERROR = "GEMINI_API_ERROR"
    GEMINI_RATE_LIMIT = "GEMINI_RATE_LIMIT"
    VIDEO_DOWNLOAD_FAILED = "VIDEO_DOWNLOAD_FAILED"

    # Generation Errors (500, 502)
    VIDEO_GENERATION_FAILED = "VIDEO_GENERATION_FAILED"
    NO_VIDEO_GENERATED = "NO_VIDEO_GENERATED"
    GENERATION_CANCELLED = "GENERATION_CANCELLED"

    # Generic Errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# User-friendly error messages mapped to error codes
ERROR_MESSAGES = {
    ErrorCode.MISSING_API_KEY: "API Key not found. Please select a key.",
    ErrorCode.INVALID_API_KEY: "Your API key was rejected. Please select a valid key and try again.",

    ErrorCode.EMPTY_REQUEST: "Please describe a scene or attach an image.",
    ErrorCode.INVALID_PARAMETER: "One or more parameters are invalid. Please review your request and try again.",

    ErrorCode.MESSAGE_NOT_FOUND: "We couldn't find that chat message. It may have been removed.",
    ErrorCode.VIDEO_NOT_FOUND: "This video is no longer available.",

    ErrorCode.GEMINI_API_ERROR: "The video service reported an error.",
    ErrorCode.GEMINI_RATE_LIMIT: "The video service is experiencing high demand. Please try again in a few minutes.",
    ErrorCode.VIDEO_DOWNLOAD_FAILED: "The video was generated but could not be downloaded.",

    ErrorCode.VIDEO_GENERATION_FAILED: "Something went wrong while generating the video.",
    ErrorCode.NO_VIDEO_GENERATED: "No video returned from the API.",
    ErrorCode.GENERATION_CANCELLED: "Generation cancelled.",

    ErrorCode.UNKNOWN_ERROR: "Something unexpected happened. Please try again.",
}


# HTTP status codes for each error type
ERROR_STATUS_CODES = {
    ErrorCode.MISSING_API_KEY: 401,
    ErrorCode.INVALID_API_KEY: 401,

    ErrorCode.EMPTY_REQUEST: 400,
    ErrorCode.INVALID_PARAMETER: 400,

    ErrorCode.MESSAGE_NOT_FOUND: 404,
    ErrorCode.VIDEO_NOT_FOUND: 404,

    ErrorCode.GEMINI_API_ERROR: 502,
    ErrorCode.GEMINI_RATE_LIMIT: 503,
    ErrorCode.VIDEO_DOWNLOAD_FAILED: 502,

    ErrorCode.VIDEO_GENERATION_FAILED: 500,
    ErrorCode.NO_VIDEO_GENERATED: 502,
    ErrorCode.GENERATION_CANCELLED: 499,

    ErrorCode.UNKNOWN_ERROR: 500,
}


def get_error_response(
    error_code: ErrorCode,
    custom_message: Optional[str] = None,
) -> Tuple[str, int]:
    """
    Get user-friendly error message and HTTP status code.

    Args:
        error_code: The error code enum
        custom_message: Optional custom message to append to the standard message

    Returns:
        Tuple of (error_message, status_code)
    """
    message = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.UNKNOWN_ERROR])
    status_code = ERROR_STATUS_CODES.get(error_code, 500)

    if custom_message:
        message = f"{message} {custom_message}"

    return message, status_code
