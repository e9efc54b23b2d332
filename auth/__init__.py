"""API key bootstrap module."""
from auth.models import SelectKeyRequest, KeyStatusResponse
from auth.services import (
    ApiKeyState,
    key_state,
    has_api_key,
    get_api_key,
    select_api_key,
    reset_api_key,
    require_api_key
)

__all__ = [
    "SelectKeyRequest",
    "KeyStatusResponse",
    "ApiKeyState",
    "key_state",
    "has_api_key",
    "get_api_key",
    "select_api_key",
    "reset_api_key",
    "require_api_key"
]
