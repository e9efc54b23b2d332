"""API key bootstrap - holds the Gemini key selected for this process."""
from threading import Lock
from typing import Optional

from fastapi import HTTPException

from config import Config
from utils.logger import get_logger
from common.error_messages import ErrorCode, get_error_response

logger = get_logger("auth.services")


class ApiKeyState:
    """The currently selected API key and whether generation may proceed."""

    def __init__(self, api_key: Optional[str] = None):
        self._lock = Lock()
        self._api_key = (api_key or "").strip()
        self._ready = bool(self._api_key)

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._ready

    def get(self) -> Optional[str]:
        with self._lock:
            return self._api_key or None

    def select(self, api_key: str) -> None:
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("API key must not be empty")
        with self._lock:
            self._api_key = api_key
            self._ready = True
        logger.info("API key selected")

    def reset(self) -> None:
        """Mark the key as unusable so the UI prompts for a new one."""
        with self._lock:
            self._ready = False
        logger.warning("API key marked as not ready")

    def clear(self) -> None:
        with self._lock:
            self._api_key = ""
            self._ready = False


key_state = ApiKeyState(Config.GEMINI_API_KEY)


def has_api_key() -> bool:
    """The boolean "ready" signal consumed by the chat page."""
    return key_state.ready


def get_api_key() -> Optional[str]:
    return key_state.get()


def select_api_key(api_key: str) -> None:
    key_state.select(api_key)


def reset_api_key() -> None:
    key_state.reset()


def require_api_key() -> str:
    """FastAPI dependency: the selected key, or 401 when none is ready."""
    api_key = key_state.get()
    if not key_state.ready or not api_key:
        message, status_code = get_error_response(ErrorCode.MISSING_API_KEY)
        raise HTTPException(status_code=status_code, detail=message)
    return api_key
