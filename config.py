"""
Configuration module - loads all settings from environment variables.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
try:
    load_dotenv()
except Exception as e:
    print(f"Warning: Failed to load .env file: {e}")
    print("Continuing with environment variables or defaults...")


class Config:
    """Application configuration loaded from environment variables."""

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Safely parse integer environment variable."""
        try:
            return int(os.getenv(key, str(default)))
        except (ValueError, TypeError) as e:
            print(f"Warning: Invalid integer for {key}, using default {default}: {e}")
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Safely parse float environment variable."""
        try:
            return float(os.getenv(key, str(default)))
        except (ValueError, TypeError) as e:
            print(f"Warning: Invalid float for {key}, using default {default}: {e}")
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Safely parse boolean environment variable."""
        value = os.getenv(key)
        if value is None:
            return default
        return value.strip().lower() in ("true", "1", "yes", "on")

    # Gemini API
    # May be empty at startup; the key can be selected at runtime via /api/auth/key
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_VIDEO_MODEL: str = os.getenv("GEMINI_VIDEO_MODEL", "veo-3.1-fast-generate-preview")

    # Long-running operation handling
    VIDEO_POLL_INTERVAL_SECONDS: float = _get_float.__func__("VIDEO_POLL_INTERVAL_SECONDS", 5.0)
    VIDEO_DOWNLOAD_TIMEOUT_SECONDS: float = _get_float.__func__("VIDEO_DOWNLOAD_TIMEOUT_SECONDS", 300.0)
    VIDEO_MIME_TYPE: str = os.getenv("VIDEO_MIME_TYPE", "video/mp4")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOGS_DIR: str = os.getenv(
        "LOGS_DIR",
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs"),
    )
    LOG_RETENTION_DAYS: int = _get_int.__func__("LOG_RETENTION_DAYS", 10)

    # Chat page
    STATIC_DIR: str = os.getenv(
        "STATIC_DIR",
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "static"),
    )

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = _get_int.__func__("PORT", 8000)
    RELOAD: bool = _get_bool.__func__("RELOAD", False)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values that cannot be fixed at runtime."""
        if cls.VIDEO_POLL_INTERVAL_SECONDS < 0:
            raise ValueError("VIDEO_POLL_INTERVAL_SECONDS must not be negative")
        if cls.VIDEO_DOWNLOAD_TIMEOUT_SECONDS <= 0:
            raise ValueError("VIDEO_DOWNLOAD_TIMEOUT_SECONDS must be positive")
        if not cls.GEMINI_VIDEO_MODEL:
            raise ValueError("GEMINI_VIDEO_MODEL must not be empty")
