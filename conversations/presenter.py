"""Maps chat message state to what the chat page should display."""
from typing import Dict, Any

from conversations.models import MessageStatus

GENERATING_LABEL = "Generating video (this may take a minute)..."
ERROR_TITLE = "Error"
FALLBACK_ERROR = "Something went wrong while generating the video."


def download_name(message: Dict[str, Any]) -> str:
    return f"veo-generation-{message.get('timestamp')}.mp4"


def render_message(message: Dict[str, Any]) -> Dict[str, Any]:
    """
    Presentation descriptor for one message.

    kind is one of:
      text    - plain bubble (user prompts, welcome message)
      spinner - generation still running
      error   - error banner with title and message
      video   - player plus download link
    """
    status = message.get("status")

    if status in (MessageStatus.GENERATING.value, MessageStatus.PENDING.value):
        return {"kind": "spinner", "label": GENERATING_LABEL}

    if status == MessageStatus.ERROR.value:
        return {
            "kind": "error",
            "title": ERROR_TITLE,
            "message": message.get("error") or FALLBACK_ERROR,
        }

    if status == MessageStatus.COMPLETE.value and message.get("video_url"):
        return {
            "kind": "video",
            "src": message["video_url"],
            "download_name": download_name(message),
            "autoplay": True,
            "loop": True,
        }

    return {"kind": "text"}


def present(message: Dict[str, Any]) -> Dict[str, Any]:
    """Message fields plus its display descriptor."""
    return {**message, "display": render_message(message)}
