"""Chat transcript services - the ordered message store for this session."""
import time
from typing import Optional, List, Dict, Any, Tuple
from uuid import uuid4

from database.db import db
from common.error_messages import ErrorCode
from conversations.models import MessageRole, MessageStatus
from utils.logger import get_logger
from videos.blobs import BlobStore, blob_store
from videos.models import GenerationRequest

logger = get_logger("conversations.services")

COLLECTION = "messages"

WELCOME_MESSAGE_ID = "welcome"
WELCOME_TEXT = (
    "Hello! I'm your Veo video director. I can turn your text descriptions and images "
    "into stunning videos.\n\n"
    "Try describing a scene like \"A futuristic cyberpunk city with neon lights raining\" "
    "or upload an image to animate it!"
)
COMPLETE_TEXT = "Here is your generated video!"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_message(role: MessageRole, **fields: Any) -> Dict[str, Any]:
    message = {
        "id": str(uuid4()),
        "role": role.value,
        "text": None,
        "image": None,
        "image_mime_type": None,
        "video_url": None,
        "blob_id": None,
        "status": None,
        "error": None,
        "error_code": None,
        "timestamp": _now_ms(),
    }
    message.update(fields)
    return message


def seed_welcome_message() -> Dict[str, Any]:
    """Insert the greeting shown at the top of a fresh transcript."""
    existing = db.find_one(COLLECTION, {"id": WELCOME_MESSAGE_ID})
    if existing:
        return existing
    welcome = _new_message(MessageRole.AGENT, id=WELCOME_MESSAGE_ID, text=WELCOME_TEXT)
    return db.insert_one(COLLECTION, welcome)


def create_exchange(request: GenerationRequest) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Record a user submission and the agent entry that will receive its video.

    The agent entry starts in "generating" and is settled exactly once by
    complete_message() or fail_message().
    """
    user_message = _new_message(
        MessageRole.USER,
        text=request.prompt,
        image=request.image.data if request.image else None,
        image_mime_type=request.image.mime_type if request.image else None,
    )
    agent_message = _new_message(MessageRole.AGENT, status=MessageStatus.GENERATING.value)

    user_message = db.insert_one(COLLECTION, user_message)
    agent_message = db.insert_one(COLLECTION, agent_message)
    logger.info(f"Created exchange: user={user_message['id']} agent={agent_message['id']}")
    return user_message, agent_message


def list_messages() -> List[Dict[str, Any]]:
    """All messages in submission order."""
    return db.find(COLLECTION)


def get_message(message_id: str) -> Dict[str, Any]:
    """Get a specific message."""
    message = db.find_one(COLLECTION, {"id": message_id})
    if not message:
        raise KeyError("message not found")
    return message


def _settle(message_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    # Conditional update on status so a message can only leave "generating" once
    try:
        return db.update_one(
            COLLECTION,
            {"id": message_id, "status": MessageStatus.GENERATING.value},
            patch,
        )
    except KeyError:
        current = get_message(message_id)
        raise ValueError(f"message {message_id} is already {current.get('status')}")


def complete_message(message_id: str, video_url: str, blob_id: Optional[str] = None) -> Dict[str, Any]:
    """Mark a generating agent message as complete with its video."""
    updated = _settle(message_id, {
        "status": MessageStatus.COMPLETE.value,
        "text": COMPLETE_TEXT,
        "video_url": video_url,
        "blob_id": blob_id,
    })
    logger.info(f"Message {message_id} complete: {video_url}")
    return updated


def fail_message(message_id: str, error: str, error_code: Optional[ErrorCode] = None) -> Dict[str, Any]:
    """Mark a generating agent message as failed."""
    code = error_code or ErrorCode.VIDEO_GENERATION_FAILED
    updated = _settle(message_id, {
        "status": MessageStatus.ERROR.value,
        "error": error,
        "error_code": code.value,
    })
    logger.info(f"Message {message_id} failed ({code.value}): {error}")
    return updated


def delete_message(message_id: str, blobs: Optional[BlobStore] = None) -> Dict[str, Any]:
    """Discard a message and release the video it owns."""
    if blobs is None:
        blobs = blob_store
    removed = db.delete_one(COLLECTION, {"id": message_id})
    if removed.get("blob_id"):
        blobs.release(removed["blob_id"])
    logger.info(f"Deleted message {message_id}")
    return removed


def reset_session(blobs: Optional[BlobStore] = None) -> List[Dict[str, Any]]:
    """Drop the transcript, release every video it owns and greet again."""
    if blobs is None:
        blobs = blob_store
    for message in list_messages():
        if message.get("blob_id"):
            blobs.release(message["blob_id"])
    removed = db.drop(COLLECTION)
    logger.info(f"Session reset ({removed} messages removed)")
    seed_welcome_message()
    return list_messages()
