"""Background generation jobs - one asyncio task per agent message."""
import asyncio
from typing import Dict

from auth.services import reset_api_key
from common.error_messages import ErrorCode, ERROR_MESSAGES
from common.errors import VideoGenerationError, is_credential_error
from conversations import services as conversations
from utils.logger import get_logger
from videos import services
from videos.blobs import blob_store
from videos.models import GenerationRequest

logger = get_logger("videos.jobs")

_tasks: Dict[str, "asyncio.Task[None]"] = {}


def _settle_failure(message_id: str, error: str, error_code: ErrorCode) -> None:
    try:
        conversations.fail_message(message_id, error, error_code)
    except KeyError:
        logger.info(f"Message {message_id} was discarded before it failed")
    except ValueError as e:
        logger.warning(f"Could not mark {message_id} as failed: {e}")


async def run_generation(message_id: str, request: GenerationRequest) -> None:
    """Generate a video for an agent message and settle the message with the outcome."""
    try:
        blob = await services.generate_video(request)
    except asyncio.CancelledError:
        logger.info(f"Generation for {message_id} cancelled")
        _settle_failure(
            message_id,
            ERROR_MESSAGES[ErrorCode.GENERATION_CANCELLED],
            ErrorCode.GENERATION_CANCELLED,
        )
        raise
    except VideoGenerationError as e:
        logger.warning(f"Generation for {message_id} failed ({e.error_code.value}): {e.message}")
        if is_credential_error(e):
            reset_api_key()
        _settle_failure(message_id, e.message, e.error_code)
        return
    except Exception as e:
        logger.error(f"Unexpected error generating video for {message_id}: {e}", exc_info=True)
        if is_credential_error(e):
            reset_api_key()
        _settle_failure(message_id, str(e) or ERROR_MESSAGES[ErrorCode.VIDEO_GENERATION_FAILED],
                        ErrorCode.VIDEO_GENERATION_FAILED)
        return

    try:
        conversations.complete_message(message_id, blob.url, blob.id)
    except (KeyError, ValueError) as e:
        # Nobody owns the video any more
        logger.info(f"Releasing video for {message_id}: {e}")
        blob_store.release(blob.id)


def _forget(message_id: str, task: "asyncio.Task[None]") -> None:
    if _tasks.get(message_id) is task:
        del _tasks[message_id]
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"Generation task for {message_id} crashed: {task.exception()}")


def start(message_id: str, request: GenerationRequest) -> "asyncio.Task[None]":
    """Schedule generation for an agent message on the running event loop."""
    task = asyncio.create_task(run_generation(message_id, request), name=f"generate-{message_id}")
    _tasks[message_id] = task
    task.add_done_callback(lambda t: _forget(message_id, t))
    logger.info(f"Scheduled generation for {message_id}")
    return task


def cancel(message_id: str) -> bool:
    """Request cancellation of an in-flight generation."""
    task = _tasks.get(message_id)
    if task is None or task.done():
        return False
    task.cancel()
    logger.info(f"Cancellation requested for {message_id}")
    return True


def is_busy() -> bool:
    return any(not task.done() for task in list(_tasks.values()))


async def cancel_all() -> int:
    """Cancel every in-flight generation and wait for them to settle."""
    pending = [task for task in list(_tasks.values()) if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        logger.info(f"Cancelled {len(pending)} generation(s)")
    return len(pending)
