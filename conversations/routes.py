"""Chat transcript routes."""
from fastapi import APIRouter, HTTPException, Path

from common.error_messages import ErrorCode, get_error_response
from conversations.models import MessageListResponse, MessageView
from conversations.presenter import present
from conversations.services import list_messages, get_message, delete_message, reset_session
from utils.logger import get_logger
from videos import jobs

logger = get_logger("conversations")
router = APIRouter(prefix="/api", tags=["conversations"])


def _not_found():
    message, status_code = get_error_response(ErrorCode.MESSAGE_NOT_FOUND)
    return HTTPException(status_code=status_code, detail=message)


@router.get("/messages", response_model=MessageListResponse)
async def api_list_messages():
    """List the transcript in order, with display descriptors and the busy flag."""
    return {
        "messages": [present(m) for m in list_messages()],
        "busy": jobs.is_busy(),
    }


@router.get("/messages/{message_id}", response_model=MessageView)
def api_get_message(message_id: str = Path(...)):
    """Get one message, typically polled until its status settles."""
    try:
        return present(get_message(message_id))
    except KeyError:
        raise _not_found()


@router.delete("/messages/{message_id}")
async def api_delete_message(message_id: str = Path(...)):
    """Discard a message, cancelling its generation and releasing its video."""
    jobs.cancel(message_id)
    try:
        delete_message(message_id)
    except KeyError:
        raise _not_found()
    return {"deleted": message_id}


@router.post("/messages/reset", response_model=MessageListResponse)
async def api_reset_session():
    """Cancel running generations and start a fresh transcript."""
    cancelled = await jobs.cancel_all()
    if cancelled:
        logger.info(f"Reset cancelled {cancelled} running generation(s)")
    return {"messages": [present(m) for m in reset_session()], "busy": False}
