"""Video generation routes."""
from fastapi import APIRouter, HTTPException, Depends, Response
from pydantic import ValidationError

from auth.services import require_api_key
from common.error_messages import ErrorCode, get_error_response
from conversations.presenter import present
from conversations.services import create_exchange
from utils.logger import get_logger
from videos import jobs
from videos.blobs import blob_store
from videos.models import GenerateVideoRequest, GenerateVideoResponse

logger = get_logger("videos")
router = APIRouter(tags=["videos"])


@router.post(
    "/api/videos/generate",
    response_model=GenerateVideoResponse,
    status_code=202,
    dependencies=[Depends(require_api_key)],
)
async def generate_video_endpoint(req: GenerateVideoRequest):
    """
    Submit a prompt and/or image for video generation.

    Behavior:
      - Record the user's message and a "generating" agent message
      - Start generation in the background
      - Return both messages; the agent message settles to "complete" or "error"
    """
    try:
        request = req.to_generation_request()
    except (ValidationError, ValueError) as e:
        logger.warning(f"Rejected generation request: {e}")
        message, status_code = get_error_response(ErrorCode.EMPTY_REQUEST)
        raise HTTPException(status_code=status_code, detail=message)

    logger.info(
        f"Video generation request - has_image: {request.image is not None}, "
        f"aspect_ratio: {request.config.aspect_ratio.value}, resolution: {request.config.resolution.value}"
    )
    if jobs.is_busy():
        logger.warning("Generation submitted while another is still running")

    user_message, agent_message = create_exchange(request)
    jobs.start(agent_message["id"], request)

    return GenerateVideoResponse(
        user_message=present(user_message),
        agent_message=present(agent_message),
    )


@router.post("/api/videos/{message_id}/cancel")
async def cancel_generation(message_id: str):
    """Cancel an in-flight generation; the agent message settles as an error."""
    cancelled = jobs.cancel(message_id)
    return {"cancelled": cancelled}


@router.get("/api/blobs/{blob_id}")
def get_blob(blob_id: str):
    """Serve a generated video held in memory."""
    try:
        blob = blob_store.get(blob_id)
    except KeyError:
        message, status_code = get_error_response(ErrorCode.VIDEO_NOT_FOUND)
        raise HTTPException(status_code=status_code, detail=message)
    return Response(content=blob.data, media_type=blob.mime_type)


@router.delete("/api/blobs/{blob_id}")
def release_blob(blob_id: str):
    """Release a video held in memory."""
    if not blob_store.release(blob_id):
        message, status_code = get_error_response(ErrorCode.VIDEO_NOT_FOUND)
        raise HTTPException(status_code=status_code, detail=message)
    return {"released": True}
