"""Video generation services - Gemini Veo long-running operation client."""
import asyncio
from urllib.parse import quote
from typing import Optional, Dict, Any

import httpx
from google import genai
from google.genai import errors as genai_errors

from config import Config
from auth.services import get_api_key
from common.error_messages import ErrorCode
from common.errors import (
    AuthError,
    RemoteOperationError,
    NetworkError,
    MissingPayloadError,
    is_credential_error,
    is_rate_limit_error,
)
from utils.logger import get_logger
from videos.blobs import BlobStore, VideoBlob, blob_store
from videos.models import GenerationRequest

logger = get_logger("videos.services")

UNKNOWN_OPERATION_ERROR = "Unknown error during video generation"


def build_generate_payload(request: GenerationRequest, model: str) -> Dict[str, Any]:
    """
    Build keyword arguments for client.aio.models.generate_videos.

    The "image" key is only present when the request carries an image.
    """
    payload: Dict[str, Any] = {
        "model": model,
        "prompt": request.prompt,
        "config": {
            "numberOfVideos": 1,
            "resolution": request.config.resolution.value,
            "aspectRatio": request.config.aspect_ratio.value,
        },
    }
    if request.image is not None:
        payload["image"] = {
            "imageBytes": request.image.image_bytes,
            "mimeType": request.image.mime_type,
        }
    return payload


def build_download_url(uri: str, api_key: str) -> str:
    """Append the API key to a video URI as the `key` query parameter."""
    api_key = quote(api_key, safe="")
    if "?" not in uri:
        return f"{uri}?key={api_key}"
    if uri.endswith(("?", "&")):
        return f"{uri}key={api_key}"
    return f"{uri}&key={api_key}"


def _operation_error_message(error: Any) -> Optional[str]:
    """Vendor error payload -> message, or None when the payload is empty."""
    if not error:
        return None
    if isinstance(error, dict):
        return error.get("message") or UNKNOWN_OPERATION_ERROR
    return getattr(error, "message", None) or str(error) or UNKNOWN_OPERATION_ERROR


def check_operation_error(operation: Any) -> None:
    """Raise RemoteOperationError if the operation carries an error payload."""
    message = _operation_error_message(getattr(operation, "error", None))
    if message is None:
        return
    logger.error(f"Video operation reported an error: {message}")
    raise RemoteOperationError(message)


def translate_sdk_error(exc: Exception, action: str):
    """Map an exception raised by the vendor SDK to a VideoGenerationError."""
    message = getattr(exc, "message", None) or str(exc)
    if is_credential_error(exc):
        return AuthError(message)
    if is_rate_limit_error(exc):
        return RemoteOperationError(message, error_code=ErrorCode.GEMINI_RATE_LIMIT)
    return RemoteOperationError(f"Video {action} failed: {message}")


async def submit_generation(client: Any, payload: Dict[str, Any]) -> Any:
    """Start the long-running operation and return its first handle."""
    try:
        operation = await client.aio.models.generate_videos(**payload)
    except (genai_errors.APIError, httpx.HTTPError) as e:
        logger.error(f"Video generation request failed: {e}")
        raise translate_sdk_error(e, "generation request") from e
    logger.info(f"Video generation operation started: {getattr(operation, 'name', 'unknown')}")
    return operation


async def poll_operation(client: Any, operation: Any, poll_interval: float) -> Any:
    """
    Wait until the operation is done, re-fetching it every poll_interval seconds.

    Fails on the first status response that carries an error; no further
    status calls are made after that. Cancelling the awaiting task stops
    the loop at the next sleep.
    """
    check_operation_error(operation)

    poll_count = 0
    while not operation.done:
        await asyncio.sleep(poll_interval)
        poll_count += 1
        try:
            operation = await client.aio.operations.get(operation)
        except (genai_errors.APIError, httpx.HTTPError) as e:
            logger.error(f"Status check #{poll_count} failed: {e}")
            raise translate_sdk_error(e, "status check") from e
        logger.info(f"...Generating... (poll #{poll_count}, done={bool(operation.done)})")
        check_operation_error(operation)

    logger.info(f"Video generation completed after {poll_count} polls")
    return operation


def extract_video_uri(operation: Any) -> str:
    """URI of the first generated video in a completed operation."""
    result = getattr(operation, "response", None) or getattr(operation, "result", None)
    generated_videos = getattr(result, "generated_videos", None) if result else None

    if not generated_videos:
        logger.error("Operation completed but no videos were returned")
        raise MissingPayloadError("No video returned from the API.")

    video = getattr(generated_videos[0], "video", None)
    uri = getattr(video, "uri", None) if video else None
    if not uri:
        logger.error("Generated video is missing a URI")
        raise MissingPayloadError("Video URI is missing.")
    return uri


async def download_video(url: str, http_client: Optional[httpx.AsyncClient] = None) -> bytes:
    """Fetch the binary payload behind an authenticated video URL."""
    owns_client = http_client is None
    if owns_client:
        http_client = httpx.AsyncClient(
            timeout=Config.VIDEO_DOWNLOAD_TIMEOUT_SECONDS,
            follow_redirects=True,
        )
    try:
        response = await http_client.get(url)
    except httpx.HTTPError as e:
        logger.error(f"Video download failed: {type(e).__name__}: {e}")
        raise NetworkError(f"Failed to download video: {e}") from e
    finally:
        if owns_client:
            await http_client.aclose()

    if not response.is_success:
        reason = response.reason_phrase or f"HTTP {response.status_code}"
        logger.error(f"Video download returned {response.status_code}")
        raise NetworkError(f"Failed to download video: {reason}", status_code=response.status_code)

    logger.info(f"Fetched video: {len(response.content)} bytes")
    return response.content


async def generate_video(
    request: GenerationRequest,
    api_key: Optional[str] = None,
    client: Optional[Any] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    poll_interval: Optional[float] = None,
    blobs: Optional[BlobStore] = None,
    model: Optional[str] = None,
) -> VideoBlob:
    """
    Generate a video and return a local blob handle for it.

    Args:
        request: Composed prompt, optional image and output settings
        api_key: Gemini API key (defaults to the selected key)
        client: genai.Client to use (a fresh one is built per call by default)
        http_client: httpx.AsyncClient used for the download
        poll_interval: Seconds between status calls (default from config)
        blobs: Blob store receiving the payload (default: process store)
        model: Veo model identifier (default from config)

    Raises:
        AuthError, RemoteOperationError, NetworkError, MissingPayloadError
    """
    api_key = api_key or get_api_key()
    if not api_key:
        raise AuthError("API Key not found. Please select a key.", error_code=ErrorCode.MISSING_API_KEY)

    owns_client = client is None
    if owns_client:
        client = genai.Client(api_key=api_key)
    if poll_interval is None:
        poll_interval = Config.VIDEO_POLL_INTERVAL_SECONDS
    if blobs is None:
        blobs = blob_store
    model = model or Config.GEMINI_VIDEO_MODEL

    logger.info(
        f"Starting video generation: model={model}, has_image={request.image is not None}, "
        f"aspect_ratio={request.config.aspect_ratio.value}, resolution={request.config.resolution.value}"
    )

    payload = build_generate_payload(request, model)
    try:
        operation = await submit_generation(client, payload)
        operation = await poll_operation(client, operation, poll_interval)
    finally:
        if owns_client:
            await client.aio.aclose()

    video_uri = extract_video_uri(operation)
    logger.info(f"Video generated successfully with URI: {video_uri}")

    video_bytes = await download_video(build_download_url(video_uri, api_key), http_client)
    return blobs.create(video_bytes, Config.VIDEO_MIME_TYPE)
