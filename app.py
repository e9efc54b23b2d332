"""
FastAPI application for chatting with the Gemini Veo video agent.

Features:
- API key bootstrap (ready signal and key selection)
- Text and image to video generation with Gemini Veo
- In-memory chat transcript with per-message generation status
- Local blob URLs for generated videos
"""
import time
import json
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse

from config import Config
from auth.routes import router as auth_router
from videos.routes import router as videos_router
from conversations.routes import router as conversations_router
from conversations.services import seed_welcome_message
from utils.logger import get_logger
from common.error_messages import ErrorCode, get_error_response
from videos import jobs
from videos.blobs import blob_store, BLOB_URL_PREFIX

logger = get_logger("main")

# Sensitive fields that should be masked in logs
SENSITIVE_FIELDS = {'api_key', 'key', 'token', 'secret', 'authorization'}

# Bodies of these requests/responses are binary or base64 blobs
UNLOGGED_BODY_PREFIXES = (BLOB_URL_PREFIX, "/static")
MAX_LOGGED_BODY = 2000


def mask_sensitive_data(data: Any, mask_value: str = "***MASKED***") -> Any:
    """
    Recursively mask sensitive fields in data structures.

    Args:
        data: Data to mask (dict, list, or string)
        mask_value: Value to replace sensitive data with

    Returns:
        Data with sensitive fields masked
    """
    if isinstance(data, dict):
        return {
            key: mask_value if key.lower() in SENSITIVE_FIELDS else mask_sensitive_data(value, mask_value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive_data(item, mask_value) for item in data]
    if isinstance(data, str):
        try:
            parsed = json.loads(data)
        except (json.JSONDecodeError, ValueError):
            return data
        if isinstance(parsed, (dict, list)):
            return json.dumps(mask_sensitive_data(parsed, mask_value))
    return data


def _truncate(text: str) -> str:
    if len(text) > MAX_LOGGED_BODY:
        return text[:MAX_LOGGED_BODY] + "... [truncated]"
    return text


try:
    Config.validate()
    logger.info("Configuration validated successfully")
except ValueError as e:
    logger.error(f"Configuration error: {e}")

app = FastAPI(
    title="Veo Video Agent API",
    description="Chat with Google Veo: submit a prompt and/or image, poll the generation, play the video.",
    version="1.0.0"
)

# CORS middleware - added first so it applies to error responses too
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions globally."""
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    message, status_code = get_error_response(ErrorCode.UNKNOWN_ERROR)
    return JSONResponse(status_code=status_code, content={"detail": message})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing; bodies are masked and truncated."""
    start_time = time.time()
    full_url = str(request.url)
    skip_bodies = request.url.path.startswith(UNLOGGED_BODY_PREFIXES)

    log_msg = f"→ {request.method} {full_url} - Client: {request.client.host if request.client else 'unknown'}"
    if request.method in ("POST", "PUT", "PATCH") and not skip_bodies:
        # Starlette caches the body, so the endpoint can still read it
        body_bytes = await request.body()
        if body_bytes:
            log_msg += f"\n  Request Body: {_truncate(mask_sensitive_data(body_bytes.decode('utf-8', 'replace')))}"
    logger.info(log_msg)

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = (time.time() - start_time) * 1000
        logger.error(f"← {request.method} {full_url} - Error: {e} - Time: {process_time:.2f}ms")
        raise

    process_time = (time.time() - start_time) * 1000
    log_msg = f"← {request.method} {full_url} - Status: {response.status_code} - Time: {process_time:.2f}ms"

    if skip_bodies or response.headers.get("content-type", "").split(";")[0] != "application/json":
        logger.info(log_msg)
        return response

    response_body = b""
    async for chunk in response.body_iterator:
        response_body += chunk
    if response_body:
        log_msg += f"\n  Response Body: {_truncate(mask_sensitive_data(response_body.decode('utf-8', 'replace')))}"
    logger.info(log_msg)

    return Response(
        content=response_body,
        status_code=response.status_code,
        headers=dict(response.headers),
        media_type=response.media_type
    )


app.include_router(auth_router)
logger.info("Auth router included")

app.include_router(videos_router)
logger.info("Videos router included")

app.include_router(conversations_router)
logger.info("Conversations router included")


@app.on_event("startup")
async def startup_event():
    """Seed the transcript and log startup."""
    seed_welcome_message()
    logger.info("=" * 80)
    logger.info("Veo video agent starting up")
    logger.info(f"Video model: {Config.GEMINI_VIDEO_MODEL}, poll interval: {Config.VIDEO_POLL_INTERVAL_SECONDS}s")
    logger.info(f"Host: {Config.HOST}:{Config.PORT}")
    logger.info("=" * 80)


@app.on_event("shutdown")
async def shutdown_event():
    """Cancel running generations and release held videos."""
    cancelled = await jobs.cancel_all()
    released = blob_store.clear()
    logger.info("=" * 80)
    logger.info(f"Veo video agent shutting down (cancelled {cancelled} job(s), released {released} video(s))")
    logger.info("=" * 80)


@app.get("/healthz")
def health():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {"status": "ok"}


# Chat page; mounted last so API routes take precedence
try:
    app.mount("/", StaticFiles(directory=Config.STATIC_DIR, html=True), name="static")
    logger.info(f"Chat page served from {Config.STATIC_DIR}")
except RuntimeError as e:
    logger.warning(f"Chat page not mounted: {e}")


if __name__ == "__main__":
    logger.info(f"Starting server on {Config.HOST}:{Config.PORT}")
    uvicorn.run(
        "app:app",
        host=Config.HOST,
        port=Config.PORT,
        reload=Config.RELOAD,
        log_level="info"
    )
