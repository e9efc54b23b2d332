"""API key bootstrap routes."""
from fastapi import APIRouter, HTTPException, Body

from auth.models import SelectKeyRequest, KeyStatusResponse
from auth.services import key_state, has_api_key, select_api_key
from utils.logger import get_logger
from common.error_messages import ErrorCode, get_error_response

logger = get_logger("auth.routes")
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/key", response_model=KeyStatusResponse)
def key_status():
    """Report whether an API key is selected and usable."""
    return KeyStatusResponse(ready=has_api_key())


@router.post("/key", response_model=KeyStatusResponse)
def select_key(req: SelectKeyRequest = Body(...)):
    """Select the API key used for subsequent generations."""
    try:
        select_api_key(req.api_key)
    except ValueError as e:
        logger.warning(f"Rejected API key selection: {e}")
        message, status_code = get_error_response(ErrorCode.INVALID_PARAMETER, str(e))
        raise HTTPException(status_code=status_code, detail=message)
    return KeyStatusResponse(ready=True)


@router.delete("/key", response_model=KeyStatusResponse)
def clear_key():
    """Forget the selected API key."""
    key_state.clear()
    logger.info("API key cleared")
    return KeyStatusResponse(ready=False)
