"""API key bootstrap models."""
from pydantic import BaseModel, Field


class SelectKeyRequest(BaseModel):
    api_key: str = Field(..., min_length=1, description="Gemini API key to use for generation")


class KeyStatusResponse(BaseModel):
    ready: bool = Field(..., description="Whether a usable API key is selected")
