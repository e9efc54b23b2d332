"""Video generation Pydantic models."""
import base64
import binascii
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AspectRatio(str, Enum):
    """Video aspect ratios."""
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"


class Resolution(str, Enum):
    """Video resolutions."""
    P720 = "720p"
    P1080 = "1080p"


class ImageData(BaseModel):
    """Image attached to a generation request."""
    model_config = ConfigDict(frozen=True)

    mime_type: str = Field(..., description="Image MIME type (e.g., image/png, image/jpeg)")
    data: str = Field(..., description="Base64-encoded image data")

    @field_validator("mime_type")
    @classmethod
    def _must_be_image(cls, value: str) -> str:
        if not value.startswith("image/"):
            raise ValueError("Please upload a valid image file.")
        return value

    @field_validator("data")
    @classmethod
    def _strip_data_url(cls, value: str) -> str:
        # Browsers hand over "data:image/png;base64,...."
        if value.startswith("data:") and "," in value:
            value = value.split(",", 1)[1]
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Image data is not valid base64")
        return value

    @property
    def image_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class GenerationConfig(BaseModel):
    """Output settings chosen in the settings popover."""
    model_config = ConfigDict(frozen=True)

    aspect_ratio: AspectRatio = Field(AspectRatio.LANDSCAPE, description="Video aspect ratio")
    resolution: Resolution = Field(Resolution.P720, description="Video resolution")


class GenerationRequest(BaseModel):
    """A composed request handed to the generation client. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    prompt: str = Field("", description="Text prompt for video generation")
    image: Optional[ImageData] = Field(None, description="Optional image to animate")
    config: GenerationConfig = Field(default_factory=GenerationConfig)

    @model_validator(mode="after")
    def _needs_prompt_or_image(self) -> "GenerationRequest":
        if not self.prompt.strip() and self.image is None:
            raise ValueError("Please describe a scene or attach an image.")
        return self


class GenerateVideoRequest(BaseModel):
    """Request body for POST /api/videos/generate."""
    prompt: str = Field("", description="Text prompt for video generation")
    image: Optional[ImageData] = Field(None, description="Optional image to animate")
    aspect_ratio: AspectRatio = Field(AspectRatio.LANDSCAPE, description="Video aspect ratio")
    resolution: Resolution = Field(Resolution.P720, description="Video resolution")

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            prompt=self.prompt,
            image=self.image,
            config=GenerationConfig(aspect_ratio=self.aspect_ratio, resolution=self.resolution),
        )


class GenerateVideoResponse(BaseModel):
    """Response model for a submitted generation."""
    user_message: dict = Field(..., description="The chat entry for the user's submission")
    agent_message: dict = Field(..., description="The agent entry that will hold the video")
