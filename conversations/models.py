"""Chat message models."""
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    USER = "user"
    AGENT = "agent"


class MessageStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class ChatMessage(BaseModel):
    """One entry of the chat transcript."""
    id: str = Field(..., description="Message identifier")
    role: MessageRole = Field(..., description="Who authored the message")
    text: Optional[str] = Field(None, description="Message text")
    image: Optional[str] = Field(None, description="Base64 image uploaded by the user")
    image_mime_type: Optional[str] = Field(None, description="MIME type of the uploaded image")
    video_url: Optional[str] = Field(None, description="Local blob URL of the generated video")
    blob_id: Optional[str] = Field(None, description="Blob backing video_url")
    status: Optional[MessageStatus] = Field(None, description="Generation status for agent messages")
    error: Optional[str] = Field(None, description="Human-readable failure message")
    error_code: Optional[str] = Field(None, description="Machine-readable failure kind")
    timestamp: int = Field(..., description="Creation time in epoch milliseconds")


class MessageView(ChatMessage):
    """A chat message together with how it should be displayed."""
    display: Dict[str, Any] = Field(..., description="Presentation descriptor")


class MessageListResponse(BaseModel):
    messages: List[MessageView] = Field(default_factory=list)
    busy: bool = Field(False, description="Whether a generation is in flight")
