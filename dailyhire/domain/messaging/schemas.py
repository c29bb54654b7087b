"""Messaging schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

FILE_ONLY_CONTENT = "Sent a file"


class MessageCreate(BaseModel):
    content: Optional[str] = Field(None, max_length=5000)
    file_url: Optional[str] = Field(None, max_length=1000)
    file_type: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def require_content_or_file(self):
        text = (self.content or "").strip()
        if not text and not self.file_url:
            raise ValueError("Message cannot be empty")
        self.content = text or FILE_ONLY_CONTENT
        return self


class BookingMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    sender_id: str
    content: str
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    created_at: Optional[datetime] = None


class DirectMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sender_id: str
    receiver_id: str
    content: str
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class AttachmentResponse(BaseModel):
    file_url: str
    file_type: Optional[str] = None
    size: int


class ConversationSummary(BaseModel):
    peer_id: str
    peer_name: Optional[str] = None
    last_message: DirectMessageResponse
    unread_count: int = 0


class UnreadCountsResponse(BaseModel):
    counts: dict[str, int]
    total: int
