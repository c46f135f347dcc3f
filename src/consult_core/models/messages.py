"""Pydantic models for consultation messages."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from consult_core.models.consultations import StrictRequest


class MessageCreateRequest(StrictRequest):
    """Request model for sending a message."""

    message: str = Field(..., min_length=1, max_length=5000)
    message_type: Literal["text", "file", "system"] = "text"


class MessageResponse(BaseModel):
    """A single consultation message."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    consultation_id: str
    sender_id: str
    message: str
    message_type: str
    created_at: datetime


class MessageListResponse(BaseModel):
    """Paginated messages, oldest first."""

    items: List[MessageResponse] = Field(default_factory=list)
    total: int
    page: int
    limit: int
