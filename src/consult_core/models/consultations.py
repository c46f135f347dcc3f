"""Pydantic models for consultation booking, lifecycle and session endpoints."""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 180


class ConsultationStatus(str, Enum):
    """Lifecycle states of a consultation."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


ACTIVE_STATUSES = frozenset(
    {ConsultationStatus.PENDING, ConsultationStatus.CONFIRMED, ConsultationStatus.IN_PROGRESS}
)
TERMINAL_STATUSES = frozenset(
    {ConsultationStatus.COMPLETED, ConsultationStatus.CANCELLED, ConsultationStatus.NO_SHOW}
)


class ConsultationModality(str, Enum):
    """How the consultation is held."""

    TEXT = "text"
    PHONE = "phone"
    VIDEO = "video"


class StrictRequest(BaseModel):
    """Base for request bodies: unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


class SlotsQuery(StrictRequest):
    """Request for bookable slots of a lawyer on one date."""

    date: dt.date = Field(..., description="Local calendar date to resolve")
    duration_minutes: int = Field(
        60, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES, description="Slot length in minutes"
    )
    step_minutes: Optional[int] = Field(
        None,
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
        description="Distance between candidate starts; defaults to the slot length",
    )


class TimeSlot(BaseModel):
    """A candidate bookable window."""

    start: datetime = Field(..., description="Slot start (local wall-clock)")
    end: datetime = Field(..., description="Slot end (local wall-clock)")


class SlotsResponse(BaseModel):
    """Available slots for a lawyer on a date."""

    lawyer_id: str
    date: dt.date
    duration_minutes: int
    slots: List[TimeSlot] = Field(default_factory=list)


class BookingRequest(StrictRequest):
    """Request model for booking a consultation."""

    lawyer_id: str = Field(..., min_length=1, description="Lawyer's user ID")
    modality: ConsultationModality = Field(..., description="text, phone or video")
    scheduled_at: datetime = Field(..., description="Start time (local wall-clock)")
    duration_minutes: int = Field(
        60, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES, description="Duration in minutes"
    )
    description: str = Field("", max_length=5000, description="Client's problem statement")


class RescheduleRequest(StrictRequest):
    """Request model for changing time, duration or description."""

    scheduled_at: Optional[datetime] = Field(None, description="New start time")
    duration_minutes: Optional[int] = Field(
        None, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES, description="New duration"
    )
    description: Optional[str] = Field(None, max_length=5000, description="New description")

    @model_validator(mode="after")
    def require_change(self) -> "RescheduleRequest":
        if self.scheduled_at is None and self.duration_minutes is None and self.description is None:
            raise ValueError("No fields to update")
        return self

    @property
    def changes_interval(self) -> bool:
        return self.scheduled_at is not None or self.duration_minutes is not None


class CompleteRequest(StrictRequest):
    """Request model for lawyer completion."""

    notes: Optional[str] = Field(None, max_length=10000, description="Lawyer's closing notes")


class PaymentEvent(StrictRequest):
    """Callback from the payment collaborator."""

    consultation_id: str = Field(..., min_length=1)
    event: Literal["payment_confirmed", "payment_failed", "payment_expired"]
    payment_reference: Optional[str] = Field(None, max_length=255)


class ConsultationResponse(BaseModel):
    """Response model for a consultation."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    lawyer_id: str
    modality: ConsultationModality
    scheduled_at: datetime
    duration_minutes: int
    status: ConsultationStatus
    description: Optional[str] = None
    notes: Optional[str] = None
    price: Optional[Decimal] = None
    meeting_link: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConsultationListResponse(BaseModel):
    """Paginated consultations of the current user."""

    items: List[ConsultationResponse] = Field(default_factory=list)
    total: int
    page: int
    limit: int
    pages: int


class SessionCredential(BaseModel):
    """Ephemeral realtime session credential. Never persisted."""

    channel_id: str = Field(..., description="Deterministic channel for this consultation")
    token: str = Field(..., description="Opaque token from the signaling provider")
    subject_id: int = Field(..., description="Stable numeric id of the requesting user")
    role: str = Field(..., description="Signaling role")
    expires_at: datetime = Field(..., description="Token expiry (local wall-clock)")
    app_id: Optional[str] = Field(None, description="Signaling application ID")
