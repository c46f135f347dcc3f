"""SQLAlchemy database models."""

import uuid
from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class User(Base):
    """Marketplace user (client, lawyer or admin).

    Owned by the identity/profile part of the platform; the booking core only
    reads it.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="client", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)

    def __repr__(self) -> str:
        """String representation of User."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class LawyerProfile(Base):
    """Bookable lawyer profile, keyed by the lawyer's user id."""

    __tablename__ = "lawyer_profiles"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)

    def __repr__(self) -> str:
        """String representation of LawyerProfile."""
        return f"<LawyerProfile(user_id={self.user_id}, active={self.is_active})>"


class AvailabilityWindow(Base):
    """One window of a lawyer's recurring weekly availability template.

    Times are local wall-clock times of day; no timezone conversion is done.
    """

    __tablename__ = "availability_windows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    lawyer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("lawyer_profiles.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("ix_availability_windows_lawyer_day", "lawyer_id", "day_of_week"),)

    def __repr__(self) -> str:
        """String representation of AvailabilityWindow."""
        return (
            f"<AvailabilityWindow(lawyer_id={self.lawyer_id}, day={self.day_of_week}, "
            f"{self.start_time}-{self.end_time}, available={self.available})>"
        )


class Consultation(Base):
    """A booked consultation between a client and a lawyer.

    Rows are never deleted; cancellation is a status change.
    """

    __tablename__ = "consultations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id, index=True)
    client_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    lawyer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    modality: Mapped[str] = mapped_column(String(10), nullable=False)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    meeting_link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    __table_args__ = (
        Index("ix_consultations_lawyer_status_scheduled", "lawyer_id", "status", "scheduled_at"),
    )

    def __repr__(self) -> str:
        """String representation of Consultation."""
        return (
            f"<Consultation(id={self.id}, lawyer_id={self.lawyer_id}, "
            f"scheduled_at={self.scheduled_at}, status={self.status})>"
        )


class ConsultationMessage(Base):
    """A message exchanged inside a consultation."""

    __tablename__ = "consultation_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    consultation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("consultations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(String(20), default="text", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False, index=True)

    def __repr__(self) -> str:
        """String representation of ConsultationMessage."""
        return f"<ConsultationMessage(id={self.id}, consultation_id={self.consultation_id})>"
