"""Conflict detection between a proposed interval and existing bookings.

Two consultations of the same lawyer conflict when their half-open intervals
``[scheduled_at, scheduled_at + duration)`` intersect and both are in an active
status. Touching endpoints never conflict.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from consult_core.database.models import Consultation
from consult_core.models.consultations import ACTIVE_STATUSES, ConsultationStatus
from consult_core.models.intervals import TimeInterval
from consult_core.repositories.consultations_repository import ConsultationsRepository

_ACTIVE_VALUES = frozenset(status.value for status in ACTIVE_STATUSES)


def booking_interval(booking: Any) -> TimeInterval:
    """Interval occupied by a booking-like object."""
    return TimeInterval.from_duration(booking.scheduled_at, booking.duration_minutes)


def is_blocking(booking: Any) -> bool:
    status = booking.status
    if isinstance(status, ConsultationStatus):
        status = status.value
    return status in _ACTIVE_VALUES


def find_conflicts(
    proposed: TimeInterval,
    bookings: Iterable[Any],
    exclude_id: Optional[str] = None,
) -> List[Any]:
    """Bookings among ``bookings`` that block ``proposed``.

    ``bookings`` may contain any objects exposing ``id``, ``status``,
    ``scheduled_at`` and ``duration_minutes``; terminal ones are ignored, as is
    the booking whose id equals ``exclude_id``.
    """
    return [
        booking
        for booking in bookings
        if booking.id != exclude_id and is_blocking(booking) and booking_interval(booking).overlaps(proposed)
    ]


class ConflictDetector:
    """Checks a lawyer's stored bookings for overlaps inside a unit of work."""

    def __init__(self, session: AsyncSession) -> None:
        self._repo = ConsultationsRepository(session)

    async def find_conflicts(
        self,
        lawyer_id: str,
        proposed_start: datetime,
        proposed_end: datetime,
        exclude_consultation_id: Optional[str] = None,
    ) -> List[Consultation]:
        proposed = TimeInterval(proposed_start, proposed_end)
        return await self._repo.find_conflicting(lawyer_id, proposed, exclude_id=exclude_consultation_id)

    async def has_conflict(
        self,
        lawyer_id: str,
        proposed_start: datetime,
        proposed_end: datetime,
        exclude_consultation_id: Optional[str] = None,
    ) -> bool:
        """True iff any active booking of the lawyer overlaps the proposal."""
        conflicts = await self.find_conflicts(
            lawyer_id, proposed_start, proposed_end, exclude_consultation_id
        )
        return bool(conflicts)
