"""Booking transaction manager.

A booking is one atomic unit of work per lawyer: lock, conflict check, insert,
commit. Two overlapping bookings for the same lawyer can never both succeed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from functools import partial
from typing import Any, Callable, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from consult_core.config import Settings, get_settings
from consult_core.database.session import get_session_context
from consult_core.exceptions import InvalidInputError, NotFoundError, SlotUnavailableError
from consult_core.models.consultations import (
    BookingRequest,
    ConsultationModality,
    ConsultationResponse,
    ConsultationStatus,
)
from consult_core.models.intervals import TimeInterval
from consult_core.models.validation import parse_request
from consult_core.repositories.consultations_repository import ConsultationsRepository
from consult_core.repositories.lawyers_repository import LawyersRepository
from consult_core.services.conflict_service import ConflictDetector
from consult_core.services.locks import LawyerLockRegistry, get_lawyer_lock_registry
from consult_core.services.notification_service import (
    NotificationDispatcher,
    consultation_payload,
    get_notification_dispatcher,
)
from consult_core.utils.datetime_utils import to_wall_clock, wall_clock_now

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


def compute_price(hourly_rate: Union[Decimal, int, float, None], duration_minutes: int) -> Decimal:
    """Price of a consultation billed pro rata at ``hourly_rate``."""
    rate = Decimal(str(hourly_rate or 0))
    return (rate * duration_minutes / 60).quantize(_CENTS, rounding=ROUND_HALF_UP)


def meeting_link_for(client_url: str, consultation_id: str) -> str:
    """Placeholder video room link shown to both parties. Not a credential."""
    return f"{client_url.rstrip('/')}/consultation/{consultation_id}/video"


class BookingTransactionManager:
    """Creates pending consultations without ever double-booking a lawyer."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        lock_registry: Optional[LawyerLockRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher or get_notification_dispatcher()
        self._locks = lock_registry or get_lawyer_lock_registry()
        self._settings = settings or get_settings()
        self._clock = clock or partial(wall_clock_now, self._settings.scheduling.wall_clock_timezone)

    async def book(
        self, client_id: str, request: Union[BookingRequest, Mapping[str, Any]]
    ) -> ConsultationResponse:
        """
        Book a consultation with a lawyer.

        Args:
            client_id: Booking client's user id
            request: Lawyer, modality, start, duration and description

        Returns:
            The new consultation in ``pending`` status

        Raises:
            InvalidInputError: Malformed request, start not in the future, or self-booking
            NotFoundError: Lawyer unknown or inactive
            SlotUnavailableError: The interval overlaps an active booking of the lawyer
        """
        request = parse_request(BookingRequest, request)
        start = to_wall_clock(request.scheduled_at, self._settings.scheduling.wall_clock_timezone)
        if start <= self._clock():
            raise InvalidInputError(
                "Consultation must start in the future",
                errors=[{"field": "scheduled_at", "message": "must be in the future"}],
            )
        if client_id == request.lawyer_id:
            raise InvalidInputError("You cannot book a consultation with yourself")
        interval = TimeInterval.from_duration(start, request.duration_minutes)

        async with self._locks.hold(request.lawyer_id):
            async with get_session_context(self._session_factory) as session:
                lawyer = await LawyersRepository(session).get_active(request.lawyer_id, for_update=True)
                if lawyer is None:
                    raise NotFoundError("Lawyer", request.lawyer_id)

                conflicts = await ConflictDetector(session).find_conflicts(
                    request.lawyer_id, interval.start, interval.end
                )
                if conflicts:
                    logger.info(
                        f"Rejected booking for lawyer {request.lawyer_id} at {start}: slot taken",
                        extra={"extra_fields": {"lawyer_id": request.lawyer_id, "client_id": client_id}},
                    )
                    raise SlotUnavailableError(
                        details={
                            "lawyer_id": request.lawyer_id,
                            "start": interval.start.isoformat(),
                            "end": interval.end.isoformat(),
                        }
                    )

                consultation_id = str(uuid.uuid4())
                meeting_link = None
                if request.modality == ConsultationModality.VIDEO:
                    meeting_link = meeting_link_for(self._settings.scheduling.client_url, consultation_id)

                consultation = await ConsultationsRepository(session).insert_consultation(
                    id=consultation_id,
                    client_id=client_id,
                    lawyer_id=request.lawyer_id,
                    modality=request.modality.value,
                    scheduled_at=start,
                    duration_minutes=request.duration_minutes,
                    status=ConsultationStatus.PENDING.value,
                    description=request.description,
                    price=compute_price(lawyer.hourly_rate, request.duration_minutes),
                    meeting_link=meeting_link,
                )
                response = ConsultationResponse.model_validate(consultation)

        logger.info(
            f"Booked consultation {response.id} with lawyer {response.lawyer_id} at {response.scheduled_at}",
            extra={
                "extra_fields": {
                    "consultation_id": response.id,
                    "lawyer_id": response.lawyer_id,
                    "client_id": client_id,
                }
            },
        )
        self._dispatcher.dispatch_to_parties(response, "consultation_booked", consultation_payload(response))
        return response


_booking_manager: Optional[BookingTransactionManager] = None


def get_booking_manager() -> BookingTransactionManager:
    """Get the process-global booking manager."""
    global _booking_manager
    if _booking_manager is None:
        _booking_manager = BookingTransactionManager()
    return _booking_manager
