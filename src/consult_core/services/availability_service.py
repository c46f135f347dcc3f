"""Availability resolution and weekly template maintenance.

Bookable slots for a date are derived from the lawyer's weekly template: each
available window of the weekday is walked in fixed steps, and candidates that
overflow the window, start in the past or overlap an active booking are
dropped. Overlapping template windows are not merged; each is walked on its
own and the combined output is ordered by start time.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from functools import partial
from typing import Any, Callable, Iterator, Mapping, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from consult_core.config import Settings, get_settings
from consult_core.database.session import get_session_context
from consult_core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from consult_core.models.availability import (
    AvailabilityTemplateResponse,
    AvailabilityTemplateUpdate,
    AvailabilityWindowModel,
    DayOfWeek,
)
from consult_core.models.consultations import (
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    SlotsQuery,
    SlotsResponse,
    TimeSlot,
)
from consult_core.models.identity import CurrentUser
from consult_core.models.intervals import TimeInterval
from consult_core.models.validation import parse_request
from consult_core.repositories.availability_repository import AvailabilityRepository
from consult_core.repositories.consultations_repository import ConsultationsRepository
from consult_core.repositories.lawyers_repository import LawyersRepository
from consult_core.services.conflict_service import find_conflicts
from consult_core.utils.datetime_utils import wall_clock_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Booked:
    id: str
    status: str
    scheduled_at: datetime
    duration_minutes: int


@dataclass(frozen=True)
class SlotSequence:
    """Lazily generated slots for one lawyer and date.

    Every iteration regenerates the slots from the same snapshot, so the
    sequence can be consumed more than once.
    """

    windows: Tuple[TimeInterval, ...]
    slot_minutes: int
    step_minutes: int
    bookings: Tuple[_Booked, ...]
    now: datetime

    def __iter__(self) -> Iterator[TimeInterval]:
        return heapq.merge(*(self._walk(window) for window in self.windows))

    def _walk(self, window: TimeInterval) -> Iterator[TimeInterval]:
        length = timedelta(minutes=self.slot_minutes)
        step = timedelta(minutes=self.step_minutes)
        cursor = window.start
        while cursor < window.end:
            candidate_end = cursor + length
            if candidate_end > window.end:
                break
            if cursor >= self.now:
                candidate = TimeInterval(cursor, candidate_end)
                if not find_conflicts(candidate, self.bookings):
                    yield candidate
            cursor += step

    def to_list(self) -> list:
        return list(self)


def _validate_minutes(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{field} must be an integer number of minutes")
    if value < MIN_DURATION_MINUTES:
        raise InvalidInputError(
            f"{field} must be at least {MIN_DURATION_MINUTES} minutes",
            errors=[{"field": field, "message": f"minimum is {MIN_DURATION_MINUTES}"}],
        )
    if value > MAX_DURATION_MINUTES:
        raise InvalidInputError(
            f"{field} must be at most {MAX_DURATION_MINUTES} minutes",
            errors=[{"field": field, "message": f"maximum is {MAX_DURATION_MINUTES}"}],
        )
    return value


class AvailabilityResolver:
    """Resolves bookable slots and maintains weekly templates."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings or get_settings()
        self._clock = clock or partial(wall_clock_now, self._settings.scheduling.wall_clock_timezone)

    async def resolve_slots(
        self,
        lawyer_id: str,
        day: date,
        slot_duration_minutes: Optional[int] = None,
        step_minutes: Optional[int] = None,
    ) -> SlotSequence:
        """Bookable slots of ``lawyer_id`` on ``day``.

        Args:
            lawyer_id: Lawyer's user id
            day: Local calendar date
            slot_duration_minutes: Slot length; defaults to the configured length
            step_minutes: Distance between candidate starts; defaults to the slot length

        Raises:
            InvalidInputError: Date in the past or duration out of range
            NotFoundError: Unknown or inactive lawyer
        """
        if not isinstance(day, date) or isinstance(day, datetime):
            raise InvalidInputError("date must be a calendar date")
        slot_minutes = _validate_minutes(
            slot_duration_minutes
            if slot_duration_minutes is not None
            else self._settings.scheduling.default_slot_minutes,
            "duration_minutes",
        )
        step = _validate_minutes(step_minutes, "step_minutes") if step_minutes is not None else slot_minutes

        now = self._clock()
        if day < now.date():
            raise InvalidInputError(
                "Cannot resolve slots for a past date",
                errors=[{"field": "date", "message": "date is in the past"}],
            )

        day_start = datetime.combine(day, time.min)
        async with get_session_context(self._session_factory) as session:
            if await LawyersRepository(session).get_active(lawyer_id) is None:
                raise NotFoundError("Lawyer", lawyer_id)
            windows = await AvailabilityRepository(session).find_windows(lawyer_id, DayOfWeek.for_date(day))
            booked = await ConsultationsRepository(session).list_active_starting_between(
                lawyer_id, TimeInterval(day_start, day_start + timedelta(days=1))
            )
            bookings = tuple(
                _Booked(c.id, c.status, c.scheduled_at, c.duration_minutes) for c in booked
            )

        intervals = tuple(
            TimeInterval(datetime.combine(day, w.start_time), datetime.combine(day, w.end_time))
            for w in windows
            if w.available
        )
        logger.debug(
            f"Resolving slots for lawyer {lawyer_id} on {day}: "
            f"{len(intervals)} window(s), {len(bookings)} booking(s)"
        )
        return SlotSequence(
            windows=intervals,
            slot_minutes=slot_minutes,
            step_minutes=step,
            bookings=bookings,
            now=now,
        )

    async def get_slots(
        self, lawyer_id: str, query: Union[SlotsQuery, Mapping[str, Any]]
    ) -> SlotsResponse:
        """Materialized slots for the HTTP surface."""
        query = parse_request(SlotsQuery, query)
        slots = await self.resolve_slots(
            lawyer_id, query.date, query.duration_minutes, step_minutes=query.step_minutes
        )
        return SlotsResponse(
            lawyer_id=lawyer_id,
            date=query.date,
            duration_minutes=query.duration_minutes,
            slots=[TimeSlot(start=slot.start, end=slot.end) for slot in slots],
        )

    async def get_template(self, lawyer_id: str) -> AvailabilityTemplateResponse:
        async with get_session_context(self._session_factory) as session:
            if await LawyersRepository(session).get_by_id(lawyer_id) is None:
                raise NotFoundError("Lawyer", lawyer_id)
            template = await AvailabilityRepository(session).find_template(lawyer_id)
            return AvailabilityTemplateResponse(
                lawyer_id=lawyer_id,
                days={
                    day: [AvailabilityWindowModel.model_validate(w) for w in windows]
                    for day, windows in template.items()
                },
            )

    async def replace_template(
        self,
        lawyer_id: str,
        user: CurrentUser,
        update: Union[AvailabilityTemplateUpdate, Mapping[str, Any]],
    ) -> AvailabilityTemplateResponse:
        """Replace the whole weekly template. Only the lawyer may edit it."""
        update = parse_request(AvailabilityTemplateUpdate, update)
        if user.user_id != lawyer_id:
            raise ForbiddenError("Only the lawyer can change their availability")

        async with get_session_context(self._session_factory) as session:
            if await LawyersRepository(session).get_by_id(lawyer_id) is None:
                raise NotFoundError("Lawyer", lawyer_id)
            await AvailabilityRepository(session).replace_template(lawyer_id, update.days)

        logger.info(
            f"Replaced availability template for lawyer {lawyer_id}",
            extra={"extra_fields": {"lawyer_id": lawyer_id, "days": len(update.days)}},
        )
        return AvailabilityTemplateResponse(
            lawyer_id=lawyer_id,
            days={day: windows for day, windows in update.days.items() if windows},
        )


_availability_resolver: Optional[AvailabilityResolver] = None


def get_availability_resolver() -> AvailabilityResolver:
    """Get the process-global availability resolver."""
    global _availability_resolver
    if _availability_resolver is None:
        _availability_resolver = AvailabilityResolver()
    return _availability_resolver
