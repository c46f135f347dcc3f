"""Consultations repository: the durable store behind the booking core."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from consult_core.database.models import Consultation
from consult_core.exceptions import DatabaseError
from consult_core.models.consultations import ACTIVE_STATUSES, MAX_DURATION_MINUTES
from consult_core.models.intervals import TimeInterval
from consult_core.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]


class ConsultationsRepository(BaseRepository[Consultation]):
    """Repository for consultation data access operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Consultation, session)

    async def insert_consultation(self, **kwargs) -> Consultation:
        """Insert a consultation row (status defaults to pending)."""
        return await self.create(**kwargs)

    async def update_status(self, consultation: Consultation, status: str, **fields) -> Consultation:
        """Set the status of a loaded consultation, plus any extra fields."""
        return await self.update(consultation, status=status, **fields)

    async def list_active_starting_between(
        self, lawyer_id: str, window: TimeInterval
    ) -> List[Consultation]:
        """Active consultations of a lawyer that could intersect ``window``.

        A consultation can start up to the longest allowed duration before the
        window and still reach into it, so the lower bound is widened by that
        much. Callers apply the exact overlap predicate.
        """
        lower = window.start - timedelta(minutes=MAX_DURATION_MINUTES)
        try:
            result = await self.session.execute(
                select(Consultation)
                .where(
                    Consultation.lawyer_id == lawyer_id,
                    Consultation.status.in_(_ACTIVE_VALUES),
                    Consultation.scheduled_at < window.end,
                    Consultation.scheduled_at > lower,
                )
                .order_by(Consultation.scheduled_at)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing consultations for lawyer {lawyer_id}: {e}")
            raise DatabaseError("Failed to retrieve consultations") from e

    async def find_conflicting(
        self,
        lawyer_id: str,
        interval: TimeInterval,
        exclude_id: Optional[str] = None,
    ) -> List[Consultation]:
        """Active consultations of ``lawyer_id`` overlapping ``interval``."""
        candidates = await self.list_active_starting_between(lawyer_id, interval)
        return [
            c
            for c in candidates
            if c.id != exclude_id
            and TimeInterval.from_duration(c.scheduled_at, c.duration_minutes).overlaps(interval)
        ]

    async def list_for_user(
        self,
        user_id: str,
        status: Optional[str] = None,
        modality: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Consultation], int]:
        """Consultations where the user is client or lawyer, newest first, with total count."""
        conditions = [or_(Consultation.client_id == user_id, Consultation.lawyer_id == user_id)]
        if status:
            conditions.append(Consultation.status == status)
        if modality:
            conditions.append(Consultation.modality == modality)
        try:
            total = await self.session.execute(
                select(func.count()).select_from(Consultation).where(*conditions)
            )
            result = await self.session.execute(
                select(Consultation)
                .where(*conditions)
                .order_by(Consultation.scheduled_at.desc())
                .offset(skip)
                .limit(limit)
            )
            return list(result.scalars().all()), total.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error listing consultations for user {user_id}: {e}")
            raise DatabaseError("Failed to retrieve consultations") from e
