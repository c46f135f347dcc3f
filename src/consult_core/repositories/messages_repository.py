"""Consultation messages repository."""

import logging
from typing import List, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from consult_core.database.models import ConsultationMessage
from consult_core.exceptions import DatabaseError
from consult_core.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class MessagesRepository(BaseRepository[ConsultationMessage]):
    """Repository for consultation messages."""

    def __init__(self, session: AsyncSession):
        super().__init__(ConsultationMessage, session)

    async def list_for_consultation(
        self, consultation_id: str, skip: int = 0, limit: int = 50
    ) -> Tuple[List[ConsultationMessage], int]:
        """Messages oldest first, with the total count."""
        condition = ConsultationMessage.consultation_id == consultation_id
        try:
            total = await self.session.execute(
                select(func.count()).select_from(ConsultationMessage).where(condition)
            )
            result = await self.session.execute(
                select(ConsultationMessage)
                .where(condition)
                .order_by(ConsultationMessage.created_at.asc(), ConsultationMessage.id)
                .offset(skip)
                .limit(limit)
            )
            return list(result.scalars().all()), total.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error listing messages for consultation {consultation_id}: {e}")
            raise DatabaseError("Failed to retrieve messages") from e
