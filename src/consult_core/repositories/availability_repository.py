"""Availability template repository."""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from consult_core.database.models import AvailabilityWindow
from consult_core.exceptions import DatabaseError
from consult_core.models.availability import AvailabilityWindowModel, DayOfWeek
from consult_core.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityWindow]):
    """Repository for weekly availability windows."""

    def __init__(self, session: AsyncSession):
        super().__init__(AvailabilityWindow, session)

    async def find_windows(self, lawyer_id: str, day: Optional[DayOfWeek] = None) -> List[AvailabilityWindow]:
        """Windows of a lawyer (optionally one weekday) in template order."""
        query = select(AvailabilityWindow).where(AvailabilityWindow.lawyer_id == lawyer_id)
        if day is not None:
            query = query.where(AvailabilityWindow.day_of_week == day.value)
        query = query.order_by(AvailabilityWindow.day_of_week, AvailabilityWindow.position)
        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error getting availability for lawyer {lawyer_id}: {e}")
            raise DatabaseError("Failed to retrieve availability template") from e

    async def find_template(self, lawyer_id: str) -> Dict[DayOfWeek, List[AvailabilityWindow]]:
        """The whole weekly template as a day -> ordered windows mapping."""
        template: Dict[DayOfWeek, List[AvailabilityWindow]] = defaultdict(list)
        for window in await self.find_windows(lawyer_id):
            template[DayOfWeek(window.day_of_week)].append(window)
        return dict(template)

    async def replace_template(
        self, lawyer_id: str, days: Dict[DayOfWeek, List[AvailabilityWindowModel]]
    ) -> None:
        """Drop every stored window of the lawyer and insert ``days`` in order."""
        try:
            await self.session.execute(
                delete(AvailabilityWindow).where(AvailabilityWindow.lawyer_id == lawyer_id)
            )
            for day, windows in days.items():
                for position, window in enumerate(windows):
                    self.session.add(
                        AvailabilityWindow(
                            lawyer_id=lawyer_id,
                            day_of_week=day.value,
                            position=position,
                            start_time=window.start_time,
                            end_time=window.end_time,
                            available=window.available,
                        )
                    )
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error replacing availability for lawyer {lawyer_id}: {e}")
            raise DatabaseError("Failed to update availability template") from e
