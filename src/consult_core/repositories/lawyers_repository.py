"""Lawyer profile repository."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from consult_core.database.models import LawyerProfile, User
from consult_core.exceptions import DatabaseError
from consult_core.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class LawyersRepository(BaseRepository[LawyerProfile]):
    """Repository for lawyer profiles (read-mostly from the booking core)."""

    def __init__(self, session: AsyncSession):
        super().__init__(LawyerProfile, session, id_column="user_id")

    async def get_active(self, user_id: str, for_update: bool = False) -> Optional[LawyerProfile]:
        """Return the profile only if both the profile and its user are active.

        With ``for_update`` the profile row is locked for the rest of the
        transaction, which serializes bookings for one lawyer across processes.
        """
        try:
            query = (
                select(LawyerProfile)
                .join(User, User.id == LawyerProfile.user_id)
                .where(
                    LawyerProfile.user_id == user_id,
                    LawyerProfile.is_active.is_(True),
                    User.is_active.is_(True),
                )
            )
            if for_update:
                query = query.with_for_update(of=LawyerProfile)
            result = await self.session.execute(query)
            return result.unique().scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting active lawyer {user_id}: {e}")
            raise DatabaseError("Failed to retrieve lawyer") from e
