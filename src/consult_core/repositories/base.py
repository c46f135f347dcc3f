"""Base repository class with common data access operations."""

import logging
from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from consult_core.database.models import Base
from consult_core.exceptions import DatabaseError

logger = logging.getLogger(__name__)

# Type variable for the model type
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common operations."""

    def __init__(self, model: Type[ModelType], session: AsyncSession, id_column: str = "id"):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session, owned by the caller's unit of work
            id_column: Name of the primary key attribute
        """
        self.model = model
        self.session = session
        self._id_column = getattr(model, id_column)

    async def get_by_id(self, id: str, for_update: bool = False) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record ID
            for_update: Take a row lock until the transaction ends

        Returns:
            Model instance or None if not found
        """
        try:
            query = select(self.model).where(self._id_column == id)
            if for_update:
                query = query.with_for_update()
            result = await self.session.execute(query)
            return result.unique().scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model.__name__} by ID {id}: {e}")
            raise DatabaseError(f"Failed to retrieve {self.model.__name__}") from e

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
            await self.session.refresh(instance)
            logger.debug(f"Created {self.model.__name__}: {instance!r}")
            return instance
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to create {self.model.__name__}") from e

    async def update(self, instance: ModelType, **kwargs) -> ModelType:
        """
        Apply field changes to a loaded instance and flush them.

        Args:
            instance: Instance loaded in this session
            **kwargs: Fields to update

        Returns:
            Updated model instance
        """
        try:
            for field, value in kwargs.items():
                if hasattr(instance, field):
                    setattr(instance, field, value)
            await self.session.flush()
            await self.session.refresh(instance)
            logger.debug(f"Updated {self.model.__name__}: {instance!r}")
            return instance
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to update {self.model.__name__}") from e
