"""Read access to consultations for their parties."""

import logging
import math
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from consult_core.database.session import get_session_context
from consult_core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from consult_core.models.consultations import (
    ConsultationListResponse,
    ConsultationModality,
    ConsultationResponse,
    ConsultationStatus,
)
from consult_core.models.identity import CurrentUser
from consult_core.repositories.consultations_repository import ConsultationsRepository

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class ConsultationsService:
    """Service for consultation queries."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_factory = session_factory

    async def get_consultation(self, consultation_id: str, user: CurrentUser) -> ConsultationResponse:
        """A single consultation, visible to its parties and admins."""
        async with get_session_context(self._session_factory) as session:
            consultation = await ConsultationsRepository(session).get_by_id(consultation_id)
            if consultation is None:
                raise NotFoundError("Consultation", consultation_id)
            if not user.is_admin and user.user_id not in (consultation.client_id, consultation.lawyer_id):
                raise ForbiddenError("You are not a party to this consultation")
            return ConsultationResponse.model_validate(consultation)

    async def list_consultations(
        self,
        user: CurrentUser,
        status: Optional[ConsultationStatus] = None,
        modality: Optional[ConsultationModality] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ConsultationListResponse:
        """Consultations where the user is client or lawyer, newest first."""
        if page < 1:
            raise InvalidInputError("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidInputError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        async with get_session_context(self._session_factory) as session:
            items, total = await ConsultationsRepository(session).list_for_user(
                user.user_id,
                status=ConsultationStatus(status).value if status else None,
                modality=ConsultationModality(modality).value if modality else None,
                skip=(page - 1) * limit,
                limit=limit,
            )
            return ConsultationListResponse(
                items=[ConsultationResponse.model_validate(c) for c in items],
                total=total,
                page=page,
                limit=limit,
                pages=math.ceil(total / limit) if total else 0,
            )


_consultations_service: Optional[ConsultationsService] = None


def get_consultations_service() -> ConsultationsService:
    """Get the process-global consultations service."""
    global _consultations_service
    if _consultations_service is None:
        _consultations_service = ConsultationsService()
    return _consultations_service
