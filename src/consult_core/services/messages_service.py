"""Messages exchanged between the parties of a consultation."""

import logging
from typing import Any, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from consult_core.database.session import get_session_context
from consult_core.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError
from consult_core.models.consultations import ConsultationStatus
from consult_core.models.messages import MessageCreateRequest, MessageListResponse, MessageResponse
from consult_core.models.validation import parse_request
from consult_core.repositories.consultations_repository import ConsultationsRepository
from consult_core.repositories.messages_repository import MessagesRepository
from consult_core.services.lifecycle_service import resolve_actor

logger = logging.getLogger(__name__)

# Messaging stays open after completion for follow-up questions.
CLOSED_STATUSES = frozenset({ConsultationStatus.CANCELLED, ConsultationStatus.NO_SHOW})


class MessagesService:
    """Service for consultation messages."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_factory = session_factory

    async def send_message(
        self,
        consultation_id: str,
        sender_id: str,
        request: Union[MessageCreateRequest, Mapping[str, Any]],
    ) -> MessageResponse:
        request = parse_request(MessageCreateRequest, request)
        async with get_session_context(self._session_factory) as session:
            consultation = await ConsultationsRepository(session).get_by_id(consultation_id)
            if consultation is None:
                raise NotFoundError("Consultation", consultation_id)
            resolve_actor(consultation, sender_id)
            if ConsultationStatus(consultation.status) in CLOSED_STATUSES:
                raise InvalidTransitionError(
                    consultation.status,
                    consultation.status,
                    message=f"Cannot send messages in a {consultation.status} consultation",
                )
            message = await MessagesRepository(session).create(
                consultation_id=consultation_id,
                sender_id=sender_id,
                message=request.message,
                message_type=request.message_type,
            )
            logger.debug(f"Message {message.id} sent in consultation {consultation_id}")
            return MessageResponse.model_validate(message)

    async def list_messages(
        self, consultation_id: str, user_id: str, page: int = 1, limit: int = 50
    ) -> MessageListResponse:
        if page < 1 or not 1 <= limit <= 100:
            raise InvalidInputError("page must be >= 1 and limit between 1 and 100")
        async with get_session_context(self._session_factory) as session:
            consultation = await ConsultationsRepository(session).get_by_id(consultation_id)
            if consultation is None:
                raise NotFoundError("Consultation", consultation_id)
            resolve_actor(consultation, user_id)
            items, total = await MessagesRepository(session).list_for_consultation(
                consultation_id, skip=(page - 1) * limit, limit=limit
            )
            return MessageListResponse(
                items=[MessageResponse.model_validate(m) for m in items],
                total=total,
                page=page,
                limit=limit,
            )


_messages_service: Optional[MessagesService] = None


def get_messages_service() -> MessagesService:
    """Get the process-global messages service."""
    global _messages_service
    if _messages_service is None:
        _messages_service = MessagesService()
    return _messages_service
