"""Consultation endpoints: booking, lifecycle actions, sessions and messages."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from consult_core.auth.dependencies import get_current_user
from consult_core.models.consultations import (
    BookingRequest,
    CompleteRequest,
    ConsultationListResponse,
    ConsultationModality,
    ConsultationResponse,
    ConsultationStatus,
    RescheduleRequest,
    SessionCredential,
)
from consult_core.models.identity import CurrentUser
from consult_core.models.messages import MessageCreateRequest, MessageListResponse, MessageResponse
from consult_core.services.booking_service import BookingTransactionManager, get_booking_manager
from consult_core.services.consultations_service import ConsultationsService, get_consultations_service
from consult_core.services.credential_service import SessionCredentialIssuer, get_credential_issuer
from consult_core.services.lifecycle_service import ConsultationLifecycleService, get_lifecycle_service
from consult_core.services.messages_service import MessagesService, get_messages_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consultations", tags=["consultations"])


@router.post(
    "",
    response_model=ConsultationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a consultation",
    description="Book a consultation in pending status. Fails with 409 if the slot is taken.",
)
async def book_consultation(
    request: BookingRequest,
    current_user: CurrentUser = Depends(get_current_user),
    manager: BookingTransactionManager = Depends(get_booking_manager),
) -> ConsultationResponse:
    return await manager.book(current_user.user_id, request)


@router.get("", response_model=ConsultationListResponse, summary="List my consultations")
async def list_consultations(
    status_filter: Optional[ConsultationStatus] = Query(None, alias="status"),
    modality: Optional[ConsultationModality] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    service: ConsultationsService = Depends(get_consultations_service),
) -> ConsultationListResponse:
    return await service.list_consultations(
        current_user, status=status_filter, modality=modality, page=page, limit=limit
    )


@router.get("/{consultation_id}", response_model=ConsultationResponse, summary="Get a consultation")
async def get_consultation(
    consultation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ConsultationsService = Depends(get_consultations_service),
) -> ConsultationResponse:
    return await service.get_consultation(consultation_id, current_user)


@router.patch(
    "/{consultation_id}",
    response_model=ConsultationResponse,
    summary="Reschedule a consultation",
    description="Change start, duration or description while pending or confirmed.",
)
async def reschedule_consultation(
    consultation_id: str,
    request: RescheduleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ConsultationLifecycleService = Depends(get_lifecycle_service),
) -> ConsultationResponse:
    return await lifecycle.reschedule(consultation_id, current_user.user_id, request)


@router.post("/{consultation_id}/cancel", response_model=ConsultationResponse, summary="Cancel")
async def cancel_consultation(
    consultation_id: str,
    reason: Optional[str] = Body(None, embed=True, max_length=1000),
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ConsultationLifecycleService = Depends(get_lifecycle_service),
) -> ConsultationResponse:
    return await lifecycle.cancel(consultation_id, current_user.user_id, reason)


@router.post("/{consultation_id}/complete", response_model=ConsultationResponse, summary="Complete")
async def complete_consultation(
    consultation_id: str,
    request: Optional[CompleteRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ConsultationLifecycleService = Depends(get_lifecycle_service),
) -> ConsultationResponse:
    return await lifecycle.complete(consultation_id, current_user.user_id, request)


@router.post("/{consultation_id}/no-show", response_model=ConsultationResponse, summary="Mark no-show")
async def mark_no_show(
    consultation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ConsultationLifecycleService = Depends(get_lifecycle_service),
) -> ConsultationResponse:
    return await lifecycle.mark_no_show(consultation_id, current_user.user_id)


@router.post(
    "/{consultation_id}/session-credential",
    response_model=SessionCredential,
    summary="Issue a video session credential",
    description="Starts the session on first use. Only for confirmed or in-progress video consultations.",
)
async def issue_session_credential(
    consultation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    issuer: SessionCredentialIssuer = Depends(get_credential_issuer),
) -> SessionCredential:
    return await issuer.issue_credential(consultation_id, current_user.user_id)


@router.get("/{consultation_id}/messages", response_model=MessageListResponse, summary="List messages")
async def list_messages(
    consultation_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    service: MessagesService = Depends(get_messages_service),
) -> MessageListResponse:
    return await service.list_messages(consultation_id, current_user.user_id, page=page, limit=limit)


@router.post(
    "/{consultation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    consultation_id: str,
    request: MessageCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: MessagesService = Depends(get_messages_service),
) -> MessageResponse:
    return await service.send_message(consultation_id, current_user.user_id, request)
