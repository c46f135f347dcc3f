"""Payment collaborator callbacks (internal)."""

import logging

from fastapi import APIRouter, Depends, status

from consult_core.auth.internal_service import InternalAuthDep
from consult_core.models.consultations import ConsultationResponse, PaymentEvent
from consult_core.services.lifecycle_service import ConsultationLifecycleService, get_lifecycle_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/events",
    response_model=ConsultationResponse,
    status_code=status.HTTP_200_OK,
    summary="Payment event (Internal)",
    description=(
        "Payment confirmed/failed/expired callback. Confirms or cancels the pending consultation. "
        "Intended for the payment service only."
    ),
    dependencies=[InternalAuthDep],
    include_in_schema=False,
)
async def payment_event(
    event: PaymentEvent,
    lifecycle: ConsultationLifecycleService = Depends(get_lifecycle_service),
) -> ConsultationResponse:
    return await lifecycle.handle_payment_event(event)
