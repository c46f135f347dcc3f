"""Lawyer availability endpoints: bookable slots and weekly templates."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from consult_core.auth.dependencies import get_current_user
from consult_core.models.availability import AvailabilityTemplateResponse, AvailabilityTemplateUpdate
from consult_core.models.consultations import (
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    SlotsQuery,
    SlotsResponse,
)
from consult_core.models.identity import CurrentUser
from consult_core.services.availability_service import AvailabilityResolver, get_availability_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lawyers", tags=["lawyers"])


@router.get(
    "/{lawyer_id}/slots",
    response_model=SlotsResponse,
    status_code=status.HTTP_200_OK,
    summary="Available slots",
    description="Bookable slots of a lawyer on one local calendar date.",
)
async def get_available_slots(
    lawyer_id: str,
    day: date = Query(..., alias="date", description="Local calendar date (YYYY-MM-DD)"),
    duration_minutes: int = Query(60, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES),
    step_minutes: Optional[int] = Query(None, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES),
    current_user: CurrentUser = Depends(get_current_user),
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
) -> SlotsResponse:
    """Resolve slots from the weekly template minus existing bookings."""
    return await resolver.get_slots(
        lawyer_id, SlotsQuery(date=day, duration_minutes=duration_minutes, step_minutes=step_minutes)
    )


@router.get(
    "/{lawyer_id}/availability",
    response_model=AvailabilityTemplateResponse,
    summary="Weekly availability template",
)
async def get_availability_template(
    lawyer_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
) -> AvailabilityTemplateResponse:
    return await resolver.get_template(lawyer_id)


@router.put(
    "/{lawyer_id}/availability",
    response_model=AvailabilityTemplateResponse,
    summary="Replace weekly availability template",
    description="Replace the whole weekly template. Only the lawyer may do this.",
)
async def replace_availability_template(
    lawyer_id: str,
    request: AvailabilityTemplateUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
) -> AvailabilityTemplateResponse:
    return await resolver.replace_template(lawyer_id, current_user, request)
