"""Consultation lifecycle state machine.

Status moves along ``pending -> confirmed -> in-progress -> completed``;
``cancelled`` and ``no-show`` are terminal side exits. Every move is checked
against the transition table below, which also names the actors allowed to
trigger it. Each operation runs in its own unit of work with the consultation
row locked for update.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from consult_core.config import Settings, get_settings
from consult_core.database.models import Consultation
from consult_core.database.session import get_session_context
from consult_core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
)
from consult_core.models.consultations import (
    CompleteRequest,
    ConsultationResponse,
    ConsultationStatus,
    PaymentEvent,
    RescheduleRequest,
)
from consult_core.models.validation import parse_request
from consult_core.repositories.consultations_repository import ConsultationsRepository
from consult_core.repositories.lawyers_repository import LawyersRepository
from consult_core.services.booking_service import compute_price
from consult_core.services.conflict_service import ConflictDetector
from consult_core.services.locks import LawyerLockRegistry, get_lawyer_lock_registry
from consult_core.services.notification_service import (
    NotificationDispatcher,
    consultation_payload,
    get_notification_dispatcher,
)
from consult_core.utils.datetime_utils import to_wall_clock, wall_clock_now

logger = logging.getLogger(__name__)


class Actor(str, Enum):
    """Who triggers a transition."""

    CLIENT = "client"
    LAWYER = "lawyer"
    SYSTEM = "system"


_PARTIES = frozenset({Actor.CLIENT, Actor.LAWYER})

TRANSITIONS: Dict[Tuple[ConsultationStatus, ConsultationStatus], FrozenSet[Actor]] = {
    (ConsultationStatus.PENDING, ConsultationStatus.CONFIRMED): frozenset({Actor.SYSTEM}),
    (ConsultationStatus.PENDING, ConsultationStatus.CANCELLED): _PARTIES | {Actor.SYSTEM},
    (ConsultationStatus.CONFIRMED, ConsultationStatus.CANCELLED): _PARTIES,
    (ConsultationStatus.CONFIRMED, ConsultationStatus.IN_PROGRESS): _PARTIES,
    (ConsultationStatus.CONFIRMED, ConsultationStatus.COMPLETED): frozenset({Actor.LAWYER}),
    (ConsultationStatus.IN_PROGRESS, ConsultationStatus.COMPLETED): frozenset({Actor.LAWYER}),
    (ConsultationStatus.CONFIRMED, ConsultationStatus.NO_SHOW): frozenset({Actor.LAWYER}),
}

RESCHEDULABLE_STATUSES = frozenset({ConsultationStatus.PENDING, ConsultationStatus.CONFIRMED})


def allowed_targets(current: Union[str, ConsultationStatus]) -> FrozenSet[ConsultationStatus]:
    """Statuses reachable from ``current`` by any actor."""
    current = ConsultationStatus(current)
    return frozenset(target for (source, target) in TRANSITIONS if source == current)


def resolve_actor(consultation: Any, user_id: str) -> Actor:
    """Map a user to their side of the consultation.

    Raises:
        ForbiddenError: The user is neither the booking client nor the bound lawyer
    """
    if user_id == consultation.lawyer_id:
        return Actor.LAWYER
    if user_id == consultation.client_id:
        return Actor.CLIENT
    raise ForbiddenError("You are not a party to this consultation")


def check_transition(
    current: Union[str, ConsultationStatus],
    target: Union[str, ConsultationStatus],
    actor: Actor,
) -> None:
    """Raise unless ``actor`` may move a consultation from ``current`` to ``target``.

    Raises:
        InvalidTransitionError: No such edge (always the case from a terminal status)
        ForbiddenError: The edge exists but not for this actor
    """
    current = ConsultationStatus(current)
    target = ConsultationStatus(target)
    allowed = TRANSITIONS.get((current, target))
    if allowed is None:
        raise InvalidTransitionError(current.value, target.value)
    if actor not in allowed:
        raise ForbiddenError(
            f"A {actor.value} cannot move a consultation from '{current.value}' to '{target.value}'",
            details={"current_status": current.value, "target_status": target.value},
        )


async def apply_transition(
    repo: ConsultationsRepository,
    consultation: Consultation,
    target: ConsultationStatus,
    actor: Actor,
    **fields: Any,
) -> Consultation:
    """Check and persist one transition on a consultation loaded for update."""
    check_transition(consultation.status, target, actor)
    previous = consultation.status
    consultation = await repo.update_status(consultation, target.value, **fields)
    logger.info(
        f"Consultation {consultation.id}: {previous} -> {target.value} by {actor.value}",
        extra={
            "extra_fields": {
                "consultation_id": consultation.id,
                "from_status": previous,
                "to_status": target.value,
                "actor": actor.value,
            }
        },
    )
    return consultation


async def _load_for_update(session: AsyncSession, consultation_id: str) -> Consultation:
    consultation = await ConsultationsRepository(session).get_by_id(consultation_id, for_update=True)
    if consultation is None:
        raise NotFoundError("Consultation", consultation_id)
    return consultation


class ConsultationLifecycleService:
    """Status transitions, payment events and rescheduling."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        lock_registry: Optional[LawyerLockRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher or get_notification_dispatcher()
        self._locks = lock_registry or get_lawyer_lock_registry()
        self._settings = settings or get_settings()
        self._clock = clock or partial(wall_clock_now, self._settings.scheduling.wall_clock_timezone)

    async def _transition(
        self,
        consultation_id: str,
        target: ConsultationStatus,
        user_id: Optional[str],
        template_kind: str,
        from_statuses: Optional[Iterable[ConsultationStatus]] = None,
        guard: Optional[Callable[[Consultation], None]] = None,
        payload: Optional[Mapping[str, Any]] = None,
        replay_ok: bool = False,
        **fields: Any,
    ) -> ConsultationResponse:
        async with get_session_context(self._session_factory) as session:
            consultation = await _load_for_update(session, consultation_id)
            if replay_ok and consultation.status == target.value:
                logger.info(f"Consultation {consultation_id} already {target.value}")
                return ConsultationResponse.model_validate(consultation)
            actor = Actor.SYSTEM if user_id is None else resolve_actor(consultation, user_id)
            if from_statuses is not None and ConsultationStatus(consultation.status) not in set(from_statuses):
                raise InvalidTransitionError(consultation.status, target.value)
            check_transition(consultation.status, target, actor)
            if guard is not None:
                guard(consultation)
            consultation = await apply_transition(
                ConsultationsRepository(session), consultation, target, actor, **fields
            )
            response = ConsultationResponse.model_validate(consultation)

        self._dispatcher.dispatch_to_parties(
            response, template_kind, consultation_payload(response, **dict(payload or {}))
        )
        return response

    async def confirm_payment(self, consultation_id: str) -> ConsultationResponse:
        """Move a pending consultation to confirmed.

        A replayed confirmation for an already confirmed consultation returns
        it unchanged.
        """
        return await self._transition(
            consultation_id,
            ConsultationStatus.CONFIRMED,
            user_id=None,
            template_kind="consultation_confirmed",
            replay_ok=True,
        )

    async def handle_payment_event(
        self, event: Union[PaymentEvent, Mapping[str, Any]]
    ) -> ConsultationResponse:
        """Apply a callback from the payment collaborator."""
        event = parse_request(PaymentEvent, event)
        logger.info(
            f"Payment event '{event.event}' for consultation {event.consultation_id}",
            extra={
                "extra_fields": {
                    "consultation_id": event.consultation_id,
                    "event": event.event,
                    "payment_reference": event.payment_reference,
                }
            },
        )
        if event.event == "payment_confirmed":
            return await self.confirm_payment(event.consultation_id)
        return await self._transition(
            event.consultation_id,
            ConsultationStatus.CANCELLED,
            user_id=None,
            template_kind="consultation_cancelled",
            from_statuses=[ConsultationStatus.PENDING],
            payload={"reason": event.event},
        )

    async def cancel(
        self, consultation_id: str, user_id: str, reason: Optional[str] = None
    ) -> ConsultationResponse:
        """Cancel a pending or confirmed consultation on behalf of a party."""
        return await self._transition(
            consultation_id,
            ConsultationStatus.CANCELLED,
            user_id=user_id,
            template_kind="consultation_cancelled",
            payload={"reason": reason, "cancelled_by": user_id},
        )

    async def complete(
        self,
        consultation_id: str,
        user_id: str,
        request: Union[CompleteRequest, Mapping[str, Any], None] = None,
    ) -> ConsultationResponse:
        """Lawyer closes the consultation, optionally with notes."""
        request = parse_request(CompleteRequest, request if request is not None else {})
        fields = {"notes": request.notes} if request.notes is not None else {}
        return await self._transition(
            consultation_id,
            ConsultationStatus.COMPLETED,
            user_id=user_id,
            template_kind="consultation_completed",
            **fields,
        )

    async def mark_no_show(self, consultation_id: str, user_id: str) -> ConsultationResponse:
        """Lawyer records that the client never joined."""
        now = self._clock()

        def started(consultation: Consultation) -> None:
            if now < consultation.scheduled_at:
                raise InvalidTransitionError(
                    consultation.status,
                    ConsultationStatus.NO_SHOW.value,
                    message="Cannot mark a no-show before the scheduled start",
                )

        return await self._transition(
            consultation_id,
            ConsultationStatus.NO_SHOW,
            user_id=user_id,
            template_kind="consultation_no_show",
            guard=started,
        )

    async def reschedule(
        self,
        consultation_id: str,
        user_id: str,
        request: Union[RescheduleRequest, Mapping[str, Any]],
    ) -> ConsultationResponse:
        """Change start, duration or description of a pending/confirmed consultation.

        Interval changes are conflict-checked against the lawyer's other
        bookings under the same per-lawyer serialization as booking. On any
        failure the record is left unchanged.
        """
        request = parse_request(RescheduleRequest, request)
        new_start = None
        if request.scheduled_at is not None:
            new_start = to_wall_clock(request.scheduled_at, self._settings.scheduling.wall_clock_timezone)
            if new_start <= self._clock():
                raise InvalidInputError(
                    "Consultation must start in the future",
                    errors=[{"field": "scheduled_at", "message": "must be in the future"}],
                )

        async with get_session_context(self._session_factory) as session:
            consultation = await ConsultationsRepository(session).get_by_id(consultation_id)
            if consultation is None:
                raise NotFoundError("Consultation", consultation_id)
            lawyer_id = consultation.lawyer_id

        async with self._locks.hold(lawyer_id):
            async with get_session_context(self._session_factory) as session:
                repo = ConsultationsRepository(session)
                consultation = await _load_for_update(session, consultation_id)
                resolve_actor(consultation, user_id)
                if ConsultationStatus(consultation.status) not in RESCHEDULABLE_STATUSES:
                    raise InvalidTransitionError(
                        consultation.status,
                        consultation.status,
                        message=f"A {consultation.status} consultation cannot be rescheduled",
                    )

                fields: Dict[str, Any] = {}
                if request.changes_interval:
                    start = new_start or consultation.scheduled_at
                    duration = request.duration_minutes or consultation.duration_minutes
                    lawyer = await LawyersRepository(session).get_by_id(lawyer_id, for_update=True)
                    conflicts = await ConflictDetector(session).find_conflicts(
                        lawyer_id,
                        start,
                        start + timedelta(minutes=duration),
                        exclude_consultation_id=consultation.id,
                    )
                    if conflicts:
                        raise SlotUnavailableError(
                            "The lawyer already has a consultation in that time range",
                            details={"conflicting_ids": [c.id for c in conflicts]},
                        )
                    fields.update(scheduled_at=start, duration_minutes=duration)
                    if lawyer is not None:
                        fields["price"] = compute_price(lawyer.hourly_rate, duration)
                if request.description is not None:
                    fields["description"] = request.description

                consultation = await repo.update(consultation, **fields)
                response = ConsultationResponse.model_validate(consultation)

        logger.info(
            f"Rescheduled consultation {consultation_id}",
            extra={"extra_fields": {"consultation_id": consultation_id, "fields": sorted(fields)}},
        )
        if request.changes_interval:
            self._dispatcher.dispatch_to_parties(
                response, "consultation_rescheduled", consultation_payload(response)
            )
        return response


_lifecycle_service: Optional[ConsultationLifecycleService] = None


def get_lifecycle_service() -> ConsultationLifecycleService:
    """Get the process-global lifecycle service."""
    global _lifecycle_service
    if _lifecycle_service is None:
        _lifecycle_service = ConsultationLifecycleService()
    return _lifecycle_service
