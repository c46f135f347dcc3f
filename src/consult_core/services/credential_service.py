"""Session credential issuer for video consultations.

Credentials are ephemeral: each call mints a fresh token with a fixed TTL and
nothing is persisted. The first successful call on a confirmed consultation
starts the session (confirmed -> in-progress).
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timedelta
from functools import partial
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from consult_core.clients.signaling_client import JWTSignalingProvider, SignalingProvider
from consult_core.config import Settings, get_settings
from consult_core.database.session import get_session_context
from consult_core.exceptions import NotEligibleError, NotFoundError
from consult_core.models.consultations import (
    ConsultationModality,
    ConsultationStatus,
    SessionCredential,
)
from consult_core.repositories.consultations_repository import ConsultationsRepository
from consult_core.services.lifecycle_service import apply_transition, resolve_actor
from consult_core.utils.datetime_utils import wall_clock_now

logger = logging.getLogger(__name__)

PUBLISHER_ROLE = "publisher"
_ELIGIBLE_STATUSES = frozenset({ConsultationStatus.CONFIRMED, ConsultationStatus.IN_PROGRESS})


def channel_id_for(consultation_id: str) -> str:
    return f"consultation_{consultation_id}"


def subject_id_for(user_id: str) -> int:
    """Stable 32-bit numeric id derived from a user id."""
    return int(hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:8], 16)


class SessionCredentialIssuer:
    """Issues realtime credentials to the parties of a video consultation."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        signaling: Optional[SignalingProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._session_factory = session_factory
        self._signaling = signaling or JWTSignalingProvider(self._settings.signaling)
        self._clock = clock or partial(wall_clock_now, self._settings.scheduling.wall_clock_timezone)

    async def issue_credential(self, consultation_id: str, requesting_user_id: str) -> SessionCredential:
        """
        Issue a session credential.

        Raises:
            NotFoundError: Unknown consultation
            NotEligibleError: Not a video consultation, or not confirmed/in-progress
            ForbiddenError: Requester is not a party
            ExternalServiceError: The signaling provider failed; no transition is kept
        """
        async with get_session_context(self._session_factory) as session:
            repo = ConsultationsRepository(session)
            consultation = await repo.get_by_id(consultation_id, for_update=True)
            if consultation is None:
                raise NotFoundError("Consultation", consultation_id)
            if consultation.modality != ConsultationModality.VIDEO.value:
                raise NotEligibleError(
                    "Session credentials are only issued for video consultations",
                    details={"modality": consultation.modality},
                )
            if ConsultationStatus(consultation.status) not in _ELIGIBLE_STATUSES:
                raise NotEligibleError(
                    f"Consultation is {consultation.status}; sessions start once it is confirmed",
                    details={"status": consultation.status},
                )
            actor = resolve_actor(consultation, requesting_user_id)

            if consultation.status == ConsultationStatus.CONFIRMED.value:
                consultation = await apply_transition(
                    repo, consultation, ConsultationStatus.IN_PROGRESS, actor
                )

            channel_id = channel_id_for(consultation.id)
            subject_id = subject_id_for(requesting_user_id)
            expires_at = self._clock() + timedelta(seconds=self._settings.signaling.token_ttl_seconds)
            token = await self._signaling.create_token(channel_id, subject_id, PUBLISHER_ROLE, expires_at)

        logger.info(
            f"Issued session credential for consultation {consultation_id} to user {requesting_user_id}",
            extra={"extra_fields": {"consultation_id": consultation_id, "channel_id": channel_id}},
        )
        return SessionCredential(
            channel_id=channel_id,
            token=token,
            subject_id=subject_id,
            role=PUBLISHER_ROLE,
            expires_at=expires_at,
            app_id=self._settings.signaling.app_id,
        )


_credential_issuer: Optional[SessionCredentialIssuer] = None


def get_credential_issuer() -> SessionCredentialIssuer:
    """Get the process-global credential issuer."""
    global _credential_issuer
    if _credential_issuer is None:
        _credential_issuer = SessionCredentialIssuer()
    return _credential_issuer
