"""Tests for the session credential issuer."""

from datetime import timedelta

import pytest
from jose import jwt

from consult_core.clients.signaling_client import JWTSignalingProvider
from consult_core.exceptions import ExternalServiceError, ForbiddenError, NotEligibleError, NotFoundError
from consult_core.models.consultations import ConsultationStatus
from consult_core.services.credential_service import SessionCredentialIssuer, subject_id_for
from helpers import CLIENT_ID, LAWYER_ID, NOW, OUTSIDER_ID, add_consultation, fetch_consultation


class TestEligibility:
    """Which requests get a credential."""

    async def test_unknown_consultation_is_not_found(self, issuer, seeded):
        with pytest.raises(NotFoundError):
            await issuer.issue_credential("missing", CLIENT_ID)

    @pytest.mark.parametrize("modality", ["text", "phone"])
    async def test_non_video_is_not_eligible(self, issuer, seeded, modality):
        consultation = await add_consultation(seeded, modality=modality, status="confirmed")
        with pytest.raises(NotEligibleError):
            await issuer.issue_credential(consultation.id, CLIENT_ID)

    @pytest.mark.parametrize("status", ["pending", "completed", "cancelled", "no-show"])
    async def test_ineligible_status(self, issuer, seeded, status):
        consultation = await add_consultation(seeded, status=status)
        with pytest.raises(NotEligibleError):
            await issuer.issue_credential(consultation.id, CLIENT_ID)

    async def test_eligibility_is_checked_before_party(self, issuer, seeded):
        consultation = await add_consultation(seeded, status="pending")
        with pytest.raises(NotEligibleError):
            await issuer.issue_credential(consultation.id, OUTSIDER_ID)

    async def test_third_party_is_forbidden(self, issuer, seeded, signaling):
        consultation = await add_consultation(seeded, status="confirmed")
        with pytest.raises(ForbiddenError):
            await issuer.issue_credential(consultation.id, OUTSIDER_ID)
        signaling.create_token.assert_not_called()
        assert (await fetch_consultation(seeded, consultation.id)).status == "confirmed"


class TestIssue:
    """Issuing and reissuing credentials."""

    async def test_first_call_starts_the_session(self, issuer, seeded, signaling, settings):
        consultation = await add_consultation(seeded, status="confirmed")
        credential = await issuer.issue_credential(consultation.id, CLIENT_ID)

        assert credential.channel_id == f"consultation_{consultation.id}"
        assert credential.token == "signed-token"
        assert credential.role == "publisher"
        assert credential.subject_id == subject_id_for(CLIENT_ID)
        assert credential.expires_at == NOW + timedelta(seconds=settings.signaling.token_ttl_seconds)
        stored = await fetch_consultation(seeded, consultation.id)
        assert stored.status == ConsultationStatus.IN_PROGRESS.value
        signaling.create_token.assert_awaited_once_with(
            credential.channel_id, credential.subject_id, "publisher", credential.expires_at
        )

    async def test_second_call_reissues_without_transition(self, issuer, seeded, clock):
        consultation = await add_consultation(seeded, status="confirmed")
        first = await issuer.issue_credential(consultation.id, CLIENT_ID)
        after_first = await fetch_consultation(seeded, consultation.id)

        clock.now = clock.now + timedelta(minutes=5)
        second = await issuer.issue_credential(consultation.id, LAWYER_ID)
        after_second = await fetch_consultation(seeded, consultation.id)

        assert second.channel_id == first.channel_id
        assert second.expires_at > first.expires_at
        assert second.subject_id != first.subject_id
        assert after_second.status == "in-progress"
        assert after_second.updated_at == after_first.updated_at

    async def test_signaling_failure_keeps_consultation_confirmed(self, issuer, seeded, signaling):
        signaling.create_token.side_effect = ExternalServiceError("signaling")
        consultation = await add_consultation(seeded, status="confirmed")

        with pytest.raises(ExternalServiceError):
            await issuer.issue_credential(consultation.id, CLIENT_ID)
        assert (await fetch_consultation(seeded, consultation.id)).status == "confirmed"

    async def test_jwt_provider_token_carries_channel_and_subject(self, seeded, clock, settings):
        issuer = SessionCredentialIssuer(
            session_factory=seeded,
            signaling=JWTSignalingProvider(settings.signaling),
            clock=clock,
            settings=settings,
        )
        consultation = await add_consultation(seeded, status="in-progress")
        credential = await issuer.issue_credential(consultation.id, LAWYER_ID)

        claims = jwt.decode(
            credential.token,
            settings.signaling.secret_key,
            algorithms=[settings.signaling.algorithm],
            options={"verify_exp": False},
        )
        assert claims["channel"] == credential.channel_id
        assert claims["sub"] == str(credential.subject_id)
        assert claims["role"] == "publisher"
        assert claims["iss"] == settings.signaling.app_id
        assert claims["exp"] - claims["iat"] == settings.signaling.token_ttl_seconds
        assert credential.app_id == settings.signaling.app_id


def test_subject_id_is_stable_and_32_bit():
    assert subject_id_for("user-42") == subject_id_for("user-42")
    assert subject_id_for("user-42") != subject_id_for("user-43")
    assert 0 <= subject_id_for("user-42") < 2**32
