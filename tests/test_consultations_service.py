"""Tests for consultation queries."""

import pytest

from consult_core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from consult_core.models.consultations import ConsultationModality, ConsultationStatus
from consult_core.models.identity import CurrentUser, UserRole
from helpers import ADMIN_ID, CLIENT_ID, LAWYER_ID, NEXT_MONDAY, OTHER_CLIENT_ID, OUTSIDER_ID, add_consultation, at


async def test_party_can_read_consultation(consultations_service, seeded):
    consultation = await add_consultation(seeded)
    for user_id in (CLIENT_ID, LAWYER_ID):
        result = await consultations_service.get_consultation(consultation.id, CurrentUser(user_id=user_id))
        assert result.id == consultation.id


async def test_admin_can_read_any_consultation(consultations_service, seeded):
    consultation = await add_consultation(seeded)
    admin = CurrentUser(user_id=ADMIN_ID, role=UserRole.ADMIN)
    assert (await consultations_service.get_consultation(consultation.id, admin)).id == consultation.id


async def test_outsider_cannot_read_consultation(consultations_service, seeded):
    consultation = await add_consultation(seeded)
    with pytest.raises(ForbiddenError):
        await consultations_service.get_consultation(consultation.id, CurrentUser(user_id=OUTSIDER_ID))


async def test_missing_consultation_is_not_found(consultations_service, seeded):
    with pytest.raises(NotFoundError):
        await consultations_service.get_consultation("missing", CurrentUser(user_id=CLIENT_ID))


async def test_list_is_newest_first_with_total(consultations_service, seeded):
    early = await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 9))
    late = await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 15))
    await add_consultation(seeded, client_id=OTHER_CLIENT_ID, scheduled_at=at(NEXT_MONDAY, 11))

    mine = await consultations_service.list_consultations(CurrentUser(user_id=CLIENT_ID))
    assert [c.id for c in mine.items] == [late.id, early.id]
    assert mine.total == 2

    lawyer_view = await consultations_service.list_consultations(CurrentUser(user_id=LAWYER_ID))
    assert lawyer_view.total == 3


async def test_list_filters_and_paginates(consultations_service, seeded):
    for hour in (9, 10, 11):
        await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, hour), status="confirmed")
    await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 15), status="cancelled", modality="text")
    user = CurrentUser(user_id=CLIENT_ID)

    confirmed = await consultations_service.list_consultations(user, status=ConsultationStatus.CONFIRMED)
    assert confirmed.total == 3

    text_only = await consultations_service.list_consultations(user, modality=ConsultationModality.TEXT)
    assert [c.status for c in text_only.items] == [ConsultationStatus.CANCELLED]

    page_two = await consultations_service.list_consultations(user, page=2, limit=3)
    assert page_two.total == 4
    assert page_two.pages == 2
    assert len(page_two.items) == 1
    assert page_two.items[0].scheduled_at == at(NEXT_MONDAY, 9)


async def test_list_rejects_bad_paging(consultations_service, seeded):
    with pytest.raises(InvalidInputError):
        await consultations_service.list_consultations(CurrentUser(user_id=CLIENT_ID), page=0)
