"""Tests for consultation messages."""

import pytest

from consult_core.exceptions import ForbiddenError, InvalidInputError, InvalidTransitionError, NotFoundError
from helpers import CLIENT_ID, LAWYER_ID, OUTSIDER_ID, add_consultation


async def test_parties_exchange_messages(messages_service, seeded):
    consultation = await add_consultation(seeded, status="confirmed")
    sent = await messages_service.send_message(consultation.id, CLIENT_ID, {"message": "Hello"})
    await messages_service.send_message(consultation.id, LAWYER_ID, {"message": "Hi, how can I help?"})

    assert sent.sender_id == CLIENT_ID
    assert sent.message_type == "text"

    listing = await messages_service.list_messages(consultation.id, LAWYER_ID)
    assert listing.total == 2
    assert {m.message for m in listing.items} == {"Hello", "Hi, how can I help?"}


async def test_outsider_cannot_send_or_read(messages_service, seeded):
    consultation = await add_consultation(seeded)
    with pytest.raises(ForbiddenError):
        await messages_service.send_message(consultation.id, OUTSIDER_ID, {"message": "hi"})
    with pytest.raises(ForbiddenError):
        await messages_service.list_messages(consultation.id, OUTSIDER_ID)


@pytest.mark.parametrize("status", ["cancelled", "no-show"])
async def test_closed_consultation_rejects_messages(messages_service, seeded, status):
    consultation = await add_consultation(seeded, status=status)
    with pytest.raises(InvalidTransitionError):
        await messages_service.send_message(consultation.id, CLIENT_ID, {"message": "still there?"})


async def test_completed_consultation_still_accepts_messages(messages_service, seeded):
    consultation = await add_consultation(seeded, status="completed")
    sent = await messages_service.send_message(consultation.id, CLIENT_ID, {"message": "Thanks!"})
    assert sent.consultation_id == consultation.id


async def test_empty_message_is_invalid(messages_service, seeded):
    consultation = await add_consultation(seeded)
    with pytest.raises(InvalidInputError):
        await messages_service.send_message(consultation.id, CLIENT_ID, {"message": ""})


async def test_unknown_consultation_is_not_found(messages_service, seeded):
    with pytest.raises(NotFoundError):
        await messages_service.list_messages("missing", CLIENT_ID)
