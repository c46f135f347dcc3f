"""Tests for the availability resolver and template maintenance."""

from datetime import time, timedelta

import pytest

from consult_core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from consult_core.models.availability import AvailabilityTemplateUpdate, DayOfWeek
from consult_core.models.identity import CurrentUser, UserRole
from helpers import CLIENT_ID, LAWYER_ID, MONDAY, NEXT_MONDAY, add_consultation, at


def starts(slots):
    return [(slot.start.time(), slot.end.time()) for slot in slots]


class TestResolveSlots:
    """Slot resolution from the weekly template."""

    async def test_walks_available_windows_in_slot_steps(self, resolver):
        slots = await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 60)
        assert starts(slots) == [
            (time(9), time(10)),
            (time(10), time(11)),
            (time(11), time(12)),
            (time(14), time(15)),
            (time(15), time(16)),
            (time(16), time(17)),
            (time(17), time(18)),
        ]

    async def test_excludes_slots_overlapping_a_booking(self, resolver, seeded):
        await add_consultation(
            seeded, scheduled_at=at(NEXT_MONDAY, 10), duration_minutes=30, status="confirmed"
        )
        slots = list(await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 60, step_minutes=30))
        morning = [s for s in starts(slots) if s[0] < time(12)]
        assert morning == [
            (time(9), time(10)),
            (time(10, 30), time(11, 30)),
            (time(11), time(12)),
        ]

    async def test_terminal_bookings_do_not_hide_slots(self, resolver, seeded):
        await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 9), status="cancelled")
        await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 10), status="completed")
        slots = starts(await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 60))
        assert (time(9), time(10)) in slots
        assert (time(10), time(11)) in slots

    async def test_drops_slots_overflowing_the_window(self, resolver):
        slots = starts(await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 90))
        assert slots == [
            (time(9), time(10, 30)),
            (time(10, 30), time(12)),
            (time(14), time(15, 30)),
            (time(15, 30), time(17)),
        ]

    async def test_drops_slots_starting_before_now(self, resolver, clock):
        clock.now = at(MONDAY, 10, 15)
        slots = starts(await resolver.resolve_slots(LAWYER_ID, MONDAY, 60))
        assert slots[0] == (time(11), time(12))
        assert all(start >= time(10, 15) for start, _ in slots)

    async def test_every_slot_fits_its_window_and_avoids_bookings(self, resolver, seeded):
        booked = await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 15, 15), duration_minutes=45)
        booked_end = booked.scheduled_at + timedelta(minutes=45)
        for slot in await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 30, step_minutes=15):
            in_morning = at(NEXT_MONDAY, 9) <= slot.start and slot.end <= at(NEXT_MONDAY, 12)
            in_afternoon = at(NEXT_MONDAY, 14) <= slot.start and slot.end <= at(NEXT_MONDAY, 18)
            assert in_morning or in_afternoon
            assert not (slot.start < booked_end and booked.scheduled_at < slot.end)

    async def test_blocked_window_yields_nothing(self, resolver):
        slots = starts(await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 60))
        assert all(start < time(19) for start, _ in slots)

    async def test_day_without_template_is_empty(self, resolver):
        tuesday = NEXT_MONDAY + timedelta(days=1)
        assert list(await resolver.resolve_slots(LAWYER_ID, tuesday, 60)) == []

    async def test_sequence_is_restartable(self, resolver):
        slots = await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 45)
        assert list(slots) == list(slots)
        assert len(slots.to_list()) > 0

    async def test_uses_configured_default_duration(self, resolver, settings):
        slots = await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY)
        assert slots.slot_minutes == settings.scheduling.default_slot_minutes

    async def test_overlapping_windows_are_walked_independently(self, resolver, seeded):
        user = CurrentUser(user_id=LAWYER_ID, role=UserRole.LAWYER)
        await resolver.replace_template(
            LAWYER_ID,
            user,
            {
                "days": {
                    "monday": [
                        {"start_time": "09:00", "end_time": "11:00"},
                        {"start_time": "10:00", "end_time": "12:00"},
                    ]
                }
            },
        )
        slots = starts(await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 60))
        assert slots == [
            (time(9), time(10)),
            (time(10), time(11)),
            (time(10), time(11)),
            (time(11), time(12)),
        ]

    async def test_past_date_is_invalid(self, resolver):
        with pytest.raises(InvalidInputError):
            await resolver.resolve_slots(LAWYER_ID, MONDAY - timedelta(days=1), 60)

    @pytest.mark.parametrize("duration", [0, 10, 14, 181])
    async def test_duration_out_of_range_is_invalid(self, resolver, duration):
        with pytest.raises(InvalidInputError):
            await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, duration)

    async def test_unknown_lawyer_is_not_found(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.resolve_slots("nobody", NEXT_MONDAY, 60)

    async def test_get_slots_validates_query(self, resolver):
        with pytest.raises(InvalidInputError):
            await resolver.get_slots(LAWYER_ID, {"date": "not-a-date"})
        response = await resolver.get_slots(LAWYER_ID, {"date": NEXT_MONDAY.isoformat(), "duration_minutes": 60})
        assert response.lawyer_id == LAWYER_ID
        assert len(response.slots) == 7

    async def test_get_slots_forwards_step(self, resolver, seeded):
        await add_consultation(
            seeded, scheduled_at=at(NEXT_MONDAY, 10), duration_minutes=30, status="confirmed"
        )
        response = await resolver.get_slots(
            LAWYER_ID, {"date": NEXT_MONDAY.isoformat(), "duration_minutes": 60, "step_minutes": 30}
        )
        assert (time(10, 30), time(11, 30)) in starts(response.slots)
        assert (time(9, 30), time(10, 30)) not in starts(response.slots)

    async def test_get_slots_rejects_short_step(self, resolver):
        with pytest.raises(InvalidInputError):
            await resolver.get_slots(LAWYER_ID, {"date": NEXT_MONDAY.isoformat(), "step_minutes": 5})


class TestTemplateMaintenance:
    """Replacing and reading the weekly template."""

    async def test_get_template_groups_windows_by_day(self, resolver):
        template = await resolver.get_template(LAWYER_ID)
        assert list(template.days) == [DayOfWeek.MONDAY]
        assert [w.start_time for w in template.days[DayOfWeek.MONDAY]] == [time(9), time(14), time(19)]
        assert template.days[DayOfWeek.MONDAY][2].available is False

    async def test_replace_template_overwrites_all_windows(self, resolver):
        user = CurrentUser(user_id=LAWYER_ID, role=UserRole.LAWYER)
        update = AvailabilityTemplateUpdate.model_validate(
            {"days": {"tuesday": [{"start_time": "13:00", "end_time": "15:00"}]}}
        )
        await resolver.replace_template(LAWYER_ID, user, update)

        template = await resolver.get_template(LAWYER_ID)
        assert list(template.days) == [DayOfWeek.TUESDAY]
        assert list(await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY, 60)) == []
        tuesday = starts(await resolver.resolve_slots(LAWYER_ID, NEXT_MONDAY + timedelta(days=1), 60))
        assert tuesday == [(time(13), time(14)), (time(14), time(15))]

    async def test_only_the_lawyer_may_replace_template(self, resolver):
        with pytest.raises(ForbiddenError):
            await resolver.replace_template(LAWYER_ID, CurrentUser(user_id=CLIENT_ID), {"days": {}})

    async def test_inverted_window_is_invalid(self, resolver):
        user = CurrentUser(user_id=LAWYER_ID, role=UserRole.LAWYER)
        with pytest.raises(InvalidInputError):
            await resolver.replace_template(
                LAWYER_ID, user, {"days": {"monday": [{"start_time": "12:00", "end_time": "09:00"}]}}
            )

    async def test_unknown_weekday_is_invalid(self, resolver):
        user = CurrentUser(user_id=LAWYER_ID, role=UserRole.LAWYER)
        with pytest.raises(InvalidInputError):
            await resolver.replace_template(
                LAWYER_ID, user, {"days": {"funday": [{"start_time": "09:00", "end_time": "10:00"}]}}
            )
