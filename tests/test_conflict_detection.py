"""Tests for conflict detection."""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from consult_core.exceptions import InvalidInputError
from consult_core.models.intervals import TimeInterval, intervals_overlap
from consult_core.services.conflict_service import ConflictDetector, find_conflicts
from helpers import LAWYER_ID, NEXT_MONDAY, OTHER_CLIENT_ID, add_consultation, at


def booking(id="b1", status="confirmed", start=None, minutes=60):
    return SimpleNamespace(
        id=id,
        status=status,
        scheduled_at=start or at(NEXT_MONDAY, 10),
        duration_minutes=minutes,
    )


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ((10, 0, 11, 0), (10, 30, 11, 30), True),
        ((10, 0, 11, 0), (11, 0, 12, 0), False),
        ((10, 0, 12, 0), (10, 30, 11, 0), True),
        ((10, 0, 10, 30), (9, 0, 10, 0), False),
        ((9, 0, 10, 0), (13, 0, 14, 0), False),
    ],
)
def test_overlap_is_symmetric(a, b, expected):
    a_start, a_end = at(NEXT_MONDAY, a[0], a[1]), at(NEXT_MONDAY, a[2], a[3])
    b_start, b_end = at(NEXT_MONDAY, b[0], b[1]), at(NEXT_MONDAY, b[2], b[3])
    assert intervals_overlap(a_start, a_end, b_start, b_end) is expected
    assert intervals_overlap(b_start, b_end, a_start, a_end) is expected


def test_interval_rejects_empty_or_inverted_range():
    start = at(NEXT_MONDAY, 10)
    with pytest.raises(InvalidInputError):
        TimeInterval(start, start)
    with pytest.raises(InvalidInputError):
        TimeInterval(start, start - timedelta(minutes=1))


def test_touching_bookings_do_not_conflict():
    proposed = TimeInterval(at(NEXT_MONDAY, 11), at(NEXT_MONDAY, 12))
    assert find_conflicts(proposed, [booking()]) == []


@pytest.mark.parametrize("status", ["pending", "confirmed", "in-progress"])
def test_active_bookings_block(status):
    proposed = TimeInterval(at(NEXT_MONDAY, 10, 30), at(NEXT_MONDAY, 11, 30))
    assert len(find_conflicts(proposed, [booking(status=status)])) == 1


@pytest.mark.parametrize("status", ["completed", "cancelled", "no-show"])
def test_terminal_bookings_never_block(status):
    proposed = TimeInterval(at(NEXT_MONDAY, 10), at(NEXT_MONDAY, 11))
    assert find_conflicts(proposed, [booking(status=status)]) == []


def test_excluded_booking_is_ignored():
    proposed = TimeInterval(at(NEXT_MONDAY, 10, 15), at(NEXT_MONDAY, 11, 15))
    bookings = [booking(id="self"), booking(id="other", start=at(NEXT_MONDAY, 11), minutes=30)]
    conflicts = find_conflicts(proposed, bookings, exclude_id="self")
    assert [b.id for b in conflicts] == ["other"]


class TestConflictDetector:
    """Store-backed conflict checks."""

    async def test_detects_overlap_with_stored_booking(self, seeded, session):
        await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 14), status="confirmed")
        detector = ConflictDetector(session)
        assert await detector.has_conflict(LAWYER_ID, at(NEXT_MONDAY, 14, 30), at(NEXT_MONDAY, 15, 30))
        assert not await detector.has_conflict(LAWYER_ID, at(NEXT_MONDAY, 15), at(NEXT_MONDAY, 16))
        assert not await detector.has_conflict(LAWYER_ID, at(NEXT_MONDAY, 13), at(NEXT_MONDAY, 14))

    async def test_long_booking_started_earlier_still_blocks(self, seeded, session):
        await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 9), duration_minutes=180)
        detector = ConflictDetector(session)
        assert await detector.has_conflict(LAWYER_ID, at(NEXT_MONDAY, 11, 45), at(NEXT_MONDAY, 12, 15))

    async def test_other_lawyers_bookings_are_ignored(self, seeded, session):
        await add_consultation(seeded, lawyer_id=OTHER_CLIENT_ID, scheduled_at=at(NEXT_MONDAY, 10))
        detector = ConflictDetector(session)
        assert not await detector.has_conflict(LAWYER_ID, at(NEXT_MONDAY, 10), at(NEXT_MONDAY, 11))

    async def test_no_self_conflict_under_exclusion(self, seeded, session):
        existing = await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 10))
        detector = ConflictDetector(session)
        assert not await detector.has_conflict(
            LAWYER_ID,
            at(NEXT_MONDAY, 10, 30),
            at(NEXT_MONDAY, 11, 30),
            exclude_consultation_id=existing.id,
        )
        assert await detector.has_conflict(LAWYER_ID, at(NEXT_MONDAY, 10, 30), at(NEXT_MONDAY, 11, 30))

    async def test_cancelled_booking_frees_the_interval(self, seeded, session):
        await add_consultation(seeded, scheduled_at=at(NEXT_MONDAY, 10), status="cancelled")
        detector = ConflictDetector(session)
        assert not await detector.has_conflict(LAWYER_ID, at(NEXT_MONDAY, 10), at(NEXT_MONDAY, 11))
