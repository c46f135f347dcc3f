"""Half-open time intervals used by slot resolution and conflict detection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from consult_core.exceptions import InvalidInputError


@dataclass(frozen=True, order=True)
class TimeInterval:
    """The interval ``[start, end)`` in local wall-clock time."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidInputError(
                "Interval end must be after its start",
                details={"start": self.start.isoformat(), "end": self.end.isoformat()},
            )

    @classmethod
    def from_duration(cls, start: datetime, duration_minutes: int) -> "TimeInterval":
        return cls(start=start, end=start + timedelta(minutes=duration_minutes))

    def overlaps(self, other: "TimeInterval") -> bool:
        """Touching endpoints do not overlap."""
        return intervals_overlap(self.start, self.end, other.start, other.end)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test for ``[a_start, a_end)`` and ``[b_start, b_end)``."""
    return a_start < b_end and b_start < a_end
