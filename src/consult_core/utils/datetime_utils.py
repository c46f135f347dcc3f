"""Wall-clock helpers.

The scheduling core works on naive local wall-clock timestamps: availability
templates are stored as local times of day and consultations as naive
datetimes. Timezone-aware input is only accepted when a wall-clock timezone is
configured, in which case it is converted and stripped.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from consult_core.exceptions import InvalidInputError


def _zone(timezone: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone)
    except ZoneInfoNotFoundError as e:
        raise InvalidInputError(f"Unknown wall-clock timezone '{timezone}'") from e


def local_now() -> datetime:
    """Current naive time of the server's own timezone."""
    return datetime.now().replace(microsecond=0)


def wall_clock_now(timezone: Optional[str] = None) -> datetime:
    """Current naive wall-clock time; the default clock for all services.

    With a configured ``timezone`` this is the time in that zone, so it
    compares correctly with inputs converted by ``to_wall_clock``.
    """
    if not timezone:
        return local_now()
    return datetime.now(_zone(timezone)).replace(tzinfo=None, microsecond=0)


def to_wall_clock(value: datetime, timezone: Optional[str] = None, field: str = "scheduled_at") -> datetime:
    """Normalize a timestamp to naive local wall-clock time.

    Naive values pass through unchanged. Aware values are converted into
    ``timezone`` and stripped; without a configured timezone they are rejected
    rather than silently assumed to be UTC.
    """
    if value.tzinfo is None:
        return value
    if not timezone:
        raise InvalidInputError(
            "Timezone-aware timestamps are not accepted; send local wall-clock time",
            errors=[{"field": field, "message": "must be a naive local timestamp"}],
        )
    return value.astimezone(_zone(timezone)).replace(tzinfo=None)
