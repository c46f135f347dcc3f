"""Shared test data and doubles."""

from datetime import date, datetime, time
from typing import Any, Dict, List, Tuple

from consult_core.database.models import Consultation

# Monday 2030-01-07, 08:00 local time
NOW = datetime(2030, 1, 7, 8, 0)
MONDAY = date(2030, 1, 7)
NEXT_MONDAY = date(2030, 1, 14)

LAWYER_ID = "lawyer-1"
CLIENT_ID = "client-1"
OTHER_CLIENT_ID = "client-2"
OUTSIDER_ID = "outsider-1"
ADMIN_ID = "admin-1"


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute))


class RecordingNotifier:
    """Collects notifications instead of sending them."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, Dict[str, Any]]] = []

    async def notify(self, recipient_id: str, template_kind: str, payload: Dict[str, Any]) -> None:
        self.sent.append((recipient_id, template_kind, payload))

    def kinds_for(self, recipient_id: str) -> List[str]:
        return [kind for recipient, kind, _ in self.sent if recipient == recipient_id]


class FailingNotifier:
    async def notify(self, recipient_id: str, template_kind: str, payload: Dict[str, Any]) -> None:
        raise ConnectionError("smtp down")


class FakeClock:
    """Settable clock."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


async def add_consultation(session_factory, **overrides) -> Consultation:
    """Insert a consultation directly, bypassing the booking rules."""
    values = {
        "client_id": CLIENT_ID,
        "lawyer_id": LAWYER_ID,
        "modality": "video",
        "scheduled_at": at(NEXT_MONDAY, 10),
        "duration_minutes": 60,
        "status": "pending",
        "description": "Lease dispute",
    }
    values.update(overrides)
    async with session_factory() as session:
        consultation = Consultation(**values)
        session.add(consultation)
        await session.commit()
        await session.refresh(consultation)
        return consultation


async def fetch_consultation(session_factory, consultation_id: str) -> Consultation:
    async with session_factory() as session:
        return await session.get(Consultation, consultation_id)
