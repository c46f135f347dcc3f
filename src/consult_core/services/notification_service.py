"""Fire-and-forget notifications to consultation parties.

Delivery is best-effort: a failing notifier is logged and never affects the
operation that triggered it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol, Set

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Outbound notification collaborator (email, push, SMS...)."""

    async def notify(self, recipient_id: str, template_kind: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotifier:
    """Default notifier: records the notification in the service log."""

    async def notify(self, recipient_id: str, template_kind: str, payload: Dict[str, Any]) -> None:
        logger.info(
            f"Notification '{template_kind}' for user {recipient_id}",
            extra={"extra_fields": {"template_kind": template_kind, "recipient_id": recipient_id, **payload}},
        )


class NotificationDispatcher:
    """Schedules notifier calls as background tasks."""

    def __init__(self, notifier: Optional[Notifier] = None) -> None:
        self._notifier = notifier or LoggingNotifier()
        self._pending: Set[asyncio.Task] = set()

    def dispatch(self, recipient_id: str, template_kind: str, payload: Dict[str, Any]) -> None:
        """Schedule delivery and return immediately."""
        task = asyncio.create_task(self._deliver(recipient_id, template_kind, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def dispatch_to_parties(self, consultation: Any, template_kind: str, payload: Dict[str, Any]) -> None:
        """Notify both the client and the lawyer of a consultation."""
        for recipient_id in (consultation.client_id, consultation.lawyer_id):
            self.dispatch(recipient_id, template_kind, payload)

    async def _deliver(self, recipient_id: str, template_kind: str, payload: Dict[str, Any]) -> None:
        try:
            await self._notifier.notify(recipient_id, template_kind, payload)
        except Exception as e:
            logger.warning(
                f"Failed to deliver '{template_kind}' notification to {recipient_id}: {e}",
                exc_info=True,
            )

    async def wait_idle(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


_dispatcher: Optional[NotificationDispatcher] = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Get the process-global dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher


def consultation_payload(consultation: Any, **extra: Any) -> Dict[str, Any]:
    """Common payload describing a consultation for templates."""
    payload = {
        "consultation_id": consultation.id,
        "client_id": consultation.client_id,
        "lawyer_id": consultation.lawyer_id,
        "modality": getattr(consultation.modality, "value", consultation.modality),
        "scheduled_at": consultation.scheduled_at.isoformat(),
        "duration_minutes": consultation.duration_minutes,
        "status": getattr(consultation.status, "value", consultation.status),
    }
    payload.update(extra)
    return payload
