"""
Best-effort notifications.

The services never wait on delivery: `NotificationDispatcher.dispatch` schedules
the send as a background task after the triggering transaction has committed.
A failing send is logged and counted, and the request that triggered it has
already succeeded by then.
"""

import asyncio
from typing import Optional

from alumni_api.core.config import get_settings
from alumni_api.core.logging import get_logger
from alumni_api.core.metrics import record_notification_failure
from alumni_api.services.interfaces.notifier import Notifier

logger = get_logger(__name__)
settings = get_settings()


class LogNotifier(Notifier):
    """Writes each notification to the structured log instead of a mail transport."""

    async def send_registration_confirmation(self, user, event, registration) -> None:
        logger.info(
            "notification_registration_confirmation",
            to=user.email,
            event_id=event.id,
            event_title=event.title,
            registration_id=registration.id,
            total_amount=registration.total_amount,
        )

    async def send_guest_added(self, user, event, guest) -> None:
        logger.info(
            "notification_guest_added",
            to=user.email,
            event_id=event.id,
            guest_name=guest.name,
        )

    async def send_merchandise_confirmation(self, user, event, order: dict) -> None:
        logger.info(
            "notification_merchandise_confirmation",
            to=user.email,
            event_id=event.id,
            items=len(order.get("items", [])),
            total_amount=order.get("total_amount"),
        )


class NotificationDispatcher:
    """Runs notifier calls as fire-and-forget tasks."""

    def __init__(self, notifier: Notifier, enabled: bool = True):
        self.notifier = notifier
        self.enabled = enabled
        self._pending: set[asyncio.Task] = set()

    def dispatch(self, kind: str, *args) -> Optional[asyncio.Task]:
        if not self.enabled:
            return None
        send = getattr(self.notifier, kind)
        task = asyncio.create_task(self._run(kind, send, *args))
        # Keep a strong reference until the task finishes
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, kind: str, send, *args) -> None:
        try:
            await send(*args)
        except Exception as e:
            record_notification_failure(kind)
            logger.error("notification_failed", kind=kind, error=str(e))

    async def drain(self) -> None:
        """Wait for every in-flight notification (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending))


_dispatcher: Optional[NotificationDispatcher] = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency: the process-wide dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher(LogNotifier(), enabled=settings.NOTIFICATIONS_ENABLED)
    return _dispatcher
