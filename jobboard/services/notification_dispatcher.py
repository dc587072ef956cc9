# jobboard/services/notification_dispatcher.py
"""
Delivery side of the notification outbox.

Notification rows are committed together with the action that produced them.
Afterwards `dispatch()` runs as a background task: it pushes each row to the
recipient's WebSocket group and sends its email. `dispatch_pending()` retries
emails that have not gone out yet. Failures are logged and recorded on the
row; they never reach the request that created the notification.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.core.config import settings
from jobboard.core.database import AsyncSessionLocal
from jobboard.core.websocket_manager import ConnectionManager, manager
from jobboard.models.notification import Notification
from jobboard.repositories.notification_repo import NotificationRepository
from jobboard.repositories.user_repo import UserRepository
from jobboard.schemas.notification_schema import NotificationOut
from jobboard.services.email_service import EmailService
from jobboard.services.notification_service import NotificationService
from jobboard.utils.notification_templates import (
    EMAIL_SKIP_TYPES, NotificationType, get_template
)

logger = logging.getLogger(__name__)

SKIPPED_EMAIL_TYPE_VALUES = frozenset(t.value for t in EMAIL_SKIP_TYPES)


class NotificationDispatcher:
    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        email_service: Optional[EmailService] = None,
        hub: ConnectionManager = manager,
        max_email_attempts: int = settings.NOTIFICATION_MAX_EMAIL_ATTEMPTS,
    ):
        self.session_factory = session_factory
        self.email_service = email_service or EmailService()
        self.hub = hub
        self.max_email_attempts = max_email_attempts

    async def dispatch(self, notification_ids: List[int]) -> None:
        """Push and email freshly committed notifications."""
        if not notification_ids:
            return
        async with self.session_factory() as db:
            notifications = await NotificationRepository(db).get_notifications_by_ids(notification_ids)
            for notification in notifications:
                await self._push(notification)
                await self._send_email(db, notification)
            await db.commit()

    async def dispatch_pending(self, limit: int = 100) -> int:
        """
        Retry email for notifications still marked unsent. Returns how many
        notifications were attempted.
        """
        async with self.session_factory() as db:
            pending = await NotificationRepository(db).list_pending_email(
                self.max_email_attempts, exclude_types=SKIPPED_EMAIL_TYPE_VALUES, limit=limit
            )
            for notification in pending:
                await self._send_email(db, notification)
            await db.commit()
        if pending:
            logger.info(f"Outbox pass attempted {len(pending)} pending emails")
        return len(pending)

    async def _push(self, notification: Notification) -> None:
        try:
            payload = {
                "event": "notification",
                "notification": NotificationOut.model_validate(notification).model_dump(mode="json"),
            }
            delivered = await self.hub.send_to_user(notification.recipient_user_id, payload)
            notification.is_pushed = delivered > 0
        except Exception as e:
            logger.error(
                f"Realtime push failed for notification {notification.notification_id}: {e}",
                exc_info=True,
            )

    async def _send_email(self, db: AsyncSession, notification: Notification) -> None:
        if notification.type in SKIPPED_EMAIL_TYPE_VALUES or notification.is_email_sent:
            return

        recipient = await UserRepository(db).get_user_by_id(notification.recipient_user_id)
        if recipient is None or not recipient.email:
            logger.warning(
                f"Notification {notification.notification_id}: recipient {notification.recipient_user_id} has no email"
            )
            return

        try:
            template_name = get_template(NotificationType(notification.type)).email_template
        except ValueError:
            template_name = "generic.html"

        notification.email_attempts = (notification.email_attempts or 0) + 1
        try:
            subject, html, text = self.email_service.render_notification(
                notification, recipient.full_name, template_name
            )
            await self.email_service.send_email(recipient.email, subject, html, text)
            notification.is_email_sent = True
            notification.last_email_error = None
        except Exception as e:
            notification.last_email_error = str(e)[:500]
            logger.error(
                f"Email for notification {notification.notification_id} failed "
                f"(attempt {notification.email_attempts}): {e}",
                exc_info=True,
            )

    async def run_periodically(self, interval_seconds: float) -> None:
        """Outbox loop started from the app lifespan when an interval is set."""
        logger.info(f"Notification outbox loop every {interval_seconds}s")
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.dispatch_pending()
            except Exception as e:
                logger.error(f"Outbox pass failed: {e}", exc_info=True)


dispatcher = NotificationDispatcher()


def get_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency (overridden in tests)"""
    return dispatcher


def schedule_dispatch(
    background_tasks: BackgroundTasks,
    notifications: NotificationService,
    dispatcher: NotificationDispatcher,
) -> None:
    """Queue delivery of the notifications a service committed in this request."""
    ids = notifications.created_ids
    if ids:
        background_tasks.add_task(dispatcher.dispatch, ids)
