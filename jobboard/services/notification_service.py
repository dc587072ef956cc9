# jobboard/services/notification_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from datetime import timedelta
from typing import Dict, List, Optional
import logging

from jobboard.core.exceptions import NotFoundError, UnauthorizedAccessError
from jobboard.models.user import User
from jobboard.models.notification import Notification
from jobboard.repositories.notification_repo import NotificationRepository
from jobboard.repositories.user_repo import UserRepository
from jobboard.utils.notification_templates import (
    NotificationType, SystemPayload, get_template, payload_to_data
)
from jobboard.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Writes notification rows into the caller's unit of work and serves the
    read side. Delivery (push / email) happens after commit, see
    NotificationDispatcher.
    """
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = NotificationRepository(db)
        # Rows created through this instance, handed to the dispatcher after commit
        self.created: List[Notification] = []

    @property
    def created_ids(self) -> List[int]:
        return [n.notification_id for n in self.created]

    async def create_interaction_notification(
        self,
        recipient_user_id: str,
        sender_user_id: Optional[str],
        notification_type: NotificationType,
        payload,
        job_id: Optional[int] = None,
        proposal_id: Optional[int] = None,
        contract_id: Optional[int] = None,
        review_id: Optional[int] = None,
        action_url: Optional[str] = None,
        is_urgent: Optional[bool] = None,
    ) -> Notification:
        """
        Build the notification from its template and add it to the session.
        Does not commit.
        """
        template = get_template(notification_type)
        title, message = template.render(payload)

        notification = Notification(
            recipient_user_id=recipient_user_id,
            sender_user_id=sender_user_id,
            type=notification_type.value,
            title=title,
            message=message,
            job_id=job_id,
            proposal_id=proposal_id,
            contract_id=contract_id,
            review_id=review_id,
            action_url=action_url,
            data=payload_to_data(payload),
            is_urgent=template.urgent if is_urgent is None else is_urgent,
            is_read=False,
            is_pushed=False,
            is_email_sent=False,
            email_attempts=0,
        )
        await self.repo.create_notification(notification)
        self.created.append(notification)
        logger.info(
            f"Notification {notification.notification_id} ({notification_type.value}) queued for user {recipient_user_id}"
        )
        return notification

    async def create_system_notification(
        self, recipient_user_id: str, title: str, message: str, is_urgent: bool, sender: User
    ) -> Notification:
        if not await UserRepository(self.db).get_user_by_id(recipient_user_id):
            raise NotFoundError("User", recipient_user_id)
        notification = await self.create_interaction_notification(
            recipient_user_id=recipient_user_id,
            sender_user_id=sender.user_id,
            notification_type=NotificationType.SYSTEM,
            payload=SystemPayload(title=title, message=message),
            is_urgent=is_urgent,
        )
        await self.db.commit()
        return notification

    # --- Read side ---

    async def get_user_notifications(
        self, user: User, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        return await self.repo.list_notifications_by_user(user.user_id, unread_only=unread_only, limit=limit)

    async def get_unread_count(self, user: User) -> int:
        return await self.repo.count_unread(user.user_id)

    async def _get_own_notification(self, notification_id: int, user: User) -> Notification:
        notification = await self.repo.get_notification_by_id(notification_id)
        if not notification:
            raise NotFoundError("Notification", notification_id)

        # Only the recipient may touch a notification
        if notification.recipient_user_id != user.user_id:
            raise UnauthorizedAccessError("You can only manage your own notifications")
        return notification

    async def mark_as_read(self, notification_id: int, user: User) -> Notification:
        notification = await self._get_own_notification(notification_id, user)
        if notification.is_read:
            return notification

        await self.repo.mark_as_read(notification)
        await self.db.commit()
        return notification

    async def mark_all_as_read(self, user: User) -> int:
        updated = await self.repo.mark_all_as_read(user.user_id)
        await self.db.commit()
        logger.info(f"Marked {updated} notifications as read for user {user.user_id}")
        return updated

    async def delete_notification(self, notification_id: int, user: User) -> None:
        notification = await self._get_own_notification(notification_id, user)
        notification.is_active = False
        await self.db.commit()

    async def get_analytics(self, user: User) -> Dict:
        since = utcnow() - timedelta(days=7)
        return await self.repo.get_analytics(user.user_id, since)

    async def cleanup_old_notifications(self, days: int) -> int:
        """
        Retention job: delete read notifications older than `days`
        """
        cutoff = utcnow() - timedelta(days=days)
        deleted = await self.repo.delete_read_older_than(cutoff)
        await self.db.commit()
        logger.info(f"Notification cleanup removed {deleted} rows older than {days} days")
        return deleted
