# jobboard/repositories/notification_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update, delete, func
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from jobboard.models.notification import Notification
from jobboard.utils.timeutils import utcnow


class NotificationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_notification(self, notification: Notification) -> Notification:
        """
        Add a notification to the current unit of work (flush only)
        """
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def get_notification_by_id(self, notification_id: int) -> Optional[Notification]:
        stmt = select(Notification).where(
            Notification.notification_id == notification_id,
            Notification.is_active.is_(True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_notifications_by_ids(self, notification_ids: List[int]) -> List[Notification]:
        if not notification_ids:
            return []
        stmt = (
            select(Notification)
            .where(Notification.notification_id.in_(notification_ids))
            .order_by(Notification.notification_id)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_notifications_by_user(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        """
        A user's notifications, newest first
        """
        stmt = (
            select(Notification)
            .where(Notification.recipient_user_id == user_id, Notification.is_active.is_(True))
            .order_by(Notification.created_at.desc(), Notification.notification_id.desc())
            .limit(limit)
        )
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def count_unread(self, user_id: str) -> int:
        stmt = select(func.count(Notification.notification_id)).where(
            Notification.recipient_user_id == user_id,
            Notification.is_active.is_(True),
            Notification.is_read.is_(False)
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def mark_as_read(self, notification: Notification) -> Notification:
        notification.is_read = True
        notification.read_at = utcnow()
        await self.db.flush()
        return notification

    async def mark_all_as_read(self, user_id: str) -> int:
        stmt = (
            update(Notification)
            .where(
                Notification.recipient_user_id == user_id,
                Notification.is_active.is_(True),
                Notification.is_read.is_(False)
            )
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def list_pending_email(
        self, max_attempts: int, exclude_types: Iterable[str] = (), limit: int = 100
    ) -> List[Notification]:
        """
        Outbox scan: notifications whose email has not gone out yet
        """
        stmt = (
            select(Notification)
            .where(
                Notification.is_active.is_(True),
                Notification.is_email_sent.is_(False),
                Notification.email_attempts < max_attempts,
                Notification.type.not_in(list(exclude_types))
            )
            .order_by(Notification.notification_id)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_analytics(self, user_id: str, since: datetime) -> Dict:
        base = (
            Notification.recipient_user_id == user_id,
            Notification.is_active.is_(True),
        )
        total = (await self.db.execute(
            select(func.count(Notification.notification_id)).where(*base)
        )).scalar_one()
        unread = (await self.db.execute(
            select(func.count(Notification.notification_id)).where(*base, Notification.is_read.is_(False))
        )).scalar_one()
        urgent = (await self.db.execute(
            select(func.count(Notification.notification_id)).where(*base, Notification.is_urgent.is_(True))
        )).scalar_one()
        recent = (await self.db.execute(
            select(func.count(Notification.notification_id)).where(*base, Notification.created_at >= since)
        )).scalar_one()
        by_type_rows = (await self.db.execute(
            select(Notification.type, func.count(Notification.notification_id))
            .where(*base)
            .group_by(Notification.type)
        )).all()

        return {
            "total": total,
            "unread": unread,
            "urgent": urgent,
            "last_7_days": recent,
            "by_type": {t: c for t, c in by_type_rows},
        }

    async def delete_read_older_than(self, cutoff: datetime) -> int:
        """
        Retention: hard-delete read notifications created before `cutoff`
        """
        stmt = (
            delete(Notification)
            .where(Notification.is_read.is_(True), Notification.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount
