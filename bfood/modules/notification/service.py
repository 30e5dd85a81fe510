"""NotificationService — records in-app notifications for users."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bfood.models.enums import NotificationType
from bfood.models.notification import Notification


class NotificationService:
    """Writes notification rows; pushing them to clients happens elsewhere."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def notify(
        self,
        user_id: uuid.UUID,
        title: str,
        message: str,
        type: NotificationType,
        order_id: uuid.UUID | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            order_id=order_id,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def notify_many(
        self,
        user_ids: list[uuid.UUID],
        title: str,
        message: str,
        type: NotificationType,
        order_id: uuid.UUID | None = None,
    ) -> list[Notification]:
        """Create one notification per recipient in a single flush."""
        notifications = [
            Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                order_id=order_id,
            )
            for user_id in user_ids
        ]
        self.session.add_all(notifications)
        await self.session.flush()
        return notifications

    async def list_unread(self, user_id: uuid.UUID, limit: int = 50) -> list[Notification]:
        statement = (
            select(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
