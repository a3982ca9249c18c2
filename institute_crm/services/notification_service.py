"""
Notification service - in-app notifications.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.config import settings
from institute_crm.core.context import ActorContext
from institute_crm.core.exceptions import NotFoundError, ForbiddenError
from institute_crm.models.notification import Notification, NotificationType
from institute_crm.repositories.notification_repo import NotificationRepository
from institute_crm.schemas.notification import NotificationFeed, NotificationResponse

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for notification operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.notification_repo = NotificationRepository(session)

    async def notify(
        self,
        user_id: uuid.UUID,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.GENERAL,
        link: Optional[str] = None
    ) -> Optional[Notification]:
        """
        Create a notification.

        Best effort: callers have already committed the change being
        announced, so a failure here is logged and swallowed. The insert
        runs in a savepoint so a failure leaves the caller's committed
        objects loaded.
        """
        try:
            async with self.session.begin_nested():
                notification = await self.notification_repo.add(Notification(
                    user_id=user_id,
                    title=title,
                    message=message,
                    type=notification_type,
                    link=link
                ))
            await self.session.commit()
        except SQLAlchemyError:
            logger.exception(f"Failed to create notification for user {user_id}")
            return None
        return notification

    async def list_for_user(
        self,
        actor: ActorContext,
        limit: Optional[int] = None
    ) -> NotificationFeed:
        """Latest notifications plus the unread count."""
        items = await self.notification_repo.get_recent(
            actor.user_id, limit or settings.NOTIFICATION_FEED_LIMIT
        )
        unread = await self.notification_repo.count_unread(actor.user_id)
        return NotificationFeed(
            items=[NotificationResponse.model_validate(n) for n in items],
            unread_count=unread
        )

    async def mark_read(self, actor: ActorContext, notification_id: uuid.UUID) -> Notification:
        notification = await self.notification_repo.get(notification_id)
        if not notification:
            raise NotFoundError("Notification", str(notification_id))
        if notification.user_id != actor.user_id:
            raise ForbiddenError("Access denied")
        return await self.notification_repo.update(notification_id, {"is_read": True})

    async def mark_all_read(self, actor: ActorContext) -> None:
        await self.notification_repo.mark_all_read(actor.user_id)
