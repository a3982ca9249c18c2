"""
Notification repository.
"""
import uuid
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, update

from institute_crm.models.notification import Notification
from institute_crm.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def get_recent(self, user_id: uuid.UUID, limit: int = 20) -> List[Notification]:
        """Latest notifications for a user."""
        query = select(Notification).where(
            Notification.user_id == user_id
        ).order_by(Notification.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return list(result.all())

    async def count_unread(self, user_id: uuid.UUID) -> int:
        query = select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False  # noqa: E712
        )
        result = await self.session.exec(query)
        return result.one()

    async def mark_all_read(self, user_id: uuid.UUID) -> None:
        await self.session.exec(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
            .values(is_read=True)
        )
        await self.session.commit()
