"""
User repository.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import Role
from institute_crm.models.user import User
from institute_crm.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        query = select(User).where(User.email == email)
        result = await self.session.exec(query)
        return result.first()

    async def get_assignable(self, branch_id: Optional[uuid.UUID] = None) -> List[User]:
        """Active non-admin users, optionally limited to one branch."""
        query = select(User).where(
            User.role != Role.ADMIN,
            User.is_active == True  # noqa: E712
        )
        if branch_id:
            query = query.where(User.branch_id == branch_id)
        query = query.order_by(User.full_name)
        result = await self.session.exec(query)
        return list(result.all())

    async def update_last_login(self, user_id: uuid.UUID) -> None:
        """Update user's last login timestamp."""
        user = await self.get(user_id)
        if user:
            user.last_login_at = datetime.utcnow()
            self.session.add(user)
            await self.session.commit()
