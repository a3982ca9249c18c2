"""
User service - staff accounts.
"""
import logging
import uuid
from typing import Optional, List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext
from institute_crm.core.exceptions import NotFoundError, AlreadyExistsError, StoreFailureError
from institute_crm.core.security import get_password_hash
from institute_crm.repositories.user_repo import UserRepository
from institute_crm.models.user import User
from institute_crm.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Service for user operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)

    async def create_user(self, actor: ActorContext, user_data: UserCreate) -> User:
        """Create a staff account. Admin only."""
        actor.require_admin("Only admins can create users")

        email = user_data.email.lower()
        if await self.user_repo.get_by_email(email):
            raise AlreadyExistsError("User", "email", email)

        data = user_data.model_dump(exclude={"password"})
        data["email"] = email
        data["password_hash"] = get_password_hash(user_data.password)

        try:
            user = await self.user_repo.create(data)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create user {email}: {e}")
            raise StoreFailureError("Failed to create user") from e

        logger.info(f"User {user.id} ({user.role.value}) created by {actor.user_id}")
        return user

    async def update_user(
        self,
        actor: ActorContext,
        user_id: uuid.UUID,
        user_data: UserUpdate
    ) -> User:
        """Change role, branch or active flag. Admin only."""
        actor.require_admin("Only admins can update users")

        user = await self.user_repo.update(user_id, user_data.model_dump(exclude_unset=True))
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    async def list_users(self, actor: ActorContext) -> List[User]:
        actor.require_admin()
        return await self.user_repo.list(order_by="created_at")

    async def list_assignable(
        self,
        actor: ActorContext,
        branch_id: Optional[uuid.UUID] = None
    ) -> List[User]:
        """Users an enquiry can be handed to, optionally within one branch."""
        actor.require_executive()
        return await self.user_repo.get_assignable(branch_id)
