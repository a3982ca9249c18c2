"""
Authentication service - staff login.
"""
import logging

from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.config import settings
from institute_crm.core.security import verify_password, create_access_token
from institute_crm.core.exceptions import UnauthorizedError
from institute_crm.repositories.user_repo import UserRepository
from institute_crm.models.user import User

logger = logging.getLogger(__name__)


def build_token_data(user: User) -> dict:
    """Claims carried by an access token; enough to rebuild the actor."""
    return {
        "sub": user.email,
        "user_id": str(user.id),
        "role": user.role.value,
        "branch_id": str(user.branch_id) if user.branch_id else None
    }


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)

    async def login(self, email: str, password: str) -> dict:
        """Authenticate a user and return an access token."""
        user = await self.user_repo.get_by_email(email.lower())
        if not user:
            raise UnauthorizedError("Incorrect email or password")

        if not verify_password(password, user.password_hash):
            raise UnauthorizedError("Incorrect email or password")

        if not user.is_active:
            raise UnauthorizedError("User account is deactivated")

        access_token = create_access_token(build_token_data(user))
        await self.user_repo.update_last_login(user.id)

        logger.info(f"User {user.id} logged in")
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }
