"""
API dependencies - shared across all routes.
"""
import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.database import get_session
from institute_crm.config import settings
from institute_crm.core.context import ActorContext
from institute_crm.core.security import verify_token
from institute_crm.core.exceptions import raise_unauthorized
from institute_crm.models.user import User
from institute_crm.repositories.user_repo import UserRepository


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from JWT token."""
    payload = verify_token(token)
    if not payload:
        raise_unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise_unauthorized("Could not validate credentials")

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise_unauthorized("Could not validate credentials")

    user_repo = UserRepository(session)
    user = await user_repo.get(user_uuid)

    if not user:
        raise_unauthorized("User not found")

    if not user.is_active:
        raise_unauthorized("User account is deactivated")

    return user


async def get_actor(current_user: User = Depends(get_current_user)) -> ActorContext:
    """
    Acting user for service calls. Role and branch come from the stored
    user rather than the token, so changes apply without a new login.
    """
    return ActorContext(
        user_id=current_user.id,
        role=current_user.role,
        branch_id=current_user.branch_id
    )
