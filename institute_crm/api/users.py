"""
User API routes.
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.database import get_session
from institute_crm.services.user_service import UserService
from institute_crm.schemas.user import UserResponse, UserCreate, UserUpdate
from institute_crm.schemas.common import ActionResponse
from institute_crm.api.deps import get_current_user, get_actor
from institute_crm.core.context import ActorContext
from institute_crm.models.user import User

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user profile."""
    return current_user


@router.get("/", response_model=ActionResponse[List[UserResponse]])
async def list_users(
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """All staff accounts (admin only)."""
    users = await UserService(session).list_users(actor)
    return ActionResponse(
        data=[UserResponse.model_validate(u) for u in users],
        message="Users fetched successfully"
    )


@router.get("/assignable", response_model=ActionResponse[List[UserResponse]])
async def list_assignable_users(
    branch_id: Optional[uuid.UUID] = None,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Users enquiries can be assigned to."""
    users = await UserService(session).list_assignable(actor, branch_id)
    return ActionResponse(
        data=[UserResponse.model_validate(u) for u in users],
        message="Users fetched successfully"
    )


@router.post("/", response_model=ActionResponse[UserResponse], status_code=201)
async def create_user(
    user_data: UserCreate,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Create a staff account (admin only)."""
    user = await UserService(session).create_user(actor, user_data)
    return ActionResponse(data=UserResponse.model_validate(user), message="User created successfully")


@router.patch("/{user_id}", response_model=ActionResponse[UserResponse])
async def update_user(
    user_id: uuid.UUID,
    user_data: UserUpdate,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Change a user's role, branch or active flag (admin only)."""
    user = await UserService(session).update_user(actor, user_id, user_data)
    return ActionResponse(data=UserResponse.model_validate(user), message="User updated successfully")
