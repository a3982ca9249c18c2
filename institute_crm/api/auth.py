"""
Authentication API routes.
"""
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.database import get_session
from institute_crm.services.auth_service import AuthService
from institute_crm.schemas.auth import LoginRequest, TokenResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session)
):
    """Login with email (as username) and password; returns an access token."""
    auth_service = AuthService(session)
    return await auth_service.login(email=form_data.username, password=form_data.password)


@router.post("/login/json", response_model=TokenResponse)
async def login_json(
    request: LoginRequest,
    session: AsyncSession = Depends(get_session)
):
    """Login (JSON body)."""
    auth_service = AuthService(session)
    return await auth_service.login(email=request.email, password=request.password)
