"""
User schemas.
"""
import uuid
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from institute_crm.core.context import Role


class UserResponse(BaseModel):
    """User details response."""
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    role: Role
    branch_id: Optional[uuid.UUID] = None
    is_active: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Admin creates a staff account."""
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str
    role: Role = Role.TELECALLER
    branch_id: Optional[uuid.UUID] = None


class UserUpdate(BaseModel):
    """Update user profile."""
    full_name: Optional[str] = None
    role: Optional[Role] = None
    branch_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None
