"""
User model.
Staff accounts; the role decides what a user may see and change.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from institute_crm.core.context import Role


class User(SQLModel, table=True):
    """
    Staff user with authentication and profile info.
    Executives and telecallers normally belong to a branch.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Auth
    email: str = Field(unique=True, index=True)
    password_hash: str

    # Profile
    full_name: Optional[str] = None
    role: Role = Field(default=Role.TELECALLER, index=True)
    branch_id: Optional[uuid.UUID] = Field(default=None, foreign_key="branch.id", index=True)

    # Status
    is_active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_login_at: Optional[datetime] = None
