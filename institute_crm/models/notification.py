import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


class NotificationType(str, Enum):
    ENQUIRY_ASSIGNED = "ENQUIRY_ASSIGNED"
    JOB_ORDER_ASSIGNED = "JOB_ORDER_ASSIGNED"
    GENERAL = "GENERAL"


class Notification(SQLModel, table=True):
    """In-app notification shown in the header bell."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    title: str
    message: str
    type: NotificationType = Field(default=NotificationType.GENERAL)
    link: Optional[str] = None  # frontend path, e.g. /enquiries/<id>
    is_read: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
