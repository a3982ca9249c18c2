import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel

from institute_crm.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: uuid.UUID
    title: str
    message: str
    type: NotificationType
    link: Optional[str]
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationFeed(BaseModel):
    items: List[NotificationResponse]
    unread_count: int
