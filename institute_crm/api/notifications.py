"""
Notification API routes.
"""
import uuid

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.database import get_session
from institute_crm.core.context import ActorContext
from institute_crm.api.deps import get_actor
from institute_crm.schemas.common import ActionResponse
from institute_crm.schemas.notification import NotificationFeed, NotificationResponse
from institute_crm.services.notification_service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/", response_model=ActionResponse[NotificationFeed])
async def list_notifications(
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Latest notifications and unread count for the bell."""
    feed = await NotificationService(session).list_for_user(actor)
    return ActionResponse(data=feed, message="Notifications fetched successfully")


@router.post("/{notification_id}/read", response_model=ActionResponse[NotificationResponse])
async def mark_notification_read(
    notification_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    notification = await NotificationService(session).mark_read(actor, notification_id)
    return ActionResponse(
        data=NotificationResponse.model_validate(notification),
        message="Notification marked as read"
    )


@router.post("/read-all", response_model=ActionResponse)
async def mark_all_notifications_read(
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    await NotificationService(session).mark_all_read(actor)
    return ActionResponse(message="All notifications marked as read")
