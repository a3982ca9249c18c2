"""
Activity feed API routes.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.database import get_session
from institute_crm.core.context import ActorContext
from institute_crm.core.pagination import create_paginated_response
from institute_crm.api.deps import get_actor
from institute_crm.models.activity import ActivityType
from institute_crm.schemas.activity import ActivityResponse, ActivityFilter
from institute_crm.services.activity_service import ActivityService

router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("/")
async def list_activities(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    enquiry_id: Optional[uuid.UUID] = None,
    type: Optional[List[ActivityType]] = Query(None),
    user_id: Optional[uuid.UUID] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Activity feed, newest first."""
    filters = ActivityFilter(
        enquiry_id=enquiry_id,
        type=type,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to
    )
    items, total = await ActivityService(session).list(actor, filters, page, limit)
    return create_paginated_response(
        [ActivityResponse.model_validate(a) for a in items],
        total, page, limit,
        message="Activities fetched successfully"
    )
