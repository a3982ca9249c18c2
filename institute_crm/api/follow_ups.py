"""
Follow-up API routes.
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
from institute_crm.models.enquiry import FollowUpStatus
from institute_crm.schemas.common import ActionResponse
from institute_crm.schemas.follow_up import (
    FollowUpCreate,
    FollowUpUpdate,
    FollowUpResponse,
    FollowUpFilter
)
from institute_crm.services.follow_up_service import FollowUpService

router = APIRouter(prefix="/api/follow-ups", tags=["follow-ups"])


@router.post("/", response_model=ActionResponse[FollowUpResponse], status_code=201)
async def create_follow_up(
    follow_up_data: FollowUpCreate,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Schedule a follow-up for an enquiry."""
    follow_up = await FollowUpService(session).create(actor, follow_up_data)
    return ActionResponse(
        data=FollowUpResponse.model_validate(follow_up),
        message="Follow-up created successfully"
    )


@router.get("/")
async def list_follow_ups(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    status: Optional[List[FollowUpStatus]] = Query(None),
    overdue: bool = False,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """List follow-ups, soonest first."""
    filters = FollowUpFilter(status=status, overdue=overdue, date_from=date_from, date_to=date_to)
    items, total = await FollowUpService(session).list(actor, filters, page, limit)
    return create_paginated_response(
        [FollowUpResponse.model_validate(f) for f in items],
        total, page, limit,
        message="Follow-ups fetched successfully"
    )


@router.get("/{follow_up_id}", response_model=ActionResponse[FollowUpResponse])
async def get_follow_up(
    follow_up_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    follow_up = await FollowUpService(session).get(actor, follow_up_id)
    return ActionResponse(
        data=FollowUpResponse.model_validate(follow_up),
        message="Follow-up fetched successfully"
    )


@router.patch("/{follow_up_id}", response_model=ActionResponse[FollowUpResponse])
async def update_follow_up(
    follow_up_id: uuid.UUID,
    follow_up_data: FollowUpUpdate,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Complete, cancel or reschedule a follow-up."""
    follow_up = await FollowUpService(session).update(actor, follow_up_id, follow_up_data)
    return ActionResponse(
        data=FollowUpResponse.model_validate(follow_up),
        message="Follow-up updated successfully"
    )


@router.delete("/{follow_up_id}", response_model=ActionResponse)
async def delete_follow_up(
    follow_up_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    await FollowUpService(session).delete(actor, follow_up_id)
    return ActionResponse(message="Follow-up deleted successfully")
