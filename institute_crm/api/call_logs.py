"""
Call register API routes.
"""
import uuid
from typing import Optional
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.database import get_session
from institute_crm.core.context import ActorContext
from institute_crm.core.pagination import create_paginated_response
from institute_crm.api.deps import get_actor
from institute_crm.schemas.common import ActionResponse
from institute_crm.schemas.follow_up import CallLogCreate, CallLogResponse, CallLogFilter
from institute_crm.services.call_log_service import CallLogService

router = APIRouter(prefix="/api/call-logs", tags=["call-logs"])


@router.post("/", response_model=ActionResponse[CallLogResponse], status_code=201)
async def create_call_log(
    call_data: CallLogCreate,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Log a call against an enquiry."""
    call_log = await CallLogService(session).create(actor, call_data)
    return ActionResponse(
        data=CallLogResponse.model_validate(call_log),
        message="Call log created successfully"
    )


@router.get("/")
async def list_call_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    outcome: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    filters = CallLogFilter(outcome=outcome, date_from=date_from, date_to=date_to)
    items, total = await CallLogService(session).list(actor, filters, page, limit)
    return create_paginated_response(
        [CallLogResponse.model_validate(c) for c in items],
        total, page, limit,
        message="Call logs fetched successfully"
    )


@router.delete("/{call_log_id}", response_model=ActionResponse)
async def delete_call_log(
    call_log_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    await CallLogService(session).delete(actor, call_log_id)
    return ActionResponse(message="Call log deleted successfully")
