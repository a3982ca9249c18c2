"""
Job order API routes.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.database import get_session
from institute_crm.core.context import ActorContext
from institute_crm.core.pagination import create_paginated_response
from institute_crm.api.deps import get_actor
from institute_crm.schemas.common import ActionResponse
from institute_crm.schemas.job_order import (
    JobOrderFilter,
    JobOrderResponse,
    JobOrderDetail,
    JobLeadResponse,
    JobLeadStatusUpdate,
    JobProgress,
    ReassignRequest
)
from institute_crm.services.assignment_service import AssignmentService

router = APIRouter(prefix="/api/job-orders", tags=["job-orders"])


@router.get("/")
async def list_job_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    branch_id: Optional[uuid.UUID] = None,
    pending_only: bool = False,
    completed_only: bool = False,
    due_only: bool = False,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Job orders with completion percentage."""
    filters = JobOrderFilter(
        search=search,
        branch_id=branch_id,
        pending_only=pending_only,
        completed_only=completed_only,
        due_only=due_only
    )
    items, total = await AssignmentService(session).list_job_orders(actor, filters, page, limit)
    return create_paginated_response(
        items, total, page, limit, message="Job orders fetched successfully"
    )


@router.get("/{job_id}", response_model=ActionResponse[JobOrderDetail])
async def get_job_order(
    job_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    detail = await AssignmentService(session).get_job_order(actor, job_id)
    return ActionResponse(data=detail, message="Job order fetched successfully")


@router.get("/{job_id}/progress", response_model=ActionResponse[JobProgress])
async def get_job_order_progress(
    job_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    progress = await AssignmentService(session).progress(actor, job_id)
    return ActionResponse(data=progress, message="Job order progress calculated successfully")


@router.patch("/leads/{job_lead_id}", response_model=ActionResponse[JobLeadResponse])
async def update_job_lead_status(
    job_lead_id: uuid.UUID,
    request: JobLeadStatusUpdate,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Close or reopen one enquiry inside a job order."""
    job_lead = await AssignmentService(session).update_lead_status(actor, job_lead_id, request.status)
    return ActionResponse(
        data=JobLeadResponse.model_validate(job_lead),
        message="Job lead status updated successfully"
    )


@router.post("/{job_id}/reassign", response_model=ActionResponse[JobOrderResponse])
async def reassign_job_order(
    job_id: uuid.UUID,
    request: ReassignRequest,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    job_order = await AssignmentService(session).reassign(actor, job_id, request.new_manager_id)
    return ActionResponse(
        data=JobOrderResponse.model_validate(job_order),
        message="Job order re-assigned successfully"
    )


@router.delete("/{job_id}", response_model=ActionResponse)
async def delete_job_order(
    job_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Delete a job order and its leads (admin only)."""
    await AssignmentService(session).delete_job_order(actor, job_id)
    return ActionResponse(message="Job order deleted successfully")
