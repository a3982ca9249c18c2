"""
Enquiry API routes.
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
from institute_crm.models.enquiry import EnquiryStatus
from institute_crm.schemas.common import ActionResponse
from institute_crm.schemas.activity import ActivityResponse, TimelineItem
from institute_crm.schemas.enquiry import (
    EnquiryCreate,
    EnquiryUpdate,
    EnquiryResponse,
    EnquiryDetail,
    EnquiryFilter,
    StatusUpdateRequest,
    DirectEnrollmentRequest
)
from institute_crm.schemas.job_order import (
    AssignmentRequest,
    BulkAssignmentRequest,
    JobOrderResponse
)
from institute_crm.services.enquiry_service import EnquiryService
from institute_crm.services.status_service import StatusService
from institute_crm.services.timeline_service import TimelineService
from institute_crm.services.activity_service import ActivityService
from institute_crm.services.assignment_service import AssignmentService

router = APIRouter(prefix="/api/enquiries", tags=["enquiries"])


@router.post("/", response_model=ActionResponse[EnquiryResponse], status_code=201)
async def create_enquiry(
    enquiry_data: EnquiryCreate,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Create an enquiry; it starts out assigned to its creator."""
    enquiry = await EnquiryService(session).create(actor, enquiry_data)
    return ActionResponse(
        data=EnquiryResponse.model_validate(enquiry),
        message="Enquiry created successfully"
    )


@router.get("/")
async def list_enquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    status: Optional[List[EnquiryStatus]] = Query(None),
    branch_id: Optional[uuid.UUID] = None,
    enquiry_source_id: Optional[uuid.UUID] = None,
    assigned_to_user_id: Optional[uuid.UUID] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    is_assigned: Optional[bool] = None,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """List enquiries with filtering and pagination."""
    filters = EnquiryFilter(
        search=search,
        status=status,
        branch_id=branch_id,
        enquiry_source_id=enquiry_source_id,
        assigned_to_user_id=assigned_to_user_id,
        date_from=date_from,
        date_to=date_to,
        is_assigned=is_assigned
    )

    items, total = await EnquiryService(session).list(actor, filters, page, limit)
    return create_paginated_response(
        [EnquiryResponse.model_validate(e) for e in items],
        total, page, limit,
        message="Enquiries fetched successfully"
    )


@router.post("/bulk-assign", response_model=ActionResponse[JobOrderResponse])
async def bulk_assign_enquiries(
    request: BulkAssignmentRequest,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Put several unassigned enquiries into a new job order."""
    job_order = await AssignmentService(session).bulk_assign(actor, request)
    count = len(set(request.enquiry_ids))
    return ActionResponse(
        data=JobOrderResponse.model_validate(job_order),
        message=f"{count} enquiries assigned and job order created successfully"
    )


@router.get("/{enquiry_id}", response_model=ActionResponse[EnquiryDetail])
async def get_enquiry(
    enquiry_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Enquiry with follow-ups and call logs."""
    detail = await EnquiryService(session).get_detail(actor, enquiry_id)
    return ActionResponse(data=detail, message="Enquiry fetched successfully")


@router.patch("/{enquiry_id}", response_model=ActionResponse[EnquiryResponse])
async def update_enquiry(
    enquiry_id: uuid.UUID,
    enquiry_data: EnquiryUpdate,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    enquiry = await EnquiryService(session).update(actor, enquiry_id, enquiry_data)
    return ActionResponse(
        data=EnquiryResponse.model_validate(enquiry),
        message="Enquiry updated successfully"
    )


@router.delete("/{enquiry_id}", response_model=ActionResponse)
async def delete_enquiry(
    enquiry_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Delete an enquiry with its history (admin only)."""
    await EnquiryService(session).delete(actor, enquiry_id)
    return ActionResponse(message="Enquiry deleted successfully")


# =========================================================================
# Status
# =========================================================================

@router.post("/{enquiry_id}/status", response_model=ActionResponse[EnquiryResponse])
async def update_enquiry_status(
    enquiry_id: uuid.UUID,
    request: StatusUpdateRequest,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Move an enquiry to a new status; the change is logged as an activity."""
    enquiry = await StatusService(session).update_status(
        actor,
        enquiry_id,
        request.new_status,
        remarks=request.status_remarks,
        title=request.title
    )
    return ActionResponse(
        data=EnquiryResponse.model_validate(enquiry),
        message="Status updated successfully"
    )


@router.post("/{enquiry_id}/enroll-direct", response_model=ActionResponse[EnquiryResponse])
async def enroll_directly(
    enquiry_id: uuid.UUID,
    request: DirectEnrollmentRequest,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Mark an enquiry enrolled without an admission form."""
    enquiry = await StatusService(session).enroll_directly(
        actor, enquiry_id, remarks=request.status_remarks
    )
    return ActionResponse(
        data=EnquiryResponse.model_validate(enquiry),
        message="Direct enrollment completed successfully"
    )


# =========================================================================
# History
# =========================================================================

@router.get("/{enquiry_id}/timeline", response_model=ActionResponse[List[TimelineItem]])
async def get_enquiry_timeline(
    enquiry_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Activities, follow-ups and call logs merged, newest first."""
    items = await TimelineService(session).build(actor, enquiry_id)
    return ActionResponse(data=items, message="Timeline fetched successfully")


@router.get("/{enquiry_id}/activities", response_model=ActionResponse[List[ActivityResponse]])
async def get_enquiry_activities(
    enquiry_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    activities = await ActivityService(session).get_by_enquiry(actor, enquiry_id)
    return ActionResponse(
        data=[ActivityResponse.model_validate(a) for a in activities],
        message="Activities fetched successfully"
    )


# =========================================================================
# Assignment
# =========================================================================

@router.post("/{enquiry_id}/assign", response_model=ActionResponse[EnquiryResponse])
async def assign_enquiry(
    enquiry_id: uuid.UUID,
    request: AssignmentRequest,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Assign one enquiry to a user under a new job order."""
    enquiry = await AssignmentService(session).assign(actor, enquiry_id, request)
    return ActionResponse(
        data=EnquiryResponse.model_validate(enquiry),
        message="Enquiry assigned and job order created successfully"
    )
