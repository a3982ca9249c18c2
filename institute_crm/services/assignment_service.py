"""
Assignment service - handing enquiries to telecallers through job orders.

Every check runs before the first write, so a rejected request leaves no
trace. The notification to the assignee goes out after commit.
"""
import logging
import uuid
from typing import Optional, List
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext, enquiry_list_scope
from institute_crm.core.exceptions import (
    NotFoundError,
    ForbiddenError,
    ValidationError,
    StoreFailureError
)
from institute_crm.models.enquiry import Enquiry
from institute_crm.models.job_order import JobOrder, JobLead, JobLeadStatus
from institute_crm.models.notification import NotificationType
from institute_crm.models.reference import Branch
from institute_crm.models.user import User
from institute_crm.repositories.enquiry_repo import EnquiryRepository
from institute_crm.repositories.job_order_repo import JobOrderRepository, JobLeadRepository
from institute_crm.repositories.reference_repo import ReferenceRepository
from institute_crm.repositories.user_repo import UserRepository
from institute_crm.schemas.job_order import (
    AssignmentRequest,
    BulkAssignmentRequest,
    JobOrderFilter,
    JobOrderResponse,
    JobOrderSummary,
    JobOrderDetail,
    JobLeadResponse,
    JobProgress
)
from institute_crm.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class AssignmentService:
    """Service for enquiry assignment and job orders."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.enquiry_repo = EnquiryRepository(session)
        self.job_order_repo = JobOrderRepository(session)
        self.job_lead_repo = JobLeadRepository(session)
        self.branch_repo = ReferenceRepository(Branch, session)
        self.user_repo = UserRepository(session)
        self.notifications = NotificationService(session)

    # =========================================================================
    # Assignment
    # =========================================================================

    async def assign(
        self,
        actor: ActorContext,
        enquiry_id: uuid.UUID,
        request: AssignmentRequest
    ) -> Enquiry:
        """
        Assign a single enquiry, replacing any job it was already part of.

        Raises:
            ForbiddenError: actor is neither admin nor executive
            ValidationError: bad job name, dates, or assignee branch
            NotFoundError: enquiry, branch or assignee missing
            StoreFailureError: the transaction could not be committed
        """
        actor.require_executive()
        await self._validate_request(request)

        enquiry = await self.enquiry_repo.get(enquiry_id)
        if not enquiry:
            raise NotFoundError("Enquiry", str(enquiry_id))

        try:
            await self.job_lead_repo.remove_for_lead(enquiry_id)
            job_order = await self._stage_job_order(actor, request, [enquiry])
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to assign enquiry {enquiry_id}: {e}")
            raise StoreFailureError("Failed to assign enquiry") from e

        await self.session.refresh(enquiry)
        logger.info(
            f"Enquiry {enquiry_id} assigned to {request.assigned_to_user_id} "
            f"in job order {job_order.id} by {actor.user_id}"
        )

        if request.assigned_to_user_id != actor.user_id:
            await self.notifications.notify(
                request.assigned_to_user_id,
                "New Enquiry Assigned",
                "You have been assigned a new enquiry.",
                NotificationType.ENQUIRY_ASSIGNED,
                f"/enquiries/{enquiry_id}"
            )
        return enquiry

    async def bulk_assign(self, actor: ActorContext, request: BulkAssignmentRequest) -> JobOrder:
        """
        Put several unassigned enquiries into one new job order.
        Enquiries that already have an owner or a job are rejected as a batch.
        """
        actor.require_executive()

        enquiry_ids = list(dict.fromkeys(request.enquiry_ids))
        if not enquiry_ids:
            raise ValidationError("No enquiries selected", "enquiry_ids")

        await self._validate_request(request)

        enquiries = await self.enquiry_repo.get_many(enquiry_ids)
        if len(enquiries) != len(enquiry_ids):
            raise NotFoundError("Some enquiries")

        if await self.enquiry_repo.count_already_assigned(enquiry_ids) > 0:
            raise ValidationError(
                "Some selected enquiries are already assigned. "
                "Bulk assignment requires unassigned enquiries."
            )

        try:
            job_order = await self._stage_job_order(actor, request, enquiries)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to bulk assign {len(enquiry_ids)} enquiries: {e}")
            raise StoreFailureError("Failed to assign enquiries") from e

        await self.session.refresh(job_order)
        logger.info(
            f"{len(enquiry_ids)} enquiries assigned to {request.assigned_to_user_id} "
            f"in job order {job_order.id} by {actor.user_id}"
        )

        if request.assigned_to_user_id != actor.user_id:
            await self.notifications.notify(
                request.assigned_to_user_id,
                "Bulk Enquiries Assigned",
                f"You have been assigned {len(enquiry_ids)} new enquiries.",
                NotificationType.ENQUIRY_ASSIGNED,
                "/enquiries"
            )
        return job_order

    async def _validate_request(self, request: AssignmentRequest) -> None:
        if not request.name or not request.name.strip():
            raise ValidationError("Job name is required", "name")

        if request.start_date < datetime.utcnow().date():
            raise ValidationError("Start date cannot be in the past", "start_date")
        if request.start_date > request.end_date:
            raise ValidationError("Start date cannot be after end date", "start_date")

        branch = await self.branch_repo.get(request.branch_id)
        if not branch:
            raise NotFoundError("Branch", str(request.branch_id))

        assignee = await self.user_repo.get(request.assigned_to_user_id)
        if not assignee:
            raise NotFoundError("Assigned user", str(request.assigned_to_user_id))
        if not assignee.branch_id:
            raise ValidationError("Assigned user must have a branch", "assigned_to_user_id")
        if assignee.branch_id != request.branch_id:
            raise ValidationError(
                "Selected user does not belong to the chosen branch", "assigned_to_user_id"
            )

    async def _stage_job_order(
        self,
        actor: ActorContext,
        request: AssignmentRequest,
        enquiries: List[Enquiry]
    ) -> JobOrder:
        """Write the job order, its leads and the new owner without committing."""
        job_order = await self.job_order_repo.add(JobOrder(
            name=request.name.strip(),
            description=request.description,
            remarks=request.remarks,
            manager_id=request.assigned_to_user_id,
            assigner_id=actor.user_id,
            branch_id=request.branch_id,
            start_date=request.start_date,
            end_date=request.end_date
        ))

        now = datetime.utcnow()
        for enquiry in enquiries:
            enquiry.assigned_to_user_id = request.assigned_to_user_id
            enquiry.updated_at = now
            self.session.add(enquiry)
            self.session.add(JobLead(
                job_id=job_order.id,
                lead_id=enquiry.id,
                status=JobLeadStatus.PENDING,
                assigner_id=actor.user_id,
                assignee_id=request.assigned_to_user_id
            ))
        await self.session.flush()
        return job_order

    # =========================================================================
    # Job orders
    # =========================================================================

    async def list_job_orders(
        self,
        actor: ActorContext,
        filters: Optional[JobOrderFilter] = None,
        page: int = 1,
        limit: int = 10
    ) -> tuple:
        """Job orders visible to the actor with progress. Returns (items, total)."""
        filters = filters or JobOrderFilter()

        branch_id, manager_id = enquiry_list_scope(actor)
        if actor.is_telecaller:
            branch_id, manager_id = None, actor.user_id
        if actor.is_admin and filters.branch_id:
            branch_id = filters.branch_id

        job_orders, total = await self.job_order_repo.search(
            branch_id=branch_id,
            manager_id=manager_id,
            search=filters.search,
            pending_only=filters.pending_only,
            completed_only=filters.completed_only,
            due_only=filters.due_only,
            page=page,
            limit=limit
        )

        items = []
        for job_order in job_orders:
            progress = await self.job_lead_repo.progress(job_order.id)
            items.append(JobOrderSummary(
                **JobOrderResponse.model_validate(job_order).model_dump(),
                progress=progress["percentage"],
                total_leads=progress["total"]
            ))
        return items, total

    async def get_job_order(self, actor: ActorContext, job_id: uuid.UUID) -> JobOrderDetail:
        job_order = await self._get_visible_job_order(actor, job_id)
        job_leads = await self.job_lead_repo.get_by_job(job_id)
        return JobOrderDetail(
            **JobOrderResponse.model_validate(job_order).model_dump(),
            job_leads=[JobLeadResponse.model_validate(jl) for jl in job_leads]
        )

    async def update_lead_status(
        self,
        actor: ActorContext,
        job_lead_id: uuid.UUID,
        status: JobLeadStatus
    ) -> JobLead:
        """Close or reopen one enquiry within a job order."""
        job_lead = await self.job_lead_repo.get(job_lead_id)
        if not job_lead:
            raise NotFoundError("Job lead", str(job_lead_id))

        job_order = await self.job_order_repo.get(job_lead.job_id)
        if actor.is_telecaller and (not job_order or job_order.manager_id != actor.user_id):
            raise ForbiddenError("Access denied")

        try:
            job_lead = await self.job_lead_repo.update(job_lead_id, {"status": status})
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update job lead {job_lead_id}: {e}")
            raise StoreFailureError("Failed to update job lead status") from e
        return job_lead

    async def progress(self, actor: ActorContext, job_id: uuid.UUID) -> JobProgress:
        await self._get_visible_job_order(actor, job_id)
        return JobProgress(**await self.job_lead_repo.progress(job_id))

    async def delete_job_order(self, actor: ActorContext, job_id: uuid.UUID) -> bool:
        """Delete a job order and its leads. Admin only."""
        actor.require_admin("Access denied. Only admins can delete job orders.")

        job_order = await self.job_order_repo.get(job_id)
        if not job_order:
            raise NotFoundError("Job order", str(job_id))

        try:
            await self.job_lead_repo.remove_for_job(job_id)
            await self.session.delete(job_order)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete job order {job_id}: {e}")
            raise StoreFailureError("Failed to delete job order") from e

        logger.info(f"Job order {job_id} deleted by {actor.user_id}")
        return True

    async def reassign(
        self,
        actor: ActorContext,
        job_id: uuid.UUID,
        new_manager_id: uuid.UUID
    ) -> JobOrder:
        """Hand a whole job order to another user."""
        actor.require_executive()

        job_order = await self.job_order_repo.get(job_id)
        if not job_order:
            raise NotFoundError("Job order", str(job_id))

        new_manager: Optional[User] = await self.user_repo.get(new_manager_id)
        if not new_manager:
            raise NotFoundError("New manager user", str(new_manager_id))

        try:
            job_order = await self.job_order_repo.update(job_id, {"manager_id": new_manager_id})
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to re-assign job order {job_id}: {e}")
            raise StoreFailureError("Failed to re-assign job order") from e

        logger.info(f"Job order {job_id} re-assigned to {new_manager_id} by {actor.user_id}")

        if new_manager_id != actor.user_id:
            await self.notifications.notify(
                new_manager_id,
                "Job Order Re-assigned",
                f"You have been assigned as manager for job order: {job_order.name}",
                NotificationType.JOB_ORDER_ASSIGNED,
                f"/enquiries/job-orders/{job_id}"
            )
        return job_order

    async def _get_visible_job_order(self, actor: ActorContext, job_id: uuid.UUID) -> JobOrder:
        job_order = await self.job_order_repo.get(job_id)
        if not job_order:
            raise NotFoundError("Job order", str(job_id))

        if actor.is_admin or job_order.manager_id == actor.user_id:
            return job_order
        # Executives also see every job in their own branch
        if actor.can_assign and actor.branch_id and job_order.branch_id == actor.branch_id:
            return job_order
        raise ForbiddenError("Access denied")
