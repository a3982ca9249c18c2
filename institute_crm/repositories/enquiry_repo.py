"""
Enquiry repository with search and cascade delete.
"""
import uuid
from typing import Optional, List

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, delete

from institute_crm.models.enquiry import Enquiry, FollowUp, CallLog
from institute_crm.models.activity import EnquiryActivity
from institute_crm.models.job_order import JobLead
from institute_crm.repositories.base import BaseRepository
from institute_crm.schemas.enquiry import EnquiryFilter
from institute_crm.core.pagination import paginate_query


class EnquiryRepository(BaseRepository[Enquiry]):
    """Repository for Enquiry operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Enquiry, session)

    async def search(
        self,
        filters: Optional[EnquiryFilter] = None,
        scope_branch_id: Optional[uuid.UUID] = None,
        scope_assigned_to: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 10
    ) -> tuple:
        """Search enquiries with role scoping and advanced filtering."""
        query = select(Enquiry)

        if scope_branch_id:
            query = query.where(Enquiry.branch_id == scope_branch_id)
        if scope_assigned_to:
            query = query.where(Enquiry.assigned_to_user_id == scope_assigned_to)

        if filters:
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        Enquiry.candidate_name.ilike(search_term),
                        Enquiry.phone.contains(filters.search),
                        Enquiry.email.ilike(search_term)
                    )
                )
            if filters.status:
                query = query.where(Enquiry.status.in_(filters.status))
            if filters.branch_id:
                query = query.where(Enquiry.branch_id == filters.branch_id)
            if filters.enquiry_source_id:
                query = query.where(Enquiry.enquiry_source_id == filters.enquiry_source_id)
            if filters.assigned_to_user_id:
                query = query.where(Enquiry.assigned_to_user_id == filters.assigned_to_user_id)
            if filters.date_from:
                query = query.where(Enquiry.created_at >= filters.date_from)
            if filters.date_to:
                query = query.where(Enquiry.created_at <= filters.date_to)
            if filters.is_assigned is not None:
                has_job_lead = select(JobLead.id).where(JobLead.lead_id == Enquiry.id).exists()
                query = query.where(has_job_lead if filters.is_assigned else ~has_job_lead)

        query = query.order_by(Enquiry.created_at.desc())
        return await paginate_query(self.session, query, page, limit)

    async def get_many(self, ids: List[uuid.UUID]) -> List[Enquiry]:
        """Fetch the enquiries with the given ids that exist."""
        query = select(Enquiry).where(Enquiry.id.in_(ids))
        result = await self.session.exec(query)
        return list(result.all())

    async def count_already_assigned(self, ids: List[uuid.UUID]) -> int:
        """How many of ids already have an owner or sit in a job order."""
        has_job_lead = select(JobLead.id).where(JobLead.lead_id == Enquiry.id).exists()
        query = select(func.count()).select_from(Enquiry).where(
            Enquiry.id.in_(ids),
            or_(Enquiry.assigned_to_user_id.is_not(None), has_job_lead)
        )
        result = await self.session.exec(query)
        return result.one()

    async def get_follow_ups(self, enquiry_id: uuid.UUID) -> List[FollowUp]:
        query = select(FollowUp).where(
            FollowUp.enquiry_id == enquiry_id
        ).order_by(FollowUp.scheduled_at.desc())
        result = await self.session.exec(query)
        return list(result.all())

    async def get_call_logs(self, enquiry_id: uuid.UUID) -> List[CallLog]:
        query = select(CallLog).where(
            CallLog.enquiry_id == enquiry_id
        ).order_by(CallLog.call_date.desc())
        result = await self.session.exec(query)
        return list(result.all())

    async def delete_with_children(self, enquiry: Enquiry) -> None:
        """
        Stage deletion of an enquiry and everything it owns.
        Activities go first since they reference follow-ups and call logs.
        """
        for model, column in (
            (EnquiryActivity, EnquiryActivity.enquiry_id),
            (FollowUp, FollowUp.enquiry_id),
            (CallLog, CallLog.enquiry_id),
            (JobLead, JobLead.lead_id),
        ):
            await self.session.exec(delete(model).where(column == enquiry.id))
        await self.session.delete(enquiry)
        await self.session.flush()
