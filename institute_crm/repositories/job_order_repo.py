"""
Job order and job lead repositories.
"""
import uuid
from datetime import datetime
from typing import Optional, List

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, delete

from institute_crm.models.job_order import JobOrder, JobLead, JobLeadStatus
from institute_crm.repositories.base import BaseRepository
from institute_crm.core.pagination import paginate_query


class JobOrderRepository(BaseRepository[JobOrder]):
    """Repository for JobOrder operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(JobOrder, session)

    async def search(
        self,
        branch_id: Optional[uuid.UUID] = None,
        manager_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
        pending_only: bool = False,
        completed_only: bool = False,
        due_only: bool = False,
        page: int = 1,
        limit: int = 10
    ) -> tuple:
        """Job orders, newest first. Returns (items, total)."""
        query = select(JobOrder)

        if branch_id:
            query = query.where(JobOrder.branch_id == branch_id)
        if manager_id:
            query = query.where(JobOrder.manager_id == manager_id)
        if search:
            search_term = f"%{search}%"
            query = query.where(or_(
                JobOrder.name.ilike(search_term),
                JobOrder.job_code.ilike(search_term)
            ))

        has_pending = select(JobLead.id).where(
            JobLead.job_id == JobOrder.id,
            JobLead.status == JobLeadStatus.PENDING
        ).exists()
        if pending_only:
            query = query.where(has_pending)
        if completed_only:
            query = query.where(~has_pending)
        if due_only:
            query = query.where(JobOrder.end_date < datetime.utcnow().date(), has_pending)

        query = query.order_by(JobOrder.created_at.desc())
        return await paginate_query(self.session, query, page, limit)


class JobLeadRepository(BaseRepository[JobLead]):
    """Repository for JobLead operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(JobLead, session)

    async def get_by_job(self, job_id: uuid.UUID) -> List[JobLead]:
        query = select(JobLead).where(JobLead.job_id == job_id).order_by(JobLead.created_at)
        result = await self.session.exec(query)
        return list(result.all())

    async def remove_for_lead(self, lead_id: uuid.UUID) -> None:
        """Stage removal of every job lead for an enquiry (re-assignment)."""
        await self.session.exec(delete(JobLead).where(JobLead.lead_id == lead_id))

    async def remove_for_job(self, job_id: uuid.UUID) -> None:
        await self.session.exec(delete(JobLead).where(JobLead.job_id == job_id))

    async def progress(self, job_id: uuid.UUID) -> dict:
        """Closed vs total leads for a job order."""
        total_query = select(func.count()).select_from(JobLead).where(JobLead.job_id == job_id)
        closed_query = select(func.count()).select_from(JobLead).where(
            JobLead.job_id == job_id,
            JobLead.status == JobLeadStatus.CLOSED
        )
        total = (await self.session.exec(total_query)).one()
        closed = (await self.session.exec(closed_query)).one()

        # Avoid division by zero
        percentage = round(closed / total * 100) if total > 0 else 0
        return {"percentage": percentage, "closed": closed, "total": total}
