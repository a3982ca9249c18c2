"""
Follow-up and call log repositories.
"""
import uuid
from datetime import datetime
from typing import Optional, List

from sqlmodel import select, and_
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.models.enquiry import Enquiry, FollowUp, FollowUpStatus, CallLog
from institute_crm.repositories.base import BaseRepository
from institute_crm.core.pagination import paginate_query


def _scope_by_enquiry(query, model, assigned_to_user_id, branch_id):
    """Restrict a child-table query through its parent enquiry."""
    if assigned_to_user_id or branch_id:
        query = query.join(Enquiry, Enquiry.id == model.enquiry_id)
        if assigned_to_user_id:
            query = query.where(Enquiry.assigned_to_user_id == assigned_to_user_id)
        if branch_id:
            query = query.where(Enquiry.branch_id == branch_id)
    return query


class FollowUpRepository(BaseRepository[FollowUp]):
    """Repository for FollowUp operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(FollowUp, session)

    async def search(
        self,
        statuses: Optional[List[FollowUpStatus]] = None,
        overdue: bool = False,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        assigned_to_user_id: Optional[uuid.UUID] = None,
        branch_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 50
    ) -> tuple:
        """Follow-ups, soonest first. Returns (items, total)."""
        query = _scope_by_enquiry(select(FollowUp), FollowUp, assigned_to_user_id, branch_id)

        if statuses:
            query = query.where(FollowUp.status.in_(statuses))
        if overdue:
            query = query.where(and_(
                FollowUp.status == FollowUpStatus.PENDING,
                FollowUp.scheduled_at < datetime.utcnow()
            ))
        if date_from:
            query = query.where(FollowUp.scheduled_at >= date_from)
        if date_to:
            query = query.where(FollowUp.scheduled_at <= date_to)

        query = query.order_by(FollowUp.scheduled_at.asc())
        return await paginate_query(self.session, query, page, limit)


class CallLogRepository(BaseRepository[CallLog]):
    """Repository for CallLog operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(CallLog, session)

    async def search(
        self,
        outcome: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        assigned_to_user_id: Optional[uuid.UUID] = None,
        branch_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 50
    ) -> tuple:
        """Call register, latest call first. Returns (items, total)."""
        query = _scope_by_enquiry(select(CallLog), CallLog, assigned_to_user_id, branch_id)

        if outcome:
            query = query.where(CallLog.outcome == outcome)
        if date_from:
            query = query.where(CallLog.call_date >= date_from)
        if date_to:
            query = query.where(CallLog.call_date <= date_to)

        query = query.order_by(CallLog.call_date.desc())
        return await paginate_query(self.session, query, page, limit)
