"""
Activity service - the enquiry activity feed.
"""
import uuid
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext, record_list_scope
from institute_crm.repositories.activity_repo import EnquiryActivityRepository
from institute_crm.repositories.enquiry_repo import EnquiryRepository
from institute_crm.models.activity import EnquiryActivity
from institute_crm.schemas.activity import ActivityFilter
from institute_crm.services.enquiry_service import load_enquiry_for


class ActivityService:
    """Service for reading activity entries."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.activity_repo = EnquiryActivityRepository(session)
        self.enquiry_repo = EnquiryRepository(session)

    async def list(
        self,
        actor: ActorContext,
        filters: Optional[ActivityFilter] = None,
        page: int = 1,
        limit: int = 10
    ) -> tuple:
        """
        Activity feed, newest first. Returns (items, total).

        With an enquiry_id the actor must be allowed to see that enquiry;
        without one the feed is scoped the same way as follow-ups.
        """
        filters = filters or ActivityFilter()

        if filters.enquiry_id:
            await load_enquiry_for(actor, self.enquiry_repo, filters.enquiry_id)
            branch_id, assigned_to = None, None
        else:
            branch_id, assigned_to = record_list_scope(actor)

        return await self.activity_repo.search(
            enquiry_id=filters.enquiry_id,
            types=filters.type,
            created_by_user_id=filters.user_id,
            date_from=filters.date_from,
            date_to=filters.date_to,
            assigned_to_user_id=assigned_to,
            branch_id=branch_id,
            page=page,
            limit=limit
        )

    async def get_by_enquiry(
        self,
        actor: ActorContext,
        enquiry_id: uuid.UUID
    ) -> List[EnquiryActivity]:
        """Every activity for one enquiry."""
        await load_enquiry_for(actor, self.enquiry_repo, enquiry_id)
        return await self.activity_repo.get_by_enquiry(enquiry_id)
