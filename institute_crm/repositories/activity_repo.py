"""
Enquiry activity repository.
Activities are only ever inserted; there is no update path.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.models.activity import EnquiryActivity, ActivityType, generate_activity_title
from institute_crm.models.enquiry import Enquiry
from institute_crm.repositories.base import BaseRepository
from institute_crm.core.pagination import paginate_query


class EnquiryActivityRepository(BaseRepository[EnquiryActivity]):
    """Repository for EnquiryActivity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(EnquiryActivity, session)

    async def record(
        self,
        enquiry_id: uuid.UUID,
        activity_type: ActivityType,
        created_by_user_id: uuid.UUID,
        title: Optional[str] = None,
        description: Optional[str] = None,
        previous_status: Optional[str] = None,
        new_status: Optional[str] = None,
        status_remarks: Optional[str] = None,
        follow_up_id: Optional[uuid.UUID] = None,
        call_log_id: Optional[uuid.UUID] = None
    ) -> EnquiryActivity:
        """
        Stage an activity entry in the current transaction.
        The caller commits together with the write it describes.
        """
        activity = EnquiryActivity(
            enquiry_id=enquiry_id,
            type=activity_type,
            title=title or generate_activity_title(activity_type, previous_status, new_status),
            description=description,
            previous_status=previous_status,
            new_status=new_status,
            status_remarks=status_remarks,
            follow_up_id=follow_up_id,
            call_log_id=call_log_id,
            created_by_user_id=created_by_user_id
        )
        return await self.add(activity)

    async def get_by_enquiry(self, enquiry_id: uuid.UUID) -> List[EnquiryActivity]:
        """All activity for one enquiry, newest first."""
        query = select(EnquiryActivity).where(
            EnquiryActivity.enquiry_id == enquiry_id
        ).order_by(EnquiryActivity.created_at.desc())
        result = await self.session.exec(query)
        return list(result.all())

    async def search(
        self,
        enquiry_id: Optional[uuid.UUID] = None,
        types: Optional[List[ActivityType]] = None,
        created_by_user_id: Optional[uuid.UUID] = None,
        date_from=None,
        date_to=None,
        assigned_to_user_id: Optional[uuid.UUID] = None,
        branch_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 10
    ) -> tuple:
        """Filtered, paginated activity feed. Returns (items, total)."""
        query = select(EnquiryActivity)

        if enquiry_id:
            query = query.where(EnquiryActivity.enquiry_id == enquiry_id)
        if types:
            query = query.where(EnquiryActivity.type.in_(types))
        if created_by_user_id:
            query = query.where(EnquiryActivity.created_by_user_id == created_by_user_id)
        if date_from:
            query = query.where(EnquiryActivity.created_at >= date_from)
        if date_to:
            query = query.where(EnquiryActivity.created_at <= date_to)

        # Scope through the parent enquiry
        if assigned_to_user_id or branch_id:
            query = query.join(Enquiry, Enquiry.id == EnquiryActivity.enquiry_id)
            if assigned_to_user_id:
                query = query.where(Enquiry.assigned_to_user_id == assigned_to_user_id)
            if branch_id:
                query = query.where(Enquiry.branch_id == branch_id)

        query = query.order_by(EnquiryActivity.created_at.desc())
        return await paginate_query(self.session, query, page, limit)
