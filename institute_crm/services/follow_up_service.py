"""
Follow-up service - scheduled contacts and their activity entries.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext, record_list_scope
from institute_crm.core.exceptions import NotFoundError, StoreFailureError
from institute_crm.models.activity import ActivityType, ActivityTitles
from institute_crm.models.enquiry import FollowUp, FollowUpStatus
from institute_crm.repositories.activity_repo import EnquiryActivityRepository
from institute_crm.repositories.enquiry_repo import EnquiryRepository
from institute_crm.repositories.follow_up_repo import FollowUpRepository
from institute_crm.schemas.follow_up import FollowUpCreate, FollowUpUpdate, FollowUpFilter
from institute_crm.services.enquiry_service import load_enquiry_for

logger = logging.getLogger(__name__)


class FollowUpService:
    """Service for follow-up operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.follow_up_repo = FollowUpRepository(session)
        self.enquiry_repo = EnquiryRepository(session)
        self.activity_repo = EnquiryActivityRepository(session)

    async def create(self, actor: ActorContext, follow_up_data: FollowUpCreate) -> FollowUp:
        """Schedule a follow-up and log it on the enquiry in one transaction."""
        enquiry_id = follow_up_data.enquiry_id
        await load_enquiry_for(actor, self.enquiry_repo, enquiry_id)

        scheduled_at = follow_up_data.scheduled_at
        description = follow_up_data.notes or f"Follow-up scheduled for {scheduled_at:%Y-%m-%d}"

        try:
            follow_up = await self.follow_up_repo.add(FollowUp(
                enquiry_id=enquiry_id,
                scheduled_at=scheduled_at,
                notes=follow_up_data.notes,
                status=FollowUpStatus.PENDING,
                created_by_user_id=actor.user_id
            ))
            await self.activity_repo.record(
                enquiry_id=enquiry_id,
                activity_type=ActivityType.FOLLOW_UP,
                created_by_user_id=actor.user_id,
                title=ActivityTitles.FOLLOW_UP_SCHEDULED,
                description=description,
                follow_up_id=follow_up.id
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create follow-up for enquiry {enquiry_id}: {e}")
            raise StoreFailureError("Failed to create follow-up") from e

        await self.session.refresh(follow_up)
        return follow_up

    async def get(self, actor: ActorContext, follow_up_id: uuid.UUID) -> FollowUp:
        follow_up = await self.follow_up_repo.get(follow_up_id)
        if not follow_up:
            raise NotFoundError("Follow-up", str(follow_up_id))
        await load_enquiry_for(actor, self.enquiry_repo, follow_up.enquiry_id)
        return follow_up

    async def list(
        self,
        actor: ActorContext,
        filters: Optional[FollowUpFilter] = None,
        page: int = 1,
        limit: int = 50
    ) -> tuple:
        """Follow-ups visible to the actor, soonest first. Returns (items, total)."""
        filters = filters or FollowUpFilter()
        branch_id, assigned_to = record_list_scope(actor)
        return await self.follow_up_repo.search(
            statuses=filters.status,
            overdue=filters.overdue,
            date_from=filters.date_from,
            date_to=filters.date_to,
            assigned_to_user_id=assigned_to,
            branch_id=branch_id,
            page=page,
            limit=limit
        )

    async def update(
        self,
        actor: ActorContext,
        follow_up_id: uuid.UUID,
        follow_up_data: FollowUpUpdate
    ) -> FollowUp:
        """
        Update status, outcome or notes.
        A new date moves the same follow-up rather than creating another one.
        """
        follow_up = await self.get(actor, follow_up_id)

        update_data = follow_up_data.model_dump(exclude_unset=True)
        rescheduled_at = update_data.pop("rescheduled_at", None)
        if rescheduled_at:
            update_data["scheduled_at"] = rescheduled_at
            if not update_data.get("status"):
                update_data["status"] = FollowUpStatus.RESCHEDULED

        try:
            follow_up = await self.follow_up_repo.update(follow_up.id, update_data)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update follow-up {follow_up_id}: {e}")
            raise StoreFailureError("Failed to update follow-up") from e
        return follow_up

    async def delete(self, actor: ActorContext, follow_up_id: uuid.UUID) -> bool:
        """Delete a follow-up. Its activity entry stays in the history."""
        follow_up = await self.get(actor, follow_up_id)

        try:
            deleted = await self.follow_up_repo.delete(follow_up.id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete follow-up {follow_up_id}: {e}")
            raise StoreFailureError("Failed to delete follow-up") from e

        logger.info(f"Follow-up {follow_up_id} deleted by {actor.user_id}")
        return deleted
