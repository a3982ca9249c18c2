"""
Enquiry service - enquiry CRUD with role scoping.
"""
import logging
import uuid
from typing import Optional
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext, ensure_enquiry_access, enquiry_list_scope
from institute_crm.core.exceptions import NotFoundError, StoreFailureError
from institute_crm.repositories.enquiry_repo import EnquiryRepository
from institute_crm.models.enquiry import Enquiry, EnquiryStatus
from institute_crm.schemas.enquiry import (
    EnquiryCreate, EnquiryUpdate, EnquiryFilter, EnquiryResponse, EnquiryDetail
)
from institute_crm.schemas.follow_up import FollowUpResponse, CallLogResponse

logger = logging.getLogger(__name__)


async def load_enquiry_for(
    actor: ActorContext,
    enquiry_repo: EnquiryRepository,
    enquiry_id: uuid.UUID
) -> Enquiry:
    """Fetch an enquiry the actor is allowed to touch, or raise."""
    enquiry = await enquiry_repo.get(enquiry_id)
    if not enquiry:
        raise NotFoundError("Enquiry", str(enquiry_id))
    ensure_enquiry_access(actor, enquiry)
    return enquiry


class EnquiryService:
    """Service for enquiry operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.enquiry_repo = EnquiryRepository(session)

    async def create(self, actor: ActorContext, enquiry_data: EnquiryCreate) -> Enquiry:
        """Create an enquiry, auto-assigned to whoever entered it."""
        data = enquiry_data.model_dump()
        if not data.get("branch_id"):
            data["branch_id"] = actor.branch_id
        data["status"] = EnquiryStatus.NEW
        data["created_by_user_id"] = actor.user_id
        data["assigned_to_user_id"] = actor.user_id
        data["last_contact_date"] = datetime.utcnow()

        try:
            enquiry = await self.enquiry_repo.create(data)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create enquiry: {e}")
            raise StoreFailureError("Failed to create enquiry") from e

        logger.info(f"Enquiry {enquiry.id} created by {actor.user_id}")
        return enquiry

    async def get(self, actor: ActorContext, enquiry_id: uuid.UUID) -> Enquiry:
        """Get an enquiry by ID."""
        return await load_enquiry_for(actor, self.enquiry_repo, enquiry_id)

    async def get_detail(self, actor: ActorContext, enquiry_id: uuid.UUID) -> EnquiryDetail:
        """Enquiry with its follow-ups (latest first) and call logs (latest first)."""
        enquiry = await load_enquiry_for(actor, self.enquiry_repo, enquiry_id)
        follow_ups = await self.enquiry_repo.get_follow_ups(enquiry_id)
        call_logs = await self.enquiry_repo.get_call_logs(enquiry_id)

        return EnquiryDetail(
            **EnquiryResponse.model_validate(enquiry).model_dump(),
            follow_ups=[FollowUpResponse.model_validate(f) for f in follow_ups],
            call_logs=[CallLogResponse.model_validate(c) for c in call_logs]
        )

    async def list(
        self,
        actor: ActorContext,
        filters: Optional[EnquiryFilter] = None,
        page: int = 1,
        limit: int = 10
    ) -> tuple:
        """List enquiries visible to the actor. Returns (items, total)."""
        scope_branch_id, scope_assigned_to = enquiry_list_scope(actor)
        return await self.enquiry_repo.search(
            filters,
            scope_branch_id=scope_branch_id,
            scope_assigned_to=scope_assigned_to,
            page=page,
            limit=limit
        )

    async def update(
        self,
        actor: ActorContext,
        enquiry_id: uuid.UUID,
        enquiry_data: EnquiryUpdate
    ) -> Enquiry:
        """Update contact and profile fields. Status is left alone."""
        await load_enquiry_for(actor, self.enquiry_repo, enquiry_id)

        update_data = enquiry_data.model_dump(exclude_unset=True)
        update_data.pop("status", None)

        try:
            enquiry = await self.enquiry_repo.update(enquiry_id, update_data)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update enquiry {enquiry_id}: {e}")
            raise StoreFailureError("Failed to update enquiry") from e
        return enquiry

    async def delete(self, actor: ActorContext, enquiry_id: uuid.UUID) -> bool:
        """Delete an enquiry and everything hanging off it. Admin only."""
        actor.require_admin("Only admins can delete enquiries")

        enquiry = await self.enquiry_repo.get(enquiry_id)
        if not enquiry:
            raise NotFoundError("Enquiry", str(enquiry_id))

        try:
            await self.enquiry_repo.delete_with_children(enquiry)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete enquiry {enquiry_id}: {e}")
            raise StoreFailureError("Failed to delete enquiry") from e

        logger.info(f"Enquiry {enquiry_id} deleted by {actor.user_id}")
        return True
