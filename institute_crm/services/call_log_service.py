"""
Call log service - the call register.
"""
import logging
import uuid
from typing import Optional
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext, record_list_scope
from institute_crm.core.exceptions import NotFoundError, StoreFailureError
from institute_crm.models.activity import ActivityType, ActivityTitles
from institute_crm.models.enquiry import CallLog
from institute_crm.repositories.activity_repo import EnquiryActivityRepository
from institute_crm.repositories.enquiry_repo import EnquiryRepository
from institute_crm.repositories.follow_up_repo import CallLogRepository
from institute_crm.schemas.follow_up import CallLogCreate, CallLogFilter
from institute_crm.services.enquiry_service import load_enquiry_for

logger = logging.getLogger(__name__)


class CallLogService:
    """Service for call log operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.call_log_repo = CallLogRepository(session)
        self.enquiry_repo = EnquiryRepository(session)
        self.activity_repo = EnquiryActivityRepository(session)

    async def create(self, actor: ActorContext, call_data: CallLogCreate) -> CallLog:
        """
        Record a call.

        The call log, the enquiry's last_contact_date and the CALL_LOG
        activity are written in one transaction.
        """
        enquiry = await load_enquiry_for(actor, self.enquiry_repo, call_data.enquiry_id)
        now = datetime.utcnow()

        try:
            call_log = await self.call_log_repo.add(CallLog(
                enquiry_id=enquiry.id,
                call_date=call_data.call_date or now,
                duration=call_data.duration,
                outcome=call_data.outcome,
                notes=call_data.notes,
                created_by_user_id=actor.user_id
            ))

            enquiry.last_contact_date = now
            enquiry.updated_at = now
            await self.enquiry_repo.add(enquiry)

            await self.activity_repo.record(
                enquiry_id=enquiry.id,
                activity_type=ActivityType.CALL_LOG,
                created_by_user_id=actor.user_id,
                title=ActivityTitles.CALL_LOGGED,
                description=call_data.notes or f"Call outcome: {call_data.outcome or 'N/A'}",
                call_log_id=call_log.id
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to log call for enquiry {call_data.enquiry_id}: {e}")
            raise StoreFailureError("Failed to create call log") from e

        await self.session.refresh(call_log)
        return call_log

    async def list(
        self,
        actor: ActorContext,
        filters: Optional[CallLogFilter] = None,
        page: int = 1,
        limit: int = 50
    ) -> tuple:
        """Calls visible to the actor, latest first. Returns (items, total)."""
        filters = filters or CallLogFilter()
        branch_id, assigned_to = record_list_scope(actor)
        return await self.call_log_repo.search(
            outcome=filters.outcome,
            date_from=filters.date_from,
            date_to=filters.date_to,
            assigned_to_user_id=assigned_to,
            branch_id=branch_id,
            page=page,
            limit=limit
        )

    async def delete(self, actor: ActorContext, call_log_id: uuid.UUID) -> bool:
        call_log = await self.call_log_repo.get(call_log_id)
        if not call_log:
            raise NotFoundError("Call log", str(call_log_id))
        await load_enquiry_for(actor, self.enquiry_repo, call_log.enquiry_id)

        try:
            deleted = await self.call_log_repo.delete(call_log_id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete call log {call_log_id}: {e}")
            raise StoreFailureError("Failed to delete call log") from e

        logger.info(f"Call log {call_log_id} deleted by {actor.user_id}")
        return deleted
