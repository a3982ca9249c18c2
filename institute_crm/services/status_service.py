"""
Status service - enquiry status transitions.

Every transition writes the new status and exactly one activity row in the
same transaction. Any status may follow any other; ENROLLED is only
terminal by convention.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext
from institute_crm.core.exceptions import StoreFailureError, ValidationError
from institute_crm.models.activity import ActivityType, ActivityTitles
from institute_crm.models.enquiry import Enquiry, EnquiryStatus
from institute_crm.repositories.activity_repo import EnquiryActivityRepository
from institute_crm.repositories.enquiry_repo import EnquiryRepository
from institute_crm.services.enquiry_service import load_enquiry_for

logger = logging.getLogger(__name__)


class StatusService:
    """Service for enquiry status transitions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.enquiry_repo = EnquiryRepository(session)
        self.activity_repo = EnquiryActivityRepository(session)

    async def update_status(
        self,
        actor: ActorContext,
        enquiry_id: uuid.UUID,
        new_status: EnquiryStatus,
        remarks: Optional[str] = None,
        title: Optional[str] = None
    ) -> Enquiry:
        """
        Move an enquiry to new_status and log a STATUS_CHANGE activity.

        Raises:
            NotFoundError: enquiry does not exist
            ForbiddenError: telecaller acting on someone else's enquiry
            ValidationError: new_status is not a known status
            StoreFailureError: the transaction could not be committed
        """
        new_status = _coerce_status(new_status)
        enquiry = await load_enquiry_for(actor, self.enquiry_repo, enquiry_id)

        return await self._transition(
            actor,
            enquiry,
            new_status,
            ActivityType.STATUS_CHANGE,
            title=title,
            description=remarks,
            remarks=remarks,
            failure_message="Failed to update status"
        )

    async def enroll_directly(
        self,
        actor: ActorContext,
        enquiry_id: uuid.UUID,
        remarks: Optional[str] = None
    ) -> Enquiry:
        """
        Mark an enquiry ENROLLED without an admission form.
        Logged as ENROLLMENT_DIRECT so reports can tell it apart from
        enrolments that went through admissions.
        """
        enquiry = await load_enquiry_for(actor, self.enquiry_repo, enquiry_id)

        return await self._transition(
            actor,
            enquiry,
            EnquiryStatus.ENROLLED,
            ActivityType.ENROLLMENT_DIRECT,
            title=None,
            description=remarks or ActivityTitles.DIRECT_ENROLLMENT_DESCRIPTION,
            remarks=remarks,
            failure_message="Failed to process direct enrollment"
        )

    async def _transition(
        self,
        actor: ActorContext,
        enquiry: Enquiry,
        new_status: EnquiryStatus,
        activity_type: ActivityType,
        title: Optional[str],
        description: Optional[str],
        remarks: Optional[str],
        failure_message: str
    ) -> Enquiry:
        enquiry_id = enquiry.id
        previous_status = enquiry.status
        now = datetime.utcnow()

        try:
            enquiry.status = new_status
            enquiry.last_contact_date = now
            enquiry.updated_at = now
            await self.enquiry_repo.add(enquiry)

            await self.activity_repo.record(
                enquiry_id=enquiry_id,
                activity_type=activity_type,
                created_by_user_id=actor.user_id,
                title=title,
                description=description,
                previous_status=previous_status,
                new_status=new_status,
                status_remarks=remarks
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Status transition failed for enquiry {enquiry_id}: {e}")
            raise StoreFailureError(failure_message) from e

        await self.session.refresh(enquiry)
        logger.info(
            f"Enquiry {enquiry_id} moved {previous_status.value} -> {new_status.value} "
            f"({activity_type.value}) by {actor.user_id}"
        )
        return enquiry


def _coerce_status(value) -> EnquiryStatus:
    try:
        return EnquiryStatus(value)
    except ValueError:
        raise ValidationError(f"'{value}' is not a valid enquiry status", "new_status")
