"""
Timeline service - one ordered history per enquiry.

Follow-ups and call logs that already have an activity pointing at them
show up only as that activity, so nothing is listed twice.
"""
import logging
import uuid
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext
from institute_crm.core.exceptions import StoreFailureError
from institute_crm.models.activity import EnquiryActivity
from institute_crm.models.enquiry import FollowUp, CallLog
from institute_crm.repositories.activity_repo import EnquiryActivityRepository
from institute_crm.repositories.enquiry_repo import EnquiryRepository
from institute_crm.schemas.activity import ActivityResponse, TimelineItem
from institute_crm.schemas.follow_up import FollowUpResponse, CallLogResponse
from institute_crm.services.enquiry_service import load_enquiry_for

logger = logging.getLogger(__name__)


def build_timeline(
    activities: Sequence[EnquiryActivity],
    follow_ups: Sequence[FollowUp],
    call_logs: Sequence[CallLog]
) -> List[TimelineItem]:
    """
    Merge activities, follow-ups and call logs into one newest-first list.

    An activity whose follow_up_id / call_log_id points at a record that no
    longer exists is still listed; the missing record is simply not there
    to be skipped.
    """
    linked_follow_ups = {a.follow_up_id for a in activities if a.follow_up_id}
    linked_call_logs = {a.call_log_id for a in activities if a.call_log_id}

    items = [
        TimelineItem(
            id=f"activity-{a.id}",
            kind="activity",
            created_at=a.created_at,
            data=ActivityResponse.model_validate(a)
        )
        for a in activities
    ]
    items.extend(
        TimelineItem(
            id=f"followup-{f.id}",
            kind="followup",
            created_at=f.created_at,
            data=FollowUpResponse.model_validate(f)
        )
        for f in follow_ups
        if f.id not in linked_follow_ups
    )
    items.extend(
        TimelineItem(
            id=f"calllog-{c.id}",
            kind="calllog",
            created_at=c.created_at,
            data=CallLogResponse.model_validate(c)
        )
        for c in call_logs
        if c.id not in linked_call_logs
    )

    # sorted() is stable, so equal timestamps keep input order
    return sorted(items, key=lambda item: item.created_at, reverse=True)


class TimelineService:
    """Read-only history view for a single enquiry."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.enquiry_repo = EnquiryRepository(session)
        self.activity_repo = EnquiryActivityRepository(session)

    async def build(self, actor: ActorContext, enquiry_id: uuid.UUID) -> List[TimelineItem]:
        try:
            await load_enquiry_for(actor, self.enquiry_repo, enquiry_id)
            activities = await self.activity_repo.get_by_enquiry(enquiry_id)
            follow_ups = await self.enquiry_repo.get_follow_ups(enquiry_id)
            call_logs = await self.enquiry_repo.get_call_logs(enquiry_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch timeline for enquiry {enquiry_id}: {e}")
            raise StoreFailureError("Failed to fetch timeline") from e

        return build_timeline(activities, follow_ups, call_logs)
