"""
Activity and timeline schemas.
"""
import uuid
from typing import Optional, List, Literal, Union
from datetime import datetime
from pydantic import BaseModel

from institute_crm.models.activity import ActivityType
from institute_crm.models.enquiry import EnquiryStatus
from institute_crm.schemas.follow_up import FollowUpResponse, CallLogResponse


class ActivityResponse(BaseModel):
    id: uuid.UUID
    enquiry_id: uuid.UUID
    type: ActivityType
    title: str
    description: Optional[str]
    previous_status: Optional[EnquiryStatus]
    new_status: Optional[EnquiryStatus]
    status_remarks: Optional[str]
    follow_up_id: Optional[uuid.UUID]
    call_log_id: Optional[uuid.UUID]
    created_by_user_id: uuid.UUID
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityFilter(BaseModel):
    enquiry_id: Optional[uuid.UUID] = None
    type: Optional[List[ActivityType]] = None
    user_id: Optional[uuid.UUID] = None  # who created the activity
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


TimelineKind = Literal["activity", "followup", "calllog"]


class TimelineItem(BaseModel):
    """
    One entry of an enquiry's history. ``id`` is prefixed with the kind
    so ids from the three sources never collide.
    """
    id: str
    kind: TimelineKind
    created_at: datetime
    data: Union[ActivityResponse, FollowUpResponse, CallLogResponse]
