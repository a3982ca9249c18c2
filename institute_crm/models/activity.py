"""
Enquiry activity model - append-only audit trail per enquiry.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field

from institute_crm.models.enquiry import EnquiryStatus


class ActivityType(str, Enum):
    STATUS_CHANGE = "STATUS_CHANGE"
    FOLLOW_UP = "FOLLOW_UP"
    CALL_LOG = "CALL_LOG"
    ENROLLMENT_DIRECT = "ENROLLMENT_DIRECT"


class EnquiryActivity(SQLModel, table=True):
    """
    One row per status change, direct enrollment, scheduled follow-up or
    logged call. Rows are written once and never updated.
    """
    __tablename__ = "enquiry_activity"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    enquiry_id: uuid.UUID = Field(foreign_key="enquiry.id", index=True, ondelete="CASCADE")
    created_by_user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    type: ActivityType = Field(index=True)
    title: str
    description: Optional[str] = None

    # STATUS_CHANGE / ENROLLMENT_DIRECT only
    previous_status: Optional[EnquiryStatus] = None
    new_status: Optional[EnquiryStatus] = None
    status_remarks: Optional[str] = None

    # Source record for FOLLOW_UP / CALL_LOG entries
    follow_up_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="follow_up.id", index=True, ondelete="SET NULL"
    )
    call_log_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="call_log.id", index=True, ondelete="SET NULL"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)


# Default titles per activity type
class ActivityTitles:
    STATUS_UPDATED = "Status updated"
    FOLLOW_UP_SCHEDULED = "Follow-up scheduled"
    CALL_LOGGED = "Call logged"
    DIRECT_ENROLLMENT = "Direct enrollment completed"
    DEFAULT = "Activity logged"

    DIRECT_ENROLLMENT_DESCRIPTION = "Direct enrollment completed without admission form"


def generate_activity_title(
    activity_type: ActivityType,
    previous_status: Optional[str] = None,
    new_status: Optional[str] = None
) -> str:
    """Derive a title when the caller did not supply one."""
    if activity_type == ActivityType.STATUS_CHANGE:
        if previous_status and new_status:
            return f"Status changed from {_status_value(previous_status)} to {_status_value(new_status)}"
        return ActivityTitles.STATUS_UPDATED
    if activity_type == ActivityType.FOLLOW_UP:
        return ActivityTitles.FOLLOW_UP_SCHEDULED
    if activity_type == ActivityType.CALL_LOG:
        return ActivityTitles.CALL_LOGGED
    if activity_type == ActivityType.ENROLLMENT_DIRECT:
        return ActivityTitles.DIRECT_ENROLLMENT
    return ActivityTitles.DEFAULT


def _status_value(status) -> str:
    return status.value if isinstance(status, Enum) else str(status)
