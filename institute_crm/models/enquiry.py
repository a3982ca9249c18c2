"""
Enquiry models - candidate contact records and their follow-up history.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


class EnquiryStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    INTERESTED = "INTERESTED"
    NOT_INTERESTED = "NOT_INTERESTED"
    FOLLOW_UP = "FOLLOW_UP"
    ENROLLED = "ENROLLED"
    DROPPED = "DROPPED"
    INVALID = "INVALID"


class FollowUpStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    RESCHEDULED = "RESCHEDULED"


# Outcome options offered by the call register UI; stored as free text
CALL_OUTCOMES = ["ANSWERED", "NOT_ANSWERED", "BUSY", "SWITCHED_OFF", "INVALID_NUMBER"]


class Enquiry(SQLModel, table=True):
    """
    Enquiry entity - a prospective student moving through the pipeline.
    Status changes go through the status service so each one is audited.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Contact info
    candidate_name: str = Field(index=True)
    phone: str = Field(index=True)
    contact2: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    address: Optional[str] = None

    # Pipeline
    status: EnquiryStatus = Field(default=EnquiryStatus.NEW, index=True)
    notes: Optional[str] = None
    feedback: Optional[str] = None
    last_contact_date: Optional[datetime] = None

    # Relationships
    branch_id: Optional[uuid.UUID] = Field(default=None, foreign_key="branch.id", index=True)
    enquiry_source_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="enquiry_source.id", index=True
    )
    preferred_course_id: Optional[uuid.UUID] = Field(default=None, foreign_key="course.id")
    required_service_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="required_service.id"
    )
    assigned_to_user_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="user.id", index=True
    )
    created_by_user_id: uuid.UUID = Field(foreign_key="user.id")

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class FollowUp(SQLModel, table=True):
    """A scheduled future contact with an enquiry."""
    __tablename__ = "follow_up"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    enquiry_id: uuid.UUID = Field(foreign_key="enquiry.id", index=True, ondelete="CASCADE")

    scheduled_at: datetime = Field(index=True)
    status: FollowUpStatus = Field(default=FollowUpStatus.PENDING, index=True)
    outcome: Optional[str] = None
    notes: Optional[str] = None

    created_by_user_id: uuid.UUID = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CallLog(SQLModel, table=True):
    """A phone call that already happened. Never edited after creation."""
    __tablename__ = "call_log"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    enquiry_id: uuid.UUID = Field(foreign_key="enquiry.id", index=True, ondelete="CASCADE")

    call_date: datetime = Field(default_factory=datetime.utcnow, index=True)
    duration: Optional[int] = None  # seconds
    outcome: Optional[str] = Field(default=None, index=True)
    notes: Optional[str] = None

    created_by_user_id: uuid.UUID = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
