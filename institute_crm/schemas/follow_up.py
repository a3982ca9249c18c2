"""
Follow-up and call log schemas.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from institute_crm.models.enquiry import FollowUpStatus


class FollowUpCreate(BaseModel):
    """Schedule a follow-up."""
    enquiry_id: uuid.UUID
    scheduled_at: datetime
    notes: Optional[str] = None


class FollowUpUpdate(BaseModel):
    """
    Update a follow-up. A rescheduled_at value moves scheduled_at and,
    unless a status is given, marks the follow-up RESCHEDULED.
    """
    status: Optional[FollowUpStatus] = None
    outcome: Optional[str] = None
    notes: Optional[str] = None
    rescheduled_at: Optional[datetime] = None


class FollowUpResponse(BaseModel):
    id: uuid.UUID
    enquiry_id: uuid.UUID
    scheduled_at: datetime
    status: FollowUpStatus
    outcome: Optional[str]
    notes: Optional[str]
    created_by_user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FollowUpFilter(BaseModel):
    status: Optional[List[FollowUpStatus]] = None
    overdue: bool = False
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class CallLogCreate(BaseModel):
    """Record a call that just happened."""
    enquiry_id: uuid.UUID
    call_date: Optional[datetime] = None  # defaults to now
    duration: Optional[int] = Field(default=None, ge=0)  # seconds
    outcome: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "enquiry_id": "5b0c6a3e-8d8f-4a53-9b4c-5d0a1c0f2e11",
                "duration": 180,
                "outcome": "ANSWERED",
                "notes": "Will visit on Saturday"
            }
        }


class CallLogResponse(BaseModel):
    id: uuid.UUID
    enquiry_id: uuid.UUID
    call_date: datetime
    duration: Optional[int]
    outcome: Optional[str]
    notes: Optional[str]
    created_by_user_id: uuid.UUID
    created_at: datetime

    class Config:
        from_attributes = True


class CallLogFilter(BaseModel):
    outcome: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
