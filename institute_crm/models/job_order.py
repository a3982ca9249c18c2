"""
Job orders - named, date-ranged batches of enquiries handed to a telecaller.
"""
import uuid
from datetime import datetime, date
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


class JobLeadStatus(str, Enum):
    PENDING = "PENDING"
    CLOSED = "CLOSED"


class JobOrder(SQLModel, table=True):
    __tablename__ = "job_order"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    description: Optional[str] = None
    remarks: Optional[str] = None
    job_code: Optional[str] = Field(default=None, index=True)

    # manager_id is the user doing the calling; assigner_id handed it out
    manager_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    assigner_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")
    branch_id: uuid.UUID = Field(foreign_key="branch.id", index=True)

    start_date: date
    end_date: date

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class JobLead(SQLModel, table=True):
    """One enquiry inside a job order."""
    __tablename__ = "job_lead"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    job_id: uuid.UUID = Field(foreign_key="job_order.id", index=True, ondelete="CASCADE")
    lead_id: uuid.UUID = Field(foreign_key="enquiry.id", index=True, ondelete="CASCADE")
    status: JobLeadStatus = Field(default=JobLeadStatus.PENDING, index=True)

    assigner_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")
    assignee_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
