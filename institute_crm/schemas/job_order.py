"""
Assignment and job order schemas.
"""
import uuid
from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel

from institute_crm.models.job_order import JobLeadStatus


class AssignmentRequest(BaseModel):
    """Assign one enquiry to a telecaller as a named job."""
    assigned_to_user_id: uuid.UUID
    branch_id: uuid.UUID
    name: str
    description: Optional[str] = None
    remarks: Optional[str] = None
    start_date: date
    end_date: date

    class Config:
        json_schema_extra = {
            "example": {
                "assigned_to_user_id": "0b6f4e4a-1a57-4d35-a2a5-1f3c0c6b6b1d",
                "branch_id": "7f0e2c9d-3a2b-4f76-8e1a-2c9b8a7d6e5f",
                "name": "Weekend calling drive",
                "start_date": "2026-10-20",
                "end_date": "2026-10-25"
            }
        }


class BulkAssignmentRequest(AssignmentRequest):
    """Assign several unassigned enquiries in one job."""
    enquiry_ids: List[uuid.UUID]


class JobOrderResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str]
    remarks: Optional[str]
    job_code: Optional[str]
    manager_id: uuid.UUID
    assigner_id: Optional[uuid.UUID]
    branch_id: uuid.UUID
    start_date: date
    end_date: date
    created_at: datetime

    class Config:
        from_attributes = True


class JobLeadResponse(BaseModel):
    id: uuid.UUID
    job_id: uuid.UUID
    lead_id: uuid.UUID
    status: JobLeadStatus
    assigner_id: Optional[uuid.UUID]
    assignee_id: Optional[uuid.UUID]

    class Config:
        from_attributes = True


class JobOrderSummary(JobOrderResponse):
    """List row with progress."""
    progress: int = 0
    total_leads: int = 0


class JobOrderDetail(JobOrderResponse):
    job_leads: List[JobLeadResponse] = []


class JobProgress(BaseModel):
    percentage: int
    closed: int
    total: int


class JobLeadStatusUpdate(BaseModel):
    status: JobLeadStatus


class ReassignRequest(BaseModel):
    new_manager_id: uuid.UUID


class JobOrderFilter(BaseModel):
    search: Optional[str] = None  # name or job code
    branch_id: Optional[uuid.UUID] = None
    pending_only: bool = False
    completed_only: bool = False
    due_only: bool = False  # past end_date with pending leads
