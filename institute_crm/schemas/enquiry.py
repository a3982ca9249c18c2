"""
Enquiry schemas.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from institute_crm.models.enquiry import EnquiryStatus
from institute_crm.schemas.follow_up import FollowUpResponse, CallLogResponse


class EnquiryCreate(BaseModel):
    """Create a new enquiry."""
    candidate_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    contact2: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    branch_id: Optional[uuid.UUID] = None
    preferred_course_id: Optional[uuid.UUID] = None
    enquiry_source_id: Optional[uuid.UUID] = None
    required_service_id: Optional[uuid.UUID] = None

    class Config:
        json_schema_extra = {
            "example": {
                "candidate_name": "Anjali Menon",
                "phone": "+91 9876543210",
                "email": "anjali@example.com",
                "notes": "Asked about weekend batches"
            }
        }


class EnquiryUpdate(BaseModel):
    """
    Update contact and profile fields.
    Status is changed through the status endpoints so every change is audited.
    """
    candidate_name: Optional[str] = None
    phone: Optional[str] = None
    contact2: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    feedback: Optional[str] = None
    branch_id: Optional[uuid.UUID] = None
    preferred_course_id: Optional[uuid.UUID] = None
    enquiry_source_id: Optional[uuid.UUID] = None
    required_service_id: Optional[uuid.UUID] = None


class EnquiryResponse(BaseModel):
    """Enquiry response."""
    id: uuid.UUID
    candidate_name: str
    phone: str
    contact2: Optional[str]
    email: Optional[str]
    address: Optional[str]
    status: EnquiryStatus
    notes: Optional[str]
    feedback: Optional[str]
    last_contact_date: Optional[datetime]
    branch_id: Optional[uuid.UUID]
    enquiry_source_id: Optional[uuid.UUID]
    preferred_course_id: Optional[uuid.UUID]
    required_service_id: Optional[uuid.UUID]
    assigned_to_user_id: Optional[uuid.UUID]
    created_by_user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EnquiryDetail(EnquiryResponse):
    """Enquiry with its follow-up and call history."""
    follow_ups: List[FollowUpResponse] = []
    call_logs: List[CallLogResponse] = []


class EnquiryFilter(BaseModel):
    """Enquiry filtering options."""
    search: Optional[str] = None  # Search in name, phone, email
    status: Optional[List[EnquiryStatus]] = None
    branch_id: Optional[uuid.UUID] = None
    enquiry_source_id: Optional[uuid.UUID] = None
    assigned_to_user_id: Optional[uuid.UUID] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    is_assigned: Optional[bool] = None  # in a job order or not


class StatusUpdateRequest(BaseModel):
    """Move an enquiry to a new status."""
    new_status: EnquiryStatus
    status_remarks: Optional[str] = None
    title: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {"new_status": "INTERESTED", "status_remarks": "Wants the evening batch"}
        }


class DirectEnrollmentRequest(BaseModel):
    """Enroll without going through the admission form."""
    status_remarks: Optional[str] = None
