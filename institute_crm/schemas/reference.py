"""
Reference data schemas, one create/update pair per kind.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class BranchCreate(BaseModel):
    name: str = Field(min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class BranchUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class CourseCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    duration: Optional[str] = None
    course_fee: Optional[float] = Field(default=None, ge=0)
    admission_fee: Optional[float] = Field(default=None, ge=0)
    semester_fee: Optional[float] = Field(default=None, ge=0)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    duration: Optional[str] = None
    course_fee: Optional[float] = Field(default=None, ge=0)
    admission_fee: Optional[float] = Field(default=None, ge=0)
    semester_fee: Optional[float] = Field(default=None, ge=0)


class NamedCreate(BaseModel):
    """Enquiry sources and required services only carry a name."""
    name: str = Field(min_length=1)


class NamedUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)

