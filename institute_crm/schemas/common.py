"""
Common schemas used across multiple endpoints.
"""
from typing import TypeVar, Generic, Optional
from pydantic import BaseModel

T = TypeVar("T")


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ActionResponse(BaseModel, Generic[T]):
    """Envelope returned by every action."""
    success: bool = True
    data: Optional[T] = None
    message: str = ""
    pagination: Optional[PaginationInfo] = None

    class Config:
        json_schema_extra = {
            "example": {"success": True, "data": None, "message": "Operation successful"}
        }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"
