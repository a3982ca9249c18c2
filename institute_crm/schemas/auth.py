"""
Authentication schemas.
"""
from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    """User login request."""
    email: EmailStr
    password: str

    class Config:
        json_schema_extra = {
            "example": {
                "email": "admin@institute.com",
                "password": "securepassword123"
            }
        }


class TokenResponse(BaseModel):
    """Access token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
