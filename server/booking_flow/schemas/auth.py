"""Authentication-related Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LoginRequest(BaseModel):
    """Request schema for logging in."""

    email: str = Field(..., pattern=EMAIL_PATTERN, description="Account email")
    password: str = Field(..., min_length=1, description="Account password")


class RegisterRequest(BaseModel):
    """Request schema for registering an account."""

    email: str = Field(..., pattern=EMAIL_PATTERN, description="Account email")
    password: str = Field(..., min_length=6, description="Account password")
    phone: Optional[str] = Field(None, max_length=20, description="Phone number")
    role: str = Field("USER", pattern=r"^(USER|ADMIN)$", description="Account role")


class TokenResponse(CamelModel):
    """Response of POST /auth/login."""

    access_token: str = Field(..., min_length=1)


class UserRecord(CamelModel):
    """User record as returned by the backend; never carries a password."""

    id: str
    email: str
    phone: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CurrentUser(CamelModel):
    """Identity read from the stored access token."""

    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"
