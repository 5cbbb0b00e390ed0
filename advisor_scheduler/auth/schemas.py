from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    code: str = Field(..., min_length=1, description="Student number or staff number")
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    id: UUID
    code: str
    first_name: str
    last_name: str
    role: str
    email: Optional[str] = None
    phone: Optional[str] = None
    office: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo


class CurrentUser(BaseModel):
    """Authenticated caller as seen by route handlers and services."""

    id: UUID
    role: str
    first_name: str
    last_name: str
