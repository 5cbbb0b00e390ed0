from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from advisor_scheduler.core.enums import UserRole


class UserCreate(BaseModel):
    code: str = Field(..., max_length=50)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=50)
    email: Optional[EmailStr] = None
    role: UserRole
    office: Optional[str] = Field(None, max_length=100)
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    office: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, min_length=6)
