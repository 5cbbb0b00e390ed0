from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)


class CommentResponse(BaseModel):
    id: UUID
    appointment_id: UUID
    user_id: UUID
    content: str
    first_name: str
    last_name: str
    role: str
    created_at: datetime
