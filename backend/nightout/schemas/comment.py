"""
Pydantic schemas for event comments.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from nightout.schemas.user import UserSummary


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class CommentCreate(CommentUpdate):
    parent_comment_id: Optional[UUID] = None


class CommentResponse(BaseModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    parent_comment_id: Optional[UUID]
    content: str
    created_at: datetime
    updated_at: datetime
    author: UserSummary
    replies: list["CommentResponse"] = []

    model_config = {"from_attributes": True}
