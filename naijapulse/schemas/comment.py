"""Comment schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from naijapulse.core.sanitization import sanitize_comment_content


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)
    parent_id: Optional[int] = None

    @field_validator('content')
    @classmethod
    def sanitize_content_field(cls, v: str) -> str:
        return sanitize_comment_content(v)


class CommentResponse(BaseModel):
    id: int
    poll_id: str
    parent_id: Optional[int] = None
    content: str
    creator_name: str
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    created_at: datetime


class CommentThread(CommentResponse):
    replies: List["CommentThread"] = Field(default_factory=list)


CommentThread.model_rebuild()
