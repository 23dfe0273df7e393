"""Poll schemas."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from naijapulse.core.constants import DEFAULT_POLL_DURATION_DAYS, POLL_DURATION_DAYS
from naijapulse.core.sanitization import (
    sanitize_option_label,
    sanitize_poll_question,
    sanitize_poll_title,
)


class PollCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    question: str = Field(..., min_length=1, max_length=500)
    category: str = Field(..., min_length=1, max_length=50)
    type: Literal["multiple", "yes_no"] = "multiple"
    options: List[str] = Field(default_factory=list, max_length=6)
    duration_days: int = DEFAULT_POLL_DURATION_DAYS
    image_url: Optional[str] = Field(None, max_length=500)

    @field_validator('title')
    @classmethod
    def sanitize_title_field(cls, v: str) -> str:
        return sanitize_poll_title(v)

    @field_validator('question')
    @classmethod
    def sanitize_question_field(cls, v: str) -> str:
        return sanitize_poll_question(v)

    @field_validator('options')
    @classmethod
    def sanitize_options_field(cls, v: List[str]) -> List[str]:
        return [sanitize_option_label(option) for option in v]

    @field_validator('duration_days')
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v not in POLL_DURATION_DAYS:
            raise ValueError("Duration must be 1, 3 or 7 days, or 0 for no limit")
        return v

    @model_validator(mode='after')
    def check_options(self):
        """Multiple-choice polls need 2-6 options; yes/no polls bring their own."""
        if self.type == "multiple" and len(self.options) < 2:
            raise ValueError("A poll needs at least 2 options")
        return self


class PollResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    question: str
    options: List[str]
    type: str
    category: str
    duration_end: Optional[datetime] = None
    creator_id: str
    creator_name: str
    image_url: Optional[str] = None
    vote_count: int
    comment_count: int
    is_sponsored: bool
    created_at: datetime


class PollTitleUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)

    @field_validator('title')
    @classmethod
    def sanitize_title_field(cls, v: str) -> str:
        return sanitize_poll_title(v)


class SponsoredUpdate(BaseModel):
    """Omit ``is_sponsored`` to flip the current value."""
    is_sponsored: Optional[bool] = None
