"""Report schemas."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from naijapulse.core.sanitization import sanitize_report_details


class ReportCreate(BaseModel):
    """
    Reason is checked by the reports service so that an empty selection
    gets the same friendly message as an unknown one.
    """
    target_type: Literal["poll", "comment"]
    target_id: str = Field(..., min_length=1, max_length=64)
    reason: Optional[str] = None
    details: Optional[str] = Field(None, max_length=500)

    @field_validator('details')
    @classmethod
    def sanitize_details_field(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_report_details(v)


class ReportResponse(BaseModel):
    id: int
    target_type: str
    target_id: str
    reason: str
    details: Optional[str] = None
    reporter_id: Optional[str] = None
    guest_id: Optional[str] = None
    created_at: datetime


class EnrichedReport(ReportResponse):
    poll_title: Optional[str] = None
    poll_question: Optional[str] = None
    comment_content: Optional[str] = None
    creator_name: Optional[str] = None
