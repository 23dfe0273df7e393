"""Admin schemas."""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from naijapulse.core.sanitization import sanitize_display_name


class AdminStats(BaseModel):
    total_users: int
    total_polls: int
    total_votes: int
    total_comments: int
    total_reports: int
    sponsored_polls: int
    revenue_potential: int


class ProfileAdminUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=50)
    is_admin: Optional[bool] = None

    @field_validator('display_name')
    @classmethod
    def sanitize_display_name_field(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return sanitize_display_name(v)


class ReportTargetDeleted(BaseModel):
    report_id: int
    target_type: str
    target_id: str
