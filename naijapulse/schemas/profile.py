"""Profile schemas."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from naijapulse.core.sanitization import sanitize_display_name


class ProfileResponse(BaseModel):
    id: str
    display_name: str
    is_admin: bool
    language: Optional[str] = None
    created_at: datetime


class DisplayNameUpdate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=50)

    @field_validator('display_name')
    @classmethod
    def sanitize_display_name_field(cls, v: str) -> str:
        return sanitize_display_name(v)


class LanguageUpdate(BaseModel):
    language: Literal["en", "pidgin"]


class LanguageResponse(BaseModel):
    language: str
    persisted: bool


class IdentityResponse(BaseModel):
    """Who the caller is: a signed-in user with a profile, or a guest."""
    is_guest: bool
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    profile: Optional[ProfileResponse] = None
