"""Pydantic schemas for request/response validation."""
from naijapulse.schemas.admin import AdminStats, ProfileAdminUpdate, ReportTargetDeleted
from naijapulse.schemas.comment import CommentCreate, CommentResponse, CommentThread
from naijapulse.schemas.common import ErrorResponse, SuccessResponse
from naijapulse.schemas.poll import PollCreate, PollResponse, PollTitleUpdate, SponsoredUpdate
from naijapulse.schemas.profile import (
    DisplayNameUpdate,
    IdentityResponse,
    LanguageResponse,
    LanguageUpdate,
    ProfileResponse,
)
from naijapulse.schemas.report import EnrichedReport, ReportCreate, ReportResponse
from naijapulse.schemas.vote import (
    OptionResult,
    PollResults,
    VoteCastResponse,
    VoteEligibility,
    VoteRequest,
    VoteResponse,
)

__all__ = [
    "AdminStats",
    "ProfileAdminUpdate",
    "ReportTargetDeleted",
    "CommentCreate",
    "CommentResponse",
    "CommentThread",
    "ErrorResponse",
    "SuccessResponse",
    "PollCreate",
    "PollResponse",
    "PollTitleUpdate",
    "SponsoredUpdate",
    "DisplayNameUpdate",
    "IdentityResponse",
    "LanguageResponse",
    "LanguageUpdate",
    "ProfileResponse",
    "EnrichedReport",
    "ReportCreate",
    "ReportResponse",
    "OptionResult",
    "PollResults",
    "VoteCastResponse",
    "VoteEligibility",
    "VoteRequest",
    "VoteResponse",
]
