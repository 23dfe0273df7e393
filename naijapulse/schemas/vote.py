"""Vote schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class VoteRequest(BaseModel):
    option_index: int = Field(..., ge=0)


class VoteResponse(BaseModel):
    id: int
    poll_id: str
    option_index: int
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    created_at: datetime


class OptionResult(BaseModel):
    index: int
    label: Optional[str] = None
    count: int
    percentage: float


class PollResults(BaseModel):
    poll_id: str
    total_votes: int
    options: List[OptionResult]


class VoteEligibility(BaseModel):
    has_voted: bool
    option_index: Optional[int] = None
    vote_id: Optional[int] = None


class VoteCastResponse(BaseModel):
    vote: VoteResponse
    results: PollResults
