"""
Pydantic schemas for the honors FastAPI backend.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from backend.suggestions import OptimizeProposalInput, OptimizeProposalOutput
from shared.constants import (
    MAX_PROFILE_NAME_LENGTH,
    MAX_PROPOSAL_FIELD_LENGTH,
    MAX_PROPOSAL_TITLE_LENGTH,
)
from shared.types import ProposalEventType, ProposalStatus


class NotificationModel(BaseModel):
    title: str
    description: str = ""
    variant: Literal["default", "destructive"] = "default"


class IdentityModel(BaseModel):
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None


class SignInRequest(BaseModel):
    id_token: Optional[str] = None
    # Set by the client when its popup flow failed before producing a token.
    error_code: Optional[str] = Field(default=None, max_length=128)


class SessionResponse(BaseModel):
    view: Literal["loading", "login", "shell"]
    user: Optional[IdentityModel] = None
    notifications: list[NotificationModel] = []


class ProfileModel(BaseModel):
    id: str
    name: str
    email: str
    photo_url: str = ""
    joined_date: str
    honors_points: int


class EngagementModel(BaseModel):
    id: str
    title: str
    type: str
    date: str
    details: str
    points: int


class TierProgressModel(BaseModel):
    points: int
    current_tier: str
    current_tier_points: int
    next_tier: str
    next_tier_points: int
    progress_percent: float


class ProfileResponse(BaseModel):
    profile: ProfileModel
    engagements: list[EngagementModel]
    tier: TierProgressModel


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=MAX_PROFILE_NAME_LENGTH)
    email: Optional[str] = Field(default=None, max_length=320)


class ProposalModel(BaseModel):
    id: str
    title: str
    event_type: ProposalEventType
    description: str
    goals: str
    resources: str
    target_audience: str
    status: ProposalStatus
    submitted_by: str
    submitted_date: str


class ListProposalsResponse(BaseModel):
    proposals: list[ProposalModel]


class SubmitProposalRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=MAX_PROPOSAL_TITLE_LENGTH)
    event_type: ProposalEventType
    description: str = Field(..., min_length=1, max_length=MAX_PROPOSAL_FIELD_LENGTH)
    goals: str = Field(..., min_length=1, max_length=MAX_PROPOSAL_FIELD_LENGTH)
    resources: str = Field(default="", max_length=MAX_PROPOSAL_FIELD_LENGTH)
    target_audience: str = Field(default="", max_length=MAX_PROPOSAL_FIELD_LENGTH)


class SetStatusRequest(BaseModel):
    status: ProposalStatus


class SetStatusResponse(BaseModel):
    proposal: ProposalModel
    changed: bool


class OptimizeRequest(OptimizeProposalInput):
    pass


class OptimizeResponse(OptimizeProposalOutput):
    pass


class ActivityModel(BaseModel):
    id: str
    title: str
    type: str
    description: str
    image: str
    date: str
    ai_hint: str
    attendance: Optional[int] = None
    participation: Optional[int] = None
    feedback_score: Optional[float] = None


class ListActivitiesResponse(BaseModel):
    activities: list[ActivityModel]
