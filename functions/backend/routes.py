"""
HTTP routes for the honors backend API.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path

from backend.config import get_settings
from backend.dependencies import (
    get_identity_gate,
    get_profile_service,
    get_proposal_service,
)
from backend.errors import DocumentNotFoundError
from backend.honors import compute_tier_progress
from backend.identity import Identity, IdentityGate
from backend.notifications import error_notification
from backend.profiles import ProfileService, bootstrap_session
from backend.proposals import ProposalService
from backend.schemas import (
    ActivityModel,
    EngagementModel,
    IdentityModel,
    ListActivitiesResponse,
    ListProposalsResponse,
    NotificationModel,
    OptimizeRequest,
    OptimizeResponse,
    ProfileModel,
    ProfileResponse,
    ProposalModel,
    SessionResponse,
    SetStatusRequest,
    SetStatusResponse,
    SignInRequest,
    SubmitProposalRequest,
    TierProgressModel,
    UpdateProfileRequest,
)
from backend.seed_data import ACTIVITIES
from backend import suggestions
from shared.constants import PROPOSAL_ID_MAX_LENGTH

logger = logging.getLogger(__name__)

router = APIRouter()


def http_error(status_code: int, title: str, message: str, **extra) -> HTTPException:
    detail = {
        "message": message,
        "notification": error_notification(title, message).as_dict(),
        **extra,
    }
    return HTTPException(status_code=status_code, detail=detail)


def _await_identity(gate: IdentityGate) -> Optional[Identity]:
    timeout = get_settings().identity_resolution_timeout_seconds
    try:
        return gate.wait_until_resolved(timeout=timeout)
    except concurrent.futures.TimeoutError:
        logger.error("Identity provider did not report a state within %ss", timeout)
        raise http_error(
            503, "Sign-in Unavailable", "Could not determine who is signed in."
        )


def get_current_user(gate: IdentityGate = Depends(get_identity_gate)) -> Identity:
    identity = _await_identity(gate)
    if identity is None:
        raise http_error(
            401, "Sign-in Required", "Please sign in to continue.", view="login"
        )
    return identity


def require_admin(identity: Identity = Depends(get_current_user)) -> Identity:
    admins = get_settings().admin_email_set
    if admins and (identity.email or "").lower() not in admins:
        raise http_error(
            403, "Admins Only", "Only administrators can review proposals."
        )
    return identity


def _session_response(gate: IdentityGate) -> SessionResponse:
    user = gate.current_user
    return SessionResponse(
        view=gate.view().value,
        user=IdentityModel(**asdict(user)) if user else None,
        notifications=[
            NotificationModel(**n.as_dict()) for n in gate.notifications.drain()
        ],
    )


@router.get("/session", response_model=SessionResponse)
def get_session(gate: IdentityGate = Depends(get_identity_gate)):
    _await_identity(gate)
    return _session_response(gate)


@router.post("/session", response_model=SessionResponse)
def sign_in(payload: SignInRequest, gate: IdentityGate = Depends(get_identity_gate)):
    """
    Completes a popup sign-in with the client's ID token, or classifies the
    error code the client's popup flow failed with. Never fails with an
    error status; problems come back as notifications.
    """
    _await_identity(gate)
    if payload.error_code:
        gate.report_sign_in_failure(payload.error_code)
    else:
        gate.sign_in(payload.id_token)
    return _session_response(gate)


@router.post("/session/sign-out", response_model=SessionResponse)
def sign_out(gate: IdentityGate = Depends(get_identity_gate)):
    _await_identity(gate)
    gate.sign_out()
    return _session_response(gate)


def _profile_response(profiles: ProfileService, profile) -> ProfileResponse:
    engagements = profiles.list_engagements(profile.id)
    return ProfileResponse(
        profile=ProfileModel(**asdict(profile)),
        engagements=[EngagementModel(**asdict(e)) for e in engagements],
        tier=TierProgressModel(**compute_tier_progress(profile.honors_points).as_dict()),
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    gate: IdentityGate = Depends(get_identity_gate),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Loads the caller's profile, creating it on first sign-in."""
    _await_identity(gate)
    profile = bootstrap_session(gate, profiles)
    if profile is None:
        raise http_error(
            401, "Sign-in Required", "Please sign in to continue.", view="login"
        )
    return _profile_response(profiles, profile)


@router.patch("/profile", response_model=ProfileResponse)
def update_profile(
    payload: UpdateProfileRequest,
    identity: Identity = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    profiles.load_or_create_profile(identity)
    profile = profiles.update_profile(
        identity.uid, name=payload.name, email=payload.email
    )
    return _profile_response(profiles, profile)


@router.get("/profile/engagements", response_model=list[EngagementModel])
def list_engagements(
    identity: Identity = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    return [EngagementModel(**asdict(e)) for e in profiles.list_engagements(identity.uid)]


@router.get("/proposals", response_model=ListProposalsResponse)
def list_proposals(proposals: ProposalService = Depends(get_proposal_service)):
    return ListProposalsResponse(
        proposals=[ProposalModel(**asdict(p)) for p in proposals.list_proposals()]
    )


@router.get("/proposals/{proposal_id}", response_model=ProposalModel)
def get_proposal(
    proposal_id: str = Path(..., max_length=PROPOSAL_ID_MAX_LENGTH),
    proposals: ProposalService = Depends(get_proposal_service),
):
    return ProposalModel(**asdict(proposals.get_proposal(proposal_id)))


@router.post("/proposals", response_model=ProposalModel, status_code=201)
def submit_proposal(
    payload: SubmitProposalRequest,
    identity: Identity = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
    proposals: ProposalService = Depends(get_proposal_service),
):
    profile = profiles.load_or_create_profile(identity)
    proposal = proposals.submit_proposal(payload.model_dump(), profile.name)
    return ProposalModel(**asdict(proposal))


@router.post(
    "/admin/proposals/{proposal_id}/status", response_model=SetStatusResponse
)
def set_proposal_status(
    payload: SetStatusRequest,
    proposal_id: str = Path(..., max_length=PROPOSAL_ID_MAX_LENGTH),
    admin: Identity = Depends(require_admin),
    proposals: ProposalService = Depends(get_proposal_service),
):
    proposal, changed = proposals.set_status(proposal_id, payload.status)
    if changed:
        logger.info("%s set proposal %s to %s", admin.uid, proposal_id, payload.status)
    return SetStatusResponse(proposal=ProposalModel(**asdict(proposal)), changed=changed)


@router.post("/optimize", response_model=OptimizeResponse)
def optimize_proposal(
    payload: OptimizeRequest,
    identity: Identity = Depends(get_current_user),
):
    """Body validation rejects too-short input before any model call."""
    result = suggestions.optimize_proposal(
        payload, api_key=get_settings().gemini_api_key
    )
    return OptimizeResponse(**result.model_dump())


@router.get("/activities", response_model=ListActivitiesResponse)
def list_activities():
    return ListActivitiesResponse(
        activities=[ActivityModel(**asdict(a)) for a in ACTIVITIES]
    )


@router.get("/activities/{activity_id}", response_model=ActivityModel)
def get_activity(activity_id: str = Path(..., max_length=PROPOSAL_ID_MAX_LENGTH)):
    for activity in ACTIVITIES:
        if activity.id == activity_id:
            return ActivityModel(**asdict(activity))
    raise DocumentNotFoundError(f"activities/{activity_id}")
