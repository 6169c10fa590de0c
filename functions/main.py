# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

# Cloud functions for the honors backend - point bookkeeping + proposal tools.
#
# This file containing Python cloud functions must be named main.py.
# See https://cloud.google.com/run/docs/write-functions#python for more info.

# Standard library imports
from dataclasses import asdict

# Third-party library imports
from firebase_admin import initialize_app, firestore
from firebase_functions import https_fn, logger, options
from firebase_functions.firestore_fn import (
    on_document_written,
    Event,
    Change,
    DocumentSnapshot,
)
from pydantic import ValidationError as PydanticValidationError

# Local application imports
from backend import suggestions
from backend.config import get_settings
from backend.errors import (
    DocumentNotFoundError,
    InvalidStatusTransitionError,
    StorePermissionError,
    SuggestionUnavailableError,
    ValidationError,
)
from backend.profiles import ProfileService
from backend.proposals import ProposalService, parse_status
from backend.store import DocumentStore, FirestoreDocumentStore
from shared.api import (
    OptimizeProposalResult,
    SetProposalStatusRequest,
    SetProposalStatusResult,
)
from shared.constants import PROPOSAL_ID_MAX_LENGTH
from shared.firebase_constants import ENGAGEMENTS_COLLECTION, USERS_COLLECTION
from shared.json_utils import convert_keys

initialize_app()


def _get_store() -> DocumentStore:
    return FirestoreDocumentStore(firestore.client())


@on_document_written(
    document=USERS_COLLECTION + "/{uid}/" + ENGAGEMENTS_COLLECTION + "/{engagementId}",
)
def on_engagement_written(event: Event[Change[DocumentSnapshot]]) -> None:
    """
    Keeps a profile's honors points equal to the sum of its engagement points.
    Triggered by any write to an engagement record.
    """
    uid = event.params["uid"]
    profiles = ProfileService(_get_store())
    try:
        total = profiles.recalculate_honors_points(uid)
    except DocumentNotFoundError:
        logger.warn(f"No profile for {uid}; skipping honors point recalculation.")
        return
    logger.info(f"Honors points for {uid} are {total}")


def _first_validation_message(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))


@https_fn.on_call(timeout_sec=120, memory=options.MemoryOption.MB_512)
def optimize_proposal(req: https_fn.CallableRequest) -> dict:
    """
    Suggests improvements to a proposal and returns a revised version.

    Args:
        req (https_fn.CallableRequest): The request, containing proposalText,
            userEngagementData, communityNeeds and an optional apiKey.

    Returns:
        A dictionary representation of the OptimizeProposalResult object.
    """
    data = convert_keys(req.data or {}, "camel_to_snake")
    api_key = data.pop("api_key", None)

    try:
        payload = suggestions.OptimizeProposalInput.model_validate(data)
    except PydanticValidationError as e:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            _first_validation_message(e),
        )

    try:
        output = suggestions.optimize_proposal(payload, api_key)
    except SuggestionUnavailableError as e:
        if e.quota_exceeded:
            raise https_fn.HttpsError(
                https_fn.FunctionsErrorCode.RESOURCE_EXHAUSTED,
                f"Gemini quota exceeded: {e}",
            )
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.UNAVAILABLE,
            f"Model call failed: {e}",
        )

    result = OptimizeProposalResult(
        suggestions=output.suggestions, revised_proposal=output.revised_proposal
    )
    return convert_keys(asdict(result), "snake_to_camel")


@https_fn.on_call(memory=options.MemoryOption.MB_512)
def set_proposal_status(req: https_fn.CallableRequest) -> dict:
    """
    Moves a proposal to a new status on behalf of an administrator.

    Args:
        req (https_fn.CallableRequest): The request, containing proposal_id and status.

    Returns:
        A dictionary representation of the SetProposalStatusResult object.
    """
    if req.auth is None:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.UNAUTHENTICATED,
            "Must be signed in to change proposal status.",
        )

    admins = get_settings().admin_email_set
    email = (req.auth.token or {}).get("email", "")
    if admins and email.lower() not in admins:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.PERMISSION_DENIED,
            "Only administrators can review proposals.",
        )

    return change_proposal_status(_status_request_from(req.data))


def _status_request_from(data: dict | None) -> SetProposalStatusRequest:
    data = data or {}
    proposal_id = data.get("proposal_id")
    if not proposal_id or not isinstance(proposal_id, str):
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Must specify proposal_id parameter.",
        )
    if len(proposal_id) > PROPOSAL_ID_MAX_LENGTH:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Incorrect proposal_id length.",
        )

    try:
        status = parse_status(data.get("status"))
    except ValidationError as e:
        raise https_fn.HttpsError(https_fn.FunctionsErrorCode.INVALID_ARGUMENT, str(e))

    return SetProposalStatusRequest(proposal_id=proposal_id, status=status)


def change_proposal_status(
    request: SetProposalStatusRequest, store: DocumentStore | None = None
) -> dict:
    service = ProposalService(store or _get_store())
    try:
        proposal, changed = service.set_status(request.proposal_id, request.status)
    except DocumentNotFoundError:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.NOT_FOUND,
            "The requested proposal was not found.",
        )
    except InvalidStatusTransitionError as e:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.FAILED_PRECONDITION, str(e)
        )
    except StorePermissionError as e:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.PERMISSION_DENIED, str(e)
        )

    result = SetProposalStatusResult(
        proposal_id=proposal.id, status=proposal.status.value, changed=changed
    )
    return convert_keys(asdict(result), "snake_to_camel")
