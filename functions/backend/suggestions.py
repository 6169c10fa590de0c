"""
AI suggestion flow: proposal text in, suggestions and a revised proposal out.

Both sides of the model call are validated with pydantic. Input shorter than
the configured minimums is rejected before any request is made.
"""

from __future__ import annotations

import logging

from google.genai import errors as genai_errors
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from backend.config import get_settings
from backend.errors import SuggestionUnavailableError
from models import gemini
from models import prompts
from shared.constants import (
    MAX_CONTEXT_TEXT_LENGTH,
    MAX_PROPOSAL_TEXT_LENGTH,
    MIN_COMMUNITY_NEEDS_LENGTH,
    MIN_PROPOSAL_TEXT_LENGTH,
    MIN_USER_ENGAGEMENT_DATA_LENGTH,
)

logger = logging.getLogger(__name__)


class OptimizeProposalInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    proposal_text: str = Field(
        ...,
        min_length=MIN_PROPOSAL_TEXT_LENGTH,
        max_length=MAX_PROPOSAL_TEXT_LENGTH,
        description="The text of the event or project proposal.",
    )
    user_engagement_data: str = Field(
        ...,
        min_length=MIN_USER_ENGAGEMENT_DATA_LENGTH,
        max_length=MAX_CONTEXT_TEXT_LENGTH,
        description=(
            "A summary of the user engagement data, including past activities, "
            "interests, and feedback scores."
        ),
    )
    community_needs: str = Field(
        ...,
        min_length=MIN_COMMUNITY_NEEDS_LENGTH,
        max_length=MAX_CONTEXT_TEXT_LENGTH,
        description="A description of the current needs and interests of the community.",
    )


class OptimizeProposalOutput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    suggestions: str = Field(
        ...,
        min_length=1,
        description=(
            "A list of suggestions for optimizing the proposal to better align "
            "with community interests and increase its chances of being accepted."
        ),
    )
    revised_proposal: str = Field(
        ...,
        min_length=1,
        description="A revised version of the proposal incorporating the suggestions.",
    )


def build_prompt(payload: OptimizeProposalInput) -> str:
    return prompts.OPTIMIZE_PROPOSAL_PROMPT.format(
        proposal_text=payload.proposal_text,
        user_engagement_data=payload.user_engagement_data,
        community_needs=payload.community_needs,
    )


def optimize_proposal(
    payload: OptimizeProposalInput | dict, api_key: str | None = None
) -> OptimizeProposalOutput:
    """
    Requests suggestions and a revised proposal from Gemini.

    A dict payload is validated first, so a pydantic ValidationError escapes
    before any model call. Every failure after that (network, quota, empty or
    mismatched output) is raised as SuggestionUnavailableError.
    """
    if not isinstance(payload, OptimizeProposalInput):
        payload = OptimizeProposalInput.model_validate(payload)

    try:
        parsed = gemini.call_predict_with_schema(
            build_prompt(payload),
            OptimizeProposalOutput,
            model=get_settings().gemini_model,
            api_key=api_key,
            temperature=gemini.SUGGESTION_TEMPERATURE,
        )
    except genai_errors.APIError as e:
        logger.error("Proposal optimization call failed (%s): %s", e.code, e)
        raise SuggestionUnavailableError(str(e), quota_exceeded=e.code == 429) from e
    except Exception as e:
        logger.error("Proposal optimization call failed: %s", e)
        raise SuggestionUnavailableError(str(e)) from e

    try:
        if isinstance(parsed, OptimizeProposalOutput):
            return OptimizeProposalOutput.model_validate(parsed.model_dump())
        return OptimizeProposalOutput.model_validate(parsed)
    except PydanticValidationError as e:
        logger.error("Proposal optimization returned an invalid response: %s", e)
        raise SuggestionUnavailableError("Invalid response from model.") from e
