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

from dataclasses import asdict, dataclass
from enum import Enum, StrEnum
from typing import Optional

from dacite import Config, from_dict

from shared.json_utils import convert_keys


class ProposalStatus(StrEnum):
    UNDER_REVIEW = "Under Review"
    APPROVED = "Approved"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class ProposalEventType(StrEnum):
    SOCIAL_EVENT = "Social Event"
    SERVICE_EVENT = "Service Event"
    ACADEMIC_EVENT = "Academic Event"
    COLLOQUIUM = "Colloquium"


class EngagementType(StrEnum):
    EVENT_ATTENDANCE = "Event Attendance"
    PROJECT_CONTRIBUTION = "Project Contribution"
    PROPOSAL_SUBMISSION = "Proposal Submission"


class ActivityType(StrEnum):
    EVENT = "Event"
    PROJECT = "Project"


# Enum values are stored as their plain strings and cast back on read.
DOCUMENT_CONFIG = Config(cast=[Enum], check_types=False)


@dataclass
class UserProfile:
    """A member's profile, stored at users/{uid}."""

    id: str
    name: str
    email: str
    joined_date: str
    honors_points: int = 0
    photo_url: str = ""


@dataclass
class Engagement:
    """A logged unit of participation, stored at users/{uid}/engagements/{id}."""

    id: str
    title: str
    type: EngagementType
    date: str
    details: str
    points: int


@dataclass
class Proposal:
    """A member-submitted event or project proposal."""

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


@dataclass
class Activity:
    """An entry in the dashboard activity catalog."""

    id: str
    title: str
    type: ActivityType
    description: str
    image: str
    date: str
    ai_hint: str
    attendance: Optional[int] = None
    participation: Optional[int] = None
    feedback_score: Optional[float] = None


def to_document(item) -> dict:
    """
    Converts a dataclass into a camelCase document body.

    The `id` field is dropped since it is the document's key, not its content.
    """
    data = asdict(item)
    data.pop("id", None)
    for key, value in data.items():
        if isinstance(value, Enum):
            data[key] = value.value
    return convert_keys(data, "snake_to_camel")


def from_document(data_class, doc_id: str, data: dict):
    """Rebuilds a dataclass from a document id and its camelCase body."""
    fields = convert_keys(data, "camel_to_snake")
    fields["id"] = doc_id
    return from_dict(data_class=data_class, data=fields, config=DOCUMENT_CONFIG)
